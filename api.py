from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import Any, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from config import Settings, load_settings
from log_config import setup_logging
from models import CarImage, CarRecord
from scoring import score_guess
from store import CarStore, StoreUnavailable

log = logging.getLogger(__name__)

# ---------- Pydantic IO models ----------
class CarImageOut(BaseModel):
    src: str
    src2x: Optional[str] = None
    alt: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None

class CarOut(BaseModel):
    listing_id: Optional[str] = None
    title: Optional[str] = None
    year: Optional[int] = None
    price: Optional[float] = None
    initial_price_rub: Optional[float] = None
    description: List[str] = Field(default_factory=list)
    image: Optional[CarImageOut] = None
    images: List[CarImageOut] = Field(default_factory=list)
    subtitle: Optional[str] = None
    drive: Optional[str] = None
    engine_hp: Optional[float] = None
    engine_liters: Optional[float] = None
    fuel: Optional[str] = None
    transmission: Optional[str] = None
    mileage_km: Optional[float] = None
    location: Optional[str] = None
    price_label: Optional[str] = None
    url: Optional[str] = None

class GuessIn(BaseModel):
    # Loosely typed on purpose: bad values score 0 instead of failing validation.
    guess_price: Any = Field(None, examples=[1500000])
    guess_model: Any = Field(None, examples=["Toyota Camry"])
    correct: Any = None

class GuessOut(BaseModel):
    total_score: int
    price_score: int
    model_score: int
    error: Optional[float] = None
    correct: Any = None

class HealthOut(BaseModel):
    status: str
    cars: int
    priced: int

def _to_image_out(img: Optional[CarImage]) -> Optional[CarImageOut]:
    if img is None:
        return None
    return CarImageOut(src=img.src, src2x=img.src2x, alt=img.alt, width=img.width, height=img.height)

def _to_car_out(car: CarRecord) -> CarOut:
    data = car.to_payload()
    data["image"] = _to_image_out(car.image)
    data["images"] = [_to_image_out(i) for i in car.images]
    return CarOut(**data)

# ---------- App ----------
def create_app(store: Optional[CarStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    store = store or CarStore(settings.data_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level)
        try:
            store.open()
        except StoreUnavailable as e:
            # Keep serving; data endpoints answer 503 until the corpus is fixed.
            log.error("Car store failed to open: %s", e)
        yield
        store.close()

    app = FastAPI(title="Car Guess API", version="1.0.0", lifespan=lifespan)
    app.state.store = store
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _store(request: Request) -> CarStore:
        return request.app.state.store

    @app.get("/api/health", response_model=HealthOut)
    def health(request: Request):
        try:
            stats = _store(request).stats()
        except StoreUnavailable as e:
            raise HTTPException(status_code=503, detail=str(e))
        return HealthOut(status="ok", **stats)

    @app.get("/api/random-car", response_model=CarOut)
    def random_car(request: Request):
        try:
            car = _store(request).random_car()
        except StoreUnavailable as e:
            raise HTTPException(status_code=503, detail=str(e))
        log.debug("Serving listing %s", car.listing_id)
        return _to_car_out(car)

    @app.post("/api/guess", response_model=GuessOut)
    def guess(payload: GuessIn):
        result = score_guess(payload.guess_price, payload.guess_model, payload.correct)
        log.info(
            "Scored guess: price=%d model=%d total=%d error=%s",
            result.price_score, result.model_score, result.total_score, result.error,
        )
        return GuessOut(
            total_score=result.total_score,
            price_score=result.price_score,
            model_score=result.model_score,
            error=result.error,
            correct=payload.correct,
        )

    @app.get("/api/search-models", response_model=List[str])
    def search_models(request: Request, q: str = Query("")):
        try:
            return _store(request).search_titles(q)
        except StoreUnavailable as e:
            raise HTTPException(status_code=503, detail=str(e))
        except Exception:
            log.exception("Title search failed for %r", q)
            return JSONResponse(status_code=500, content={"error": "Server error"})

    return app

app = create_app()
