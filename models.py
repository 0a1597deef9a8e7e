from __future__ import annotations
import math
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

TOTAL_ROUNDS = 5

class RoundPhase(str, Enum):
    LOADING = "loading"
    AWAITING_GUESS = "awaiting_guess"
    REVEALED = "revealed"
    FINISHED = "finished"
    LOAD_FAILED = "load_failed"

def finite_number(value: Any) -> Optional[float]:
    """Return value if it is a real, finite number (bools excluded), else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value

def resolve_price(price: Any, legacy_price: Any) -> Optional[float]:
    # Primary field wins whenever it is a finite number, even 0.
    primary = finite_number(price)
    if primary is not None:
        return primary
    return finite_number(legacy_price)

def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None

def _int_or_none(value: Any) -> Optional[int]:
    num = finite_number(value)
    return int(num) if num is not None else None

@dataclass(frozen=True)
class CarImage:
    src: str
    src2x: Optional[str] = None
    alt: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None

    @classmethod
    def from_mapping(cls, data: Any) -> Optional["CarImage"]:
        if not isinstance(data, Mapping):
            return None
        src = _str_or_none(data.get("src"))
        if not src:
            return None
        return cls(
            src=src,
            src2x=_str_or_none(data.get("src2x")) or _str_or_none(data.get("srcset2x")),
            alt=_str_or_none(data.get("alt")),
            width=_int_or_none(data.get("width")),
            height=_int_or_none(data.get("height")),
        )

def _images(raw: Any) -> List[CarImage]:
    if not isinstance(raw, list):
        return []
    out = []
    for item in raw:
        img = CarImage.from_mapping(item)
        if img is not None:
            out.append(img)
    return out

def _lines(raw: Any) -> List[str]:
    if isinstance(raw, str):
        return [raw]
    if not isinstance(raw, list):
        return []
    return [x for x in raw if isinstance(x, str)]

@dataclass(frozen=True)
class CarRecord:
    """
    One listing shown for a round. Field names follow the wire shape; the
    corpus stores the listing documents with camelCase keys (see from_document).
    """
    listing_id: Optional[str] = None
    title: Optional[str] = None
    year: Optional[int] = None
    price: Optional[float] = None
    initial_price_rub: Optional[float] = None
    description: List[str] = field(default_factory=list)
    image: Optional[CarImage] = None
    images: List[CarImage] = field(default_factory=list)
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

    @property
    def target_price(self) -> Optional[float]:
        return resolve_price(self.price, self.initial_price_rub)

    @property
    def gallery(self) -> List[CarImage]:
        if self.images:
            return list(self.images)
        return [self.image] if self.image else []

    # ---------- Conversions ----------
    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "CarRecord":
        listing_id = doc.get("listingId", doc.get("_id"))
        return cls(
            listing_id=str(listing_id) if listing_id is not None else None,
            title=_str_or_none(doc.get("title")),
            year=_int_or_none(doc.get("year")),
            price=finite_number(doc.get("price")),
            initial_price_rub=finite_number(doc.get("initialPriceRub")),
            description=_lines(doc.get("description")),
            image=CarImage.from_mapping(doc.get("image")),
            images=_images(doc.get("images")),
            subtitle=_str_or_none(doc.get("subtitle")),
            drive=_str_or_none(doc.get("drive")),
            engine_hp=finite_number(doc.get("engineHp")),
            engine_liters=finite_number(doc.get("engineLiters")),
            fuel=_str_or_none(doc.get("fuel")),
            transmission=_str_or_none(doc.get("transmission")),
            mileage_km=finite_number(doc.get("mileageKm")),
            location=_str_or_none(doc.get("location")),
            price_label=_str_or_none(doc.get("priceLabel")),
            url=_str_or_none(doc.get("url")),
        )

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "CarRecord":
        listing_id = data.get("listing_id")
        return cls(
            listing_id=str(listing_id) if listing_id is not None else None,
            title=_str_or_none(data.get("title")),
            year=_int_or_none(data.get("year")),
            price=finite_number(data.get("price")),
            initial_price_rub=finite_number(data.get("initial_price_rub")),
            description=_lines(data.get("description")),
            image=CarImage.from_mapping(data.get("image")),
            images=_images(data.get("images")),
            subtitle=_str_or_none(data.get("subtitle")),
            drive=_str_or_none(data.get("drive")),
            engine_hp=finite_number(data.get("engine_hp")),
            engine_liters=finite_number(data.get("engine_liters")),
            fuel=_str_or_none(data.get("fuel")),
            transmission=_str_or_none(data.get("transmission")),
            mileage_km=finite_number(data.get("mileage_km")),
            location=_str_or_none(data.get("location")),
            price_label=_str_or_none(data.get("price_label")),
            url=_str_or_none(data.get("url")),
        )

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)

@dataclass
class GuessInput:
    price: Optional[float] = None
    model: str = ""

    @property
    def is_valid(self) -> bool:
        price = finite_number(self.price)
        return price is not None and price >= 0 and bool(self.model.strip())

@dataclass
class ScoreBreakdown:
    price_score: int
    model_score: int
    total_score: int
    error: Optional[float] = None
    correct: Optional[CarRecord] = None

@dataclass
class SessionState:
    round_index: int = 1
    total_score: int = 0
    finished: bool = False
