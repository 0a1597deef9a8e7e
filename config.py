from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Tuple

from dotenv import load_dotenv

DEFAULT_DATA_PATH = "data/cars.json"
DEFAULT_BASE_URL = "http://127.0.0.1:1121"

@dataclass(frozen=True)
class Settings:
    data_path: str = DEFAULT_DATA_PATH
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 10.0
    retries: int = 3
    backoff: float = 0.5
    log_level: str = "INFO"
    cors_origins: Tuple[str, ...] = ("*",)

def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default

def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default

def load_settings() -> Settings:
    load_dotenv()
    origins = tuple(
        o.strip() for o in os.getenv("CAR_GUESS_CORS_ORIGINS", "*").split(",") if o.strip()
    )
    return Settings(
        data_path=os.getenv("CAR_GUESS_DATA", DEFAULT_DATA_PATH),
        base_url=os.getenv("CAR_GUESS_BASE_URL", DEFAULT_BASE_URL),
        timeout=_env_float("CAR_GUESS_TIMEOUT", 10.0),
        retries=max(0, _env_int("CAR_GUESS_RETRIES", 3)),
        backoff=max(0.0, _env_float("CAR_GUESS_BACKOFF", 0.5)),
        log_level=os.getenv("CAR_GUESS_LOG_LEVEL", "INFO").upper(),
        cors_origins=origins or ("*",),
    )
