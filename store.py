from __future__ import annotations
import json
import logging
import random
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from matcher import search_titles as _search_titles
from models import CarRecord

log = logging.getLogger(__name__)

class StoreUnavailable(RuntimeError):
    pass

class CarStore:
    """
    Owns the listing corpus. Constructed explicitly and passed to whoever needs
    it; open() at startup, close() at shutdown.
    """
    def __init__(self, path: Optional[str] = None, rng: Optional[random.Random] = None):
        self.path = Path(path) if path else None
        self.rng = rng or random.Random()
        self._cars: Optional[List[CarRecord]] = None

    @classmethod
    def from_records(cls, records: Iterable[Any], rng: Optional[random.Random] = None) -> "CarStore":
        store = cls(rng=rng)
        store._cars = [r if isinstance(r, CarRecord) else CarRecord.from_document(r) for r in records]
        return store

    # ---------- lifecycle ----------
    @property
    def is_open(self) -> bool:
        return self._cars is not None

    def open(self) -> "CarStore":
        if self.is_open:
            return self
        if self.path is None:
            raise StoreUnavailable("No corpus path configured")
        try:
            with self.path.open(encoding="utf-8") as fh:
                raw = json.load(fh)
        except (OSError, ValueError) as e:
            raise StoreUnavailable(f"Could not load corpus {self.path}: {e}") from e

        docs = raw.get("items", []) if isinstance(raw, dict) else raw
        if not isinstance(docs, list):
            raise StoreUnavailable(f"Corpus {self.path} is not a list of listings")
        self._cars = [CarRecord.from_document(d) for d in docs if isinstance(d, dict)]
        log.info("Loaded %d listings from %s", len(self._cars), self.path)
        return self

    def close(self) -> None:
        if self._cars is not None:
            log.info("Closing car store (%d listings)", len(self._cars))
        self._cars = None

    def __enter__(self) -> "CarStore":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    # ---------- queries ----------
    def _require_cars(self) -> List[CarRecord]:
        if self._cars is None:
            raise StoreUnavailable("Car store is not open")
        return self._cars

    def count(self) -> int:
        return len(self._require_cars())

    def random_car(self) -> CarRecord:
        cars = self._require_cars()
        if not cars:
            raise StoreUnavailable("Car store is empty")
        return cars[self.rng.randrange(len(cars))]

    def titles(self) -> List[Optional[str]]:
        return [c.title for c in self._require_cars()]

    def search_titles(self, query: Any) -> List[str]:
        return _search_titles(query, self.titles())

    def stats(self) -> Dict[str, int]:
        cars = self._require_cars()
        priced = sum(1 for c in cars if c.target_price is not None)
        return {"cars": len(cars), "priced": priced}
