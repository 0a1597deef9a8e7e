from __future__ import annotations
import logging
import threading
from typing import Any, Mapping, Optional, Union

from car_client import CarGameClient, CarServiceError
from formatting import parse_formatted
from models import (
    TOTAL_ROUNDS, CarImage, CarRecord, GuessInput, RoundPhase, ScoreBreakdown,
    SessionState, finite_number,
)

log = logging.getLogger(__name__)

def _score_field(value: Any) -> int:
    num = finite_number(value)
    return int(num) if num is not None else 0

def normalize_breakdown(data: Any, fallback: Optional[CarRecord]) -> ScoreBreakdown:
    """Turn a raw /api/guess response into a breakdown with safe defaults."""
    if not isinstance(data, Mapping):
        data = {}
    correct = data.get("correct")
    return ScoreBreakdown(
        price_score=_score_field(data.get("price_score")),
        model_score=_score_field(data.get("model_score")),
        total_score=_score_field(data.get("total_score")),
        error=finite_number(data.get("error")),
        correct=CarRecord.from_payload(correct) if isinstance(correct, Mapping) else fallback,
    )

class RoundController:
    """
    Drives one player's session:
    LOADING -> AWAITING_GUESS -> REVEALED -> (AWAITING_GUESS | FINISHED).
    A failed load lands in LOAD_FAILED until retry().

    Only one load/submit runs at a time; overlapping requests are ignored.
    Transitions never raise, failures end up in `phase` / `last_error`.
    """
    def __init__(self, client: CarGameClient, total_rounds: int = TOTAL_ROUNDS):
        self.client = client
        self.total_rounds = total_rounds
        self.state = SessionState()
        self.phase = RoundPhase.LOADING
        self.car: Optional[CarRecord] = None
        self.guess = GuessInput()
        self.breakdown: Optional[ScoreBreakdown] = None
        self.round_score = 0
        self.image_index = 0
        self.last_error: Optional[str] = None
        self._in_flight = threading.Lock()

    # ---------- Session lifecycle ----------
    def start(self) -> bool:
        if not self._in_flight.acquire(blocking=False):
            return False
        try:
            return self._load_car()
        finally:
            self._in_flight.release()

    def restart(self) -> bool:
        if self.phase is not RoundPhase.FINISHED:
            return False
        if not self._in_flight.acquire(blocking=False):
            return False
        try:
            self.state = SessionState()
            self.breakdown = None
            self.round_score = 0
            log.info("Session restarted")
            return self._load_car()
        finally:
            self._in_flight.release()

    def retry(self) -> bool:
        if self.phase is not RoundPhase.LOAD_FAILED:
            return False
        if not self._in_flight.acquire(blocking=False):
            return False
        try:
            return self._load_car()
        finally:
            self._in_flight.release()

    # ---------- Round handling ----------
    def advance(self) -> bool:
        if self.phase not in (RoundPhase.AWAITING_GUESS, RoundPhase.REVEALED):
            return False
        if not self._in_flight.acquire(blocking=False):
            log.debug("advance ignored: request in flight")
            return False
        try:
            if self.state.round_index >= self.total_rounds:
                self.state.finished = True
                self.phase = RoundPhase.FINISHED
                log.info("Session finished with %d points", self.state.total_score)
                return True
            self.state.round_index += 1
            return self._load_car()
        finally:
            self._in_flight.release()

    # A skipped round simply scores nothing.
    skip = advance

    def set_price_guess(self, value: Union[str, float, int, None]) -> None:
        if isinstance(value, str):
            self.guess.price = parse_formatted(value)
        else:
            self.guess.price = finite_number(value)

    def set_model_guess(self, text: str) -> None:
        self.guess.model = text or ""

    @property
    def can_submit(self) -> bool:
        return (
            self.car is not None
            and self.phase is RoundPhase.AWAITING_GUESS
            and self.breakdown is None
            and self.guess.is_valid
        )

    def submit(self) -> Optional[ScoreBreakdown]:
        if not self.can_submit:
            return None
        if not self._in_flight.acquire(blocking=False):
            log.debug("submit ignored: request in flight")
            return None
        try:
            # Re-check under the guard: a concurrent submit may have won.
            if not self.can_submit:
                return None
            try:
                raw = self.client.score_guess(self.guess.price, self.guess.model, self.car)
            except CarServiceError as e:
                self.last_error = str(e)
                log.warning("Scoring failed for round %d: %s", self.state.round_index, e)
                return None
            breakdown = normalize_breakdown(raw, self.car)
            self.breakdown = breakdown
            self.round_score = breakdown.total_score
            self.state.total_score += breakdown.total_score
            self.last_error = None
            self.phase = RoundPhase.REVEALED
            log.info("Round %d scored %d (total %d)",
                     self.state.round_index, breakdown.total_score, self.state.total_score)
            return breakdown
        finally:
            self._in_flight.release()

    # ---------- Image carousel ----------
    @property
    def active_image(self) -> Optional[CarImage]:
        gallery = self.car.gallery if self.car else []
        if not gallery:
            return None
        return gallery[self.image_index % len(gallery)]

    def next_image(self) -> None:
        self._step_image(1)

    def prev_image(self) -> None:
        self._step_image(-1)

    def _step_image(self, step: int) -> None:
        count = len(self.car.gallery) if self.car else 0
        if count:
            self.image_index = (self.image_index + step) % count

    # ---------- helpers ----------
    @property
    def round_label(self) -> int:
        return min(self.state.round_index, self.total_rounds)

    def _load_car(self) -> bool:
        # Caller holds the in-flight guard.
        self.phase = RoundPhase.LOADING
        try:
            car = self.client.random_car()
        except CarServiceError as e:
            self.car = None
            self.last_error = str(e)
            self.phase = RoundPhase.LOAD_FAILED
            log.warning("Loading round %d failed: %s", self.state.round_index, e)
            return False
        self.car = car
        self.guess = GuessInput()
        self.breakdown = None
        self.round_score = 0
        self.image_index = 0
        self.last_error = None
        self.phase = RoundPhase.AWAITING_GUESS
        log.info("Round %d/%d: %s", self.state.round_index, self.total_rounds, car.listing_id)
        return True
