from __future__ import annotations
import math
from typing import Any, Mapping, Optional

from models import CarRecord, ScoreBreakdown, finite_number, resolve_price

MAX_PRICE_SCORE = 4000
EXACT_MODEL_SCORE = 1000
PARTIAL_MODEL_SCORE = 500
MIN_PARTIAL_LENGTH = 3

def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))

def target_price(truth: Any) -> Optional[float]:
    if isinstance(truth, CarRecord):
        return truth.target_price
    if isinstance(truth, Mapping):
        legacy = truth.get("initial_price_rub", truth.get("initialPriceRub"))
        return resolve_price(truth.get("price"), legacy)
    return None

def target_title(truth: Any) -> Optional[str]:
    if isinstance(truth, CarRecord):
        title = truth.title
    elif isinstance(truth, Mapping):
        title = truth.get("title")
    else:
        return None
    return title if isinstance(title, str) else None

def coerce_guess_price(value: Any) -> Optional[float]:
    """
    Numbers pass through if finite; anything else gets a best-effort float()
    conversion. Negative or non-finite results are rejected.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        parsed = finite_number(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            parsed = finite_number(float(text))
        except (TypeError, ValueError):
            return None
    if parsed is None or parsed < 0:
        return None
    return parsed

def relative_error(guess: float, target: float) -> float:
    return abs(guess - target) / target

def price_score(guess_price: Any, truth: Any) -> tuple[int, Optional[float]]:
    target = target_price(truth)
    guess = coerce_guess_price(guess_price)
    if target is None or target <= 0 or guess is None:
        return 0, None
    err = relative_error(guess, target)
    if not math.isfinite(err):
        return 0, None
    return max(0, _round_half_up(MAX_PRICE_SCORE * (1 - err))), err

def model_score(guess_model: Any, truth: Any) -> int:
    title = target_title(truth)
    if not isinstance(guess_model, str) or not guess_model or title is None:
        return 0
    guess = guess_model.casefold()
    actual = title.casefold()
    if guess == actual:
        return EXACT_MODEL_SCORE
    if len(guess) >= MIN_PARTIAL_LENGTH and guess in actual:
        return PARTIAL_MODEL_SCORE
    return 0

def score_guess(guess_price: Any, guess_model: Any, truth: Any) -> ScoreBreakdown:
    """
    Score one guess against the revealed listing. Pure; malformed input on
    either dimension scores 0 for that dimension instead of raising.
    """
    p_score, err = price_score(guess_price, truth)
    m_score = model_score(guess_model, truth)
    correct = truth if isinstance(truth, CarRecord) else None
    return ScoreBreakdown(
        price_score=p_score,
        model_score=m_score,
        total_score=p_score + m_score,
        error=err,
        correct=correct,
    )
