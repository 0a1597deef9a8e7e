from __future__ import annotations
import re
from typing import Any, Optional

from models import finite_number

_NON_DIGITS = re.compile(r"\D")

def parse_formatted(value: str) -> Optional[int]:
    """'1 500 000 ₽' -> 1500000. Returns None when no digits are present."""
    digits = _NON_DIGITS.sub("", value or "")
    return int(digits) if digits else None

def format_number(value: float) -> str:
    # Space-grouped thousands, the way prices are shown on the listings.
    return f"{value:,.0f}".replace(",", " ")

def format_price(value: Any) -> str:
    num = finite_number(value)
    return format_number(num) if num is not None else "-"

def format_error(error: Any) -> str:
    num = finite_number(error)
    return f"{num * 100:.1f}%" if num is not None else "-"
