"""
Money and time helpers shared by the analyzers.
"""

import math
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional, Union


def round_half_up(value: float, places: int = 0) -> Union[int, float]:
    """
    Round half away from zero.

    Python's round() uses banker's rounding (round(2.5) == 2); chart figures
    must round 2.5 to 3.

    Returns:
        int when places is 0, float otherwise

    Raises:
        ValueError: If value is not finite or too large to round
    """
    if not math.isfinite(value):
        raise ValueError(f"Cannot round non-finite figure {value!r}")
    quantum = Decimal(1).scaleb(-places)
    try:
        rounded = Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Figure {value!r} is too large to round")
    if places == 0:
        return int(rounded)
    return float(rounded)


def as_number(value: Any) -> Optional[float]:
    """
    Coerce a stored figure to float; None for missing or blank.

    Raises:
        ValueError: If the figure is not a finite number
    """
    if value is None or value == "":
        return None
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"Figure must be a finite number, got {value!r}")
    return number


def cash_outlay(value: Any) -> Union[int, float]:
    """
    Express an amount as a cash outlay (never positive). Missing or zero is 0.

    Whole-dollar outlays come back as int, others rounded to cents.
    """
    amount = as_number(value)
    if not amount:
        return 0
    outlay = round_half_up(-abs(amount), 2)
    if outlay == int(outlay):
        return int(outlay)
    return outlay


def percent(part: float, whole: float) -> float:
    """part as a percentage of whole, 0 when whole is 0."""
    if not whole:
        return 0.0
    return part / whole * 100


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def isoformat_utc(moment: Optional[datetime] = None) -> str:
    """ISO-8601 timestamp for JSON documents."""
    return (moment or utcnow()).isoformat()
