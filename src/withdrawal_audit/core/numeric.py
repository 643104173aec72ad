"""Numeric input coercion shared by the calculators."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any, Optional


def finite_or_none(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or None if it is missing, non-numeric, NaN or infinite."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def round_half_up(value: float, places: int) -> Decimal:
    """Round the decimal representation of ``value``, ties away from zero.

    Precision grows with the magnitude so very large finite values still quantize.
    """
    number = Decimal(repr(value))
    quantum = Decimal(1).scaleb(-places)
    with localcontext() as ctx:
        ctx.prec = max(28, number.adjusted() + places + 2)
        return number.quantize(quantum, rounding=ROUND_HALF_UP)
