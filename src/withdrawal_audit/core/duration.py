"""Withdrawal processing time — derivation, display formatting, and data-entry checks."""

from __future__ import annotations

import math
from typing import Any, Optional

from .numeric import finite_or_none, round_half_up

INSTANT_TEXT = "秒级"
MINUTES_SUFFIX = "分钟"
HOURS_SUFFIX = "小时"

# 30 days in minutes
MAX_PLAUSIBLE_MINUTES = 43200

_NON_NUMERIC_WORDS = frozenset({"inf", "infinity", "nan"})


def duration_from_timestamps(start_timestamp: Optional[int], end_timestamp: Optional[int]) -> Optional[float]:
    """Minutes between submission and credit, rounded to 2 places.

    A credit time before the submission time is treated as unavailable, not as
    a negative duration.
    """
    if start_timestamp is None or end_timestamp is None:
        return None
    if end_timestamp < start_timestamp:
        return None
    return round((end_timestamp - start_timestamp) / 60, 2)


def _one_decimal(value: float) -> str:
    text = format(round_half_up(value, 1), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "1"


def format_duration(minutes: Any) -> str:
    """Render a duration for display.

    Examples:
        0.3  -> "秒级"
        7.5  -> "7.5分钟"
        90.0 -> "1.5小时"
    """
    mins = finite_or_none(minutes)
    if mins is None or mins < 0:
        return ""

    if mins < 1:
        return INSTANT_TEXT

    if mins >= 60:
        return _one_decimal(mins / 60) + HOURS_SUFFIX

    return _one_decimal(mins) + MINUTES_SUFFIX


def _parse_minutes(value: Any) -> Optional[float]:
    # Numeric text that overflows (e.g. "1e400") parses to +/-inf and is range
    # checked; spelled-out inf/nan and NaN values are not numbers.
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if value.lower().lstrip("+-") in _NON_NUMERIC_WORDS:
            return None
    try:
        mins = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(mins):
        return None
    return mins


def validate_duration_input(value: Any) -> str:
    """Check an admin-entered duration (minutes). Returns an error message, or '' if valid.

    The field is optional, so None and '' are accepted.
    """
    if value is None or value == "":
        return ""

    mins = _parse_minutes(value)
    if mins is None:
        return "提款耗时必须为数字（分钟）"

    if mins < 0:
        return "提款耗时不能为负数，请检查填写的时间"

    if mins > MAX_PLAUSIBLE_MINUTES:
        return "提款耗时超过30天，请核实数据是否正确"

    return ""
