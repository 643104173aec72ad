"""
Tests for withdrawal duration handling.

Tests cover:
- Minutes from submission/credit timestamps
- Display formatting (instant, minutes, hours)
- Admin-side duration input checks
"""

import math

import pytest

from withdrawal_audit.core.duration import (
    duration_from_timestamps,
    format_duration,
    validate_duration_input,
)


# =============================================================================
# TIMESTAMPS
# =============================================================================

class TestDurationFromTimestamps:

    def test_end_before_start_is_unavailable(self):
        assert duration_from_timestamps(1000, 500) is None

    def test_same_instant_is_zero(self):
        assert duration_from_timestamps(1000, 1000) == 0.0

    def test_converts_seconds_to_minutes(self):
        assert duration_from_timestamps(0, 90 * 60) == 90.0

    def test_rounds_to_two_places(self):
        assert duration_from_timestamps(0, 100) == 1.67

    def test_missing_timestamp(self):
        assert duration_from_timestamps(None, 500) is None
        assert duration_from_timestamps(500, None) is None


# =============================================================================
# FORMATTING
# =============================================================================

class TestFormatDuration:

    @pytest.mark.parametrize("minutes", [None, -0.5, -10, math.nan, math.inf, -math.inf, "abc"])
    def test_invalid_input_is_empty(self, minutes):
        assert format_duration(minutes) == ""

    @pytest.mark.parametrize("minutes", [0, 0.0, 0.3, 0.99])
    def test_under_a_minute_is_instant(self, minutes):
        assert format_duration(minutes) == "秒级"

    def test_minutes_with_decimal(self):
        assert format_duration(7.5) == "7.5分钟"

    def test_trailing_zero_stripped(self):
        assert format_duration(7.0) == "7分钟"
        assert format_duration(1) == "1分钟"

    def test_rounds_half_up(self):
        assert format_duration(7.25) == "7.3分钟"

    def test_hours(self):
        assert format_duration(90.0) == "1.5小时"

    def test_exactly_one_hour(self):
        assert format_duration(60) == "1小时"

    def test_long_duration(self):
        assert format_duration(600) == "10小时"

    def test_just_under_an_hour_stays_in_minutes(self):
        assert format_duration(59.99) == "60分钟"

    @pytest.mark.parametrize("minutes", [1e30, 1e100, 1.7e308])
    def test_very_large_finite_duration(self, minutes):
        text = format_duration(minutes)

        assert text.endswith("小时")
        assert text[:-2].isdigit()

    def test_very_large_duration_keeps_integer_digits(self):
        text = format_duration(1e30)

        assert text.startswith("1666666666666666")
        assert len(text[:-2]) == 29


# =============================================================================
# INPUT VALIDATION
# =============================================================================

class TestValidateDurationInput:

    @pytest.mark.parametrize("value", [None, "", "15", 15, 0, "0", 43200])
    def test_valid_values(self, value):
        assert validate_duration_input(value) == ""

    @pytest.mark.parametrize("value", ["abc", "12min", "nan", "inf", "-Infinity", math.nan, True])
    def test_non_numeric(self, value):
        assert validate_duration_input(value) == "提款耗时必须为数字（分钟）"

    def test_negative(self):
        assert validate_duration_input("-5") == "提款耗时不能为负数，请检查填写的时间"

    def test_over_thirty_days(self):
        assert validate_duration_input(43201) == "提款耗时超过30天，请核实数据是否正确"

    @pytest.mark.parametrize("value", ["1e400", " 1e400 ", math.inf])
    def test_overflowing_number_is_over_thirty_days(self, value):
        assert validate_duration_input(value) == "提款耗时超过30天，请核实数据是否正确"

    def test_overflowing_negative_number(self):
        assert validate_duration_input("-1e400") == "提款耗时不能为负数，请检查填写的时间"
