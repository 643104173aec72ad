"""
Tests for the FX loss calculator.

Tests cover:
- Same-currency shortfall figures and guards
- Cross-currency deviation against the reference rate
- The binary severe-loss flag
- Four-band loss classification
"""

import math

import pytest
from pydantic import ValidationError

from withdrawal_audit.core.config import ClassificationConfig, LossThresholds
from withdrawal_audit.core.fx import (
    classify_fx_loss,
    compute_cross_currency,
    compute_same_currency,
)
from withdrawal_audit.core.models import ErrorKind, FxComputationResult


# =============================================================================
# SAME CURRENCY
# =============================================================================

class TestComputeSameCurrency:

    def test_basic_shortfall(self):
        result = compute_same_currency(1000, "USDT", 995)

        assert result.error is None
        assert result.loss_amount == 5.0
        assert result.loss_pct == 0.5
        assert result.deviation_pct is None
        assert result.has_cross_currency is False
        assert result.severe_loss is False

    def test_currency_uppercased(self):
        result = compute_same_currency(1000, "usdt", 995)
        assert result.applied_currency == "USDT"
        assert result.received_currency == "USDT"

    def test_received_far_above_applied_is_data_entry_error(self):
        result = compute_same_currency(1000, "USDT", 1100)

        assert result.error == ErrorKind.DATA_ENTRY_ERROR
        assert result.error_reason == "received_exceeds_applied"
        assert result.loss_amount is None
        assert result.loss_pct is None
        assert result.deviation_pct is None
        assert result.expected_amount is None

    def test_small_surplus_within_tolerance_is_negative_loss(self):
        result = compute_same_currency(1000, "USDT", 1040)

        assert result.error is None
        assert result.loss_amount == -40.0
        assert result.loss_pct == -4.0

    @pytest.mark.parametrize("applied", [0, -100, None, math.nan, math.inf])
    def test_invalid_applied_amount(self, applied):
        result = compute_same_currency(applied, "USDT", 10)

        assert result.error == ErrorKind.INVALID_INPUT
        assert result.error_reason == "apply_amount_invalid"

    def test_invalid_received_amount(self):
        result = compute_same_currency(1000, "USDT", None)

        assert result.error == ErrorKind.INVALID_INPUT
        assert result.error_reason == "received_amount_invalid"

    def test_severe_loss_flag(self):
        result = compute_same_currency(1000, "USDT", 970)

        assert result.loss_pct == 3.0
        assert result.severe_loss is True

    def test_severe_loss_is_strictly_above_threshold(self):
        result = compute_same_currency(1000, "USDT", 980)

        assert result.loss_pct == 2.0
        assert result.severe_loss is False

    def test_severe_loss_threshold_from_config(self):
        config = ClassificationConfig(severe_loss_threshold=0.25)
        result = compute_same_currency(1000, "USDT", 995, config)

        assert result.severe_loss is True

    @pytest.mark.parametrize(
        "applied, currency, received, loss_amount, loss_pct",
        [
            (3, "USDT", 2, 1.0, 33.3333),
            (0.00012345, "BTC", 0.00012, 3.45e-06, 2.7947),
            (1e12, "CNY", 9.87654321e11, 12345679000.0, 1.2346),
        ],
    )
    def test_rounding_across_magnitudes(self, applied, currency, received, loss_amount, loss_pct):
        result = compute_same_currency(applied, currency, received)

        assert result.loss_amount == pytest.approx(loss_amount, rel=1e-12, abs=1e-12)
        assert result.loss_pct == pytest.approx(loss_pct, abs=1e-9)
        assert result.loss_amount == round(result.loss_amount, 8)
        assert result.loss_pct == round(result.loss_pct, 4)


# =============================================================================
# CROSS CURRENCY
# =============================================================================

class TestComputeCrossCurrency:

    def test_basic_deviation(self):
        result = compute_cross_currency(5000, "cny", 3050, "myr", 0.62)

        assert result.error is None
        assert result.expected_amount == pytest.approx(3100)
        assert result.loss_amount == pytest.approx(50)
        assert result.deviation_pct == pytest.approx(1.6129)
        assert result.loss_pct == result.deviation_pct
        assert result.has_cross_currency is True
        assert result.applied_currency == "CNY"
        assert result.received_currency == "MYR"
        assert result.reference_rate == 0.62
        assert result.severe_loss is False

    @pytest.mark.parametrize(
        "applied, received, rate, expected_amount, loss_amount, deviation_pct",
        [
            (1e12, 6.1e11, 0.62, 6.2e11, 1e10, 1.6129),
            (0.5, 0.000006, 0.00001234, 6.17e-06, 1.7e-07, 2.7553),
        ],
    )
    def test_rounding_across_magnitudes(self, applied, received, rate, expected_amount, loss_amount, deviation_pct):
        result = compute_cross_currency(applied, "CNY", received, "BTC", rate)

        assert result.expected_amount == pytest.approx(expected_amount, rel=1e-12, abs=1e-12)
        assert result.loss_amount == pytest.approx(loss_amount, rel=1e-9, abs=1e-12)
        assert result.deviation_pct == pytest.approx(deviation_pct, abs=1e-9)
        assert result.expected_amount == round(result.expected_amount, 8)
        assert result.loss_amount == round(result.loss_amount, 8)
        assert result.deviation_pct == round(result.deviation_pct, 4)
        assert result.loss_pct == result.deviation_pct

    def test_severe_deviation(self):
        result = compute_cross_currency(5000, "CNY", 3000, "MYR", 0.62)

        assert result.deviation_pct == pytest.approx(3.2258)
        assert result.severe_loss is True

    @pytest.mark.parametrize("rate", [0, -0.5, None, math.nan])
    def test_invalid_rate(self, rate):
        result = compute_cross_currency(5000, "CNY", 3050, "MYR", rate)

        assert result.error == ErrorKind.INVALID_INPUT
        assert result.error_reason == "reference_rate_invalid"
        assert result.has_cross_currency is True

    def test_invalid_applied_amount(self):
        result = compute_cross_currency(0, "CNY", 3050, "MYR", 0.62)

        assert result.error == ErrorKind.INVALID_INPUT
        assert result.error_reason == "apply_amount_invalid"

    def test_expected_amount_rounds_to_zero(self):
        result = compute_cross_currency(0.000000001, "BTC", 0, "USDT", 0.001)

        assert result.error == ErrorKind.EXPECTED_AMOUNT_ZERO
        assert result.expected_amount is None

    def test_received_far_above_expected_is_data_entry_error(self):
        result = compute_cross_currency(5000, "CNY", 3300, "MYR", 0.62)

        assert result.error == ErrorKind.DATA_ENTRY_ERROR
        assert result.error_reason == "received_exceeds_expected"
        assert result.loss_amount is None
        assert result.deviation_pct is None

    def test_effective_loss_pct_prefers_deviation(self):
        result = compute_cross_currency(5000, "CNY", 3050, "MYR", 0.62)
        assert result.effective_loss_pct == result.deviation_pct

    def test_effective_loss_pct_falls_back_to_loss_pct(self):
        result = compute_same_currency(1000, "USDT", 995)
        assert result.effective_loss_pct == 0.5


class TestFxComputationResultInvariant:

    def test_error_with_figures_rejected(self):
        with pytest.raises(ValidationError):
            FxComputationResult(error=ErrorKind.INVALID_INPUT, loss_amount=1.0, loss_pct=1.0)

    def test_success_without_figures_rejected(self):
        with pytest.raises(ValidationError):
            FxComputationResult(loss_amount=1.0)


# =============================================================================
# CLASSIFICATION
# =============================================================================

class TestClassifyFxLoss:

    @pytest.mark.parametrize("pct", [None, math.nan, math.inf])
    def test_missing_is_unknown(self, pct):
        result = classify_fx_loss(pct)

        assert result.code == "unknown"
        assert result.score == -1
        assert result.label == "汇损数据缺失"

    def test_favourable_rate(self):
        result = classify_fx_loss(-1.2)

        assert result.code == "fx_gain"
        assert result.score == 1
        assert "无汇损" in result.tags

    def test_exactly_zero(self):
        result = classify_fx_loss(0.0)

        assert result.code == "zero_loss"
        assert result.score == 1
        assert result.tags == ["无汇损"]

    @pytest.mark.parametrize(
        "pct, code, score",
        [
            (0.1, "minimal", 1),
            (0.5, "minimal", 1),
            (0.5001, "moderate", -1),
            (2.0, "moderate", -1),
            (2.0001, "severe", -3),
            (15, "severe", -3),
        ],
    )
    def test_bands(self, pct, code, score):
        result = classify_fx_loss(pct)

        assert result.code == code
        assert result.score == score

    def test_custom_thresholds(self):
        config = ClassificationConfig(loss=LossThresholds(normal=1.0, warn=5.0))

        assert classify_fx_loss(0.8, config).code == "minimal"
        assert classify_fx_loss(4.0, config).code == "moderate"
        assert classify_fx_loss(5.5, config).code == "severe"

    def test_bands_independent_of_severe_flag_threshold(self):
        config = ClassificationConfig(severe_loss_threshold=10.0)
        assert classify_fx_loss(3.0, config).code == "severe"
