"""Hidden foreign-exchange loss in platform withdrawals.

Platforms often convert at an undisclosed rate that sits well off the market
mid-rate, which works as an extra fee. These functions surface that loss as a
percentage, either against the requested amount (same currency) or against
what a fair mid-rate conversion should have paid out (cross currency), and
then band it for display.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .config import ClassificationConfig, resolve_config
from .models import DimensionResult, ErrorKind, FxComputationResult
from .numeric import finite_or_none
from .rules import FX_RULES, dimension

logger = logging.getLogger(__name__)

# Credited amounts above 105% of the request (or of the fair expected amount)
# are transcription errors, not gains.
DATA_ENTRY_TOLERANCE = 1.05

AMOUNT_PLACES = 8
PCT_PLACES = 4


def _failed(kind: ErrorKind, reason: str, cross: bool, **extra: Any) -> FxComputationResult:
    logger.warning("FX computation rejected (%s): %s", kind.value, reason)
    return FxComputationResult(error=kind, error_reason=reason, has_cross_currency=cross, **extra)


def _currency(code: Optional[str]) -> Optional[str]:
    if not code:
        return None
    return code.strip().upper() or None


def compute_same_currency(
    applied_amount: Any,
    currency: Optional[str],
    received_amount: Any,
    config: Optional[ClassificationConfig] = None,
) -> FxComputationResult:
    """Platform-side shortfall on a withdrawal with no currency conversion.

    ``loss_pct`` is measured against the requested amount; ``deviation_pct``
    stays None because there is no market rate to deviate from.
    """
    config = resolve_config(config)
    ccy = _currency(currency)
    labels = {"applied_currency": ccy, "received_currency": ccy}

    applied = finite_or_none(applied_amount)
    if applied is None or applied <= 0:
        return _failed(ErrorKind.INVALID_INPUT, "apply_amount_invalid", False, **labels)

    received = finite_or_none(received_amount)
    if received is None:
        return _failed(ErrorKind.INVALID_INPUT, "received_amount_invalid", False, **labels)

    if received > applied * DATA_ENTRY_TOLERANCE:
        return _failed(ErrorKind.DATA_ENTRY_ERROR, "received_exceeds_applied", False, **labels)

    loss_amount = round(applied - received, AMOUNT_PLACES)
    loss_pct = round(loss_amount / applied * 100, PCT_PLACES)

    return FxComputationResult(
        loss_amount=loss_amount,
        loss_pct=loss_pct,
        deviation_pct=None,
        severe_loss=loss_pct > config.severe_loss_threshold,
        has_cross_currency=False,
        **labels,
    )


def compute_cross_currency(
    applied_amount: Any,
    applied_currency: Optional[str],
    received_amount: Any,
    received_currency: Optional[str],
    reference_rate: Any,
    config: Optional[ClassificationConfig] = None,
) -> FxComputationResult:
    """Loss on a converted withdrawal, measured against the market mid-rate.

    The hidden loss is the gap between what the user should have received at
    ``reference_rate`` (1 unit of the applied currency = N units of the received
    currency) and what was actually credited. ``deviation_pct`` and ``loss_pct``
    carry the same value in this mode.
    """
    config = resolve_config(config)
    labels = {
        "applied_currency": _currency(applied_currency),
        "received_currency": _currency(received_currency),
    }

    applied = finite_or_none(applied_amount)
    if applied is None or applied <= 0:
        return _failed(ErrorKind.INVALID_INPUT, "apply_amount_invalid", True, **labels)

    rate = finite_or_none(reference_rate)
    if rate is None or rate <= 0:
        return _failed(ErrorKind.INVALID_INPUT, "reference_rate_invalid", True, **labels)
    labels["reference_rate"] = rate

    received = finite_or_none(received_amount)
    if received is None:
        return _failed(ErrorKind.INVALID_INPUT, "received_amount_invalid", True, **labels)

    expected_amount = round(applied * rate, AMOUNT_PLACES)
    if expected_amount <= 0:
        return _failed(ErrorKind.EXPECTED_AMOUNT_ZERO, "expected_amount_zero", True, **labels)

    if received > expected_amount * DATA_ENTRY_TOLERANCE:
        return _failed(ErrorKind.DATA_ENTRY_ERROR, "received_exceeds_expected", True, **labels)

    loss_amount = round(expected_amount - received, AMOUNT_PLACES)
    deviation_pct = round(loss_amount / expected_amount * 100, PCT_PLACES)

    return FxComputationResult(
        loss_amount=loss_amount,
        loss_pct=deviation_pct,
        deviation_pct=deviation_pct,
        expected_amount=expected_amount,
        severe_loss=deviation_pct > config.severe_loss_threshold,
        has_cross_currency=True,
        **labels,
    )


def classify_fx_loss(loss_pct: Any, config: Optional[ClassificationConfig] = None) -> DimensionResult:
    """Band a loss percentage for display.

    Pass ``FxComputationResult.effective_loss_pct`` (deviation if present, else
    same-currency loss). A loss exactly at a threshold belongs to the lower band.
    """
    config = resolve_config(config)
    pct = finite_or_none(loss_pct)

    if pct is None:
        return dimension(FX_RULES, "unknown")

    if pct < 0:
        return dimension(FX_RULES, "fx_gain")

    if pct == 0:
        return dimension(FX_RULES, "zero_loss")

    if pct <= config.loss.normal:
        return dimension(FX_RULES, "minimal")

    if pct <= config.loss.warn:
        return dimension(FX_RULES, "moderate")

    return dimension(FX_RULES, "severe")
