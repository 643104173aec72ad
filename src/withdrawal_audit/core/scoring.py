"""Withdrawal audit scoring engine.

Classifies a withdrawal test along four independent dimensions (speed, FX
loss, KYC friction, settlement) and folds their scores into one overall risk
band. Every classifier has a fallback code for missing or malformed input, so
a partially filled record still produces a usable result.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

from .config import ClassificationConfig, resolve_config
from .duration import duration_from_timestamps, format_duration
from .fx import classify_fx_loss, compute_cross_currency, compute_same_currency
from .models import (
    AuditEvaluation,
    DimensionResult,
    FxComputationResult,
    OverallResult,
    RawMeasurement,
    RiskLevel,
    SettlementStatus,
)
from .numeric import finite_or_none
from .rules import (
    HIGH_RISK_MAX,
    KYC_HIGH_FRICTION,
    KYC_LIGHT_FRICTION,
    KYC_NO_FRICTION,
    KYC_RULES,
    LOW_RISK_MIN,
    OVERALL_RULES,
    SETTLEMENT_RULES,
    SPEED_RULES,
    dimension,
)

logger = logging.getLogger(__name__)


def classify_speed(minutes: Any, config: Optional[ClassificationConfig] = None) -> DimensionResult:
    """Classify withdrawal speed against the configured thresholds.

    Scores: instant +2, fast +1, normal 0, slow -2, unknown -1. A value
    exactly on a threshold belongs to the faster band.
    """
    config = resolve_config(config)
    mins = finite_or_none(minutes)

    if mins is None or mins < 0:
        return dimension(SPEED_RULES, "unknown")

    if mins <= config.speed.instant:
        return dimension(SPEED_RULES, "instant")

    if mins <= config.speed.fast:
        return dimension(SPEED_RULES, "fast")

    if mins <= config.speed.slow:
        return dimension(SPEED_RULES, "normal")

    return dimension(SPEED_RULES, "slow")


def classify_kyc(kyc_status: Optional[str]) -> DimensionResult:
    """Map a KYC status token to a friction category.

    Unrecognised tokens are "moderate" rather than unknown: a value was
    recorded, we just have no specific rule for it.
    """
    if not isinstance(kyc_status, str) or not kyc_status.strip():
        return dimension(KYC_RULES, "insufficient_info")

    if kyc_status in KYC_NO_FRICTION:
        return dimension(KYC_RULES, "low_friction")

    if kyc_status in KYC_LIGHT_FRICTION:
        return dimension(KYC_RULES, "light_friction")

    if kyc_status in KYC_HIGH_FRICTION:
        return dimension(KYC_RULES, "high_friction")

    return dimension(KYC_RULES, "moderate_friction")


def classify_settlement(settlement_status: Optional[str], received_amount: Any) -> DimensionResult:
    """Classify the settlement outcome.

    A withdrawal marked successful with no positive credited amount is a
    risk signal, not a data-entry fault.
    """
    if settlement_status == SettlementStatus.SUCCESS:
        received = finite_or_none(received_amount)
        if received is not None and received > 0:
            return dimension(SETTLEMENT_RULES, "success")
        return dimension(SETTLEMENT_RULES, "failure_risk")

    if settlement_status in (SettlementStatus.FAILED, SettlementStatus.BLOCKED):
        return dimension(SETTLEMENT_RULES, "failure_risk")

    return dimension(SETTLEMENT_RULES, "needs_review")


def aggregate_risk(
    speed: DimensionResult,
    fx: DimensionResult,
    kyc: DimensionResult,
    settlement: DimensionResult,
) -> OverallResult:
    """Sum the dimension scores and band the total.

    <= -4 is high risk, >= 1 is low risk, -3..0 is medium risk.
    """
    total = speed.score + fx.score + kyc.score + settlement.score

    if total <= HIGH_RISK_MAX:
        level = RiskLevel.HIGH_RISK
    elif total >= LOW_RISK_MIN:
        level = RiskLevel.LOW_RISK
    else:
        level = RiskLevel.MEDIUM_RISK

    label, color = OVERALL_RULES[level]
    return OverallResult(
        speed=speed,
        fx=fx,
        kyc=kyc,
        settlement=settlement,
        total_score=total,
        overall_code=level,
        overall_label=label,
        overall_color=color,
    )


def _measurement_duration(measurement: RawMeasurement) -> Optional[float]:
    if measurement.duration_minutes is not None:
        return measurement.duration_minutes
    return duration_from_timestamps(measurement.start_timestamp, measurement.end_timestamp)


def _compute_fx(
    measurement: RawMeasurement,
    config: ClassificationConfig,
) -> tuple[Optional[FxComputationResult], Optional[FxComputationResult]]:
    applied_ccy = measurement.applied_currency.strip().upper()
    received_ccy = measurement.received_currency.strip().upper()

    if not received_ccy or applied_ccy == received_ccy:
        same = compute_same_currency(
            measurement.applied_amount,
            applied_ccy or received_ccy,
            measurement.received_amount,
            config,
        )
        return same, None

    if measurement.reference_rate is None:
        logger.debug("No reference rate for %s -> %s, FX loss left unclassified", applied_ccy, received_ccy)
        return None, None

    cross = compute_cross_currency(
        measurement.applied_amount,
        applied_ccy,
        measurement.received_amount,
        received_ccy,
        measurement.reference_rate,
        config,
    )
    return None, cross


def evaluate_withdrawal(
    measurement: RawMeasurement,
    config: Optional[Union[ClassificationConfig, Mapping[str, Any]]] = None,
) -> AuditEvaluation:
    """Run every classifier over one measurement and aggregate the result.

    ``config`` may be a full ``ClassificationConfig`` or a partial mapping of
    overrides, merged per field against the standard profile.
    """
    config = resolve_config(config)

    minutes = _measurement_duration(measurement)
    same, cross = _compute_fx(measurement, config)
    computation = cross if cross is not None else same
    loss_pct = computation.effective_loss_pct if computation is not None else None

    result = aggregate_risk(
        speed=classify_speed(minutes, config),
        fx=classify_fx_loss(loss_pct, config),
        kyc=classify_kyc(measurement.kyc_status),
        settlement=classify_settlement(measurement.settlement_status, measurement.received_amount),
    )

    return AuditEvaluation(
        result=result,
        duration_minutes=minutes,
        duration_text=format_duration(minutes),
        same_currency=same,
        cross_currency=cross,
    )
