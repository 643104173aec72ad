"""Withdrawal Audit MCP Server.

Exposes the audit engine as read-only MCP tools: full withdrawal audits,
FX loss figures, speed classification, and admin-side duration checks.

Run: withdrawal-audit-mcp
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional, Union

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from .core.config import ClassificationConfig, load_config, resolve_config
from .core.duration import duration_from_timestamps, format_duration, validate_duration_input
from .core.fx import classify_fx_loss, compute_cross_currency, compute_same_currency
from .core.models import AuditEvaluation, FxComputationResult, RawMeasurement
from .core.scoring import classify_speed, evaluate_withdrawal

logger = logging.getLogger(__name__)

READ_ONLY = ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=True, openWorldHint=False)

_config: Optional[ClassificationConfig] = None


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Configure logging and load the deployment's classification thresholds."""
    global _config
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    _config = load_config()
    logger.info(
        "Classification config loaded (speed %s / %s / %s min, loss %s / %s %%, severe > %s %%)",
        _config.speed.instant,
        _config.speed.fast,
        _config.speed.slow,
        _config.loss.normal,
        _config.loss.warn,
        _config.severe_loss_threshold,
    )
    yield


mcp = FastMCP(
    "Withdrawal Audit",
    instructions="Audit real-money platform withdrawals — processing speed, hidden FX loss against the market mid-rate, KYC friction, and settlement outcome, combined into one risk rating.",
    lifespan=lifespan,
)


def _get_config(overrides: Optional[dict] = None) -> ClassificationConfig:
    global _config
    if _config is None:
        _config = load_config()
    return resolve_config(overrides, base=_config)


def _fx_summary(fx: Optional[FxComputationResult]) -> str:
    """One-line display text for an FX computation."""
    if fx is None:
        return "FX loss not computed (no reference rate for the currency pair)."
    if fx.error is not None:
        return f"FX figures rejected: {fx.error_reason}."
    if fx.has_cross_currency:
        return (
            f"Expected {fx.expected_amount:,.2f} {fx.received_currency or ''} at {fx.reference_rate}, "
            f"deviation {fx.deviation_pct:.2f}%."
        )
    return f"{fx.loss_pct:.2f}% loss ({fx.loss_amount:,.2f} {fx.applied_currency or ''})."


def _audit_summary(evaluation: AuditEvaluation) -> str:
    result = evaluation.result
    parts = [
        f"Overall: {result.overall_label} ({result.overall_code.value}, score {result.total_score:+d})",
        f"Speed: {result.speed.label}" + (f" ({evaluation.duration_text})" if evaluation.duration_text else ""),
        f"FX: {result.fx.label}",
        f"KYC: {result.kyc.label}",
        f"Settlement: {result.settlement.label}",
    ]
    return " | ".join(parts)


# ─── Tool 1: Full Audit ──────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
def audit_withdrawal(
    applied_amount: Optional[float] = None,
    received_amount: Optional[float] = None,
    applied_currency: str = "",
    received_currency: str = "",
    reference_rate: Optional[float] = None,
    duration_minutes: Optional[float] = None,
    start_timestamp: Optional[int] = None,
    end_timestamp: Optional[int] = None,
    kyc_status: Optional[str] = None,
    settlement_status: Optional[str] = None,
    config_overrides: Optional[dict] = None,
) -> dict:
    """Score one withdrawal test on speed, FX loss, KYC friction and settlement, plus an overall risk band.

    Args:
        applied_amount: Amount requested for withdrawal.
        received_amount: Amount actually credited.
        applied_currency: Currency of the request (e.g., 'CNY', 'USDT').
        received_currency: Currency credited. Leave empty if same as applied.
        reference_rate: Market mid-rate, 1 unit applied = N units received. Needed for cross-currency.
        duration_minutes: Processing time in minutes. Takes precedence over timestamps.
        start_timestamp: Unix time the withdrawal was submitted.
        end_timestamp: Unix time the funds were credited.
        kyc_status: KYC token — 'none', 'sms', 'id_card', 'video', 'face', 'stuck', ...
        settlement_status: 'success', 'failed', 'blocked', 'pending', ...
        config_overrides: Partial thresholds, e.g. {"speed": {"instant": 2}}.
    """
    measurement = RawMeasurement(
        applied_amount=applied_amount,
        received_amount=received_amount,
        applied_currency=applied_currency,
        received_currency=received_currency,
        reference_rate=reference_rate,
        duration_minutes=duration_minutes,
        start_timestamp=start_timestamp,
        end_timestamp=end_timestamp,
        kyc_status=kyc_status,
        settlement_status=settlement_status,
    )
    evaluation = evaluate_withdrawal(measurement, _get_config(config_overrides))
    fx = evaluation.fx_computation

    return {
        "title": "Withdrawal Audit",
        "result": evaluation.result.model_dump(mode="json"),
        "duration_minutes": evaluation.duration_minutes,
        "duration_text": evaluation.duration_text,
        "fx_computation": fx.model_dump(mode="json") if fx is not None else None,
        "fx_summary": _fx_summary(fx),
        "summary": _audit_summary(evaluation),
    }


# ─── Tool 2: FX Loss ─────────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
def withdrawal_fx_loss(
    applied_amount: float,
    applied_currency: str,
    received_amount: float,
    received_currency: str = "",
    reference_rate: Optional[float] = None,
    config_overrides: Optional[dict] = None,
) -> dict:
    """Hidden FX loss on a withdrawal — same-currency shortfall or deviation from the market mid-rate.

    Args:
        applied_amount: Amount requested (in applied currency).
        applied_currency: Source currency code.
        received_amount: Amount credited (in received currency).
        received_currency: Target currency code. Leave empty for same-currency.
        reference_rate: Market mid-rate, 1 applied = N received. Required when currencies differ.
        config_overrides: Partial thresholds, e.g. {"loss": {"warn": 3.0}}.
    """
    config = _get_config(config_overrides)
    same_currency = not received_currency or received_currency.strip().upper() == applied_currency.strip().upper()

    fx: FxComputationResult
    if same_currency:
        fx = compute_same_currency(applied_amount, applied_currency, received_amount, config)
    else:
        fx = compute_cross_currency(
            applied_amount, applied_currency, received_amount, received_currency, reference_rate, config
        )

    classification = classify_fx_loss(fx.effective_loss_pct, config)
    return {
        "title": "FX Loss",
        "computation": fx.model_dump(mode="json"),
        "effective_loss_pct": fx.effective_loss_pct,
        "classification": classification.model_dump(mode="json"),
        "summary": _fx_summary(fx) + f" {classification.label}.",
    }


# ─── Tool 3: Speed ───────────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
def withdrawal_speed(
    duration_minutes: Optional[float] = None,
    start_timestamp: Optional[int] = None,
    end_timestamp: Optional[int] = None,
    config_overrides: Optional[dict] = None,
) -> dict:
    """Classify withdrawal processing speed from a duration or a pair of timestamps.

    Args:
        duration_minutes: Processing time in minutes. Takes precedence over timestamps.
        start_timestamp: Unix time the withdrawal was submitted.
        end_timestamp: Unix time the funds were credited.
        config_overrides: Partial thresholds, e.g. {"speed": {"fast": 20}}.
    """
    config = _get_config(config_overrides)
    minutes: Any = duration_minutes
    if minutes is None:
        minutes = duration_from_timestamps(start_timestamp, end_timestamp)

    classification = classify_speed(minutes, config)
    text = format_duration(minutes)
    return {
        "title": "Withdrawal Speed",
        "duration_minutes": minutes,
        "duration_text": text,
        "classification": classification.model_dump(mode="json"),
        "summary": f"{classification.label}" + (f" ({text})" if text else ""),
    }


# ─── Tool 4: Duration Input Check ────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
def validate_withdrawal_duration(value: Optional[Union[str, float]] = None) -> dict:
    """Check an admin-entered withdrawal duration before it is saved to an audit record.

    Args:
        value: Duration in minutes, as entered (text or number). Empty is allowed.
    """
    error = validate_duration_input(value)
    return {
        "title": "Duration Check",
        "value": value,
        "valid": error == "",
        "error": error,
        "summary": error or "Duration is valid.",
    }


def main():
    """Entry point for the CLI command."""
    mcp.run()


if __name__ == "__main__":
    main()
