"""Pydantic data models — the shared audit records.

Both the engine and the MCP server use these models as the common interface
for measurements, per-dimension classifications, and the composite result.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SettlementStatus(str, Enum):
    """Settlement outcome reported for a withdrawal test."""

    SUCCESS = "success"
    FAILED = "failed"
    BLOCKED = "blocked"
    OTHER = "other"


class ErrorKind(str, Enum):
    """Failure kinds for FX amount/percentage computation."""

    INVALID_INPUT = "invalid_input"
    EXPECTED_AMOUNT_ZERO = "expected_amount_zero"
    DATA_ENTRY_ERROR = "data_entry_error"


class RiskLevel(str, Enum):
    """Overall risk band."""

    HIGH_RISK = "high_risk"
    MEDIUM_RISK = "medium_risk"
    LOW_RISK = "low_risk"


class RiskColor(str, Enum):
    RED = "red"
    ORANGE = "orange"
    GREEN = "green"


class RawMeasurement(BaseModel):
    """Raw figures recorded during a single real-money withdrawal test."""

    model_config = ConfigDict(frozen=True)

    applied_amount: Optional[float] = Field(None, description="Amount requested for withdrawal")
    received_amount: Optional[float] = Field(None, description="Amount actually credited")
    applied_currency: str = ""
    received_currency: str = ""
    reference_rate: Optional[float] = Field(
        None, description="Market mid-rate: 1 unit of applied currency = N units of received currency"
    )
    start_timestamp: Optional[int] = Field(None, description="Unix time the withdrawal was submitted")
    end_timestamp: Optional[int] = Field(None, description="Unix time the funds were credited")
    duration_minutes: Optional[float] = Field(None, description="Processing time, overrides timestamps when set")
    kyc_status: Optional[str] = None
    settlement_status: Optional[str] = None


class DimensionResult(BaseModel):
    """Classification of one audit dimension."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(description="Stable machine identifier")
    label: str = Field(description="Display label")
    score: int = Field(description="Score contribution to the overall risk")
    tags: list[str] = Field(default_factory=list, description="Display / structured-data tags")


class FxComputationResult(BaseModel):
    """Loss figures for one withdrawal, or the reason they could not be computed."""

    model_config = ConfigDict(frozen=True)

    loss_amount: Optional[float] = None
    loss_pct: Optional[float] = None
    deviation_pct: Optional[float] = Field(None, description="Loss against the fair-rate expected amount")
    expected_amount: Optional[float] = None
    severe_loss: bool = False
    has_cross_currency: bool = False
    applied_currency: Optional[str] = None
    received_currency: Optional[str] = None
    reference_rate: Optional[float] = None
    error: Optional[ErrorKind] = None
    error_reason: Optional[str] = None

    @model_validator(mode="after")
    def _check_outcome(self) -> FxComputationResult:
        has_figures = self.loss_amount is not None and self.loss_pct is not None
        if self.error is not None and (self.loss_amount is not None or self.loss_pct is not None):
            raise ValueError("an errored FX computation cannot carry loss figures")
        if self.error is None and not has_figures:
            raise ValueError("a successful FX computation must carry loss_amount and loss_pct")
        return self

    @property
    def effective_loss_pct(self) -> Optional[float]:
        """Deviation if present, else the same-currency loss percentage."""
        if self.deviation_pct is not None:
            return self.deviation_pct
        return self.loss_pct


class OverallResult(BaseModel):
    """Composite multi-dimensional audit result."""

    model_config = ConfigDict(frozen=True)

    speed: DimensionResult
    fx: DimensionResult
    kyc: DimensionResult
    settlement: DimensionResult
    total_score: int
    overall_code: RiskLevel
    overall_label: str
    overall_color: RiskColor


class AuditEvaluation(BaseModel):
    """Everything one evaluation produces: the overall result plus the raw figures behind it."""

    model_config = ConfigDict(frozen=True)

    result: OverallResult
    duration_minutes: Optional[float] = None
    duration_text: str = ""
    same_currency: Optional[FxComputationResult] = None
    cross_currency: Optional[FxComputationResult] = None

    @property
    def fx_computation(self) -> Optional[FxComputationResult]:
        if self.cross_currency is not None:
            return self.cross_currency
        return self.same_currency
