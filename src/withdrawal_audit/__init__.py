"""Withdrawal Audit MCP Server.

Scores real-money withdrawal tests — speed, hidden FX loss, KYC friction and
settlement — and folds them into one overall risk band.
"""

__version__ = "0.1.0"

from .core.models import AuditEvaluation, RawMeasurement
from .core.scoring import evaluate_withdrawal

__all__ = ["AuditEvaluation", "RawMeasurement", "evaluate_withdrawal"]
