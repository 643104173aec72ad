"""Rule matrix — code → (label, score, tags) for every audit dimension.

Labels and tags are consumed verbatim by display and structured-data
generators downstream, so they are kept here as data rather than derived from
the codes.
"""

from __future__ import annotations

from .models import DimensionResult, RiskColor, RiskLevel

# code: (label, score, tags)
SPEED_RULES: dict[str, tuple[str, int, tuple[str, ...]]] = {
    "unknown": ("耗时数据缺失", -1, ("耗时数据缺失",)),
    "instant": ("秒级出款", 2, ("秒级出款",)),
    "fast": ("快速出款", 1, ("快速出款",)),
    "normal": ("出款时效正常", 0, ("出款时效正常",)),
    "slow": ("出款偏慢", -2, ("出款偏慢",)),
}

FX_RULES: dict[str, tuple[str, int, tuple[str, ...]]] = {
    "unknown": ("汇损数据缺失", -1, ("汇损数据缺失",)),
    "fx_gain": ("汇率有利", 1, ("无汇损", "汇率有利")),
    "zero_loss": ("无汇损", 1, ("无汇损",)),
    "minimal": ("汇损极低", 1, ("汇损极低",)),
    "moderate": ("存在汇损", -1, ("存在汇损",)),
    "severe": ("汇损严重", -3, ("汇损严重",)),
}

KYC_RULES: dict[str, tuple[str, int, tuple[str, ...]]] = {
    "insufficient_info": ("KYC信息缺失", -1, ("KYC信息缺失",)),
    "low_friction": ("无需KYC", 1, ("无需KYC",)),
    "light_friction": ("轻度KYC验证", 0, ("轻度KYC验证",)),
    "moderate_friction": ("需KYC验证", -1, ("需KYC验证",)),
    "high_friction": ("KYC验证繁琐", -2, ("KYC验证繁琐",)),
}

SETTLEMENT_RULES: dict[str, tuple[str, int, tuple[str, ...]]] = {
    "success": ("已成功到账", 2, ("已成功到账",)),
    "failure_risk": ("出款失败风险", -3, ("出款失败风险",)),
    "needs_review": ("出款状态待核实", -1, ("出款状态待核实",)),
}

# KYC tokens, matched case-sensitively
KYC_NO_FRICTION = frozenset({"none"})
KYC_LIGHT_FRICTION = frozenset({"sms", "id_card"})
KYC_HIGH_FRICTION = frozenset({"video", "face", "stuck"})

# Overall banding: total <= HIGH_RISK_MAX is high risk, total >= LOW_RISK_MIN is
# low risk, everything between (-3..0) is medium risk.
HIGH_RISK_MAX = -4
LOW_RISK_MIN = 1

OVERALL_RULES: dict[RiskLevel, tuple[str, RiskColor]] = {
    RiskLevel.HIGH_RISK: ("高风险", RiskColor.RED),
    RiskLevel.MEDIUM_RISK: ("中等风险", RiskColor.ORANGE),
    RiskLevel.LOW_RISK: ("低风险", RiskColor.GREEN),
}


def dimension(rules: dict[str, tuple[str, int, tuple[str, ...]]], code: str) -> DimensionResult:
    """Build the ``DimensionResult`` for ``code`` from a rule table."""
    label, score, tags = rules[code]
    return DimensionResult(code=code, label=label, score=score, tags=list(tags))
