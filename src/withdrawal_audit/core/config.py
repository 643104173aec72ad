"""Classification thresholds and deployment profiles.

Every classifier reads its thresholds from a ``ClassificationConfig``; none of
them carries hard-coded limits. Partial overrides are merged field by field,
so ``{"speed": {"instant": 2}}`` leaves ``fast`` and ``slow`` untouched.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "standard"


class SpeedThresholds(BaseModel):
    """Upper bounds (inclusive, in minutes) of the instant / fast / normal speed bands."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    instant: float = 5
    fast: float = 30
    slow: float = 240


class LossThresholds(BaseModel):
    """Upper bounds (inclusive, in percent) of the minimal / moderate FX loss bands."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    normal: float = 0.5
    warn: float = 2.0


class ClassificationConfig(BaseModel):
    """All thresholds consumed by the classifiers."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    speed: SpeedThresholds = Field(default_factory=SpeedThresholds)
    loss: LossThresholds = Field(default_factory=LossThresholds)
    severe_loss_threshold: float = Field(
        2.0, description="Loss percentage above which the binary severe_loss flag is raised"
    )

    def with_overrides(self, overrides: Optional[Union[Mapping[str, Any], BaseModel]]) -> ClassificationConfig:
        """Return a new config with only the supplied fields replaced."""
        if not overrides:
            return self
        if isinstance(overrides, BaseModel):
            overrides = overrides.model_dump(exclude_unset=True)
        merged = _merge(self.model_dump(), overrides)
        return ClassificationConfig.model_validate(merged)


PROFILES: dict[str, ClassificationConfig] = {
    "standard": ClassificationConfig(),
    "strict": ClassificationConfig(speed=SpeedThresholds(instant=1, fast=15, slow=120)),
}

_ENV_FIELDS = {
    "AUDIT_SPEED_INSTANT": ("speed", "instant"),
    "AUDIT_SPEED_FAST": ("speed", "fast"),
    "AUDIT_SPEED_SLOW": ("speed", "slow"),
    "AUDIT_LOSS_NORMAL": ("loss", "normal"),
    "AUDIT_LOSS_WARN": ("loss", "warn"),
    "AUDIT_SEVERE_LOSS_THRESHOLD": ("severe_loss_threshold",),
}


def _merge(base: dict, overrides: Mapping[str, Any]) -> dict:
    merged = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        if isinstance(value, BaseModel):
            value = value.model_dump(exclude_unset=True)
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def get_profile(name: str) -> ClassificationConfig:
    """Look up a named deployment profile."""
    try:
        return PROFILES[name]
    except KeyError:
        raise ValueError(f"Unknown classification profile '{name}'. Available: {', '.join(sorted(PROFILES))}") from None


def resolve_config(
    config: Optional[Union[ClassificationConfig, Mapping[str, Any]]] = None,
    base: Optional[ClassificationConfig] = None,
) -> ClassificationConfig:
    """Turn whatever the caller passed into a complete config.

    A full ``ClassificationConfig`` is used as is; a mapping is treated as a
    partial override of ``base`` (the standard profile when omitted).
    """
    if isinstance(config, ClassificationConfig):
        return config
    base = base or PROFILES[DEFAULT_PROFILE]
    return base.with_overrides(config)


def load_config() -> ClassificationConfig:
    """Load the active config for this deployment from the environment.

    ``AUDIT_PROFILE`` selects the base profile; the ``AUDIT_SPEED_*``,
    ``AUDIT_LOSS_*`` and ``AUDIT_SEVERE_LOSS_THRESHOLD`` variables override
    individual thresholds on top of it.
    """
    profile = os.environ.get("AUDIT_PROFILE", DEFAULT_PROFILE) or DEFAULT_PROFILE
    base = get_profile(profile)

    overrides: dict[str, Any] = {}
    for env_name, path in _ENV_FIELDS.items():
        raw = os.environ.get(env_name, "").strip()
        if not raw:
            continue
        target = overrides
        for part in path[:-1]:
            target = target.setdefault(part, {})
        target[path[-1]] = raw

    config = base.with_overrides(overrides)
    logger.debug("Resolved classification config (profile=%s): %s", profile, config.model_dump())
    return config
