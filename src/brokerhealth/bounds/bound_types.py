"""Bound rule definitions."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from ..errors import ConfigurationError
from ..samples.sample_types import format_labels


class BoundType(Enum):
    """Threshold variants a rule can express."""

    ABS_UPPER = "abs_upper"
    ABS_LOWER = "abs_lower"
    RATE_UPPER = "rate_upper"
    RATE_LOWER = "rate_lower"

    @classmethod
    def parse(cls, raw: "str | BoundType", metric_name: str = "") -> "BoundType":
        """Parse a bound type name case-insensitively."""
        if isinstance(raw, BoundType):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError as exc:
            raise ConfigurationError.unknown_bound_type(str(raw), metric_name) from exc

    @property
    def is_rate(self) -> bool:
        return self in (BoundType.RATE_UPPER, BoundType.RATE_LOWER)

    @property
    def is_upper(self) -> bool:
        return self in (BoundType.ABS_UPPER, BoundType.RATE_UPPER)


@dataclass(frozen=True)
class BoundRule:
    """
    A threshold check against a metric's value or its change over a window.

    ``period`` (seconds) is required for rate bounds and forbidden for
    absolute bounds; ``labels`` optionally narrows which series of the
    metric the rule reads.
    """

    metric_name: str
    bound_type: BoundType
    limit: float
    period: Optional[float] = None
    labels: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.metric_name:
            raise ConfigurationError.missing_value("metric_name", "bound rules must name a metric")
        if not isinstance(self.bound_type, BoundType):
            object.__setattr__(self, "bound_type", BoundType.parse(self.bound_type, self.metric_name))
        if isinstance(self.limit, bool) or not isinstance(self.limit, (int, float)) or not math.isfinite(self.limit):
            raise ConfigurationError.invalid_value("limit", self.limit, f"Limit for {self.metric_name!r} must be a finite number")
        object.__setattr__(self, "limit", float(self.limit))

        if self.bound_type.is_rate:
            if self.period is None:
                raise ConfigurationError.period_required(self.bound_type.value, self.metric_name)
            if self.period <= 0:
                raise ConfigurationError.invalid_value("period", self.period, "Rate periods must be positive")
        elif self.period is not None:
            raise ConfigurationError.period_forbidden(self.bound_type.value, self.metric_name)

    def describe(self) -> str:
        """Short human-readable form used in explanations and status lines."""
        text = f"{self.metric_name}{format_labels(self.labels)} {self.bound_type.value} {self.limit:g}"
        if self.period is not None:
            text += f"/{self.period:g}s"
        return text


class HealthBit(Enum):
    """Outcome of one rule at one tick."""

    OK = "ok"
    VIOLATED = "violated"
    UNKNOWN = "unknown"


_BIT_SEVERITY = {HealthBit.OK: 0, HealthBit.UNKNOWN: 1, HealthBit.VIOLATED: 2}


def worst_bit(bits) -> HealthBit:
    """Fold bits with violated over unknown over ok; an empty input is unknown."""
    worst: Optional[HealthBit] = None
    for bit in bits:
        if worst is None or _BIT_SEVERITY[bit] > _BIT_SEVERITY[worst]:
            worst = bit
    return worst if worst is not None else HealthBit.UNKNOWN


@dataclass(frozen=True)
class BoundCheck:
    """A health bit plus the evidence that produced it."""

    rule: BoundRule
    bit: HealthBit
    reason: str
    observed: Optional[float] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "rule": self.rule.describe(),
            "bit": self.bit.value,
            "reason": self.reason,
            "observed": self.observed,
        }


__all__ = ["BoundCheck", "BoundRule", "BoundType", "HealthBit", "worst_bit"]
