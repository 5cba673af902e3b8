"""Data types for health aggregation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from ..bounds.bound_types import BoundCheck, HealthBit
from .alert_types import AlertVerdict


class OverallStatus(Enum):
    """Folded status of an element, the alert side, or the whole process."""

    OK = "ok"
    DEGRADED = "degraded"
    UNKNOWN = "unknown"

    @classmethod
    def from_bits(cls, bits: Iterable[HealthBit]) -> "OverallStatus":
        """Violated dominates unknown; ok only when every bit is ok."""
        saw_unknown = False
        for bit in bits:
            if bit is HealthBit.VIOLATED:
                return cls.DEGRADED
            if bit is HealthBit.UNKNOWN:
                saw_unknown = True
        return cls.UNKNOWN if saw_unknown else cls.OK

    @classmethod
    def fold(cls, statuses: Iterable["OverallStatus"]) -> "OverallStatus":
        """Combine statuses with the same dominance rule as ``from_bits``."""
        saw_unknown = False
        for status in statuses:
            if status is cls.DEGRADED:
                return cls.DEGRADED
            if status is cls.UNKNOWN:
                saw_unknown = True
        return cls.UNKNOWN if saw_unknown else cls.OK


@dataclass(frozen=True)
class HealthVerdict:
    """Outcome of one element at one tick, aligned 1:1 with its bound rules."""

    element_id: str
    checks: Tuple[BoundCheck, ...]
    overall: OverallStatus
    cause: Optional[str] = None

    @property
    def bits(self) -> Tuple[HealthBit, ...]:
        return tuple(check.bit for check in self.checks)

    @property
    def violated_mask(self) -> int:
        """Bit ``i`` set when rule ``i`` is violated."""
        return _mask(self.bits, HealthBit.VIOLATED)

    @property
    def unknown_mask(self) -> int:
        """Bit ``i`` set when rule ``i`` could not be evaluated."""
        return _mask(self.bits, HealthBit.UNKNOWN)

    @property
    def failed_checks(self) -> Tuple[BoundCheck, ...]:
        """Checks that are not ok, in rule order."""
        return tuple(check for check in self.checks if check.bit is not HealthBit.OK)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "element_id": self.element_id,
            "overall": self.overall.value,
            "bits": [bit.value for bit in self.bits],
            "violated_mask": self.violated_mask,
            "unknown_mask": self.unknown_mask,
            "cause": self.cause,
            "checks": [check.to_dict() for check in self.checks],
        }


def _mask(bits: Tuple[HealthBit, ...], wanted: HealthBit) -> int:
    mask = 0
    for position, bit in enumerate(bits):
        if bit is wanted:
            mask |= 1 << position
    return mask


@dataclass(frozen=True)
class TickReport:
    """Everything one evaluation tick produced, handed to downstream sinks."""

    timestamp: float
    verdicts: Dict[str, HealthVerdict]
    alerts: Tuple[AlertVerdict, ...]
    alert_status: OverallStatus
    global_status: OverallStatus
    alert_error: Optional[str] = None
    element_order: Tuple[str, ...] = field(default=())

    @property
    def triggered_alerts(self) -> Dict[str, bool]:
        """Alert rule key -> triggered; empty when the alert fetch failed."""
        return {verdict.rule.key: verdict.triggered for verdict in self.alerts}

    def to_dict(self) -> Dict[str, Any]:
        order = self.element_order or tuple(self.verdicts)
        return {
            "timestamp": self.timestamp,
            "global_status": self.global_status.value,
            "elements": [self.verdicts[element_id].to_dict() for element_id in order],
            "alert_status": self.alert_status.value,
            "alert_error": self.alert_error,
            "alerts": [verdict.to_dict() for verdict in self.alerts],
        }


__all__ = ["HealthVerdict", "OverallStatus", "TickReport"]
