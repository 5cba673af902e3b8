"""Data types for alert rules and active alerts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from ..errors import ConfigurationError
from ..samples.sample_types import format_labels


@dataclass(frozen=True)
class AlertRule:
    """A configured alert: a name plus a label selector (possibly empty)."""

    name: str
    labels: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigurationError.missing_value("alert name", "alert rules must name an alert")

    @property
    def key(self) -> str:
        """Name plus selector, e.g. ``KubeStatefulSetReplicasMismatch{statefulset="rabbitmq"}``."""
        return f"{self.name}{format_labels(self.labels)}"


@dataclass(frozen=True)
class ActiveAlert:
    """An alert currently firing in the alerting backend."""

    name: str
    labels: Dict[str, str] = field(default_factory=dict)
    since: Optional[float] = None
    annotations: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "labels": dict(self.labels),
            "since": self.since,
            "annotations": dict(self.annotations),
        }


@dataclass(frozen=True)
class AlertVerdict:
    """Whether one alert rule matched any active alert this tick."""

    rule: AlertRule
    triggered: bool
    matched: Tuple[ActiveAlert, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule": self.rule.key,
            "triggered": self.triggered,
            "matched": [alert.to_dict() for alert in self.matched],
        }


__all__ = ["ActiveAlert", "AlertRule", "AlertVerdict"]
