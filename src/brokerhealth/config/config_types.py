from __future__ import annotations

"""Validated configuration dataclasses produced by the loader."""


from dataclasses import dataclass, field
from typing import Optional, Tuple

from ..bounds.bound_types import BoundRule
from ..health.alert_types import AlertRule

DEFAULT_INTERVAL_SECONDS = 15.0
DEFAULT_HISTORY_SIZE = 10


@dataclass(frozen=True)
class AgentSettings:
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS
    fetch_timeout_seconds: float = DEFAULT_INTERVAL_SECONDS
    stale_after_seconds: Optional[float] = None
    history_size: int = DEFAULT_HISTORY_SIZE


@dataclass(frozen=True)
class AlertSourceConfig:
    url: str
    rules: Tuple[AlertRule, ...] = ()


@dataclass(frozen=True)
class ElementConfig:
    url: str
    bounds: Tuple[BoundRule, ...] = ()
    element_id: Optional[str] = None

    @property
    def identifier(self) -> str:
        return self.element_id or self.url


@dataclass(frozen=True)
class AgentConfig:
    """Everything needed to build an aggregator and drive it on a schedule."""

    settings: AgentSettings = field(default_factory=AgentSettings)
    alerts: Optional[AlertSourceConfig] = None
    elements: Tuple[ElementConfig, ...] = ()


__all__ = [
    "AgentConfig",
    "AgentSettings",
    "AlertSourceConfig",
    "DEFAULT_HISTORY_SIZE",
    "DEFAULT_INTERVAL_SECONDS",
    "ElementConfig",
]
