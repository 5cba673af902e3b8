"""Dependency factory for HealthAggregator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List, Optional

from ..bounds.bound_evaluator import BoundEvaluator
from .alert_matcher import AlertMatcher
from .alert_types import AlertRule
from .element import Element
from .health_aggregator_helpers import ErrorHandler, FetchCoordinator, StatusFolder, VerdictBuilder

if TYPE_CHECKING:
    from ..config.config_types import AgentConfig
    from ..sources.protocols import IAlertSource, IMetricsSource
    from .health_aggregator import HealthAggregator


@dataclass
class HealthAggregatorDependencies:
    """Container for HealthAggregator dependencies."""

    fetch_coordinator: FetchCoordinator
    evaluator: BoundEvaluator
    alert_matcher: AlertMatcher
    error_handler: ErrorHandler
    status_folder: StatusFolder
    verdict_builder: VerdictBuilder


class HealthAggregatorFactory:
    """Factory for creating HealthAggregator dependencies."""

    @staticmethod
    def create(
        metrics_source: "IMetricsSource",
        alert_source: Optional["IAlertSource"] = None,
        alert_rules: Iterable[AlertRule] = (),
        *,
        fetch_timeout_seconds: float = 10.0,
        stale_after_seconds: Optional[float] = None,
    ) -> HealthAggregatorDependencies:
        """Create all dependencies for HealthAggregator."""
        return HealthAggregatorDependencies(
            fetch_coordinator=FetchCoordinator(metrics_source, alert_source, fetch_timeout_seconds),
            evaluator=BoundEvaluator(stale_after_seconds=stale_after_seconds),
            alert_matcher=AlertMatcher(alert_rules),
            error_handler=ErrorHandler(),
            status_folder=StatusFolder(),
            verdict_builder=VerdictBuilder(),
        )


def build_elements(config: "AgentConfig") -> List[Element]:
    """Instantiate elements from configuration, one sample store each."""
    grace = config.settings.interval_seconds
    return [
        Element(element.url, element.bounds, element_id=element.element_id, grace_seconds=grace)
        for element in config.elements
    ]


def build_aggregator(
    config: "AgentConfig",
    *,
    metrics_source: Optional["IMetricsSource"] = None,
    alert_source: Optional["IAlertSource"] = None,
) -> "HealthAggregator":
    """
    Build a HealthAggregator wired to the configured collaborators.

    Args:
        config: Validated agent configuration
        metrics_source: Override for the exporter scraper
        alert_source: Override for the Prometheus alert client

    Returns:
        Ready-to-run HealthAggregator
    """
    from ..sources.alert_source import PrometheusAlertSource
    from ..sources.metrics_source import ExporterMetricsSource
    from .health_aggregator import HealthAggregator

    if metrics_source is None:
        metrics_source = ExporterMetricsSource(timeout_seconds=config.settings.fetch_timeout_seconds)
    if alert_source is None and config.alerts is not None:
        alert_source = PrometheusAlertSource(config.alerts.url, timeout_seconds=config.settings.fetch_timeout_seconds)

    alert_rules = config.alerts.rules if config.alerts is not None else ()
    dependencies = HealthAggregatorFactory.create(
        metrics_source,
        alert_source,
        alert_rules,
        fetch_timeout_seconds=config.settings.fetch_timeout_seconds,
        stale_after_seconds=config.settings.stale_after_seconds,
    )
    return HealthAggregator(
        build_elements(config),
        dependencies=dependencies,
        history_size=config.settings.history_size,
    )


__all__ = [
    "HealthAggregatorDependencies",
    "HealthAggregatorFactory",
    "build_aggregator",
    "build_elements",
]
