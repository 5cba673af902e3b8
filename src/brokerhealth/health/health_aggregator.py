"""
Health aggregator - the single source of truth for deployment health.

Runs one evaluation tick: fetches fresh samples for every element and the
active alert list concurrently, records samples into each element's store,
evaluates bound rules and alert rules, and folds everything into per-element
verdicts plus a global status.
"""

import logging
from collections import deque
from typing import Deque, Dict, Iterable, List, Optional

from ..errors import ConfigurationError
from .alert_types import AlertRule
from .element import Element
from .health_aggregator_factory import HealthAggregatorDependencies, HealthAggregatorFactory
from .health_types import HealthVerdict, OverallStatus, TickReport

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 10


class HealthAggregator:
    """
    Orchestrates evaluation ticks.

    Per-element failures are isolated: a failed or timed-out fetch makes only
    that element unknown for the tick, and a failed alert fetch makes only the
    alert side unknown. A tick never raises because of collaborator failures.
    """

    def __init__(
        self,
        elements: Iterable[Element],
        *,
        metrics_source=None,
        alert_source=None,
        alert_rules: Iterable[AlertRule] = (),
        fetch_timeout_seconds: float = 10.0,
        stale_after_seconds: Optional[float] = None,
        history_size: int = DEFAULT_HISTORY_SIZE,
        dependencies: Optional[HealthAggregatorDependencies] = None,
    ):
        self.elements: List[Element] = list(elements)
        seen = set()
        for element in self.elements:
            if element.element_id in seen:
                raise ConfigurationError.duplicate_element(element.element_id)
            seen.add(element.element_id)

        if dependencies is None:
            if metrics_source is None:
                raise ConfigurationError.missing_value("metrics_source", "HealthAggregator needs a metrics source")
            dependencies = HealthAggregatorFactory.create(
                metrics_source,
                alert_source,
                alert_rules,
                fetch_timeout_seconds=fetch_timeout_seconds,
                stale_after_seconds=stale_after_seconds,
            )
        self.fetch_coordinator = dependencies.fetch_coordinator
        self.evaluator = dependencies.evaluator
        self.alert_matcher = dependencies.alert_matcher
        self.error_handler = dependencies.error_handler
        self.status_folder = dependencies.status_folder
        self.verdict_builder = dependencies.verdict_builder

        self.latest_verdicts: Dict[str, HealthVerdict] = {}
        self.history: Deque[TickReport] = deque(maxlen=max(1, history_size))

    @property
    def latest_report(self) -> Optional[TickReport]:
        return self.history[-1] if self.history else None

    def evaluate_element(self, element: Element, now: float) -> HealthVerdict:
        """
        Evaluate an element's current store without fetching.

        Args:
            element: Element to evaluate
            now: Evaluation time

        Returns:
            HealthVerdict aligned with the element's bound rules
        """
        checks = self.evaluator.evaluate_all(element.bounds, element.store, now)
        overall = self.status_folder.element_status(checks)
        return self.verdict_builder.build_verdict(element, checks, overall)

    def _apply_samples(self, element: Element, samples, now: float) -> None:
        applied = element.store.record_many(samples, seen_at=now)
        if applied != len(samples):
            logger.warning(
                "%s: applied %d of %d samples (%d dropped as out of order)",
                element.element_id,
                applied,
                len(samples),
                len(samples) - applied,
            )
        element.store.expire_idle(now)
        logger.debug(
            "%s: store holds %d series, %d points",
            element.element_id,
            element.store.series_count,
            element.store.point_count,
        )

    async def run_tick(self, now: float) -> TickReport:
        """
        Run one evaluation tick.

        Args:
            now: Tick timestamp (from the scheduler's clock)

        Returns:
            TickReport with every element verdict, alert verdicts and global status
        """
        fetched = await self.fetch_coordinator.fetch_all(self.elements, now)

        verdicts: Dict[str, HealthVerdict] = {}
        for element in self.elements:
            samples, cause = self.error_handler.ensure_samples(element.element_id, fetched.samples.get(element.element_id))
            if cause is not None:
                verdicts[element.element_id] = self.verdict_builder.build_unavailable(element, cause)
                continue
            self._apply_samples(element, samples, now)
            verdicts[element.element_id] = self.evaluate_element(element, now)

        alert_verdicts = ()
        alert_error = None
        if self.fetch_coordinator.alert_source is not None:
            active_alerts, alert_error = self.error_handler.ensure_alerts(fetched.alerts)
            if active_alerts is not None:
                alert_verdicts = tuple(self.alert_matcher.match(active_alerts))
        alert_status = self.status_folder.alert_status(alert_verdicts, alert_error)

        global_status = self.status_folder.global_status((v.overall for v in verdicts.values()), alert_status)
        report = TickReport(
            timestamp=now,
            verdicts=verdicts,
            alerts=alert_verdicts,
            alert_status=alert_status,
            global_status=global_status,
            alert_error=alert_error,
            element_order=tuple(element.element_id for element in self.elements),
        )

        self.latest_verdicts = dict(verdicts)
        self.history.append(report)
        if global_status is not OverallStatus.OK:
            logger.info("Tick %.3f: global status %s", now, global_status.value)
        else:
            logger.debug("Tick %.3f: global status ok", now)
        return report


__all__ = ["DEFAULT_HISTORY_SIZE", "HealthAggregator"]
