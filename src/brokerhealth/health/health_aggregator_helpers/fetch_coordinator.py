"""Run every fetch of a tick concurrently under a per-fetch timeout."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Union

from ...errors import FetchError

if TYPE_CHECKING:
    from ...samples.sample_types import MetricSample
    from ...sources.protocols import IAlertSource, IMetricsSource
    from ..alert_types import ActiveAlert
    from ..element import Element

logger = logging.getLogger(__name__)

SampleResult = Union[List["MetricSample"], BaseException]
AlertResult = Union[List["ActiveAlert"], BaseException]


@dataclass(frozen=True)
class TickFetchResults:
    """Raw outcomes of one tick's fetches; failures are kept as exceptions."""

    samples: Dict[str, SampleResult]
    alerts: Optional[AlertResult]


class FetchCoordinator:
    """Fetch element samples and active alerts concurrently."""

    def __init__(
        self,
        metrics_source: "IMetricsSource",
        alert_source: Optional["IAlertSource"] = None,
        fetch_timeout_seconds: float = 10.0,
    ):
        """
        Initialize fetch coordinator.

        Args:
            metrics_source: Collaborator that scrapes element endpoints
            alert_source: Collaborator that lists active alerts (None skips alerts)
            fetch_timeout_seconds: Upper bound on each individual fetch
        """
        self.metrics_source = metrics_source
        self.alert_source = alert_source
        self.fetch_timeout_seconds = fetch_timeout_seconds

    async def _bounded(self, coro, source: str):
        try:
            return await asyncio.wait_for(coro, timeout=self.fetch_timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise FetchError(source=source, reason=f"timed out after {self.fetch_timeout_seconds:g}s") from exc

    async def fetch_all(self, elements: Sequence["Element"], now: float) -> TickFetchResults:
        """
        Fetch every element and the alert list.

        A timed-out fetch is cancelled and reported as a FetchError; its
        result is never applied later.

        Args:
            elements: Elements to scrape
            now: Tick time, used as the scrape time for untimestamped samples

        Returns:
            TickFetchResults keyed by element id
        """
        tasks = [self._bounded(self.metrics_source.fetch_samples(element.url, now), element.url) for element in elements]
        if self.alert_source is not None:
            tasks.append(self._bounded(self.alert_source.fetch_active_alerts(), "alerts"))

        results = await asyncio.gather(*tasks, return_exceptions=True)

        samples: Dict[str, SampleResult] = {}
        for element, result in zip(elements, results):
            samples[element.element_id] = result

        alerts: Optional[AlertResult] = None
        if self.alert_source is not None:
            alerts = results[-1]

        return TickFetchResults(samples=samples, alerts=alerts)


__all__ = ["FetchCoordinator", "TickFetchResults"]
