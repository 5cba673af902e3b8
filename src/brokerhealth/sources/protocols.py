"""Protocol definitions for the data collaborators the aggregator polls.

The aggregator only depends on these interfaces, so tests and alternative
transports can supply their own implementations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Protocol

if TYPE_CHECKING:
    from ..health.alert_types import ActiveAlert
    from ..samples.sample_types import MetricSample


class IMetricsSource(Protocol):
    """Fetches and parses one element's metrics endpoint."""

    async def fetch_samples(self, url: str, scrape_time: float) -> List[MetricSample]:
        """Return parsed samples; samples without a timestamp get ``scrape_time``."""
        ...


class IAlertSource(Protocol):
    """Fetches the currently active alerts from the alerting backend."""

    async def fetch_active_alerts(self) -> List[ActiveAlert]:
        """Return firing alerts."""
        ...


__all__ = ["IAlertSource", "IMetricsSource"]
