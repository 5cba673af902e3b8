"""A monitored metrics endpoint and the sample history it owns."""

from typing import Iterable, Optional

from ..bounds.bound_evaluator import rate_retention
from ..bounds.bound_types import BoundRule
from ..samples.sample_store import SampleStore


class Element:
    """
    One Prometheus-compatible endpoint and its ordered bound rules.

    The element owns its SampleStore for its whole lifetime; only the
    aggregator's record step for this element mutates it.
    """

    def __init__(
        self,
        url: str,
        bounds: Iterable[BoundRule],
        *,
        element_id: Optional[str] = None,
        grace_seconds: float = 0.0,
    ):
        """
        Initialize element.

        Args:
            url: Metrics endpoint to scrape
            bounds: Bound rules in health-bit order
            element_id: Identifier used in reports (defaults to the URL)
            grace_seconds: Extra history kept beyond each rate window
        """
        self.url = url
        self.element_id = element_id or url
        self.bounds = tuple(bounds)
        self.store = SampleStore(rate_retention(self.bounds), grace_seconds=grace_seconds)

    def __repr__(self) -> str:
        return f"Element({self.element_id!r}, bounds={len(self.bounds)})"


__all__ = ["Element"]
