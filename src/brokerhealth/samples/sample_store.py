"""
Bounded per-series sample history.

Retains, for each metric name + label set, just enough recent samples to
answer "what was the value ``period`` ago" for every configured rate bound.
Samples older than the metric's retention window (plus one grace tick) are
evicted as new samples arrive, so memory stays constant under long-running
operation.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, List, Mapping, Optional, Tuple

from .sample_types import MetricKind, MetricSample, SeriesKey, format_labels, labels_contain, series_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredPoint:
    """A single retained (timestamp, value) pair."""

    timestamp: float
    value: float


@dataclass
class _Series:
    labels: Dict[str, str]
    kind: MetricKind
    points: Deque[StoredPoint] = field(default_factory=deque)
    last_seen: float = 0.0


class SampleStore:
    """Time-bounded history of samples for one element."""

    def __init__(self, retention_seconds: Optional[Mapping[str, float]] = None, grace_seconds: float = 0.0):
        """
        Initialize the store.

        Args:
            retention_seconds: Per metric name, the longest rate period that
                reads it. Metrics without an entry keep only their newest sample.
            grace_seconds: Extra history kept beyond the retention window,
                normally one tick interval.
        """
        self._retention: Dict[str, float] = dict(retention_seconds or {})
        self.grace_seconds = grace_seconds
        self._series: Dict[SeriesKey, _Series] = {}
        self.dropped_out_of_order = 0

    def record(self, sample: MetricSample, seen_at: Optional[float] = None) -> bool:
        """
        Append a sample to its series.

        Args:
            sample: Parsed sample to append
            seen_at: Time the sample was fetched; defaults to the sample timestamp

        Returns:
            True when applied, False when dropped as out of order
        """
        key = sample.key
        series = self._series.get(key)
        if series is None:
            series = _Series(labels=dict(sample.labels), kind=sample.kind)
            self._series[key] = series

        if series.points and sample.timestamp < series.points[-1].timestamp:
            self.dropped_out_of_order += 1
            logger.warning(
                "Dropping out-of-order sample for %s%s: timestamp %s is older than %s",
                sample.metric_name,
                format_labels(sample.labels),
                sample.timestamp,
                series.points[-1].timestamp,
            )
            return False

        series.kind = sample.kind
        series.points.append(StoredPoint(timestamp=sample.timestamp, value=sample.value))
        series.last_seen = max(series.last_seen, seen_at if seen_at is not None else sample.timestamp)
        self._evict(sample.metric_name, series)
        return True

    def record_many(self, samples: Iterable[MetricSample], seen_at: Optional[float] = None) -> int:
        """Record every sample and return how many were applied."""
        return sum(1 for sample in samples if self.record(sample, seen_at=seen_at))

    def _evict(self, metric_name: str, series: _Series) -> None:
        """Drop points that no rate window can reach any more."""
        points = series.points
        window = self.retention_for(metric_name)
        if window is None:
            while len(points) > 1:
                points.popleft()
            return

        cutoff = points[-1].timestamp - (window + self.grace_seconds)
        # Keep the newest point at or before the cutoff so value_at(t - period) stays answerable.
        while len(points) >= 2 and points[1].timestamp <= cutoff:
            points.popleft()

    def expire_idle(self, now: float) -> List[SeriesKey]:
        """
        Forget series that have not been seen within their retention window.

        Args:
            now: Current tick time

        Returns:
            Keys of the removed series
        """
        expired = []
        for key, series in self._series.items():
            window = (self.retention_for(key[0]) or 0.0) + self.grace_seconds
            if series.last_seen < now - window:
                expired.append(key)
        for key in expired:
            del self._series[key]
        if expired:
            logger.debug("Expired %d idle series (%d remaining)", len(expired), self.series_count)
        return expired

    def _get(self, metric_name: str, labels: Optional[Mapping[str, str]]) -> Optional[_Series]:
        return self._series.get(series_key(metric_name, labels))

    def value_at(self, metric_name: str, labels: Optional[Mapping[str, str]], target_time: float) -> Optional[float]:
        """
        Return the most recent value recorded at or before ``target_time``.

        Returns None when the series is unknown or the oldest retained
        sample is newer than ``target_time`` (insufficient history).
        """
        point = self.point_at(metric_name, labels, target_time)
        return None if point is None else point.value

    def point_at(self, metric_name: str, labels: Optional[Mapping[str, str]], target_time: float) -> Optional[StoredPoint]:
        series = self._get(metric_name, labels)
        if series is None or not series.points:
            return None
        if series.points[0].timestamp > target_time:
            return None
        for point in reversed(series.points):
            if point.timestamp <= target_time:
                return point
        return None

    def latest(self, metric_name: str, labels: Optional[Mapping[str, str]] = None) -> Optional[StoredPoint]:
        series = self._get(metric_name, labels)
        if series is None or not series.points:
            return None
        return series.points[-1]

    def kind_of(self, metric_name: str, labels: Optional[Mapping[str, str]] = None) -> MetricKind:
        series = self._get(metric_name, labels)
        return series.kind if series is not None else MetricKind.UNTYPED

    def matching_series(self, metric_name: str, selector: Optional[Mapping[str, str]] = None) -> List[Dict[str, str]]:
        """Label sets of every series of ``metric_name`` containing ``selector``, in a stable order."""
        selector = selector or {}
        matches: List[Tuple[SeriesKey, Dict[str, str]]] = [
            (key, series.labels)
            for key, series in self._series.items()
            if key[0] == metric_name and labels_contain(series.labels, selector)
        ]
        matches.sort(key=lambda item: item[0])
        return [dict(labels) for _, labels in matches]

    @property
    def series_count(self) -> int:
        return len(self._series)

    @property
    def point_count(self) -> int:
        """Retained points across every series."""
        return sum(len(series.points) for series in self._series.values())

    def retention_for(self, metric_name: str) -> Optional[float]:
        """Rate window kept for ``metric_name``, or None when only the newest point is kept."""
        return self._retention.get(metric_name)


__all__ = ["SampleStore", "StoredPoint"]
