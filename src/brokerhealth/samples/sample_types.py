"""Data types for recorded metric samples."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Tuple

LabelSet = Tuple[Tuple[str, str], ...]
SeriesKey = Tuple[str, LabelSet]


class MetricKind(Enum):
    """Metric family type as reported by the exposition format."""

    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"
    SUMMARY = "summary"
    UNTYPED = "untyped"

    @classmethod
    def from_exposition(cls, type_name: str) -> "MetricKind":
        """Map a parser family type onto a kind, defaulting to UNTYPED."""
        try:
            return cls(type_name)
        except ValueError:
            return cls.UNTYPED

    @property
    def is_monotonic(self) -> bool:
        """True when a decrease can only mean a reset (counters and unreported types)."""
        return self in (MetricKind.COUNTER, MetricKind.UNTYPED)


def freeze_labels(labels: Mapping[str, str] | None) -> LabelSet:
    """Return a hashable, order-independent form of a label mapping."""
    if not labels:
        return ()
    return tuple(sorted((str(key), str(value)) for key, value in labels.items()))


def labels_contain(labels: Mapping[str, str], selector: Mapping[str, str]) -> bool:
    """Subset match: every selector pair is present in ``labels`` with an equal value."""
    return all(key in labels and labels[key] == value for key, value in selector.items())


def format_labels(labels: Mapping[str, str] | None) -> str:
    """Render labels in exposition style, e.g. ``{queue="a",vhost="/"}``; empty labels render as ""."""
    if not labels:
        return ""
    return "{" + ",".join(f'{key}="{value}"' for key, value in freeze_labels(labels)) + "}"


def series_key(metric_name: str, labels: Mapping[str, str] | None) -> SeriesKey:
    return (metric_name, freeze_labels(labels))


@dataclass(frozen=True)
class MetricSample:
    """One parsed sample: a value observed for a series at a point in time."""

    metric_name: str
    value: float
    timestamp: float
    labels: Dict[str, str] = field(default_factory=dict)
    kind: MetricKind = MetricKind.UNTYPED

    @property
    def key(self) -> SeriesKey:
        return series_key(self.metric_name, self.labels)


__all__ = [
    "LabelSet",
    "MetricKind",
    "MetricSample",
    "SeriesKey",
    "format_labels",
    "freeze_labels",
    "labels_contain",
    "series_key",
]
