"""Parsed metric samples and their bounded history."""

from .sample_store import SampleStore, StoredPoint
from .sample_types import MetricKind, MetricSample, SeriesKey, format_labels, freeze_labels, labels_contain, series_key

__all__ = [
    "MetricKind",
    "MetricSample",
    "SampleStore",
    "SeriesKey",
    "StoredPoint",
    "format_labels",
    "freeze_labels",
    "labels_contain",
    "series_key",
]
