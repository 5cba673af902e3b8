"""Collaborators that fetch alerts and metrics over HTTP."""

from .alert_source import PrometheusAlertSource, parse_alerts_response
from .metrics_source import ExporterMetricsSource, parse_exposition
from .protocols import IAlertSource, IMetricsSource

__all__ = [
    "ExporterMetricsSource",
    "IAlertSource",
    "IMetricsSource",
    "PrometheusAlertSource",
    "parse_alerts_response",
    "parse_exposition",
]
