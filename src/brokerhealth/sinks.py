"""Receivers for tick reports: status lines in the log, or JSON lines on a stream."""

import logging
import sys
from typing import Optional, Protocol, TextIO

import orjson

from .health.health_aggregator_helpers import StatusFormatter
from .health.health_types import OverallStatus, TickReport

logger = logging.getLogger(__name__)


class ReportSink(Protocol):
    """Anything that consumes a TickReport after each tick."""

    def emit(self, report: TickReport) -> None:
        """Handle one tick report."""
        ...


class LogReportSink:
    """Log one status line per element plus one for the alert side."""

    def __init__(self, sink_logger: Optional[logging.Logger] = None):
        self.logger = sink_logger or logger
        self.formatter = StatusFormatter()

    def emit(self, report: TickReport) -> None:
        level = logging.INFO if report.global_status is OverallStatus.OK else logging.WARNING
        for line in self.formatter.format_report(report):
            self.logger.log(level, line)


class JsonReportSink:
    """Write each report as a single JSON line."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout

    def emit(self, report: TickReport) -> None:
        self.stream.write(orjson.dumps(report.to_dict()).decode("utf-8") + "\n")
        self.stream.flush()


__all__ = ["JsonReportSink", "LogReportSink", "ReportSink"]
