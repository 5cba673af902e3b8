"""Format status messages and display output."""

from typing import TYPE_CHECKING, List

from ...bounds.bound_types import HealthBit
from ..health_types import OverallStatus

if TYPE_CHECKING:
    from ..health_types import HealthVerdict, TickReport

_STATUS_EMOJI = {
    OverallStatus.OK: "🟢",
    OverallStatus.UNKNOWN: "🟡",
    OverallStatus.DEGRADED: "🔴",
}

_BIT_CHAR = {
    HealthBit.OK: "0",
    HealthBit.VIOLATED: "1",
    HealthBit.UNKNOWN: "?",
}


class StatusFormatter:
    """Format verdicts and tick reports for logs and the console."""

    @staticmethod
    def format_bits(verdict: "HealthVerdict") -> str:
        """Bit string in rule order, e.g. ``01?``."""
        return "".join(_BIT_CHAR[bit] for bit in verdict.bits)

    @staticmethod
    def format_verdict_line(verdict: "HealthVerdict") -> str:
        """
        Format a status line for one element.

        Args:
            verdict: HealthVerdict to format

        Returns:
            Formatted status line
        """
        emoji = _STATUS_EMOJI[verdict.overall]
        line = f"{emoji} {verdict.element_id} - {verdict.overall.value} [{StatusFormatter.format_bits(verdict)}]"
        if verdict.cause:
            return f"{line} ({verdict.cause})"
        failed = verdict.failed_checks
        if failed:
            details = "; ".join(f"{check.rule.describe()}: {check.reason}" for check in failed)
            line += f" ({details})"
        return line

    @staticmethod
    def format_alert_line(report: "TickReport") -> str:
        """Format the alert side of a tick."""
        emoji = _STATUS_EMOJI[report.alert_status]
        if report.alert_error:
            return f"{emoji} alerts - {report.alert_status.value} ({report.alert_error})"
        triggered = [verdict.rule.key for verdict in report.alerts if verdict.triggered]
        if triggered:
            return f"{emoji} alerts - {report.alert_status.value} (triggered: {', '.join(triggered)})"
        return f"{emoji} alerts - {report.alert_status.value} ({len(report.alerts)} rule(s) quiet)"

    @staticmethod
    def format_report(report: "TickReport") -> List[str]:
        """All lines for a tick: global status, one per element, then alerts."""
        lines = [f"{_STATUS_EMOJI[report.global_status]} global - {report.global_status.value}"]
        order = report.element_order or tuple(report.verdicts)
        lines.extend(StatusFormatter.format_verdict_line(report.verdicts[element_id]) for element_id in order)
        lines.append(StatusFormatter.format_alert_line(report))
        return lines


__all__ = ["StatusFormatter"]
