"""Fold health bits and alert verdicts into overall statuses."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ...bounds.bound_types import BoundCheck
from ..alert_types import AlertVerdict
from ..health_types import OverallStatus


class StatusFolder:
    """Apply the dominance rule: degraded over unknown over ok."""

    @staticmethod
    def element_status(checks: Sequence[BoundCheck]) -> OverallStatus:
        """
        Fold one element's checks.

        Args:
            checks: Bound checks in rule order

        Returns:
            DEGRADED if any bit is violated, UNKNOWN if any is unknown, else OK
        """
        return OverallStatus.from_bits(check.bit for check in checks)

    @staticmethod
    def alert_status(verdicts: Sequence[AlertVerdict], error: Optional[str] = None) -> OverallStatus:
        """
        Fold the alert side of a tick.

        Args:
            verdicts: One verdict per alert rule
            error: Cause when the alert fetch failed

        Returns:
            DEGRADED if any rule is triggered, UNKNOWN if the fetch failed, else OK
        """
        if error is not None:
            return OverallStatus.UNKNOWN
        if any(verdict.triggered for verdict in verdicts):
            return OverallStatus.DEGRADED
        return OverallStatus.OK

    @staticmethod
    def global_status(element_statuses: Iterable[OverallStatus], alert_status: OverallStatus) -> OverallStatus:
        """Fold every element status together with the alert status."""
        return OverallStatus.fold([*element_statuses, alert_status])


__all__ = ["StatusFolder"]
