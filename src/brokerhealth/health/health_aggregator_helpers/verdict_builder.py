"""Build HealthVerdict objects."""

from typing import Sequence

from ...bounds.bound_types import BoundCheck, HealthBit
from ..element import Element
from ..health_types import HealthVerdict, OverallStatus


class VerdictBuilder:
    """Build element verdicts that keep bit positions aligned with the rules."""

    @staticmethod
    def build_verdict(element: Element, checks: Sequence[BoundCheck], overall: OverallStatus) -> HealthVerdict:
        """
        Build a verdict from evaluated checks.

        Args:
            element: Element that was evaluated
            checks: One check per bound rule, in rule order
            overall: Folded status of the checks

        Returns:
            Immutable HealthVerdict
        """
        if len(checks) != len(element.bounds):
            raise ValueError(f"{element.element_id}: {len(checks)} checks for {len(element.bounds)} bound rules")
        return HealthVerdict(element_id=element.element_id, checks=tuple(checks), overall=overall)

    @staticmethod
    def build_unavailable(element: Element, cause: str) -> HealthVerdict:
        """
        Build the verdict for an element whose fetch failed this tick.

        Every bit is unknown and carries the fetch cause.

        Args:
            element: Element whose fetch failed
            cause: Recorded failure cause

        Returns:
            HealthVerdict with overall UNKNOWN
        """
        checks = tuple(BoundCheck(rule=rule, bit=HealthBit.UNKNOWN, reason=f"fetch failed: {cause}") for rule in element.bounds)
        return HealthVerdict(element_id=element.element_id, checks=checks, overall=OverallStatus.UNKNOWN, cause=cause)


__all__ = ["VerdictBuilder"]
