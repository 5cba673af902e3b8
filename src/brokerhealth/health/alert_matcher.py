"""Match configured alert rules against the active alert set."""

import logging
from typing import Iterable, List, Sequence

from ..samples.sample_types import labels_contain
from .alert_types import ActiveAlert, AlertRule, AlertVerdict

logger = logging.getLogger(__name__)


class AlertMatcher:
    """
    Decide, per configured alert rule, whether it is triggered.

    A rule is triggered when at least one active alert has the same name and
    carries every selector label with an equal value. Extra labels on the
    active alert are ignored; an empty selector matches on name alone.
    """

    def __init__(self, rules: Iterable[AlertRule] = ()):
        self.rules: tuple = tuple(rules)

    @staticmethod
    def matches(rule: AlertRule, alert: ActiveAlert) -> bool:
        return alert.name == rule.name and labels_contain(alert.labels, rule.labels)

    def match(self, active_alerts: Sequence[ActiveAlert]) -> List[AlertVerdict]:
        """
        Evaluate every rule against the active alerts.

        Args:
            active_alerts: Alerts firing this tick

        Returns:
            One AlertVerdict per rule, in configured order
        """
        verdicts = []
        for rule in self.rules:
            matched = tuple(alert for alert in active_alerts if self.matches(rule, alert))
            if matched:
                logger.debug("Alert rule %s matched %d active alert(s)", rule.key, len(matched))
            verdicts.append(AlertVerdict(rule=rule, triggered=bool(matched), matched=matched))
        return verdicts

    def filter_matching(self, active_alerts: Iterable[ActiveAlert]) -> List[ActiveAlert]:
        """Active alerts that match at least one configured rule."""
        return [alert for alert in active_alerts if any(self.matches(rule, alert) for rule in self.rules)]


__all__ = ["AlertMatcher"]
