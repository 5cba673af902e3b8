"""
Bound evaluation against a sample store snapshot.

A single evaluator dispatches on the rule's bound type:

- ``abs_upper`` / ``abs_lower`` compare the latest value at ``t`` with the limit.
- ``rate_upper`` / ``rate_lower`` compare ``value_at(t) - value_at(t - period)``
  with the limit.

A rule naming a histogram family (whose samples are stored as
``<name>_bucket`` series with an ``le`` label) checks the bucket counts
instead: ``abs_upper`` is violated when observations fall above the limit
and ``abs_lower`` when observations fall below it.

Missing data never becomes ok: no sample, a rate window without enough
history or without a sample inside it, a stale sample, or a counter reset
all produce ``unknown``. The evaluator never mutates the store.
"""

import logging
import math
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from ..samples.sample_store import SampleStore, StoredPoint
from ..samples.sample_types import LabelSet, MetricKind, format_labels, freeze_labels
from .bound_types import BoundCheck, BoundRule, HealthBit, worst_bit

logger = logging.getLogger(__name__)

HISTOGRAM_BUCKET_SUFFIX = "_bucket"
BUCKET_LABEL = "le"


def rate_retention(rules: Iterable[BoundRule]) -> Dict[str, float]:
    """Longest rate period per metric name; the history a store must keep."""
    retention: Dict[str, float] = {}
    for rule in rules:
        if rule.bound_type.is_rate and rule.period is not None:
            retention[rule.metric_name] = max(retention.get(rule.metric_name, 0.0), rule.period)
    return retention


class BoundEvaluator:
    """Evaluate bound rules against a sample store at an evaluation time."""

    def __init__(self, stale_after_seconds: Optional[float] = None):
        """
        Initialize evaluator.

        Args:
            stale_after_seconds: Samples older than this at evaluation time
                count as missing. None disables the staleness check.
        """
        self.stale_after_seconds = stale_after_seconds

    def evaluate_all(self, rules: Iterable[BoundRule], store: SampleStore, now: float) -> List[BoundCheck]:
        """Evaluate rules in order; the result is aligned 1:1 with ``rules``."""
        return [self.evaluate(rule, store, now) for rule in rules]

    def evaluate(self, rule: BoundRule, store: SampleStore, now: float) -> BoundCheck:
        """
        Evaluate one rule.

        Every stored series of the rule's metric whose labels contain the
        rule's selector is checked; the worst outcome wins. When the metric
        has no series of its own but histogram buckets exist under its name,
        each bucket set is checked instead.

        Args:
            rule: Bound rule to evaluate
            store: Sample history of the element
            now: Evaluation time

        Returns:
            BoundCheck with the health bit and its reason
        """
        series = store.matching_series(rule.metric_name, rule.labels)
        if series:
            checks = [self._evaluate_series(rule, store, labels, now) for labels in series]
            return self._worst_of(rule, series, checks)

        histograms = self._histogram_groups(rule, store)
        if histograms:
            if rule.bound_type.is_rate:
                return BoundCheck(
                    rule=rule,
                    bit=HealthBit.UNKNOWN,
                    reason=f"rate bounds do not apply to histogram {rule.metric_name}",
                )
            groups = sorted(histograms)
            checks = [self._evaluate_histogram(rule, store, histograms[group], now) for group in groups]
            return self._worst_of(rule, [dict(group) for group in groups], checks)

        return BoundCheck(
            rule=rule,
            bit=HealthBit.UNKNOWN,
            reason=f"no samples recorded for {rule.metric_name}{format_labels(rule.labels)}",
        )

    @staticmethod
    def _worst_of(rule: BoundRule, series: Sequence[Mapping[str, str]], checks: List[BoundCheck]) -> BoundCheck:
        if len(checks) == 1:
            return checks[0]

        worst = worst_bit(check.bit for check in checks)
        for labels, check in zip(series, checks):
            if check.bit is worst:
                return BoundCheck(
                    rule=rule,
                    bit=worst,
                    reason=f"{format_labels(labels) or 'unlabelled series'}: {check.reason}",
                    observed=check.observed,
                )
        return checks[0]

    def _evaluate_series(self, rule: BoundRule, store: SampleStore, labels: Mapping[str, str], now: float) -> BoundCheck:
        current = store.point_at(rule.metric_name, labels, now)
        if current is None:
            return BoundCheck(rule=rule, bit=HealthBit.UNKNOWN, reason=f"no sample at or before {now:.3f}")

        if math.isnan(current.value):
            return BoundCheck(rule=rule, bit=HealthBit.UNKNOWN, reason="latest value is NaN")

        if self._is_stale(current, now):
            return BoundCheck(
                rule=rule,
                bit=HealthBit.UNKNOWN,
                reason=f"latest sample is stale ({now - current.timestamp:.0f}s old)",
                observed=current.value,
            )

        if not rule.bound_type.is_rate:
            return self._check_limit(rule, current.value)
        return self._evaluate_rate(rule, store, labels, current, now)

    def _evaluate_rate(
        self,
        rule: BoundRule,
        store: SampleStore,
        labels: Mapping[str, str],
        current: StoredPoint,
        now: float,
    ) -> BoundCheck:
        if rule.period is None:
            return BoundCheck(rule=rule, bit=HealthBit.UNKNOWN, reason="rate bound has no period")

        window_start = now - rule.period
        if current.timestamp <= window_start:
            return BoundCheck(
                rule=rule,
                bit=HealthBit.UNKNOWN,
                reason=f"no sample within the last {rule.period:g}s",
                observed=current.value,
            )

        past = store.point_at(rule.metric_name, labels, window_start)
        if past is None:
            return BoundCheck(
                rule=rule,
                bit=HealthBit.UNKNOWN,
                reason=f"insufficient history for {rule.period:g}s window",
            )

        delta = current.value - past.value
        if math.isnan(delta):
            return BoundCheck(rule=rule, bit=HealthBit.UNKNOWN, reason="window start value is NaN")
        if delta < 0 and store.kind_of(rule.metric_name, labels).is_monotonic:
            logger.info(
                "Counter reset suspected for %s%s: %s -> %s",
                rule.metric_name,
                format_labels(labels),
                past.value,
                current.value,
            )
            return BoundCheck(
                rule=rule,
                bit=HealthBit.UNKNOWN,
                reason=f"counter reset ({past.value:g} -> {current.value:g})",
                observed=delta,
            )

        return self._check_limit(rule, delta, label="delta")

    @staticmethod
    def _histogram_groups(rule: BoundRule, store: SampleStore) -> Dict[LabelSet, List[Dict[str, str]]]:
        """Bucket series of ``rule.metric_name`` grouped by their labels without ``le``."""
        bucket_name = rule.metric_name + HISTOGRAM_BUCKET_SUFFIX
        groups: Dict[LabelSet, List[Dict[str, str]]] = {}
        for labels in store.matching_series(bucket_name, rule.labels):
            if BUCKET_LABEL not in labels or store.kind_of(bucket_name, labels) is not MetricKind.HISTOGRAM:
                continue
            group = freeze_labels({key: value for key, value in labels.items() if key != BUCKET_LABEL})
            groups.setdefault(group, []).append(labels)
        return groups

    def _evaluate_histogram(
        self,
        rule: BoundRule,
        store: SampleStore,
        buckets: List[Dict[str, str]],
        now: float,
    ) -> BoundCheck:
        bucket_name = rule.metric_name + HISTOGRAM_BUCKET_SUFFIX
        counts = []
        for labels in buckets:
            le = labels[BUCKET_LABEL]
            point = store.point_at(bucket_name, labels, now)
            if point is None or math.isnan(point.value):
                return BoundCheck(rule=rule, bit=HealthBit.UNKNOWN, reason=f"bucket le={le} has no usable sample")
            if self._is_stale(point, now):
                return BoundCheck(
                    rule=rule,
                    bit=HealthBit.UNKNOWN,
                    reason=f"bucket le={le} is stale ({now - point.timestamp:.0f}s old)",
                )
            try:
                counts.append((float(le), point.value))
            except ValueError:
                return BoundCheck(rule=rule, bit=HealthBit.UNKNOWN, reason=f"unparseable bucket bound le={le!r}")

        # Bucket counts are cumulative: each one holds every observation <= its bound.
        counts.sort()
        if rule.bound_type.is_upper:
            within = max((count for bound, count in counts if bound <= rule.limit), default=0.0)
            observed = counts[-1][1] - within
            direction = "above"
        else:
            observed = max((count for bound, count in counts if bound < rule.limit), default=0.0)
            direction = "below"

        if observed > 0:
            return BoundCheck(
                rule=rule,
                bit=HealthBit.VIOLATED,
                reason=f"{observed:g} observations {direction} limit {rule.limit:g}",
                observed=observed,
            )
        return BoundCheck(rule=rule, bit=HealthBit.OK, reason=f"no observations {direction} limit {rule.limit:g}", observed=observed)

    def _is_stale(self, point: StoredPoint, now: float) -> bool:
        if self.stale_after_seconds is None:
            return False
        return now - point.timestamp > self.stale_after_seconds

    @staticmethod
    def _check_limit(rule: BoundRule, observed: float, label: str = "value") -> BoundCheck:
        if rule.bound_type.is_upper:
            return BoundEvaluator._compare(rule, observed, observed > rule.limit, ">", label)
        return BoundEvaluator._compare(rule, observed, observed < rule.limit, "<", label)

    @staticmethod
    def _compare(rule: BoundRule, observed: float, violated: bool, operator: str, label: str = "value") -> BoundCheck:
        if violated:
            return BoundCheck(
                rule=rule,
                bit=HealthBit.VIOLATED,
                reason=f"{label} {observed:g} {operator} limit {rule.limit:g}",
                observed=observed,
            )
        return BoundCheck(rule=rule, bit=HealthBit.OK, reason=f"{label} {observed:g} within limit {rule.limit:g}", observed=observed)


__all__ = ["BUCKET_LABEL", "HISTOGRAM_BUCKET_SUFFIX", "BoundEvaluator", "rate_retention"]
