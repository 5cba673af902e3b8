from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from brokerhealth.bounds.bound_evaluator import rate_retention
from brokerhealth.bounds.bound_types import BoundCheck, BoundRule, BoundType, HealthBit
from brokerhealth.health.alert_types import ActiveAlert
from brokerhealth.health.health_types import HealthVerdict, OverallStatus, TickReport
from brokerhealth.samples.sample_store import SampleStore
from brokerhealth.samples.sample_types import MetricKind, MetricSample


def sample(
    name: str,
    value: float,
    timestamp: float,
    labels: Optional[Dict[str, str]] = None,
    kind: MetricKind = MetricKind.UNTYPED,
) -> MetricSample:
    return MetricSample(metric_name=name, value=value, timestamp=timestamp, labels=dict(labels or {}), kind=kind)


def series(
    name: str,
    points: Iterable[Tuple[float, float]],
    labels: Optional[Dict[str, str]] = None,
    kind: MetricKind = MetricKind.UNTYPED,
) -> List[MetricSample]:
    return [sample(name, value, timestamp, labels, kind) for timestamp, value in points]


def store_for(rules: Sequence[BoundRule], samples: Iterable[MetricSample] = (), grace_seconds: float = 15.0) -> SampleStore:
    store = SampleStore(rate_retention(rules), grace_seconds=grace_seconds)
    for item in samples:
        store.record(item)
    return store


def alert(name: str, **labels: str) -> ActiveAlert:
    return ActiveAlert(name=name, labels={"alertname": name, **labels})


class ManualClock:
    """Clock and sleep pair for scheduler tests; sleeping advances time instantly."""

    def __init__(self, start: float = 1_000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def tick_report(
    bits: Sequence[HealthBit] = (HealthBit.OK,),
    *,
    element_id: str = "node-0",
    timestamp: float = 1_000.0,
    alert_status: OverallStatus = OverallStatus.OK,
) -> TickReport:
    """Single-element report whose global status follows the bits and alert status."""
    rules = [BoundRule(f"metric_{index}", BoundType.ABS_UPPER, 1) for index in range(len(bits))]
    checks = tuple(BoundCheck(rule=rule, bit=bit, reason=f"{rule.metric_name} {bit.value}") for rule, bit in zip(rules, bits))
    overall = OverallStatus.from_bits(bits)
    verdict = HealthVerdict(element_id=element_id, checks=checks, overall=overall)
    return TickReport(
        timestamp=timestamp,
        verdicts={element_id: verdict},
        alerts=(),
        alert_status=alert_status,
        global_status=OverallStatus.fold([overall, alert_status]),
        element_order=(element_id,),
    )
