import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from brokerhealth.bounds.bound_types import BoundRule, BoundType, HealthBit
from brokerhealth.errors import ConfigurationError, FetchError, PayloadError
from brokerhealth.health.alert_types import AlertRule
from brokerhealth.health.element import Element
from brokerhealth.health.health_aggregator import HealthAggregator
from brokerhealth.health.health_types import OverallStatus
from brokerhealth.samples.sample_types import MetricKind
from tests.helpers.fake_sources import FakeAlertSource, FakeMetricsSource
from tests.helpers.sample_builders import alert, sample

NODE_0 = "http://node-0:9419/metrics"
NODE_1 = "http://node-1:9419/metrics"

QUEUES = BoundRule("rabbitmq_queues", BoundType.ABS_LOWER, 1)
DROPPED = BoundRule("rabbitmq_global_messages_unroutable_dropped_total", BoundType.ABS_UPPER, 1)
MEMORY = BoundRule("erlang_vm_memory_processes_bytes_total", BoundType.RATE_UPPER, 1_000_000, period=60.0)
REPLICAS = AlertRule("KubeStatefulSetReplicasMismatch", {"statefulset": "rabbitmq"})


def _healthy_samples(now, memory=50_000_000.0):
    return [
        sample("rabbitmq_queues", 3.0, now),
        sample("rabbitmq_global_messages_unroutable_dropped_total", 0.0, now),
        sample("erlang_vm_memory_processes_bytes_total", memory, now),
    ]


def _elements():
    return [
        Element(NODE_0, [QUEUES, DROPPED, MEMORY], element_id="node-0", grace_seconds=15.0),
        Element(NODE_1, [QUEUES, DROPPED], element_id="node-1", grace_seconds=15.0),
    ]


def make_aggregator(metrics=None, alerts=None, **kwargs):
    metrics = metrics or FakeMetricsSource()
    return HealthAggregator(_elements(), metrics_source=metrics, alert_source=alerts, alert_rules=[REPLICAS], **kwargs)


@pytest.mark.asyncio
async def test_all_healthy_tick_reports_ok_with_rate_unknown_until_window_fills():
    metrics = FakeMetricsSource({NODE_0: _healthy_samples(0.0), NODE_1: _healthy_samples(0.0)})
    aggregator = make_aggregator(metrics, FakeAlertSource([]))

    report = await aggregator.run_tick(0.0)

    assert report.verdicts["node-0"].bits == (HealthBit.OK, HealthBit.OK, HealthBit.UNKNOWN)
    assert report.verdicts["node-0"].overall is OverallStatus.UNKNOWN
    assert report.verdicts["node-1"].overall is OverallStatus.OK
    assert report.alert_status is OverallStatus.OK
    assert report.global_status is OverallStatus.UNKNOWN
    assert report.triggered_alerts == {REPLICAS.key: False}


@pytest.mark.asyncio
async def test_rate_window_fills_over_ticks():
    metrics = FakeMetricsSource()
    aggregator = make_aggregator(metrics, FakeAlertSource([]))

    report = None
    for tick in range(5):
        now = tick * 15.0
        metrics.responses = {NODE_0: _healthy_samples(now, memory=50_000_000.0 + tick * 100_000), NODE_1: _healthy_samples(now)}
        report = await aggregator.run_tick(now)

    assert report.verdicts["node-0"].bits == (HealthBit.OK, HealthBit.OK, HealthBit.OK)
    assert report.global_status is OverallStatus.OK


@pytest.mark.asyncio
async def test_rate_bound_turns_unknown_once_metric_vanishes_from_scrape():
    publish_rate = BoundRule("rabbitmq_global_messages_received_total", BoundType.RATE_LOWER, 1, period=60.0)
    element = Element(NODE_0, [publish_rate], element_id="node-0", grace_seconds=15.0)
    metrics = FakeMetricsSource()
    aggregator = HealthAggregator([element], metrics_source=metrics)

    bits = {}
    for tick in range(10):
        now = tick * 15.0
        if now <= 60.0:
            metrics.responses[NODE_0] = [
                sample(publish_rate.metric_name, tick * 10.0, now, kind=MetricKind.COUNTER),
            ]
        else:
            metrics.responses[NODE_0] = []
        report = await aggregator.run_tick(now)
        bits[now] = report.verdicts["node-0"].bits[0]

    assert bits[60.0] is HealthBit.OK
    assert bits[105.0] is HealthBit.OK
    assert bits[120.0] is HealthBit.UNKNOWN
    assert bits[135.0] is HealthBit.UNKNOWN
    assert report.global_status is OverallStatus.UNKNOWN


@pytest.mark.asyncio
async def test_failed_element_fetch_only_affects_that_element():
    metrics = FakeMetricsSource({NODE_0: FetchError(source=NODE_0, reason="HTTP 503"), NODE_1: _healthy_samples(0.0)})
    aggregator = make_aggregator(metrics, FakeAlertSource([]))

    report = await aggregator.run_tick(0.0)

    failed = report.verdicts["node-0"]
    assert failed.overall is OverallStatus.UNKNOWN
    assert failed.bits == (HealthBit.UNKNOWN,) * 3
    assert failed.cause == "HTTP 503"
    assert report.verdicts["node-1"].overall is OverallStatus.OK
    assert report.global_status is OverallStatus.UNKNOWN


@pytest.mark.asyncio
async def test_failed_fetch_keeps_previous_history():
    metrics = FakeMetricsSource({NODE_0: _healthy_samples(0.0), NODE_1: _healthy_samples(0.0)})
    aggregator = make_aggregator(metrics)
    await aggregator.run_tick(0.0)

    metrics.responses[NODE_0] = PayloadError(source=NODE_0, reason="malformed exposition")
    await aggregator.run_tick(15.0)

    store = aggregator.elements[0].store
    assert store.latest("rabbitmq_queues").value == 3.0


@pytest.mark.asyncio
async def test_violation_on_any_element_degrades_globally():
    bad = _healthy_samples(0.0)
    bad[0] = sample("rabbitmq_queues", 0.0, 0.0)
    metrics = FakeMetricsSource({NODE_0: _healthy_samples(0.0), NODE_1: bad})
    aggregator = make_aggregator(metrics, FakeAlertSource([]))

    report = await aggregator.run_tick(0.0)

    assert report.verdicts["node-1"].overall is OverallStatus.DEGRADED
    assert report.verdicts["node-1"].violated_mask == 0b01
    assert report.global_status is OverallStatus.DEGRADED


@pytest.mark.asyncio
async def test_triggered_alert_degrades_globally():
    metrics = FakeMetricsSource({NODE_0: _healthy_samples(0.0), NODE_1: _healthy_samples(0.0)})
    alerts = FakeAlertSource([alert("KubeStatefulSetReplicasMismatch", statefulset="rabbitmq", namespace="prod")])
    aggregator = make_aggregator(metrics, alerts)

    report = await aggregator.run_tick(0.0)

    assert report.alert_status is OverallStatus.DEGRADED
    assert report.triggered_alerts == {REPLICAS.key: True}
    assert report.global_status is OverallStatus.DEGRADED


@pytest.mark.asyncio
async def test_failed_alert_fetch_makes_alert_side_unknown():
    metrics = FakeMetricsSource({NODE_0: _healthy_samples(0.0), NODE_1: _healthy_samples(0.0)})
    alerts = FakeAlertSource(FetchError(source="alerts", reason="HTTP timeout"))
    aggregator = make_aggregator(metrics, alerts)

    report = await aggregator.run_tick(0.0)

    assert report.alert_status is OverallStatus.UNKNOWN
    assert report.alert_error == "HTTP timeout"
    assert report.alerts == ()
    assert report.global_status is OverallStatus.UNKNOWN


@pytest.mark.asyncio
async def test_without_alert_source_alert_side_is_ok():
    metrics = FakeMetricsSource({NODE_0: _healthy_samples(0.0), NODE_1: _healthy_samples(0.0)})
    aggregator = HealthAggregator([Element(NODE_1, [QUEUES])], metrics_source=metrics, alert_rules=[REPLICAS])

    report = await aggregator.run_tick(0.0)

    assert report.alert_status is OverallStatus.OK
    assert report.alerts == ()
    assert report.global_status is OverallStatus.OK


@pytest.mark.asyncio
async def test_tick_that_fetched_nothing_still_reports():
    metrics = FakeMetricsSource({NODE_0: FetchError(source=NODE_0, reason="refused"), NODE_1: FetchError(source=NODE_1, reason="refused")})
    aggregator = make_aggregator(metrics, FakeAlertSource(FetchError(source="alerts", reason="refused")))

    report = await aggregator.run_tick(0.0)

    assert all(verdict.overall is OverallStatus.UNKNOWN for verdict in report.verdicts.values())
    assert report.global_status is OverallStatus.UNKNOWN
    assert aggregator.latest_report is report


@pytest.mark.asyncio
async def test_unexpected_exception_from_source_is_contained():
    metrics = AsyncMock()
    metrics.fetch_samples = AsyncMock(side_effect=RuntimeError("boom"))
    aggregator = HealthAggregator([Element(NODE_0, [QUEUES])], metrics_source=metrics)

    report = await aggregator.run_tick(0.0)

    assert report.verdicts[NODE_0].cause == "RuntimeError: boom"


@pytest.mark.asyncio
async def test_slow_element_times_out_without_blocking_others():
    metrics = FakeMetricsSource({NODE_1: _healthy_samples(0.0)})

    async def fetch_samples(url, scrape_time):
        if url == NODE_0:
            await asyncio.sleep(5)
        return await FakeMetricsSource.fetch_samples(metrics, url, scrape_time)

    metrics.fetch_samples = fetch_samples
    aggregator = make_aggregator(metrics, fetch_timeout_seconds=0.01)

    report = await aggregator.run_tick(0.0)

    assert report.verdicts["node-0"].overall is OverallStatus.UNKNOWN
    assert "timed out" in report.verdicts["node-0"].cause
    assert report.verdicts["node-1"].overall is OverallStatus.OK


@pytest.mark.asyncio
async def test_history_ring_is_bounded_and_latest_verdicts_tracked():
    metrics = FakeMetricsSource()
    aggregator = make_aggregator(metrics, history_size=2)

    for tick in range(4):
        now = tick * 15.0
        metrics.responses = {NODE_0: _healthy_samples(now), NODE_1: _healthy_samples(now)}
        await aggregator.run_tick(now)

    assert [report.timestamp for report in aggregator.history] == [30.0, 45.0]
    assert set(aggregator.latest_verdicts) == {"node-0", "node-1"}


@pytest.mark.asyncio
async def test_out_of_order_samples_are_not_applied(caplog):
    metrics = FakeMetricsSource({NODE_0: _healthy_samples(100.0), NODE_1: _healthy_samples(100.0)})
    aggregator = make_aggregator(metrics)
    await aggregator.run_tick(100.0)

    metrics.responses[NODE_1] = [sample("rabbitmq_queues", 0.0, 50.0)]
    report = await aggregator.run_tick(115.0)

    assert aggregator.elements[1].store.latest("rabbitmq_queues").value == 3.0
    assert report.verdicts["node-1"].bits[0] is HealthBit.OK
    assert any("dropped as out of order" in record.message for record in caplog.records)


def test_evaluate_element_is_idempotent():
    aggregator = make_aggregator()
    element = aggregator.elements[1]
    element.store.record_many(_healthy_samples(0.0))

    first = aggregator.evaluate_element(element, 0.0)
    second = aggregator.evaluate_element(element, 0.0)

    assert first == second


def test_duplicate_element_ids_are_rejected():
    with pytest.raises(ConfigurationError):
        HealthAggregator([Element(NODE_0, []), Element(NODE_0, [])], metrics_source=FakeMetricsSource())


def test_metrics_source_is_required_without_dependencies():
    with pytest.raises(ConfigurationError):
        HealthAggregator([Element(NODE_0, [])])


@pytest.mark.asyncio
async def test_tick_logs_store_size_per_element(caplog):
    metrics = FakeMetricsSource({NODE_0: _healthy_samples(0.0), NODE_1: _healthy_samples(0.0)})
    aggregator = make_aggregator(metrics)

    with caplog.at_level(logging.DEBUG, logger="brokerhealth.health.health_aggregator"):
        await aggregator.run_tick(0.0)

    assert "node-0: store holds 3 series, 3 points" in caplog.text
