import asyncio

import pytest

from brokerhealth.errors import FetchError
from brokerhealth.health.element import Element
from brokerhealth.health.health_aggregator_helpers.fetch_coordinator import FetchCoordinator
from tests.helpers.fake_sources import FakeAlertSource, FakeMetricsSource
from tests.helpers.sample_builders import alert, sample

NODE_0 = "http://node-0:9419/metrics"
NODE_1 = "http://node-1:9419/metrics"


class SlowMetricsSource:
    def __init__(self, delay):
        self.delay = delay
        self.cancelled = False

    async def fetch_samples(self, url, scrape_time):
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return [sample("m", 1.0, scrape_time)]


@pytest.mark.asyncio
async def test_fetch_all_collects_results_per_element():
    source = FakeMetricsSource({NODE_0: [sample("m", 1.0, 10)], NODE_1: FetchError(source=NODE_1, reason="HTTP 503")})
    coordinator = FetchCoordinator(source, FakeAlertSource([alert("RabbitmqDown")]))
    elements = [Element(NODE_0, [], element_id="node-0"), Element(NODE_1, [], element_id="node-1")]

    results = await coordinator.fetch_all(elements, now=10.0)

    assert results.samples["node-0"] == [sample("m", 1.0, 10)]
    assert isinstance(results.samples["node-1"], FetchError)
    assert [item.name for item in results.alerts] == ["RabbitmqDown"]
    assert source.calls == [(NODE_0, 10.0), (NODE_1, 10.0)]


@pytest.mark.asyncio
async def test_fetch_all_without_alert_source():
    coordinator = FetchCoordinator(FakeMetricsSource())

    results = await coordinator.fetch_all([Element(NODE_0, [])], now=0.0)

    assert results.alerts is None
    assert results.samples[NODE_0] == []


@pytest.mark.asyncio
async def test_timed_out_fetch_is_cancelled_and_reported():
    source = SlowMetricsSource(delay=5.0)
    coordinator = FetchCoordinator(source, fetch_timeout_seconds=0.01)

    results = await coordinator.fetch_all([Element(NODE_0, [])], now=0.0)

    error = results.samples[NODE_0]
    assert isinstance(error, FetchError)
    assert "timed out" in error.reason
    assert source.cancelled is True


@pytest.mark.asyncio
async def test_alert_failure_is_kept_as_exception():
    coordinator = FetchCoordinator(FakeMetricsSource(), FakeAlertSource(FetchError(source="alerts", reason="HTTP timeout")))

    results = await coordinator.fetch_all([], now=0.0)

    assert isinstance(results.alerts, FetchError)
    assert results.samples == {}
