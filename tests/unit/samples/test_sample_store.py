import logging

from brokerhealth.samples.sample_store import SampleStore, StoredPoint
from brokerhealth.samples.sample_types import MetricKind
from tests.helpers.sample_builders import sample, series


def test_value_at_returns_latest_at_or_before_target():
    store = SampleStore({"msgs": 60.0})
    store.record_many(series("msgs", [(0, 1.0), (15, 2.0), (30, 3.0)]))

    assert store.value_at("msgs", {}, 30) == 3.0
    assert store.value_at("msgs", {}, 29.9) == 2.0
    assert store.value_at("msgs", None, 15) == 2.0


def test_value_at_before_oldest_sample_is_none():
    store = SampleStore({"msgs": 60.0})
    store.record(sample("msgs", 1.0, 100))

    assert store.value_at("msgs", {}, 99.5) is None


def test_value_at_unknown_series_is_none():
    store = SampleStore()

    assert store.value_at("missing", {}, 10) is None
    assert store.latest("missing") is None


def test_out_of_order_sample_is_dropped_and_logged(caplog):
    store = SampleStore({"msgs": 60.0})
    store.record(sample("msgs", 5.0, 100))

    with caplog.at_level(logging.WARNING):
        applied = store.record(sample("msgs", 1.0, 90))

    assert applied is False
    assert store.dropped_out_of_order == 1
    assert store.latest("msgs") == StoredPoint(timestamp=100, value=5.0)
    assert any("out-of-order" in record.message for record in caplog.records)


def test_equal_timestamps_are_accepted():
    store = SampleStore({"msgs": 60.0})

    assert store.record(sample("msgs", 1.0, 100))
    assert store.record(sample("msgs", 2.0, 100))
    assert store.value_at("msgs", {}, 100) == 2.0


def test_series_are_separated_by_labels():
    store = SampleStore()
    store.record(sample("queue_messages", 3.0, 10, {"queue": "a"}))
    store.record(sample("queue_messages", 7.0, 10, {"queue": "b"}))

    assert store.value_at("queue_messages", {"queue": "a"}, 10) == 3.0
    assert store.value_at("queue_messages", {"queue": "b"}, 10) == 7.0
    assert store.value_at("queue_messages", {}, 10) is None
    assert store.series_count == 2


def test_metric_without_rate_bound_keeps_only_newest_point():
    store = SampleStore()
    store.record_many(series("gauge", [(0, 1.0), (15, 2.0), (30, 3.0)]))

    assert store.point_count == 1
    assert store.latest("gauge").value == 3.0


def test_retention_keeps_one_point_reaching_the_window():
    store = SampleStore({"counter": 60.0}, grace_seconds=15.0)
    store.record_many(series("counter", [(t, float(t)) for t in range(0, 601, 15)]))

    # Window plus grace is 75s: the newest point at or before 600 - 75 survives.
    assert store.value_at("counter", {}, 540) == 540.0
    assert store.value_at("counter", {}, 525) == 525.0
    assert store.value_at("counter", {}, 500) is None
    assert store.point_count <= 7


def test_retention_memory_is_bounded_over_long_runs():
    store = SampleStore({"counter": 60.0}, grace_seconds=15.0)
    for tick in range(10_000):
        store.record(sample("counter", float(tick), tick * 15.0))

    assert store.point_count <= 7


def test_expire_idle_forgets_series_not_seen_recently():
    store = SampleStore({"counter": 60.0}, grace_seconds=15.0)
    store.record(sample("counter", 1.0, 0), seen_at=0)
    store.record(sample("gauge", 1.0, 0), seen_at=0)
    store.record(sample("gauge", 2.0, 100, {"queue": "a"}), seen_at=100)

    expired = store.expire_idle(now=100)

    assert ("counter", ()) in expired
    assert ("gauge", ()) in expired
    assert store.series_count == 1
    assert store.latest("gauge", {"queue": "a"}).value == 2.0


def test_expire_idle_keeps_series_inside_their_window():
    store = SampleStore({"counter": 60.0}, grace_seconds=15.0)
    store.record(sample("counter", 1.0, 0), seen_at=0)

    assert store.expire_idle(now=75) == []
    assert store.series_count == 1


def test_matching_series_uses_subset_selector():
    store = SampleStore()
    store.record(sample("queue_messages", 1.0, 0, {"queue": "b", "vhost": "/"}))
    store.record(sample("queue_messages", 1.0, 0, {"queue": "a", "vhost": "/"}))
    store.record(sample("queue_messages", 1.0, 0, {"queue": "c", "vhost": "other"}))

    matches = store.matching_series("queue_messages", {"vhost": "/"})

    assert matches == [{"queue": "a", "vhost": "/"}, {"queue": "b", "vhost": "/"}]
    assert len(store.matching_series("queue_messages")) == 3
    assert store.matching_series("absent") == []


def test_kind_of_tracks_latest_sample_kind():
    store = SampleStore()
    store.record(sample("mem", 1.0, 0, kind=MetricKind.GAUGE))

    assert store.kind_of("mem") is MetricKind.GAUGE
    assert store.kind_of("unknown") is MetricKind.UNTYPED


def test_retention_for_reports_configured_window():
    store = SampleStore({"counter": 60.0})

    assert store.retention_for("counter") == 60.0
    assert store.retention_for("gauge") is None
