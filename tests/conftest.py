"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from tests.helpers.fake_sources import FakeAlertSource, FakeMetricsSource

_ENV_OVERRIDES = (
    "BROKERHEALTH_INTERVAL_SECONDS",
    "BROKERHEALTH_FETCH_TIMEOUT_SECONDS",
    "BROKERHEALTH_ALERTS_URL",
    "BROKERHEALTH_LOG_DIR",
    "BROKERHEALTH_DEBUG",
    "LOG_APPEND",
)


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    for name in _ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_metrics_source() -> FakeMetricsSource:
    return FakeMetricsSource()


@pytest.fixture
def fake_alert_source() -> FakeAlertSource:
    return FakeAlertSource()
