"""
Health aggregation for monitored elements and process-wide alerts.

This package separates:
- Alert matching (is a configured alert firing?)
- Element state (sample history owned by each metrics endpoint)
- Health aggregation (one tick folded into verdicts and a global status)
"""

from .alert_matcher import AlertMatcher
from .alert_types import ActiveAlert, AlertRule, AlertVerdict
from .element import Element
from .health_aggregator import HealthAggregator
from .health_aggregator_factory import HealthAggregatorDependencies, HealthAggregatorFactory, build_aggregator
from .health_types import HealthVerdict, OverallStatus, TickReport

__all__ = [
    "ActiveAlert",
    "AlertMatcher",
    "AlertRule",
    "AlertVerdict",
    "Element",
    "HealthAggregator",
    "HealthAggregatorDependencies",
    "HealthAggregatorFactory",
    "HealthVerdict",
    "OverallStatus",
    "TickReport",
    "build_aggregator",
]
