import math

import pytest

from brokerhealth.bounds.bound_types import BoundCheck, BoundRule, BoundType, HealthBit, worst_bit
from brokerhealth.errors import ConfigurationError


@pytest.mark.parametrize("raw", ["abs_upper", "ABS_UPPER", " Abs_Upper "])
def test_bound_type_parse_is_case_insensitive(raw):
    assert BoundType.parse(raw, "m") is BoundType.ABS_UPPER


def test_bound_type_parse_rejects_unknown_names():
    with pytest.raises(ConfigurationError) as exc_info:
        BoundType.parse("abs_sideways", "rabbitmq_queues")

    assert "abs_sideways" in str(exc_info.value)
    assert exc_info.value.param_name == "bound_type"


def test_bound_type_properties():
    assert BoundType.RATE_UPPER.is_rate and BoundType.RATE_UPPER.is_upper
    assert BoundType.RATE_LOWER.is_rate and not BoundType.RATE_LOWER.is_upper
    assert not BoundType.ABS_LOWER.is_rate


def test_rate_rule_requires_period():
    with pytest.raises(ConfigurationError, match="requires a time period"):
        BoundRule("erlang_vm_memory_processes_bytes_total", BoundType.RATE_UPPER, 1_000_000)


def test_absolute_rule_rejects_period():
    with pytest.raises(ConfigurationError, match="does not take a time period"):
        BoundRule("rabbitmq_queues", BoundType.ABS_LOWER, 1, period=60.0)


def test_rate_rule_rejects_non_positive_period():
    with pytest.raises(ConfigurationError):
        BoundRule("counter", BoundType.RATE_LOWER, 1, period=0.0)


@pytest.mark.parametrize("limit", [math.nan, math.inf, "1", True, None])
def test_rule_rejects_non_finite_or_non_numeric_limits(limit):
    with pytest.raises(ConfigurationError):
        BoundRule("rabbitmq_queues", BoundType.ABS_LOWER, limit)


def test_rule_rejects_empty_metric_name():
    with pytest.raises(ConfigurationError):
        BoundRule("", BoundType.ABS_LOWER, 1)


def test_rule_coerces_string_bound_type_and_int_limit():
    rule = BoundRule("rabbitmq_queues", "ABS_LOWER", 1)

    assert rule.bound_type is BoundType.ABS_LOWER
    assert rule.limit == 1.0
    assert isinstance(rule.limit, float)


def test_describe_includes_selector_and_period():
    rule = BoundRule("queue_messages", BoundType.RATE_UPPER, 100, period=60.0, labels={"vhost": "/"})

    assert rule.describe() == 'queue_messages{vhost="/"} rate_upper 100/60s'
    assert BoundRule("rabbitmq_queues", BoundType.ABS_LOWER, 1).describe() == "rabbitmq_queues abs_lower 1"


def test_worst_bit_dominance():
    assert worst_bit([HealthBit.OK, HealthBit.UNKNOWN]) is HealthBit.UNKNOWN
    assert worst_bit([HealthBit.UNKNOWN, HealthBit.VIOLATED, HealthBit.OK]) is HealthBit.VIOLATED
    assert worst_bit([HealthBit.OK]) is HealthBit.OK
    assert worst_bit([]) is HealthBit.UNKNOWN


def test_bound_check_to_dict():
    rule = BoundRule("rabbitmq_queues", BoundType.ABS_LOWER, 1)
    check = BoundCheck(rule=rule, bit=HealthBit.VIOLATED, reason="value 0 < limit 1", observed=0.0)

    assert check.to_dict() == {
        "rule": "rabbitmq_queues abs_lower 1",
        "bit": "violated",
        "reason": "value 0 < limit 1",
        "observed": 0.0,
    }
