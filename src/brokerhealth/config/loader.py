"""
TOML configuration loading and validation.

A configuration file declares the agent settings, the optional Prometheus
alerts endpoint with its alert rules, and the monitored elements with their
bound rules. Everything is validated up front; any problem raises
ConfigurationError before a single tick runs.
"""

import logging
import math
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from ..bounds.bound_types import BoundRule, BoundType
from ..errors import ConfigurationError
from ..health.alert_types import AlertRule
from ..sources.http_utils import ensure_http_url
from .config_types import DEFAULT_HISTORY_SIZE, DEFAULT_INTERVAL_SECONDS, AgentConfig, AgentSettings, AlertSourceConfig, ElementConfig
from .duration import parse_duration
from .runtime import ALERTS_URL_ENV, FETCH_TIMEOUT_ENV, INTERVAL_ENV, env_seconds, env_str

logger = logging.getLogger(__name__)


def load_config(path: Union[str, Path]) -> AgentConfig:
    """
    Load and validate a TOML configuration file.

    Args:
        path: Location of the configuration file

    Returns:
        Validated AgentConfig

    Raises:
        ConfigurationError: If the file is missing, unreadable, or invalid
    """
    config_path = Path(path).expanduser()
    if not config_path.exists():
        raise ConfigurationError(f"Configuration file {config_path} does not exist")
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError.load_failed("configuration", str(config_path)) from exc

    config = parse_config_str(text, source=str(config_path))
    logger.info("Loaded %d element(s) from %s", len(config.elements), config_path)
    return config


def parse_config_str(text: str, source: str = "<string>") -> AgentConfig:
    """
    Parse and validate a TOML configuration document.

    Args:
        text: TOML document
        source: Name used in error messages

    Returns:
        Validated AgentConfig

    Raises:
        ConfigurationError: If the document is not valid TOML or fails validation
    """
    try:
        document = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Failed to parse TOML config {source}: {exc}") from exc
    return build_config(document)


def build_config(document: Mapping[str, Any]) -> AgentConfig:
    """Validate a decoded configuration mapping and apply environment overrides."""
    settings = _parse_settings(_optional_table(document, "agent"))
    alerts = _parse_alerts(document.get("prometheus"))
    elements = _parse_elements(document.get("elements"))

    seen = set()
    for element in elements:
        if element.identifier in seen:
            raise ConfigurationError.duplicate_element(element.identifier)
        seen.add(element.identifier)

    return AgentConfig(settings=settings, alerts=alerts, elements=tuple(elements))


def _optional_table(document: Mapping[str, Any], key: str) -> Dict[str, Any]:
    value = document.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError.invalid_value(key, value, "Expected a table")
    return value


def _parse_settings(table: Mapping[str, Any]) -> AgentSettings:
    interval = env_seconds(INTERVAL_ENV)
    if interval is None:
        interval = parse_duration(table.get("interval", DEFAULT_INTERVAL_SECONDS), "agent.interval")
    if interval <= 0:
        raise ConfigurationError.invalid_value("agent.interval", interval, "The tick interval must be positive")

    fetch_timeout = env_seconds(FETCH_TIMEOUT_ENV)
    if fetch_timeout is None:
        raw_timeout = table.get("fetch_timeout")
        fetch_timeout = parse_duration(raw_timeout, "agent.fetch_timeout") if raw_timeout is not None else interval
    if fetch_timeout <= 0:
        raise ConfigurationError.invalid_value("agent.fetch_timeout", fetch_timeout, "The fetch timeout must be positive")
    if fetch_timeout > interval:
        logger.warning("Fetch timeout %.3fs exceeds the tick interval; capping at %.3fs", fetch_timeout, interval)
        fetch_timeout = interval

    raw_stale = table.get("stale_after")
    stale_after: Optional[float] = None
    if raw_stale is not None:
        stale_after = parse_duration(raw_stale, "agent.stale_after")
        if stale_after <= 0:
            raise ConfigurationError.invalid_value("agent.stale_after", raw_stale, "Staleness windows must be positive")

    history_size = table.get("history_size", DEFAULT_HISTORY_SIZE)
    if isinstance(history_size, bool) or not isinstance(history_size, int) or history_size < 1:
        raise ConfigurationError.invalid_value("agent.history_size", history_size, "Expected a positive integer")

    return AgentSettings(
        interval_seconds=interval,
        fetch_timeout_seconds=fetch_timeout,
        stale_after_seconds=stale_after,
        history_size=history_size,
    )


def _parse_url(value: Any, param_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError.missing_value(param_name)
    url = value.strip()
    try:
        return ensure_http_url(url)
    except ValueError as exc:
        raise ConfigurationError.invalid_value(param_name, url, str(exc)) from exc


def _parse_labels(value: Any, param_name: str) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError.invalid_value(param_name, value, "Labels must be a table of strings")
    labels = {}
    for key, label_value in value.items():
        if not isinstance(label_value, str):
            raise ConfigurationError.invalid_value(f"{param_name}.{key}", label_value, "Label values must be strings")
        labels[str(key)] = label_value
    return labels


def _parse_alerts(value: Any) -> Optional[AlertSourceConfig]:
    override_url = env_str(ALERTS_URL_ENV)
    if value is None:
        if override_url:
            return AlertSourceConfig(url=_parse_url(override_url, ALERTS_URL_ENV))
        return None
    if not isinstance(value, dict):
        raise ConfigurationError.invalid_value("prometheus", value, "Expected a table")

    url = _parse_url(override_url or value.get("url"), "prometheus.url")

    raw_rules = value.get("alerts", [])
    if not isinstance(raw_rules, list):
        raise ConfigurationError.invalid_value("prometheus.alerts", raw_rules, "Expected an array of tables")

    rules: List[AlertRule] = []
    for index, raw_rule in enumerate(raw_rules):
        location = f"prometheus.alerts[{index}]"
        if not isinstance(raw_rule, dict):
            raise ConfigurationError.invalid_value(location, raw_rule, "Expected a table")
        name = raw_rule.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError.missing_value(f"{location}.name")
        rules.append(AlertRule(name=name.strip(), labels=_parse_labels(raw_rule.get("labels"), f"{location}.labels")))

    return AlertSourceConfig(url=url, rules=tuple(rules))


def _parse_elements(value: Any) -> List[ElementConfig]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigurationError.invalid_value("elements", value, "Expected an array of tables")

    elements = []
    for index, raw_element in enumerate(value):
        location = f"elements[{index}]"
        if not isinstance(raw_element, dict):
            raise ConfigurationError.invalid_value(location, raw_element, "Expected a table")

        url = _parse_url(raw_element.get("url"), f"{location}.url")
        name = raw_element.get("name")
        if name is not None and (not isinstance(name, str) or not name.strip()):
            raise ConfigurationError.invalid_value(f"{location}.name", name, "Element names must be non-empty strings")

        raw_bounds = raw_element.get("bounds", [])
        if not isinstance(raw_bounds, list):
            raise ConfigurationError.invalid_value(f"{location}.bounds", raw_bounds, "Expected an array of tables")
        bounds = tuple(_parse_bound(raw_bound, f"{location}.bounds[{bound_index}]") for bound_index, raw_bound in enumerate(raw_bounds))

        elements.append(ElementConfig(url=url, bounds=bounds, element_id=name.strip() if name else None))
    return elements


def _parse_bound(raw: Any, location: str) -> BoundRule:
    if not isinstance(raw, dict):
        raise ConfigurationError.invalid_value(location, raw, "Expected a table")

    metric_name = raw.get("metric_name")
    if not isinstance(metric_name, str) or not metric_name.strip():
        raise ConfigurationError.missing_value(f"{location}.metric_name")
    metric_name = metric_name.strip()

    raw_type = raw.get("bound_type")
    if not isinstance(raw_type, str):
        raise ConfigurationError.missing_value(f"{location}.bound_type")
    bound_type = BoundType.parse(raw_type, metric_name)

    limit = raw.get("limit")
    if isinstance(limit, bool) or not isinstance(limit, (int, float)) or not math.isfinite(limit):
        raise ConfigurationError.invalid_value(f"{location}.limit", limit, "Limits must be finite numbers")

    raw_period = raw.get("period")
    period = parse_duration(raw_period, f"{location}.period") if raw_period is not None else None

    return BoundRule(
        metric_name=metric_name,
        bound_type=bound_type,
        limit=float(limit),
        period=period,
        labels=_parse_labels(raw.get("labels"), f"{location}.labels"),
    )


__all__ = ["build_config", "load_config", "parse_config_str"]
