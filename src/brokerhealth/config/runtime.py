from __future__ import annotations

"""Runtime helpers for working with environment-backed configuration."""


import os

from ..errors import ConfigurationError

_TRUE_VALUES = {"1", "true", "t", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "f", "no", "n", "off"}

INTERVAL_ENV = "BROKERHEALTH_INTERVAL_SECONDS"
FETCH_TIMEOUT_ENV = "BROKERHEALTH_FETCH_TIMEOUT_SECONDS"
ALERTS_URL_ENV = "BROKERHEALTH_ALERTS_URL"
LOG_DIR_ENV = "BROKERHEALTH_LOG_DIR"


def _normalize(value: str | None, *, strip: bool) -> str | None:
    if value is None:
        return None
    return value.strip() if strip else value


def env_str(
    name: str,
    or_value: str | None = None,
    *,
    required: bool = False,
    strip: bool = True,
    allow_blank: bool = False,
) -> str | None:
    """Fetch an environment variable as a string with validation."""

    value = _normalize(os.getenv(name), strip=strip)

    if value is None or (not allow_blank and value == ""):
        if required:
            raise ConfigurationError(f"Required environment variable {name!r} is not set")
        return or_value
    return value


def env_float(name: str, or_value: float | None = None, *, required: bool = False) -> float | None:
    """Fetch an environment variable and coerce it to ``float``."""

    raw = env_str(name, strip=True, allow_blank=False)
    if raw is None:
        if required and or_value is None:
            raise ConfigurationError(f"Required environment variable {name!r} is not set")
        return or_value
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Environment variable {name!r} must be a float (got {raw!r})") from exc


def env_bool(name: str, or_value: bool | None = None, *, required: bool = False) -> bool | None:
    """Fetch an environment variable and coerce it to ``bool``."""

    raw = env_str(name, strip=True, allow_blank=False)
    if raw is None:
        if required and or_value is None:
            raise ConfigurationError(f"Required environment variable {name!r} is not set")
        return or_value

    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Environment variable {name!r} must be a boolean (got {raw!r})")


def env_seconds(name: str, or_value: float | None = None, *, required: bool = False) -> float | None:
    """Fetch a positive duration stored as (possibly fractional) seconds."""

    value = env_float(name, or_value=or_value, required=required)
    if value is None:
        return None
    if value <= 0:
        raise ConfigurationError(f"Environment variable {name!r} must be positive (got {value})")
    return value


__all__ = [
    "ALERTS_URL_ENV",
    "FETCH_TIMEOUT_ENV",
    "INTERVAL_ENV",
    "LOG_DIR_ENV",
    "env_bool",
    "env_float",
    "env_seconds",
    "env_str",
]
