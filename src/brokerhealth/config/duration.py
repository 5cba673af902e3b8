"""Human-readable duration parsing (``"15s"``, ``"1m"``, ``"1h30m"``)."""

import math
import re
from typing import Any

from ..errors import ConfigurationError

_UNIT_SECONDS = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
    "d": 86400.0,
}

_PART_RE = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h|d)")


def parse_duration(value: Any, param_name: str = "duration") -> float:
    """
    Convert a configured duration into seconds.

    Args:
        value: Number of seconds, or a string of ``<number><unit>`` parts
        param_name: Name used in error messages

    Returns:
        Duration in seconds

    Raises:
        ConfigurationError: If the value is not a valid duration
    """
    if isinstance(value, bool):
        raise ConfigurationError.invalid_value(param_name, value, "Durations must be numbers or strings like '1m'")

    if isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        seconds = _parse_duration_text(value.strip().lower(), param_name)
    else:
        raise ConfigurationError.invalid_value(param_name, value, "Durations must be numbers or strings like '1m'")

    if not math.isfinite(seconds) or seconds < 0:
        raise ConfigurationError.invalid_value(param_name, value, "Durations must be finite and non-negative")
    return seconds


def _parse_duration_text(text: str, param_name: str) -> float:
    if not text:
        raise ConfigurationError.missing_value(param_name)

    total = 0.0
    position = 0
    while position < len(text):
        match = _PART_RE.match(text, position)
        if match is None:
            raise ConfigurationError.invalid_value(param_name, text, "Expected parts like '500ms', '15s', '1m' or '1h30m'")
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        position = match.end()
    return total


__all__ = ["parse_duration"]
