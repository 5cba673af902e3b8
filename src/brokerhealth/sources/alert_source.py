"""
Prometheus alerts API client.

Queries ``/api/v1/alerts`` and turns the response into ActiveAlert objects.
Only alerts in the ``firing`` state are active; pending and inactive
alerts are ignored.

Expected structure:
{
    "status": "success",
    "data": {
        "alerts": [
            {
                "labels": {"alertname": "...", ...},
                "annotations": {...},
                "state": "firing",
                "activeAt": "2024-01-01T00:00:00.123456789Z",
                "value": "1e+00"
            }
        ]
    }
}
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

import orjson

from ..errors import PayloadError
from ..health.alert_types import ActiveAlert
from .http_utils import ensure_http_url, fetch_body

logger = logging.getLogger(__name__)

DEFAULT_ALERT_TIMEOUT_SECONDS = 10.0
_FIRING = "firing"
_FRACTION_RE = re.compile(r"\.(\d+)")


def parse_active_at(value: Any) -> Optional[float]:
    """Parse an RFC 3339 ``activeAt`` value into epoch seconds, or None."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip().replace("Z", "+00:00")
    # Prometheus reports nanoseconds; datetime accepts at most microseconds.
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug("Unparseable activeAt value: %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def _string_map(raw: Any) -> Dict[str, str]:
    if not isinstance(raw, dict):
        return {}
    return {str(key): str(val) for key, val in raw.items()}


def parse_alerts_response(body: Union[bytes, str], source: str = "alerts") -> List[ActiveAlert]:
    """
    Parse an alerts API response body.

    Args:
        body: Raw JSON response
        source: URL used in error messages

    Returns:
        Firing alerts, in response order

    Raises:
        PayloadError: If the body is not JSON, reports a non-success status,
            or lacks a ``data.alerts`` list
    """
    try:
        payload = orjson.loads(body)
    except orjson.JSONDecodeError as exc:
        raise PayloadError(source=source, reason="response is not valid JSON") from exc

    if not isinstance(payload, dict):
        raise PayloadError(source=source, reason="response must be a JSON object")
    if payload.get("status") != "success":
        raise PayloadError(source=source, reason=f"response indicates error (status={payload.get('status')!r})")

    data = payload.get("data")
    alerts = data.get("alerts") if isinstance(data, dict) else None
    if not isinstance(alerts, list):
        raise PayloadError(source=source, reason="missing 'data.alerts' list")

    active = []
    for entry in alerts:
        if not isinstance(entry, dict):
            continue
        labels = _string_map(entry.get("labels"))
        name = labels.get("alertname")
        if not name:
            continue
        if str(entry.get("state", "")).lower() != _FIRING:
            continue
        active.append(
            ActiveAlert(
                name=name,
                labels=labels,
                since=parse_active_at(entry.get("activeAt")),
                annotations=_string_map(entry.get("annotations")),
            )
        )
    return active


class PrometheusAlertSource:
    """Fetch firing alerts from a Prometheus server."""

    def __init__(self, url: str, *, timeout_seconds: float = DEFAULT_ALERT_TIMEOUT_SECONDS):
        """
        Initialize alert source.

        Args:
            url: Full alerts API URL, e.g. ``http://localhost:9090/api/v1/alerts``
            timeout_seconds: HTTP timeout for one query
        """
        self.url = ensure_http_url(url)
        self.timeout_seconds = timeout_seconds

    async def fetch_active_alerts(self) -> List[ActiveAlert]:
        """
        Query the alerts API.

        Returns:
            Firing alerts

        Raises:
            FetchError: On network failure or malformed payload
        """
        body = await fetch_body(self.url, self.timeout_seconds, accept="application/json")
        alerts = parse_alerts_response(body, source=self.url)
        logger.debug("Fetched %d firing alert(s) from %s", len(alerts), self.url)
        return alerts


__all__ = ["PrometheusAlertSource", "parse_active_at", "parse_alerts_response"]
