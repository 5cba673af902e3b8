from __future__ import annotations

"""HTTP helpers shared by the alert and metrics clients."""

import asyncio
import logging
from urllib.parse import urlsplit

import aiohttp
from aiohttp import ClientError, ClientTimeout

from ..errors import FetchError

logger = logging.getLogger(__name__)

_HTTP_OK = 200


def ensure_http_url(request_url: str) -> str:
    """Ensure the provided URL uses an allowed HTTP/HTTPS scheme."""
    parsed = urlsplit(request_url)
    scheme = parsed.scheme.lower()
    if scheme not in {"http", "https"}:
        raise ValueError(f"Unsupported URL scheme: {request_url}")
    if not parsed.netloc:
        raise ValueError(f"URL missing network location: {request_url}")
    return request_url


async def fetch_body(url: str, timeout_seconds: float, *, accept: str = "*/*") -> bytes:
    """
    GET ``url`` and return the raw body.

    Args:
        url: Endpoint to query
        timeout_seconds: Total timeout for connect plus read
        accept: Value of the Accept header

    Returns:
        Response body bytes

    Raises:
        FetchError: On timeout, connection failure, or a non-200 status
    """
    try:
        async with aiohttp.ClientSession() as session:
            timeout = ClientTimeout(total=timeout_seconds)
            async with session.get(url, timeout=timeout, headers={"Accept": accept}) as response:
                if response.status != _HTTP_OK:
                    raise FetchError(source=url, reason=f"HTTP {response.status}")
                return await response.read()
    except asyncio.TimeoutError as exc:
        raise FetchError(source=url, reason="HTTP timeout") from exc
    except (ClientError, OSError) as exc:
        raise FetchError(source=url, reason=f"HTTP error: {exc}") from exc


__all__ = ["ensure_http_url", "fetch_body"]
