"""
Prometheus exposition scraper.

Fetches an element's ``/metrics`` endpoint and parses the text exposition
format with ``prometheus_client``'s parser into MetricSample objects.
Sample names are kept as exposed (``_total``, ``_bucket``, ``_count``
suffixes included) and tagged with their family type.
"""

import logging
import re
from typing import List, Optional, Set

from prometheus_client.parser import text_string_to_metric_families

from ..errors import PayloadError
from ..samples.sample_types import MetricKind, MetricSample
from .http_utils import ensure_http_url, fetch_body

logger = logging.getLogger(__name__)

DEFAULT_SCRAPE_TIMEOUT_SECONDS = 10.0
_EXPOSITION_ACCEPT = "text/plain;version=0.0.4;q=1,*/*;q=0.1"
_SAMPLE_NAME = re.compile(r"\s*([a-zA-Z_:][a-zA-Z0-9_:]*)")
_TOTAL_SUFFIX = "_total"


def _sample_timestamp(raw, scrape_time: float) -> float:
    if raw is None:
        return scrape_time
    try:
        return float(raw)
    except (TypeError, ValueError):
        logger.debug("Ignoring unusable exposition timestamp %r", raw)
        return scrape_time


def _exposed_names(text: str) -> Set[str]:
    """Sample names as written on the exposition's sample lines."""
    names = set()
    for line in text.splitlines():
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        match = _SAMPLE_NAME.match(line)
        if match:
            names.add(match.group(1))
    return names


def _exposed_name(parsed_name: str, exposed: Set[str]) -> str:
    # The parser appends _total to samples of counter families that lack it.
    if parsed_name in exposed or not parsed_name.endswith(_TOTAL_SUFFIX):
        return parsed_name
    bare = parsed_name[: -len(_TOTAL_SUFFIX)]
    return bare if bare in exposed else parsed_name


def parse_exposition(text: str, scrape_time: float, source: str = "metrics") -> List[MetricSample]:
    """
    Parse a text exposition dump.

    Args:
        text: Exposition-format body
        scrape_time: Timestamp given to samples that carry none
        source: URL used in error messages

    Returns:
        Parsed samples in exposition order

    Raises:
        PayloadError: If the text cannot be parsed
    """
    samples: List[MetricSample] = []
    exposed = _exposed_names(text)
    try:
        for family in text_string_to_metric_families(text):
            kind = MetricKind.from_exposition(family.type)
            for sample in family.samples:
                samples.append(
                    MetricSample(
                        metric_name=_exposed_name(sample.name, exposed),
                        value=float(sample.value),
                        timestamp=_sample_timestamp(sample.timestamp, scrape_time),
                        labels=dict(sample.labels),
                        kind=kind,
                    )
                )
    except (ValueError, TypeError, IndexError) as exc:
        raise PayloadError(source=source, reason=f"malformed exposition: {exc}") from exc
    return samples


class ExporterMetricsSource:
    """Scrape Prometheus-compatible metrics endpoints."""

    def __init__(self, *, timeout_seconds: float = DEFAULT_SCRAPE_TIMEOUT_SECONDS):
        self.timeout_seconds = timeout_seconds

    async def fetch_samples(self, url: str, scrape_time: float, timeout_seconds: Optional[float] = None) -> List[MetricSample]:
        """
        Scrape one endpoint.

        Args:
            url: Metrics endpoint
            scrape_time: Tick time used for samples without a timestamp
            timeout_seconds: Override for the HTTP timeout

        Returns:
            Parsed samples

        Raises:
            FetchError: On network failure or unparseable payload
        """
        ensure_http_url(url)
        body = await fetch_body(url, timeout_seconds or self.timeout_seconds, accept=_EXPOSITION_ACCEPT)
        samples = parse_exposition(body.decode("utf-8", errors="replace"), scrape_time, source=url)
        logger.debug("Scraped %d samples from %s", len(samples), url)
        return samples


__all__ = ["ExporterMetricsSource", "parse_exposition"]
