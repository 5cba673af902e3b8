"""Handle errors from collaborator fetches."""

import logging
from typing import List, Optional, Tuple, Union

from ...errors import FetchError
from ...samples.sample_types import MetricSample
from ..alert_types import ActiveAlert

logger = logging.getLogger(__name__)


def describe_failure(error: BaseException) -> str:
    """Short cause string recorded in verdicts."""
    if isinstance(error, FetchError):
        return str(getattr(error, "reason", "") or error)
    message = str(error)
    return f"{type(error).__name__}: {message}" if message else type(error).__name__


class ErrorHandler:
    """Turn fetch outcomes into usable data or a recorded cause."""

    @staticmethod
    def ensure_samples(
        element_id: str, result: Union[List[MetricSample], BaseException, None]
    ) -> Tuple[Optional[List[MetricSample]], Optional[str]]:
        """
        Ensure an element fetch result is usable.

        Args:
            element_id: Element the samples belong to
            result: Samples from the metrics source or the exception it raised

        Returns:
            Tuple of (samples, cause); exactly one of them is None
        """
        if isinstance(result, BaseException):
            cause = describe_failure(result)
            logger.warning(f"Metrics fetch failed for {element_id}: {cause}")
            return None, cause
        if result is None:
            logger.warning(f"Metrics fetch for {element_id} returned nothing")
            return None, "no fetch result"
        return list(result), None

    @staticmethod
    def ensure_alerts(result: Union[List[ActiveAlert], BaseException, None]) -> Tuple[Optional[List[ActiveAlert]], Optional[str]]:
        """
        Ensure the alert fetch result is usable.

        Args:
            result: Active alerts from the alert source or the exception it raised

        Returns:
            Tuple of (alerts, cause); exactly one of them is None
        """
        if isinstance(result, BaseException):
            cause = describe_failure(result)
            logger.warning(f"Alert fetch failed: {cause}")
            return None, cause
        if result is None:
            return None, "no fetch result"
        return list(result), None


__all__ = ["ErrorHandler", "describe_failure"]
