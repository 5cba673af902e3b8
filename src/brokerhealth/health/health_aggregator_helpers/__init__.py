"""Helper modules for HealthAggregator."""

from .error_handler import ErrorHandler
from .fetch_coordinator import FetchCoordinator, TickFetchResults
from .formatter import StatusFormatter
from .status_folder import StatusFolder
from .verdict_builder import VerdictBuilder

__all__ = [
    "ErrorHandler",
    "FetchCoordinator",
    "StatusFolder",
    "StatusFormatter",
    "TickFetchResults",
    "VerdictBuilder",
]
