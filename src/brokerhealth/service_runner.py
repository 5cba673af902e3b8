from __future__ import annotations

"""Utilities for running the long-lived agent loop with consistent shutdown handling."""

import asyncio
import logging
import signal
from typing import Any, Callable, Coroutine, Optional

from .logging_config import setup_logging

ServiceFactory = Callable[[], Coroutine[Any, Any, None]]


def run_async_service(
    factory: ServiceFactory,
    *,
    service_name: str,
    logger_name: Optional[str] = None,
    configure_logging: bool = True,
    shutdown_message: Optional[str] = None,
    ignore_sighup: bool = False,
) -> None:
    """Run an async service with consistent Ctrl+C handling.

    Args:
        factory: Callable returning the coroutine to execute.
        service_name: Identifier used for logging configuration.
        logger_name: Optional logger name override.
        configure_logging: Whether to configure logging via ``setup_logging``.
        shutdown_message: Optional custom message when interrupted.
        ignore_sighup: When ``True`` the service ignores ``SIGHUP`` so it keeps
            running after the launching terminal closes. Unsupported platforms
            (e.g. Windows) simply skip the signal tweak.
    """

    if configure_logging:
        setup_logging(service_name)

    logger = logging.getLogger(logger_name or f"brokerhealth.{service_name}")

    if ignore_sighup:
        try:
            signal.signal(signal.SIGHUP, signal.SIG_IGN)
            logger.debug("Ignoring SIGHUP for %s", service_name)
        except AttributeError:
            # SIGHUP is not defined on all platforms (e.g., Windows).
            logger.debug("SIGHUP not available; cannot ignore for %s", service_name)
        except ValueError:
            # Raised when signals are configured outside the main thread.
            logger.warning("Failed to ignore SIGHUP for %s", service_name)

    try:
        asyncio.run(factory())
        logger.info("%s service finished", service_name)
    except KeyboardInterrupt:
        if shutdown_message:
            logger.info(shutdown_message)
        else:
            logger.info("%s service interrupted by user", service_name)


__all__ = ["ServiceFactory", "run_async_service"]
