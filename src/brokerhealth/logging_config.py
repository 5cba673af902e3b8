"""
Centralized logging configuration for the health agent.

This module provides a single setup_logging function that configures
logging consistently across commands with:
- Console output on stdout
- Optional file output to logs/{service_name}.log
- Fresh log file on each start unless LOG_APPEND=1
- User-friendly mode for one-shot command output
"""

import logging
import logging.handlers
import sys
import threading
from pathlib import Path
from typing import Optional

from .config.runtime import LOG_DIR_ENV, env_bool, env_str

# Thread-safe lock for logging configuration
_config_lock = threading.Lock()
_MODULE_LOGGER = logging.getLogger(__name__)
_TECHNICAL_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_NOISY_LOGGERS = ("asyncio", "aiohttp", "aiohttp.access", "aiohttp.client")


def _resolve_log_directory() -> Path:
    configured = env_str(LOG_DIR_ENV)
    if configured:
        return Path(configured).expanduser()
    return Path.cwd() / "logs"


def _close_handlers(logger: logging.Logger) -> None:
    """Close all handlers for a logger, logging any errors."""
    for handler in list(logger.handlers):
        try:
            handler.close()
        except OSError as exc:
            _MODULE_LOGGER.debug("Handler close failed for logger '%s': %s", logger.name, exc)
    logger.handlers = []


def _build_console_handler(user_friendly: bool, level: int) -> logging.Handler:
    if user_friendly:
        formatter = logging.Formatter("%(message)s")
    else:
        formatter = logging.Formatter(_TECHNICAL_FORMAT, _DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.WARNING if user_friendly else level)
    return console_handler


def _configure_file_handler(service_name: Optional[str]) -> Optional[logging.Handler]:
    if not service_name:
        return None

    logs_dir = _resolve_log_directory()
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"{service_name}.log"
    file_mode = "a" if env_bool("LOG_APPEND", or_value=False) else "w"

    handler_cls = getattr(logging.handlers, "WatchedFileHandler", logging.FileHandler)
    file_handler = handler_cls(log_path, mode=file_mode)
    file_handler.setFormatter(logging.Formatter(_TECHNICAL_FORMAT, _DATE_FORMAT))
    file_handler.setLevel(logging.INFO)
    return file_handler


def _suppress_noisy_third_parties() -> None:
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging(service_name: Optional[str] = None, user_friendly: bool = False, level: Optional[int] = None):
    """
    Configure the root logger.

    Args:
        service_name: When set, also log to ``{log_dir}/{service_name}.log``
        user_friendly: Bare messages on the console, warnings and above only
        level: Console level for technical output (defaults to INFO, or
            DEBUG when ``BROKERHEALTH_DEBUG`` is truthy)
    """

    if level is None:
        level = logging.DEBUG if env_bool("BROKERHEALTH_DEBUG", or_value=False) else logging.INFO

    # Use thread-safe lock to ensure single configuration
    with _config_lock:
        root_logger = logging.getLogger()
        _close_handlers(root_logger)

        root_logger.addHandler(_build_console_handler(user_friendly, level))

        file_handler = _configure_file_handler(service_name)
        if file_handler:
            root_logger.addHandler(file_handler)

        root_logger.setLevel(min(level, logging.INFO))
        _suppress_noisy_third_parties()


__all__ = ["setup_logging"]
