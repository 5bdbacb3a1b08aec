"""
================================================================================
E2E Tools Common Utilities
================================================================================

Shared configuration access and loguru logging setup for the UI suites.

Exports:
    - ConfigLoader: Singleton YAML + environment configuration
    - init_logger: Initialize loguru sinks with the standard format
    - safe_json_serialize: ``default=`` hook for json.dumps

Usage:
    from e2e_tools.common import init_logger

    init_logger(level="DEBUG", log_file="logs/e2e.log")

================================================================================
"""

import os
import sys
from datetime import date, datetime
from typing import Any, Optional

from loguru import logger

from .config_loader import ConfigLoader, ConfigurationError


DEFAULT_LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[test]}</magenta> | "
    "<level>{message}</level>"
)

_logger_initialized = False


def init_logger(
    level: Optional[str] = None,
    format_string: Optional[str] = None,
    log_file: Optional[str] = None,
) -> None:
    """
    Initializes the loguru logger with standard settings.

    Every record carries an ``extra[test]`` field so that interaction logs
    from concurrent tests can be told apart; it defaults to ``-``.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to config value.
        format_string: Log format string. Uses default if not provided.
        log_file: Optional file path to write logs to.
    """
    global _logger_initialized

    if _logger_initialized:
        return

    config = ConfigLoader()

    logger.remove()
    logger.configure(extra={"test": "-"})

    level = (level or config.get("logging.level", "INFO")).upper()
    format_string = format_string or config.get("logging.format", DEFAULT_LOG_FORMAT)

    logger.add(
        sys.stderr,
        format=format_string,
        level=level,
        colorize=True,
    )

    log_file = log_file or config.get("logging.file")
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        logger.add(
            log_file,
            format=format_string,
            level=level,
            rotation=config.get("logging.rotation", "10 MB"),
            retention=config.get("logging.retention", "7 days"),
        )

    _logger_initialized = True
    logger.debug(f"Logger initialized with level: {level}")


def safe_json_serialize(obj: Any) -> Any:
    """
    Safely serializes an object to JSON-compatible format.

    Handles common non-serializable types like datetime, bytes, exceptions
    and dataclass-like objects.
    """
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    elif isinstance(obj, bytes):
        return obj.decode("utf-8", errors="replace")
    elif isinstance(obj, BaseException):
        return f"{type(obj).__name__}: {obj}"
    elif hasattr(obj, "__dict__"):
        return obj.__dict__
    else:
        return str(obj)


__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "init_logger",
    "safe_json_serialize",
]
