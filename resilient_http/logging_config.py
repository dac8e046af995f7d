"""
Logging Setup
=============
structlog configuration for applications embedding the client.

The library only calls ``structlog.get_logger``; applications call
``setup_logging`` once at startup.

Usage:
    from resilient_http.logging_config import setup_logging

    setup_logging(level="DEBUG", json_logs=False)
"""

import logging
import os
import sys
from typing import Optional

import structlog


def setup_logging(level: Optional[str] = None, json_logs: Optional[bool] = None) -> None:
    """
    Configure structlog on top of stdlib logging.

    Args:
        level: Log level name. Defaults to LOG_LEVEL env var or INFO.
        json_logs: JSON output when True, console output when False.
                   Defaults to LOG_FORMAT env var ("json" unless "console").
    """
    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    numeric_level = getattr(logging, log_level, None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    if json_logs is None:
        json_logs = os.getenv("LOG_FORMAT", "json").lower() != "console"

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
        force=True,
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
