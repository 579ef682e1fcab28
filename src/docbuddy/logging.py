"""
Structured logging for docbuddy.

Modules log through ``structlog.get_logger()`` with snake_case event names
(``metric_probe_hit``, ``discovery_complete``, ``backend_retry``) and
key/value context. ``configure_logging`` routes those events through the
standard library as JSON lines on stderr, leaving stdout to CLI output.
"""

import logging
import sys
from typing import Any

import structlog

# Candidate probing fans out one request per metric; these log each one at INFO
HTTP_LOGGERS = ("httpx", "httpcore")


def _level_number(level: int | str) -> int:
    if isinstance(level, int):
        return level
    number = logging.getLevelName(level.upper())
    if not isinstance(number, int):
        raise ValueError(f"Unknown log level: {level}")
    return number


def configure_logging(level: int | str = logging.INFO) -> None:
    """
    Configure the structlog/standard logging bridge.

    Args:
        level: Level name (case-insensitive) or number, usually ``Settings.log_level``.
            HTTP client libraries stay at WARNING unless DEBUG is requested.
    """
    level_number = _level_number(level)
    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            timestamper,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=level_number, format="%(message)s", stream=sys.stderr, force=True)

    http_level = logging.DEBUG if level_number <= logging.DEBUG else logging.WARNING
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)


def bind_context(**kwargs: Any) -> structlog.stdlib.BoundLogger:
    """Bind contextual fields (tool, service, environment) for downstream logs."""

    logger = structlog.get_logger()
    return logger.bind(**kwargs)
