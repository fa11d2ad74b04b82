"""
Structured logging for stackbridge.

Records go through the standard library to stderr so that command output on
stdout stays parseable. The ``console`` format renders key=value lines for a
terminal; ``json`` emits one object per line for log shippers.
"""

import logging
import sys
from typing import Any

import structlog

from stackbridge.core.errors import ConfigError

LOG_FORMATS = ("console", "json")


def resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ConfigError(f"Unknown log level: {level}", {"level": level})
    return resolved


def configure_logging(level: int | str = logging.INFO, log_format: str = "json") -> None:
    """Configure structlog/standard logging bridge."""

    if log_format not in LOG_FORMATS:
        raise ConfigError(f"Unknown log format: {log_format}", {"choices": ", ".join(LOG_FORMATS)})
    numeric_level = resolve_level(level)

    if log_format == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=numeric_level, format="%(message)s", stream=sys.stderr)
    # basicConfig is a no-op once handlers exist; the level must still apply.
    logging.getLogger().setLevel(numeric_level)


def bind_context(**kwargs: Any) -> structlog.stdlib.BoundLogger:
    """Bind per-command fields onto every record logged in this context."""

    structlog.contextvars.bind_contextvars(**kwargs)
    return structlog.get_logger().bind(**kwargs)
