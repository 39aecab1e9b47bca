"""
Structured logging setup.

Every module logs through ``structlog.get_logger(__name__)`` with event-name
messages and keyword context. ``setup_logging`` routes those events through
the standard library so host applications keep control of handlers.

Environment Variables:
    LOG_LEVEL: Overrides the configured level (applied by the config loader).
"""

import logging
from typing import Optional

import structlog

from thermosentry.config.models import LogFormat, LoggingConfig


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """
    Configure structlog and the standard logging module.

    Args:
        config: Logging settings. Defaults to JSON output at INFO.

    Example:
        >>> setup_logging(LoggingConfig(format=LogFormat.TEXT, level=LogLevel.DEBUG))
    """
    config = config or LoggingConfig()

    if config.format == LogFormat.JSON:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, config.level.value),
    )
