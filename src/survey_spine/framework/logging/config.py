"""
Logging configuration.

Single entry point for configuring structured logging. Configuration comes
from arguments or, when omitted, from environment variables:

- SURVEY_SPINE_LOG_LEVEL: DEBUG | INFO | WARNING | ERROR (default: INFO)
- SURVEY_SPINE_LOG_FORMAT: json | console (default: console)

Usage:
    from survey_spine.framework.logging import configure_logging
    configure_logging()

    # Or with explicit settings
    configure_logging(level="DEBUG", format="json")
"""

import logging
import os
import sys
from typing import Literal

import structlog
from structlog.types import Processor

from survey_spine.framework.logging.context import add_context_processor

# Track if logging has been configured
_configured = False


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
    format: Literal["json", "console"] | None = None,
    force: bool = False,
) -> None:
    """
    Configure structured logging for the application.

    Should be called once at startup (CLI entry, service boot). Subsequent
    calls are no-ops unless force=True.

    Args:
        level: Log level (overrides SURVEY_SPINE_LOG_LEVEL)
        format: Output format (overrides SURVEY_SPINE_LOG_FORMAT)
        force: Reconfigure even if already configured
    """
    global _configured

    if _configured and not force:
        return

    log_level = (level or os.environ.get("SURVEY_SPINE_LOG_LEVEL", "INFO")).upper()
    log_format = (format or os.environ.get("SURVEY_SPINE_LOG_FORMAT", "console")).lower()

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        # Request context from contextvars
        add_context_processor,
        structlog.processors.format_exc_info,
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level),
        force=True,
    )
    logging.getLogger("survey_spine").setLevel(getattr(logging, log_level))

    _configured = True


def is_configured() -> bool:
    """Check if logging has been configured."""
    return _configured
