"""
Structured, request-aware logging.

This package provides:
- Structured logging with structlog
- Request context propagation via contextvars
- Timing utilities for stage and fetch durations
- Environment-based configuration

Usage:
    from survey_spine.framework.logging import configure_logging, get_logger, log_step

    configure_logging()
    log = get_logger(__name__)

    set_context(request_id="abc123", question="tools")

    with log_step("stage.cutoff_data", editions=3):
        ...
"""

from survey_spine.framework.logging.config import configure_logging, is_configured
from survey_spine.framework.logging.context import (
    LogContext,
    bind_context,
    clear_context,
    get_context,
    get_logger,
    new_request_id,
    push_context,
    set_context,
)
from survey_spine.framework.logging.timing import log_step, timed_block

__all__ = [
    # Configuration
    "configure_logging",
    "is_configured",
    # Context
    "get_logger",
    "set_context",
    "clear_context",
    "get_context",
    "bind_context",
    "push_context",
    "LogContext",
    "new_request_id",
    # Timing
    "log_step",
    "timed_block",
]
