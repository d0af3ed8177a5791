"""
Logging context management using contextvars.

Request-level identifiers (request id, survey, question, facet, edition) and
the current stage are attached to every log entry without passing them
through each stage function. contextvars keeps concurrent requests running on
the same event loop apart.
"""

import uuid
from contextvars import ContextVar, Token
from dataclasses import asdict, dataclass
from typing import Any

import structlog


def new_request_id() -> str:
    """Generate a short request ID (12 hex chars)."""
    return uuid.uuid4().hex[:12]


@dataclass
class LogContext:
    """
    Context attached to all log entries.

    Request identifiers:
        request_id: Unique id of one compute request
        survey / edition / question / facet: What is being computed

    Tracing (for nested timing blocks):
        span_id / parent_span_id

    Stage context:
        stage: Current pipeline stage name
    """

    # Request identifiers
    request_id: str | None = None
    survey: str | None = None
    edition: str | None = None
    question: str | None = None
    facet: str | None = None

    # Tracing
    span_id: str | None = None
    parent_span_id: str | None = None

    # Stage context
    stage: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    def merge(self, **kwargs) -> "LogContext":
        """Create new context with merged values."""
        current = asdict(self)
        current.update({k: v for k, v in kwargs.items() if v is not None and k in current})
        return LogContext(**current)


_log_context: ContextVar[LogContext] = ContextVar("survey_spine_log_context")  # noqa: B039


def get_context() -> LogContext:
    """Get the current log context."""
    return _log_context.get(LogContext())


def set_context(**kwargs) -> LogContext:
    """
    Replace the current log context.

    Use bind_context() to add to the existing one instead.
    """
    ctx = LogContext().merge(**kwargs)
    _log_context.set(ctx)
    return ctx


def bind_context(**kwargs) -> LogContext:
    """Merge values into the current context."""
    updated = get_context().merge(**kwargs)
    _log_context.set(updated)
    return updated


def clear_context() -> None:
    """Reset the current context to empty."""
    _log_context.set(LogContext())


class _ContextToken:
    """Token for restoring context after a scoped operation."""

    def __init__(self, token: Token):
        self._token = token

    def restore(self) -> None:
        """Restore the previous context."""
        _log_context.reset(self._token)


def push_context(**kwargs) -> _ContextToken:
    """
    Push new context values, returning a token to restore later.

    Usage:
        token = push_context(stage="cutoff_data")
        try:
            run_stage()
        finally:
            token.restore()
    """
    updated = get_context().merge(**kwargs)
    return _ContextToken(_log_context.set(updated))


def add_context_processor(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Structlog processor adding the current context to every entry."""
    for key, value in get_context().to_dict().items():
        if key not in event_dict:
            event_dict[key] = value
    return event_dict


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (typically ``get_logger(__name__)``)."""
    return structlog.get_logger(name)
