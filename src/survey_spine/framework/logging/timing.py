"""
Timing utilities for performance logging.

- Context manager: ``with log_step("stage.sort_data"):``
- Manual: ``with timed_block("fetch") as timer: ...; timer.duration_ms``

Start is logged at DEBUG, completion at the requested level with
``duration_ms``; failures are logged at ERROR and re-raised unchanged.
"""

import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from survey_spine.framework.logging.context import get_context, get_logger, push_context


def _generate_span_id() -> str:
    """Generate a short span ID (8 hex chars)."""
    return uuid.uuid4().hex[:8]


@dataclass
class TimingResult:
    """Result of a timed operation with tracing support."""

    step: str
    span_id: str = field(default_factory=_generate_span_id)
    parent_span_id: str | None = None
    started_at: float = field(default_factory=time.perf_counter)
    ended_at: float | None = None
    metrics: dict[str, Any] = field(default_factory=dict)
    status: str = "ok"
    error_info: dict[str, Any] | None = None

    def stop(self) -> "TimingResult":
        """Record end time."""
        self.ended_at = time.perf_counter()
        return self

    @property
    def duration_ms(self) -> float:
        """Duration in milliseconds."""
        end = self.ended_at if self.ended_at is not None else time.perf_counter()
        return (end - self.started_at) * 1000

    def add_metric(self, key: str, value: Any) -> "TimingResult":
        """Add a metric to include in the log output."""
        self.metrics[key] = value
        return self

    def set_error(self, e: Exception) -> "TimingResult":
        """Record error information."""
        self.status = "error"
        self.error_info = {"error_type": type(e).__name__, "error_message": str(e)}
        return self

    def to_log_dict(self) -> dict[str, Any]:
        """Convert to dict for logging."""
        result: dict[str, Any] = {"duration_ms": round(self.duration_ms, 2), "span_id": self.span_id}
        if self.parent_span_id:
            result["parent_span_id"] = self.parent_span_id
        result.update(self.metrics)
        if self.error_info:
            result["status"] = self.status
            result.update(self.error_info)
        return result


@contextmanager
def timed_block(step: str = "unnamed") -> Iterator[TimingResult]:
    """
    Low-level timing context manager. Does not log.

    Usage:
        with timed_block("fetch") as timer:
            results = await fetcher.fetch(query)
        print(timer.duration_ms)
    """
    timer = TimingResult(step=step, parent_span_id=get_context().span_id)
    try:
        yield timer
    finally:
        timer.stop()


@contextmanager
def log_step(event: str, log_start: bool = True, level: str = "info", **extra_metrics) -> Iterator[TimingResult]:
    """
    Context manager that logs step start/end with timing and tracing.

    The span_id is propagated to nested steps as parent_span_id.

    Usage:
        with log_step("stage.cutoff_data", editions=3) as timer:
            run()
            timer.add_metric("buckets_out", 12)

        # DEBUG stage.cutoff_data.start span_id=a1b2c3d4 editions=3
        # INFO  stage.cutoff_data.end   span_id=a1b2c3d4 duration_ms=0.42 buckets_out=12
    """
    log = get_logger("survey_spine.timing")
    parent_span = get_context().span_id
    timer = TimingResult(step=event, parent_span_id=parent_span, metrics=dict(extra_metrics))
    context_token = push_context(span_id=timer.span_id, parent_span_id=parent_span)

    try:
        if log_start:
            log.debug(f"{event}.start", span_id=timer.span_id, **extra_metrics)
        yield timer
    except Exception as e:
        timer.stop()
        timer.set_error(e)
        log.error(f"{event}.error", **timer.to_log_dict())
        raise
    finally:
        timer.stop()
        context_token.restore()

    getattr(log, level)(f"{event}.end", **timer.to_log_dict())
