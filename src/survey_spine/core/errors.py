"""
Structured error types for survey-spine.

Every error raised by the compute layer carries a category, a retry flag and
a structured context (question, facet, edition, stage) so callers can log,
alert and decide on retries without parsing messages.

Manifesto:
    - **Typed Error Hierarchy:** One subclass per failure domain
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry request metadata for logging
    - **Error Chaining:** The original exception is kept as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                     SurveySpineError                         │
        │        (category, retryable, context, cause)                 │
        ├─────────────────────────────────────────────────────────────┤
        │  ConfigError          ValidationError      PipelineError     │
        │  (CONFIG)             (VALIDATION)         (PIPELINE)        │
        │      │                     │                    │            │
        │  MissingStoragePath   BadParamsError       StageOrderError   │
        │                                                              │
        │  TransientError       SourceError                            │
        │  (NETWORK, retry)     (SOURCE)                               │
        │      │                     │                                 │
        │  FetchTimeoutError    QuestionNotFoundError                  │
        └─────────────────────────────────────────────────────────────┘

Error policy:
    - A missing storage path is fatal and surfaced to the caller.
    - An unresolvable facet is *not* an error: the facet is dropped.
    - Editions without buckets are dropped, not reported.
    - Collaborator failures propagate unchanged; only fetch timeouts are
      wrapped (as ``FetchTimeoutError``).

Examples:
    >>> error = MissingStoragePathError("tools", "prenormalized")
    >>> error.category
    <ErrorCategory.CONFIG: 'CONFIG'>
    >>> error.context.question
    'tools'

Tags:
    error-handling, exception-hierarchy, survey-spine

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    # Infrastructure errors (usually transient)
    NETWORK = "NETWORK"
    STORAGE = "STORAGE"

    # Source/data errors
    SOURCE = "SOURCE"
    VALIDATION = "VALIDATION"

    # Configuration errors (never retryable)
    CONFIG = "CONFIG"

    # Application errors
    PIPELINE = "PIPELINE"

    # Internal errors
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only fields that are set end up in ``to_dict()``; anything without a
    dedicated field goes to ``metadata``.
    """

    # Request context
    survey: str | None = None
    edition: str | None = None
    question: str | None = None
    facet: str | None = None
    sub_field: str | None = None

    # Execution context
    stage: str | None = None
    request_id: str | None = None

    # Additional metadata
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["survey", "edition", "question", "facet", "sub_field", "stage", "request_id"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class SurveySpineError(Exception):
    """
    Base exception for all survey-spine errors.

    Subclasses set ``default_category`` and ``default_retryable``; callers can
    override both per instance.

    Examples:
        >>> error = SurveySpineError("Something went wrong")
        >>> error.retryable
        False
        >>> error.with_context(question="tools").context.question
        'tools'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        retry_after: int | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.retry_after = retry_after
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SurveySpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise MissingStoragePathError("tools", "other").with_context(stage="resolve_axes")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if self.retry_after is not None:
            result["retry_after"] = self.retry_after
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TRANSIENT ERRORS (Usually Retryable)
# =============================================================================


class TransientError(SurveySpineError):
    """Temporary error that may succeed on retry."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class FetchTimeoutError(TransientError):
    """The raw result fetch did not complete in time; no stage has run."""

    def __init__(self, timeout_seconds: float, **kwargs: Any):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Raw result fetch timed out after {timeout_seconds}s", **kwargs)


# =============================================================================
# SOURCE ERRORS
# =============================================================================


class SourceError(SurveySpineError):
    """Error from a data source or metadata lookup."""

    default_category = ErrorCategory.SOURCE
    default_retryable = False


class QuestionNotFoundError(SourceError):
    """A question id could not be resolved in the question pool."""

    def __init__(self, question_id: str, message: str | None = None):
        self.question_id = question_id
        super().__init__(
            message or f"Question not found: {question_id}",
            context=ErrorContext(question=question_id),
        )


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(SurveySpineError):
    """
    Invalid input.

    Never retryable - the request must be fixed.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


class BadParamsError(ValidationError):
    """Compute parameters failed validation."""

    pass


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(SurveySpineError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class MissingStoragePathError(ConfigError):
    """The question has no storage path for the requested sub-field."""

    def __init__(self, question_id: str, sub_field: str):
        self.question_id = question_id
        self.sub_field = sub_field
        super().__init__(
            f"No dbPath found for question id {question_id} with subfield {sub_field}",
            context=ErrorContext(question=question_id, sub_field=sub_field),
        )


# =============================================================================
# PIPELINE ERRORS
# =============================================================================


class PipelineError(SurveySpineError):
    """Post-processing pipeline error."""

    default_category = ErrorCategory.PIPELINE
    default_retryable = False


class StageOrderError(PipelineError):
    """A stage plan places a stage before the stages it depends on."""

    def __init__(self, stage: str, missing: list[str]):
        self.stage = stage
        self.missing = missing
        super().__init__(
            f"Stage '{stage}' requires {', '.join(missing)} which no earlier stage provides",
            context=ErrorContext(stage=stage),
        )


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, SurveySpineError):
        return error.retryable
    return False


def categorize_error(error: Exception) -> ErrorCategory:
    """Categorize an arbitrary exception."""
    if isinstance(error, SurveySpineError):
        return error.category
    if isinstance(error, TimeoutError | ConnectionError):
        return ErrorCategory.NETWORK
    if isinstance(error, ValueError | TypeError):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN
