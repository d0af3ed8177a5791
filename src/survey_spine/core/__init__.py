"""
Core primitives: constants, domain models, errors, settings, cache backends
and collaborator protocols.

Nothing in ``survey_spine.core`` performs I/O; the compute layer composes
these pieces.
"""

from survey_spine.core.cache import CacheBackend, InMemoryCache
from survey_spine.core.constants import (
    CUTOFF_ANSWERS,
    NO_ANSWER,
    OTHER_ANSWERS,
    OVERALL,
    SENTIMENT_FACET,
    SubField,
)
from survey_spine.core.errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    FetchTimeoutError,
    MissingStoragePathError,
    PipelineError,
    StageOrderError,
    SurveySpineError,
)
from survey_spine.core.models import (
    AxisParameters,
    Bucket,
    DbPaths,
    EditionCompletion,
    EditionMetadata,
    EditionResult,
    FacetBucket,
    Option,
    Question,
    SurveyMetadata,
)
from survey_spine.core.settings import EngineSettings, get_settings

__all__ = [
    # Constants
    "CUTOFF_ANSWERS",
    "NO_ANSWER",
    "OTHER_ANSWERS",
    "OVERALL",
    "SENTIMENT_FACET",
    "SubField",
    # Models
    "AxisParameters",
    "Bucket",
    "DbPaths",
    "EditionCompletion",
    "EditionMetadata",
    "EditionResult",
    "FacetBucket",
    "Option",
    "Question",
    "SurveyMetadata",
    # Errors
    "ConfigError",
    "ErrorCategory",
    "ErrorContext",
    "FetchTimeoutError",
    "MissingStoragePathError",
    "PipelineError",
    "StageOrderError",
    "SurveySpineError",
    # Settings / cache
    "EngineSettings",
    "get_settings",
    "CacheBackend",
    "InMemoryCache",
]
