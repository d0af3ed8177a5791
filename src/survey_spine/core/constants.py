"""
Reserved identifiers and unit names shared across the compute stages.

Bucket ids in this module never come from respondents: they are either
sentinels (reserved categories exempt from merging) or synthetic ids created
by the merging stages.
"""

from __future__ import annotations

from enum import Enum


class SubField(str, Enum):
    """Which stored representation of an answer to read."""

    RESPONSES = "responses"
    COMBINED = "combined"
    PRENORMALIZED = "prenormalized"
    OTHER = "other"


class SortProperty(str, Enum):
    """Sort keys understood by the sort stage."""

    OPTIONS = "options"
    COUNT = "count"
    ID = "id"
    PERCENTAGE_QUESTION = "percentageQuestion"
    PERCENTAGE_SURVEY = "percentageSurvey"
    PERCENTAGE_BUCKET = "percentageBucket"
    AVERAGE = "average"


# Synthetic merge buckets (created by stages, never fetched)
CUTOFF_ANSWERS = "cutoff_answers"
OTHER_ANSWERS = "other_answers"

# Sentinels (never merged by cutoff, limit or overflow grouping)
NO_ANSWER = "no_answer"
NOT_APPLICABLE = "not_applicable"
PREFER_NOT_TO_SAY = "prefer_not_to_say"
OVERALL = "overall"

SENTINEL_BUCKET_IDS = frozenset({NO_ANSWER, NOT_APPLICABLE, PREFER_NOT_TO_SAY, OVERALL})
SYNTHETIC_BUCKET_IDS = frozenset({CUTOFF_ANSWERS, OTHER_ANSWERS})

# Facet selector that crosses a question with its own sentiment
SENTIMENT_FACET = "_sentiment"
SENTIMENT_SUFFIX = "__sentiment"

# Id of the single nested bucket returned for non-faceted queries
DEFAULT_FACET_BUCKET = "default"

PERCENTILE_KEYS = ("p0", "p25", "p50", "p75", "p100")

DEFAULT_CUTOFF = 1
DEFAULT_LIMIT = 50

SORT_ASC = 1
SORT_DESC = -1


def is_sentinel_bucket(bucket_id: object) -> bool:
    """Return True for reserved categories that must never be merged."""
    return bucket_id in SENTINEL_BUCKET_IDS


def is_synthetic_bucket(bucket_id: object) -> bool:
    """Return True for ids created by the merging stages."""
    return bucket_id in SYNTHETIC_BUCKET_IDS


def is_special_bucket(bucket_id: object) -> bool:
    """Sentinel or synthetic: excluded from limits and sorted last."""
    return is_sentinel_bucket(bucket_id) or is_synthetic_bucket(bucket_id)
