"""
Sorting.

Regular buckets are ordered by the axis' sort property; sentinel and
synthetic buckets always follow them, in the order they already had. Facet
buckets are sorted the same way against the facet axis.

    options            declared option position, unlisted ids last (order ignored)
    id                 numerically when every id is numeric, else as strings
    count, average,
    percentage*        numeric value, missing as 0
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from survey_spine.core.constants import SortProperty, is_special_bucket
from survey_spine.core.models import AxisParameters, BucketData, as_number
from survey_spine.compute.plan import PipelineState
from survey_spine.compute.stages.helpers import bucket_key, option_index

T = TypeVar("T", bound=BucketData)

_NUMERIC_ATTRIBUTES = {
    SortProperty.COUNT.value: "count",
    SortProperty.PERCENTAGE_QUESTION.value: "percentage_question",
    SortProperty.PERCENTAGE_SURVEY.value: "percentage_survey",
    SortProperty.PERCENTAGE_BUCKET.value: "percentage_bucket",
    SortProperty.AVERAGE.value: "average",
}


def _sort_regular(buckets: list[T], axis: AxisParameters) -> list[T]:
    if axis.sort == SortProperty.OPTIONS.value:
        index = option_index(axis.options)
        unlisted = len(index)
        return sorted(buckets, key=lambda b: index.get(bucket_key(b.id), unlisted))

    reverse = axis.order < 0
    key: Callable[[T], Any]
    if axis.sort == SortProperty.ID.value:
        if all(as_number(b.id) is not None for b in buckets):
            key = lambda b: as_number(b.id)  # noqa: E731
        else:
            key = lambda b: str(b.id)  # noqa: E731
    else:
        attribute = _NUMERIC_ATTRIBUTES[axis.sort]
        key = lambda b: getattr(b, attribute, None) or 0  # noqa: E731
    return sorted(buckets, key=key, reverse=reverse)


def sort_buckets(buckets: list[T], axis: AxisParameters) -> list[T]:
    """Return ``buckets`` sorted for ``axis``, special buckets last."""
    regular = [b for b in buckets if not is_special_bucket(b.id)]
    special = [b for b in buckets if is_special_bucket(b.id)]
    return _sort_regular(regular, axis) + special


def sort_data(state: PipelineState) -> PipelineState:
    for edition in state.results:
        edition.buckets = sort_buckets(edition.buckets, state.main_axis)
        if state.facet_axis is not None:
            for bucket in edition.buckets:
                bucket.facet_buckets = sort_buckets(bucket.facet_buckets, state.facet_axis)
    return state
