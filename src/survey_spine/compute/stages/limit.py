"""Limit: keep the first ``limit`` regular buckets, merge the rest."""

from __future__ import annotations

from typing import TypeVar

from survey_spine.core.constants import OTHER_ANSWERS, is_special_bucket
from survey_spine.core.models import AxisParameters, Bucket, FacetBucket
from survey_spine.compute.plan import PipelineState
from survey_spine.compute.stages.merge import flatten_grouped_ids, merge_buckets

T = TypeVar("T", Bucket, FacetBucket)


def apply_limit(buckets: list[T], axis: AxisParameters, *, combine_facets: bool = False) -> list[T]:
    """
    Keep ``axis.limit`` regular buckets in their sorted order.

    Special buckets do not count against the limit and are kept after the
    regular ones. With ``group_over_limit`` the overflow becomes one
    ``other_answers`` bucket, placed last.
    """
    regular = [b for b in buckets if not is_special_bucket(b.id)]
    if len(regular) <= axis.limit:
        return buckets
    special = [b for b in buckets if is_special_bucket(b.id)]
    kept, overflow = regular[: axis.limit], regular[axis.limit :]
    if not axis.group_over_limit:
        return kept + special
    existing = [b for b in special if b.id == OTHER_ANSWERS]
    special = [b for b in special if b.id != OTHER_ANSWERS]
    inputs = existing + overflow
    merged = merge_buckets(
        inputs,
        OTHER_ANSWERS,
        grouped_bucket_ids=flatten_grouped_ids(inputs),
        combine_facets=combine_facets,
    )
    return kept + special + [merged]


def limit_data(state: PipelineState) -> PipelineState:
    facet_axis = state.facet_axis
    for edition in state.results:
        edition.buckets = apply_limit(
            edition.buckets, state.main_axis, combine_facets=facet_axis is not None
        )
        if facet_axis is not None:
            for bucket in edition.buckets:
                bucket.facet_buckets = apply_limit(bucket.facet_buckets, facet_axis)
    return state
