"""
Overflow grouping: fold every non-standard bucket into ``other_answers``.

Non-standard means synthetic (cutoff or limit groups) or, when the axis has
a working option list, an id that is not one of its options. Sentinels are
standard. Synthetic inputs contribute their ``grouped_bucket_ids`` rather
than their own id, so the result lists raw answer ids only.
"""

from __future__ import annotations

from typing import TypeVar

from survey_spine.core.constants import OTHER_ANSWERS, is_sentinel_bucket, is_synthetic_bucket
from survey_spine.core.models import AxisParameters, Bucket, FacetBucket
from survey_spine.compute.plan import PipelineState
from survey_spine.compute.stages.helpers import bucket_key
from survey_spine.compute.stages.merge import flatten_grouped_ids, merge_buckets

T = TypeVar("T", Bucket, FacetBucket)


def _is_non_standard(bucket_id: object, option_keys: set[str] | None) -> bool:
    if is_synthetic_bucket(bucket_id):
        return True
    if is_sentinel_bucket(bucket_id) or option_keys is None:
        return False
    return bucket_key(bucket_id) not in option_keys


def group_other(buckets: list[T], axis: AxisParameters, *, combine_facets: bool = False) -> list[T]:
    option_ids = axis.option_ids()
    option_keys = {bucket_key(i) for i in option_ids} if option_ids else None
    non_standard = [b for b in buckets if _is_non_standard(b.id, option_keys)]
    if not non_standard:
        return buckets
    if len(non_standard) == 1 and non_standard[0].id == OTHER_ANSWERS:
        return buckets
    standard = [b for b in buckets if not any(b is n for n in non_standard)]
    merged = merge_buckets(
        non_standard,
        OTHER_ANSWERS,
        grouped_bucket_ids=flatten_grouped_ids(non_standard),
        combine_facets=combine_facets,
    )
    return standard + [merged]


def group_other_buckets(state: PipelineState) -> PipelineState:
    main_axis = state.main_axis
    facet_axis = state.facet_axis
    for edition in state.results:
        if main_axis.merge_other_buckets:
            edition.buckets = group_other(
                edition.buckets, main_axis, combine_facets=facet_axis is not None
            )
        if facet_axis is not None and facet_axis.merge_other_buckets:
            for bucket in edition.buckets:
                bucket.facet_buckets = group_other(bucket.facet_buckets, facet_axis)
    return state
