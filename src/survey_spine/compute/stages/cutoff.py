"""
Cutoff: merge rare answers into a single ``cutoff_answers`` bucket.

A bucket passes when its relevant percentage reaches ``cutoff_percent``
(``percentage_question`` at top level, ``percentage_bucket`` for facet
buckets), or, with no percent threshold, when its count reaches ``cutoff``.
Sentinel and synthetic buckets always pass.

The top level is left alone when ``merge_other_buckets`` is false and the
axis is sorted by options: a rating scale must keep every position visible.
Facet buckets are always considered, since facet cardinality is unbounded.
The top level is merged first, so a new ``cutoff_answers`` bucket gets its
facets recombined from the raw facets before the facet cutoff runs.
"""

from __future__ import annotations

from typing import TypeVar

from survey_spine.core.constants import CUTOFF_ANSWERS, SortProperty, is_special_bucket
from survey_spine.core.models import AxisParameters, Bucket, FacetBucket
from survey_spine.compute.plan import PipelineState
from survey_spine.compute.stages.merge import flatten_grouped_ids, merge_buckets

T = TypeVar("T", Bucket, FacetBucket)


def cutoff_active(axis: AxisParameters) -> bool:
    return axis.cutoff > 1 or axis.cutoff_percent is not None


def passes_cutoff(bucket: Bucket | FacetBucket, axis: AxisParameters) -> bool:
    if is_special_bucket(bucket.id):
        return True
    if axis.cutoff_percent is not None:
        if isinstance(bucket, FacetBucket):
            share = bucket.percentage_bucket
        else:
            share = bucket.percentage_question
        return (share or 0) >= axis.cutoff_percent
    return (bucket.count or 0) >= axis.cutoff


def apply_cutoff(buckets: list[T], axis: AxisParameters, *, combine_facets: bool = False) -> list[T]:
    """Return ``buckets`` with the ones failing the cutoff merged (or dropped)."""
    kept = [b for b in buckets if passes_cutoff(b, axis)]
    dropped = [b for b in buckets if not passes_cutoff(b, axis)]
    if not dropped:
        return buckets
    if not axis.group_under_cutoff:
        return kept

    existing = [b for b in kept if b.id == CUTOFF_ANSWERS]
    kept = [b for b in kept if b.id != CUTOFF_ANSWERS]
    inputs = existing + dropped
    merged = merge_buckets(
        inputs,
        CUTOFF_ANSWERS,
        grouped_bucket_ids=flatten_grouped_ids(inputs),
        combine_facets=combine_facets,
    )
    return kept + [merged]


def cutoff_data(state: PipelineState) -> PipelineState:
    """Merge rare top-level buckets first, then rare facet buckets of every bucket."""
    main_axis = state.main_axis
    facet_axis = state.facet_axis
    skip_main = (
        not main_axis.merge_other_buckets and main_axis.sort == SortProperty.OPTIONS.value
    )
    for edition in state.results:
        if not skip_main and cutoff_active(main_axis):
            edition.buckets = apply_cutoff(
                edition.buckets, main_axis, combine_facets=facet_axis is not None
            )
        if facet_axis is not None and cutoff_active(facet_axis):
            for bucket in edition.buckets:
                bucket.facet_buckets = apply_cutoff(bucket.facet_buckets, facet_axis)
    return state
