"""
Missing-bucket synthesis.

Fixed-option questions (rating scales, yes/no) must show every declared
option, even ones nobody picked. This stage adds a zero-count bucket for
each option absent from an edition, and in two-axis mode a zero-count facet
bucket for each facet option absent from a bucket, so the output is the full
option cross product. Running it again adds nothing.
"""

from __future__ import annotations

from survey_spine.core.models import AxisParameters, Bucket, FacetBucket, Option
from survey_spine.compute.plan import PipelineState
from survey_spine.compute.stages.helpers import bucket_key


def _enabled_options(axis: AxisParameters | None) -> tuple[Option, ...]:
    if axis is None or not axis.enable_add_missing_buckets or not axis.options:
        return ()
    return axis.options


def _add_missing_facets(bucket: Bucket, facet_options: tuple[Option, ...]) -> None:
    present = {bucket_key(fb.id) for fb in bucket.facet_buckets}
    for option in facet_options:
        if bucket_key(option.id) not in present:
            bucket.facet_buckets.append(FacetBucket(id=option.id, count=0))
            present.add(bucket_key(option.id))


def add_missing_buckets(state: PipelineState) -> PipelineState:
    main_options = _enabled_options(state.main_axis)
    facet_options = _enabled_options(state.facet_axis)
    if not main_options and not facet_options:
        return state

    for edition in state.results:
        present = {bucket_key(b.id) for b in edition.buckets}
        for option in main_options:
            if bucket_key(option.id) not in present:
                edition.buckets.append(Bucket(id=option.id, count=0))
                present.add(bucket_key(option.id))
        if facet_options:
            for bucket in edition.buckets:
                _add_missing_facets(bucket, facet_options)
    return state
