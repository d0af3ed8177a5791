"""Dataset-level cutoff: hide small categories before any merging happens."""

from __future__ import annotations

from survey_spine.core.constants import is_special_bucket
from survey_spine.core.models import BucketData
from survey_spine.compute.plan import PipelineState


def _passes(bucket: BucketData, min_count: int | None, min_percent: float | None, share: float | None) -> bool:
    if is_special_bucket(bucket.id):
        return True
    if min_count is not None and (bucket.count or 0) < min_count:
        return False
    if min_percent is not None and (share or 0) < min_percent:
        return False
    return True


def apply_dataset_cutoff(state: PipelineState) -> PipelineState:
    """
    Drop buckets and facet buckets under ``dataset_cutoff`` (a count) or
    ``dataset_cutoff_percent`` (a share of the question's respondents, or of
    the parent bucket for facet buckets). Dropped data is discarded, not
    merged; editions left empty are removed.
    """
    params = state.context.parameters
    min_count = params.dataset_cutoff
    min_percent = params.dataset_cutoff_percent
    if min_count is None and min_percent is None:
        return state

    for edition in state.results:
        edition.buckets = [
            b for b in edition.buckets if _passes(b, min_count, min_percent, b.percentage_question)
        ]
        for bucket in edition.buckets:
            bucket.facet_buckets = [
                fb
                for fb in bucket.facet_buckets
                if _passes(fb, min_count, min_percent, fb.percentage_bucket)
            ]
    state.results = [e for e in state.results if e.buckets]
    return state
