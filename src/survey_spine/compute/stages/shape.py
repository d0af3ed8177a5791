"""Shape stages: flatten non-faceted results, fold freeform answers, drop empties."""

from __future__ import annotations

from survey_spine.core.constants import DEFAULT_FACET_BUCKET
from survey_spine.core.models import Bucket, EditionResult, FacetBucket
from survey_spine.compute.plan import PipelineState
from survey_spine.compute.stages.helpers import bucket_key


def _promote_default_facet(bucket: Bucket) -> None:
    if not bucket.facet_buckets:
        return
    default = next(
        (fb for fb in bucket.facet_buckets if fb.id == DEFAULT_FACET_BUCKET),
        bucket.facet_buckets[0],
    )
    if not bucket.count:
        bucket.count = sum(fb.count or 0 for fb in bucket.facet_buckets)
    if bucket.average is None:
        bucket.average = default.average
    if bucket.percentiles is None:
        bucket.percentiles = default.percentiles
    bucket.facet_buckets = []


def normalize_shape(state: PipelineState) -> PipelineState:
    """Promote each bucket's single ``default`` facet bucket into the bucket itself."""
    for edition in state.results:
        for bucket in edition.buckets:
            _promote_default_facet(bucket)
    return state


def _fold_facets(target: Bucket, source: Bucket) -> None:
    by_id = {bucket_key(fb.id): fb for fb in target.facet_buckets}
    for facet_bucket in source.facet_buckets:
        existing = by_id.get(bucket_key(facet_bucket.id))
        if existing is None:
            copy = FacetBucket(id=facet_bucket.id, count=facet_bucket.count or 0)
            target.facet_buckets.append(copy)
            by_id[bucket_key(copy.id)] = copy
        else:
            existing.count = (existing.count or 0) + (facet_bucket.count or 0)


def _fold_edition(target: EditionResult, source: EditionResult) -> None:
    by_id = {bucket_key(b.id): b for b in target.buckets}
    for bucket in source.buckets:
        existing = by_id.get(bucket_key(bucket.id))
        if existing is None:
            target.buckets.append(bucket)
            by_id[bucket_key(bucket.id)] = bucket
            continue
        existing.count = (existing.count or 0) + (bucket.count or 0)
        _fold_facets(existing, bucket)


def combine_freeform(state: PipelineState) -> PipelineState:
    """
    Fold freeform ("other") answers into the predefined-answer results.

    Counts are summed per bucket id and, below that, per facet id. Editions
    only present in the freeform results are appended as they are.
    """
    freeform = state.context.freeform_results
    if not freeform:
        return state
    by_edition = {e.edition_id: e for e in state.results}
    for edition in freeform:
        if state.facet_axis is None:
            for bucket in edition.buckets:
                _promote_default_facet(bucket)
        target = by_edition.get(edition.edition_id)
        if target is None:
            state.results.append(edition)
            by_edition[edition.edition_id] = edition
        else:
            _fold_edition(target, edition)
    return state


def _has_id(bucket_id: object) -> bool:
    return bucket_id is not None and bucket_id != ""


def discard_empty_ids(state: PipelineState) -> PipelineState:
    """Drop buckets and facet buckets that have no id."""
    for edition in state.results:
        edition.buckets = [b for b in edition.buckets if _has_id(b.id)]
        for bucket in edition.buckets:
            bucket.facet_buckets = [fb for fb in bucket.facet_buckets if _has_id(fb.id)]
    return state


def discard_empty_editions(state: PipelineState) -> PipelineState:
    state.results = [e for e in state.results if e.buckets]
    return state
