"""
The merge algorithm shared by cutoff, limit, overflow and bucket grouping.

Given the buckets ``B`` absorbed into one output bucket:

- ``grouped_bucket_ids`` lists the ids of ``B`` (or the caller's flattened ids)
- count and percentages are sums over ``B``, rounded to 2 decimals
- ``average`` is the plain mean of the inputs' averages, missing ones
  counting as 0 (not a count-weighted mean)
- each percentile is the sum of the inputs' non-missing values divided by
  ``len(B)``; missing values still count in the denominator
- ``average`` and ``percentiles`` are always set, 0 when no input has one
- top-level merges recombine the inputs' facet buckets by facet id

The average and percentile rules are approximations kept for output
compatibility; recombining percentiles properly needs the raw distributions.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from survey_spine.core.constants import PERCENTILE_KEYS, is_synthetic_bucket
from survey_spine.core.models import Bucket, BucketData, BucketId, FacetBucket, Percentiles
from survey_spine.compute.stages.helpers import bucket_key, round_to

T = TypeVar("T", Bucket, FacetBucket)


def merge_percentiles(buckets: Sequence[BucketData]) -> Percentiles:
    merged: Percentiles = {}
    for key in PERCENTILE_KEYS:
        values = [b.percentiles[key] for b in buckets if b.percentiles and b.percentiles.get(key)]
        merged[key] = round_to(sum(values) / len(buckets))
    return merged


def merge_average(buckets: Sequence[BucketData]) -> float:
    return round_to(sum(b.average or 0 for b in buckets) / len(buckets))


def _sum_unit(buckets: Sequence[BucketData], unit: str) -> float | int | None:
    values = [getattr(b, unit) for b in buckets]
    if unit != "count" and all(v is None for v in values):
        return None
    return round_to(sum(v or 0 for v in values))


def merge_buckets(
    buckets: Sequence[T],
    bucket_id: BucketId,
    *,
    grouped_bucket_ids: list[BucketId] | None = None,
    combine_facets: bool = False,
) -> T:
    """
    Merge ``buckets`` into one bucket of the same type with id ``bucket_id``.

    Args:
        buckets: Non-empty inputs, all ``Bucket`` or all ``FacetBucket``.
        grouped_bucket_ids: Override for the recorded ids.
        combine_facets: Recombine the inputs' facet buckets (top-level
            merges with a facet axis).
    """
    if not buckets:
        raise ValueError("merge_buckets needs at least one bucket")

    cls = type(buckets[0])
    merged = cls(
        id=bucket_id,
        count=_sum_unit(buckets, "count") or 0,
        percentage_question=_sum_unit(buckets, "percentage_question"),
        percentage_survey=_sum_unit(buckets, "percentage_survey"),
        average=merge_average(buckets),
        percentiles=merge_percentiles(buckets),
        grouped_bucket_ids=list(grouped_bucket_ids)
        if grouped_bucket_ids is not None
        else [b.id for b in buckets],
    )
    merged.completion_count = buckets[0].completion_count
    if isinstance(merged, FacetBucket):
        merged.percentage_bucket = _sum_unit(buckets, "percentage_bucket")
    elif combine_facets:
        merged.facet_buckets = combine_facet_buckets(buckets)
    return merged


def combine_facet_buckets(buckets: Sequence[Bucket]) -> list[FacetBucket]:
    """
    Recombine the facet buckets of several parents, keyed by facet id.

    Facet ids keep their first-seen order. Recombined facet buckets are not
    merge groups, so they only record grouped ids when they are themselves
    synthetic (e.g. two facet-level cutoff buckets).
    """
    by_id: dict[str, list[FacetBucket]] = {}
    for bucket in buckets:
        for facet_bucket in bucket.facet_buckets:
            by_id.setdefault(bucket_key(facet_bucket.id), []).append(facet_bucket)

    combined = []
    for same_facet in by_id.values():
        facet_id = same_facet[0].id
        grouped = None
        if is_synthetic_bucket(facet_id):
            grouped = _unique([i for fb in same_facet for i in fb.grouped_bucket_ids or []])
        merged = merge_buckets(same_facet, facet_id, grouped_bucket_ids=grouped)
        if grouped is None:
            merged.grouped_bucket_ids = None
        merged.entity = same_facet[0].entity
        merged.token = same_facet[0].token
        combined.append(merged)
    return combined


def flatten_grouped_ids(buckets: Sequence[BucketData]) -> list[BucketId]:
    """Ids absorbed by ``buckets``, expanding synthetic merge buckets."""
    ids: list[BucketId] = []
    for bucket in buckets:
        if is_synthetic_bucket(bucket.id) and bucket.grouped_bucket_ids is not None:
            ids.extend(bucket.grouped_bucket_ids)
        else:
            ids.append(bucket.id)
    return _unique(ids)


def _unique(ids: list[BucketId]) -> list[BucketId]:
    seen: set[str] = set()
    result = []
    for bucket_id in ids:
        key = bucket_key(bucket_id)
        if key not in seen:
            seen.add(key)
            result.append(bucket_id)
    return result
