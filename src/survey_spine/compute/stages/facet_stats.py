"""
Per-bucket statistics over the facet axis.

When the facet question is numeric (years of experience, salary ranges) each
top-level bucket gets the count-weighted mean of its facet values and the
p0/p25/p50/p75/p100 percentiles of that distribution. A facet bucket's value
is its option's ``average`` when declared, else its id read as a number;
facet buckets with neither are ignored.
"""

from __future__ import annotations

from survey_spine.core.constants import PERCENTILE_KEYS
from survey_spine.core.models import AxisParameters, Bucket, FacetBucket, Percentiles, as_number
from survey_spine.compute.plan import PipelineState
from survey_spine.compute.stages.helpers import find_option, round_to


def _facet_value(axis: AxisParameters, facet_bucket: FacetBucket) -> float | None:
    option = find_option(axis.options or axis.question.options, facet_bucket.id)
    if option is not None and option.average is not None:
        return option.average
    return as_number(facet_bucket.id)


def _distribution(axis: AxisParameters, bucket: Bucket) -> list[tuple[float, float]]:
    points = []
    for facet_bucket in bucket.facet_buckets:
        value = _facet_value(axis, facet_bucket)
        if value is not None and facet_bucket.count:
            points.append((value, facet_bucket.count))
    return sorted(points)


def weighted_average(points: list[tuple[float, float]]) -> float | None:
    total = sum(count for _, count in points)
    if not total:
        return None
    return round_to(sum(value * count for value, count in points) / total)


def weighted_percentiles(points: list[tuple[float, float]]) -> Percentiles | None:
    """
    Percentiles of a sorted ``(value, count)`` distribution.

    Each percentile is the first value whose cumulative count reaches
    ``p / 100 * total``.
    """
    total = sum(count for _, count in points)
    if not total:
        return None
    result: Percentiles = {}
    for key in PERCENTILE_KEYS:
        target = int(key[1:]) / 100 * total
        cumulative = 0.0
        chosen = points[-1][0]
        for value, count in points:
            cumulative += count
            if cumulative >= target:
                chosen = value
                break
        result[key] = chosen
    return result


def add_averages_by_facet(state: PipelineState) -> PipelineState:
    axis = state.facet_axis
    if axis is None:
        return state
    for edition in state.results:
        for bucket in edition.buckets:
            average = weighted_average(_distribution(axis, bucket))
            if average is not None:
                bucket.average = average
    return state


def add_percentiles_by_facet(state: PipelineState) -> PipelineState:
    axis = state.facet_axis
    if axis is None:
        return state
    for edition in state.results:
        for bucket in edition.buckets:
            percentiles = weighted_percentiles(_distribution(axis, bucket))
            if percentiles is not None:
                bucket.percentiles = percentiles
    return state
