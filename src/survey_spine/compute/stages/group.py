"""Bucket groups: fold raw answers into the question's declared groups."""

from __future__ import annotations

from typing import TypeVar

from survey_spine.core.constants import is_sentinel_bucket
from survey_spine.core.models import AxisParameters, Bucket, FacetBucket, Option
from survey_spine.compute.plan import PipelineState
from survey_spine.compute.stages.helpers import bucket_key
from survey_spine.compute.stages.merge import merge_buckets
from survey_spine.compute.stages.sort import sort_buckets

T = TypeVar("T", Bucket, FacetBucket)


def _is_member(bucket: T, group: Option) -> bool:
    if is_sentinel_bucket(bucket.id):
        return False
    # already grouped upstream (e.g. the overall bucket's facets)
    return bucket_key(bucket.id) == bucket_key(group.id) or group.matches(bucket.id)


def _absorbed_ids(members: list[T], group: Option) -> list:
    ids = []
    for member in members:
        if bucket_key(member.id) == bucket_key(group.id):
            ids.extend(member.grouped_bucket_ids or [])
        else:
            ids.append(member.id)
    return ids


def _group(buckets: list[T], groups: list[Option], cls: type[T], combine_facets: bool) -> list[T]:
    remaining = list(buckets)
    grouped: list[T] = []
    for group in groups:
        members = [b for b in remaining if _is_member(b, group)]
        remaining = [b for b in remaining if not any(b is m for m in members)]
        if len(members) == 1 and bucket_key(members[0].id) == bucket_key(group.id):
            grouped.append(members[0])
        elif members:
            grouped.append(
                merge_buckets(
                    members,
                    group.id,
                    grouped_bucket_ids=_absorbed_ids(members, group),
                    combine_facets=combine_facets,
                )
            )
        else:
            grouped.append(cls(id=group.id, count=0, grouped_bucket_ids=[]))
    return grouped + remaining


def group_bucket_list(buckets: list[T], axis: AxisParameters, cls: type[T], combine_facets: bool = False) -> list[T]:
    """
    Replace ``buckets`` by the groups of ``axis``, re-sorted against the groups.

    Buckets whose id already is a group id are kept as that group.
    """
    if not axis.uses_groups:
        return buckets
    grouped = _group(buckets, list(axis.question.groups or []), cls, combine_facets)
    return sort_buckets(grouped, axis.with_groups_as_options())


def group_buckets(state: PipelineState) -> PipelineState:
    """
    Replace raw buckets by the question's groups, for each axis that has them.

    Groups keep the axis sort order (by count, or by group declaration order
    for options-sorted axes); unmatched buckets follow the same rules.
    """
    facet_axis = state.facet_axis
    for edition in state.results:
        edition.buckets = group_bucket_list(
            edition.buckets, state.main_axis, Bucket, combine_facets=facet_axis is not None
        )
        if facet_axis is not None:
            for bucket in edition.buckets:
                bucket.facet_buckets = group_bucket_list(bucket.facet_buckets, facet_axis, FacetBucket)
    return state


def use_groups_as_options(state: PipelineState) -> PipelineState:
    """From here on, the working option list of a grouped axis is its groups."""
    state.main_axis = state.main_axis.with_groups_as_options()
    if state.facet_axis is not None:
        state.facet_axis = state.facet_axis.with_groups_as_options()
    return state
