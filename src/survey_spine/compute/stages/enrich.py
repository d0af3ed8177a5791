"""Entity and token enrichment through the ``EntityResolver`` collaborator."""

from __future__ import annotations

from collections.abc import Iterator

from survey_spine.core.models import BucketData, BucketId
from survey_spine.compute.plan import PipelineState
from survey_spine.compute.stages.helpers import bucket_key
from survey_spine.framework.logging import get_logger

log = get_logger(__name__)


def _all_buckets(state: PipelineState) -> Iterator[BucketData]:
    for edition in state.results:
        for bucket in edition.buckets:
            yield bucket
            yield from bucket.facet_buckets


def _unique_ids(state: PipelineState) -> list[BucketId]:
    seen: dict[str, BucketId] = {}
    for bucket in _all_buckets(state):
        seen.setdefault(bucket_key(bucket.id), bucket.id)
    return list(seen.values())


async def add_entities(state: PipelineState) -> PipelineState:
    resolver = state.context.entities
    if resolver is None:
        return state
    ids = _unique_ids(state)
    entities = await resolver.get_entities(ids)
    lookup = {bucket_key(k): v for k, v in entities.items()}
    for bucket in _all_buckets(state):
        entity = lookup.get(bucket_key(bucket.id))
        if entity is not None:
            bucket.entity = entity
    log.debug("stage.add_entities.resolved", requested=len(ids), found=len(lookup))
    return state


async def add_tokens(state: PipelineState) -> PipelineState:
    resolver = state.context.entities
    if resolver is None:
        return state
    tokens = await resolver.get_tokens(_unique_ids(state))
    lookup = {bucket_key(k): v for k, v in tokens.items()}
    for bucket in _all_buckets(state):
        token = lookup.get(bucket_key(bucket.id))
        if token is not None:
            bucket.token = token
    return state
