"""
The compute layer: axis resolution, cache keys, the stage pipeline and the
generic orchestrator.

    from survey_spine.compute import ComputeRequest, GenericComputation, ComputeContext
"""

from survey_spine.compute.axes import (
    FacetSelector,
    NoFacet,
    QuestionFacet,
    ResolvedAxes,
    SentimentFacet,
    parse_facet,
    resolve_axes,
)
from survey_spine.compute.cache_key import cache_key_digest, generic_cache_key, request_cache_key
from survey_spine.compute.generic import ComputeContext, GenericComputation, compute_generic
from survey_spine.compute.plan import PipelineState, Stage, StageContext, StagePlan, StageRunner
from survey_spine.compute.requests import ComputeRequest, ResponsesParameters, SortSpecifier

__all__ = [
    "ComputeContext",
    "ComputeRequest",
    "FacetSelector",
    "GenericComputation",
    "NoFacet",
    "PipelineState",
    "QuestionFacet",
    "ResolvedAxes",
    "ResponsesParameters",
    "SentimentFacet",
    "SortSpecifier",
    "Stage",
    "StageContext",
    "StagePlan",
    "StageRunner",
    "cache_key_digest",
    "compute_generic",
    "generic_cache_key",
    "parse_facet",
    "request_cache_key",
    "resolve_axes",
]
