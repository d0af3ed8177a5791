"""Labels from the working options, falling back to the question's own lists."""

from __future__ import annotations

from survey_spine.core.models import AxisParameters, BucketData
from survey_spine.compute.plan import PipelineState
from survey_spine.compute.stages.helpers import find_option


def _label(axis: AxisParameters, bucket: BucketData) -> str | None:
    question = axis.question
    for options in (axis.options, question.options, question.groups):
        option = find_option(options, bucket.id)
        if option is not None and option.label is not None:
            return option.label
    return None


def add_labels(state: PipelineState) -> PipelineState:
    for edition in state.results:
        for bucket in edition.buckets:
            bucket.label = _label(state.main_axis, bucket) or bucket.label
            if state.facet_axis is None:
                continue
            for facet_bucket in bucket.facet_buckets:
                facet_bucket.label = _label(state.facet_axis, facet_bucket) or facet_bucket.label
    return state
