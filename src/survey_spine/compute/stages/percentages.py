"""Percentage stage."""

from __future__ import annotations

from survey_spine.compute.plan import PipelineState
from survey_spine.compute.stages.helpers import percentage


def add_percentages(state: PipelineState) -> PipelineState:
    """
    Compute shares for buckets and facet buckets.

    - ``percentage_survey``: share of every respondent of the edition
    - ``percentage_question``: share of respondents who answered the question
    - ``percentage_bucket`` (facet buckets): share of the parent bucket

    Counts must be final: missing buckets, completion and the overall bucket
    are all in place by the time this runs.
    """
    for edition in state.results:
        total = edition.completion.total if edition.completion else 0
        answered = edition.completion.count if edition.completion else 0
        for bucket in edition.buckets:
            bucket.percentage_survey = percentage(bucket.count, total)
            bucket.percentage_question = percentage(bucket.count, answered)
            for facet_bucket in bucket.facet_buckets:
                facet_bucket.percentage_survey = percentage(facet_bucket.count, total)
                facet_bucket.percentage_question = percentage(facet_bucket.count, answered)
                facet_bucket.percentage_bucket = percentage(facet_bucket.count, bucket.count)
    return state
