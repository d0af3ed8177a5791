"""
Count stages: default counts, completion statistics, the overall bucket and
edition years.

The overall bucket gives a faceted chart its comparison baseline. For a
request like "tools used, by gender" it is one extra top-level bucket whose
facet buckets are the plain, non-faceted distribution of gender, so every
row can be read against the population as a whole.
"""

from __future__ import annotations

from survey_spine.core.constants import OVERALL
from survey_spine.core.models import Bucket, EditionCompletion, EditionResult, FacetBucket
from survey_spine.compute.plan import PipelineState
from survey_spine.compute.stages.helpers import percentage


def add_default_bucket_counts(state: PipelineState) -> PipelineState:
    """Give every bucket without a count the sum of its facet counts."""
    for edition in state.results:
        for bucket in edition.buckets:
            if not bucket.count:
                bucket.count = sum(fb.count or 0 for fb in bucket.facet_buckets)
    return state


def _edition_year(state: PipelineState, edition: EditionResult) -> int | None:
    if edition.year is not None:
        return edition.year
    metadata = state.context.survey.get_edition(edition.edition_id)
    return metadata.year if metadata else None


def add_completion_counts(state: PipelineState) -> PipelineState:
    """Attach total respondents and question completion to every edition."""
    totals = state.context.total_respondents_by_year
    completions = state.context.completion_by_year
    for edition in state.results:
        year = _edition_year(state, edition)
        total = totals.get(year, 0) if year is not None else 0
        count = completions.get(year, 0) if year is not None else 0
        edition.completion = EditionCompletion(
            total=total,
            count=count,
            percentage_survey=percentage(count, total),
        )
        for bucket in edition.buckets:
            bucket.completion_count = count
    return state


def _as_facet_bucket(bucket: Bucket) -> FacetBucket:
    return FacetBucket(
        id=bucket.id,
        count=bucket.count,
        percentage_question=bucket.percentage_question,
        percentage_survey=bucket.percentage_survey,
        average=bucket.average,
        percentiles=bucket.percentiles,
        grouped_bucket_ids=bucket.grouped_bucket_ids,
        entity=bucket.entity,
        token=bucket.token,
        label=bucket.label,
    )


def add_overall_bucket(state: PipelineState) -> PipelineState:
    """
    Append an ``overall`` bucket built from the facet question's own results.

    Skipped for sentiment facets, when disabled by the request, or when no
    overall results were computed. Editions that already have the bucket are
    left alone.
    """
    context = state.context
    if context.is_sentiment or not context.parameters.enable_add_overall_bucket:
        return state
    if not context.overall_results:
        return state

    overall_by_edition = {e.edition_id: e for e in context.overall_results}
    for edition in state.results:
        overall = overall_by_edition.get(edition.edition_id)
        if overall is None or any(b.id == OVERALL for b in edition.buckets):
            continue
        facet_buckets = [_as_facet_bucket(b) for b in overall.buckets]
        if overall.completion is not None:
            count = overall.completion.count
        else:
            count = sum(fb.count or 0 for fb in facet_buckets)
        edition.buckets.append(
            Bucket(
                id=OVERALL,
                count=count,
                completion_count=edition.completion.count if edition.completion else None,
                facet_buckets=facet_buckets,
            )
        )
    return state


def add_edition_years(state: PipelineState) -> PipelineState:
    for edition in state.results:
        if edition.year is None:
            edition.year = _edition_year(state, edition)
    return state
