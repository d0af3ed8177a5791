"""Match filter construction for the raw aggregation."""

from __future__ import annotations

from typing import Any

from survey_spine.core.errors import ConfigError
from survey_spine.core.models import EditionMetadata, SurveyMetadata
from survey_spine.core.protocols import FilterCompiler

EMPTY_VALUES: list[Any] = [None, "", [], {}]


def get_past_editions(survey: SurveyMetadata, edition: EditionMetadata) -> list[EditionMetadata]:
    """The given edition and every earlier one, oldest first."""
    return sorted(
        (e for e in survey.editions if e.year <= edition.year),
        key=lambda e: e.year,
    )


async def build_match(
    *,
    survey: SurveyMetadata,
    edition: EditionMetadata,
    db_path: str,
    selected_edition_id: str | None = None,
    filters: dict[str, Any] | None = None,
    filter_compiler: FilterCompiler | None = None,
) -> dict[str, Any]:
    """
    Build the match filter restricting which responses are aggregated.

    Without a selected edition, aggregation covers the current and past
    editions only, never results from future editions.
    """
    match: dict[str, Any] = {
        "surveyId": survey.id,
        db_path: {"$nin": list(EMPTY_VALUES)},
    }
    if filters:
        if filter_compiler is None:
            raise ConfigError("Request has filters but no filter compiler is configured")
        match.update(await filter_compiler.compile(filters, db_path))
    if selected_edition_id:
        match["editionId"] = selected_edition_id
    else:
        match["editionId"] = {"$in": [e.id for e in get_past_editions(survey, edition)]}
    return match
