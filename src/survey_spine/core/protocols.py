"""
Collaborator protocols for the compute layer.

The engine owns the shape of the computation and its post-processing; the
storage engine, the query builder, filter compilation, entity metadata and
respondent statistics are external. This module is the single definition of
what the engine needs from each of them.

Architecture:
    ::

        protocols.py
        ├── RawQuery          : what the engine asks the fetcher for
        ├── ResultFetcher     : builds + runs the aggregation, returns EditionResult[]
        ├── StatsProvider     : total respondents / completion per year
        ├── FilterCompiler    : user filter tree → match-filter fragment
        ├── EntityResolver    : bucket ids → entity metadata / tokens
        └── DebugSink         : receives intermediate artifacts

Guardrails:
    ❌ DON'T: Let a fetcher merge, sort or label buckets
    ✅ DO: Return raw, unmerged, unlabeled buckets and let the stages work

    ❌ DON'T: Let a DebugSink mutate what it receives
    ✅ DO: Serialize a snapshot; the returned results must not depend on it

Performance:
    - Protocol overhead: zero at runtime (structural subtyping)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from survey_spine.core.constants import SubField
from survey_spine.core.models import AxisParameters, BucketId, EditionResult, SurveyMetadata


@dataclass(frozen=True)
class RawQuery:
    """
    One raw aggregation request.

    Top-level buckets follow ``axis2`` when it is set (the base question of a
    faceted request) and ``axis1`` otherwise; facet buckets follow ``axis1``.
    Non-faceted results come back with a single ``default`` facet bucket per
    bucket, which the first stage flattens.
    """

    survey_id: str
    storage_path: str
    match: dict[str, Any]
    axis1: AxisParameters
    axis2: AxisParameters | None
    sub_field: SubField
    selected_edition_id: str | None = None
    show_no_answer: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "surveyId": self.survey_id,
            "storagePath": self.storage_path,
            "match": self.match,
            "axis1": self.axis1.to_dict(),
            "axis2": self.axis2.to_dict() if self.axis2 else None,
            "subField": self.sub_field.value,
            "selectedEditionId": self.selected_edition_id,
            "showNoAnswer": self.show_no_answer,
        }


@runtime_checkable
class ResultFetcher(Protocol):
    """Executes a declarative aggregation against stored responses."""

    async def fetch(self, query: RawQuery) -> list[EditionResult]:
        """Return one EditionResult per edition with raw buckets."""
        ...


@runtime_checkable
class StatsProvider(Protocol):
    """Participation and completion statistics per edition year."""

    async def total_respondents_by_year(self, survey: SurveyMetadata) -> dict[int, int]:
        ...

    async def completion_by_year(
        self, survey: SurveyMetadata, match: dict[str, Any]
    ) -> dict[int, int]:
        """Respondents who answered the question (honoring ``match``), by year."""
        ...


@runtime_checkable
class FilterCompiler(Protocol):
    """Compiles a user filter tree into a match-filter fragment."""

    async def compile(self, filters: dict[str, Any], db_path: str) -> dict[str, Any]:
        ...


@runtime_checkable
class EntityResolver(Protocol):
    """Resolves bucket ids to display metadata."""

    async def get_entities(self, ids: list[BucketId]) -> dict[BucketId, dict[str, Any]]:
        ...

    async def get_tokens(self, ids: list[BucketId]) -> dict[BucketId, dict[str, Any]]:
        ...


@runtime_checkable
class DebugSink(Protocol):
    """Receives intermediate artifacts of a computation."""

    def write(self, name: str, payload: Any) -> None:
        ...
