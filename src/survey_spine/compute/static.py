"""
In-memory collaborators backed by fixture data.

Used by the CLI and the test-suite to run real computations without a
storage engine. A fixture file looks like::

    {
      "survey": {"id": "state_of_js", "editions": [{"id": "js2024", "year": 2024}]},
      "questions": [{"id": "tools", "normPaths": {"response": "tools.choices"}}],
      "results": {
        "tools.choices": [{"editionId": "js2024", "buckets": [...]}],
        "tools.choices::gender": [...]
      },
      "totalRespondents": {"2024": 1000},
      "completion": {"2024": 800},
      "entities": {"react": {"name": "React"}},
      "tokens": {}
    }

Faceted results are keyed ``<storage path>::<facet question id>``.
"""

from __future__ import annotations

import asyncio
import copy
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from survey_spine.core.models import BucketId, EditionResult, Question, SurveyMetadata
from survey_spine.core.protocols import RawQuery
from survey_spine.compute.generic import ComputeContext

FACET_KEY_SEPARATOR = "::"


def result_key(query: RawQuery) -> str:
    if query.axis2 is None:
        return query.storage_path
    return f"{query.storage_path}{FACET_KEY_SEPARATOR}{query.axis1.question.id}"


def _editions_in(match: dict[str, Any]) -> set[str] | None:
    edition_filter = match.get("editionId")
    if edition_filter is None:
        return None
    if isinstance(edition_filter, dict):
        return set(edition_filter.get("$in", []))
    return {edition_filter}


class StaticResultFetcher:
    """Returns stored edition results, restricted to the editions the match allows."""

    def __init__(self, results: dict[str, list[dict[str, Any]]], delay_seconds: float = 0.0):
        self.results = results
        self.delay_seconds = delay_seconds
        self.queries: list[RawQuery] = []

    async def fetch(self, query: RawQuery) -> list[EditionResult]:
        self.queries.append(query)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        allowed = _editions_in(query.match)
        return [
            EditionResult.from_dict(copy.deepcopy(edition))
            for edition in self.results.get(result_key(query), [])
            if allowed is None or edition["editionId"] in allowed
        ]


class StaticStatsProvider:
    def __init__(self, total_respondents: dict[int, int], completion: dict[int, int]):
        self.total_respondents = total_respondents
        self.completion = completion

    async def total_respondents_by_year(self, survey: SurveyMetadata) -> dict[int, int]:
        return dict(self.total_respondents)

    async def completion_by_year(self, survey: SurveyMetadata, match: dict[str, Any]) -> dict[int, int]:
        return dict(self.completion)


class StaticEntityResolver:
    def __init__(
        self,
        entities: dict[str, dict[str, Any]] | None = None,
        tokens: dict[str, dict[str, Any]] | None = None,
    ):
        self.entities = entities or {}
        self.tokens = tokens or {}

    async def get_entities(self, ids: list[BucketId]) -> dict[BucketId, dict[str, Any]]:
        return {i: self.entities[str(i)] for i in ids if str(i) in self.entities}

    async def get_tokens(self, ids: list[BucketId]) -> dict[BucketId, dict[str, Any]]:
        return {i: self.tokens[str(i)] for i in ids if str(i) in self.tokens}


class StaticFilterCompiler:
    """Prefixes each filter with ``filters.`` as a flat match fragment."""

    async def compile(self, filters: dict[str, Any], db_path: str) -> dict[str, Any]:
        return {f"filters.{key}": value for key, value in filters.items()}


def _by_year(data: dict[str, int] | None) -> dict[int, int]:
    return {int(year): int(count) for year, count in (data or {}).items()}


@dataclass
class Fixture:
    """A survey, its questions and the collaborator data of one fixture file."""

    survey: SurveyMetadata
    questions: list[Question]
    results: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    total_respondents: dict[int, int] = field(default_factory=dict)
    completion: dict[int, int] = field(default_factory=dict)
    entities: dict[str, dict[str, Any]] = field(default_factory=dict)
    tokens: dict[str, dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Fixture:
        return cls(
            survey=SurveyMetadata.from_dict(data["survey"]),
            questions=[Question.from_dict(q) for q in data.get("questions", [])],
            results=data.get("results", {}),
            total_respondents=_by_year(data.get("totalRespondents")),
            completion=_by_year(data.get("completion")),
            entities=data.get("entities", {}),
            tokens=data.get("tokens", {}),
        )

    @classmethod
    def load(cls, path: Path | str) -> Fixture:
        return cls.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))

    def context(self, **overrides: Any) -> ComputeContext:
        """Build a ``ComputeContext`` over this fixture's data."""
        kwargs: dict[str, Any] = {
            "fetcher": StaticResultFetcher(self.results),
            "stats": StaticStatsProvider(self.total_respondents, self.completion),
            "filter_compiler": StaticFilterCompiler(),
            "entities": StaticEntityResolver(self.entities, self.tokens),
        }
        kwargs.update(overrides)
        return ComputeContext(**kwargs)
