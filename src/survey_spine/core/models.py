"""
Domain models for survey aggregation.

Plain dataclasses, mutated in place by the compute stages for the lifetime of
a single request. Attribute names are snake_case; ``to_dict()`` renders the
camelCase wire shape consumers expect and ``from_dict()`` parses what the
result fetcher returns.

Architecture:
    ::

        SurveyMetadata ── editions ──> EditionMetadata
        Question ── options/groups ──> Option
                 └─ norm_paths ──────> DbPaths

        EditionResult ── buckets ──> Bucket ── facet_buckets ──> FacetBucket
                      └─ completion ─> EditionCompletion

        AxisParameters (frozen) ── question ──> Question

Examples:
    >>> bucket = Bucket(id="react", count=12)
    >>> bucket.to_dict()
    {'id': 'react', 'count': 12, 'facetBuckets': []}
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any

from survey_spine.core.constants import SORT_DESC

BucketId = str | int | float
Percentiles = dict[str, float]


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


# =============================================================================
# Survey metadata
# =============================================================================


@dataclass
class Option:
    """
    A predeclared category of a question.

    Bucket groups reuse this shape: a group absorbs the raw ids listed in
    ``items``, or the numeric ids in ``[lower_bound, upper_bound)``.
    """

    id: BucketId
    label: str | None = None
    average: float | None = None
    items: list[BucketId] | None = None
    lower_bound: float | None = None
    upper_bound: float | None = None

    def matches(self, bucket_id: BucketId) -> bool:
        """Whether a raw bucket id belongs to this group."""
        if self.items is not None:
            return bucket_id in self.items or str(bucket_id) in {str(i) for i in self.items}
        if self.lower_bound is None and self.upper_bound is None:
            return bucket_id == self.id
        value = as_number(bucket_id)
        if value is None:
            return False
        if self.lower_bound is not None and value < self.lower_bound:
            return False
        if self.upper_bound is not None and value >= self.upper_bound:
            return False
        return True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Option:
        return cls(
            id=data["id"],
            label=data.get("label"),
            average=data.get("average"),
            items=data.get("items"),
            lower_bound=data.get("lowerBound"),
            upper_bound=data.get("upperBound"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "label": self.label,
                "average": self.average,
                "items": self.items,
                "lowerBound": self.lower_bound,
                "upperBound": self.upper_bound,
            }
        )


@dataclass
class DbPaths:
    """Storage paths of a question's stored representations."""

    base: str | None = None
    response: str | None = None
    other: str | None = None
    prenormalized: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> DbPaths:
        data = data or {}
        return cls(
            base=data.get("base"),
            response=data.get("response"),
            other=data.get("other"),
            prenormalized=data.get("prenormalized"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(dataclasses.asdict(self))


@dataclass
class Question:
    """A survey question as seen by the compute layer."""

    id: str
    survey_id: str | None = None
    template: str | None = None
    options: list[Option] | None = None
    groups: list[Option] | None = None
    default_sort: str | None = None
    options_are_sequential: bool = False
    norm_paths: DbPaths = field(default_factory=DbPaths)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Question:
        options = data.get("options")
        groups = data.get("groups")
        return cls(
            id=data["id"],
            survey_id=data.get("surveyId"),
            template=data.get("template"),
            options=[Option.from_dict(o) for o in options] if options is not None else None,
            groups=[Option.from_dict(g) for g in groups] if groups is not None else None,
            default_sort=data.get("defaultSort"),
            options_are_sequential=bool(data.get("optionsAreSequential", False)),
            norm_paths=DbPaths.from_dict(data.get("normPaths")),
        )

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "surveyId": self.survey_id,
                "template": self.template,
                "options": [o.to_dict() for o in self.options] if self.options is not None else None,
                "groups": [g.to_dict() for g in self.groups] if self.groups is not None else None,
                "defaultSort": self.default_sort,
                "optionsAreSequential": self.options_are_sequential or None,
                "normPaths": self.norm_paths.to_dict(),
            }
        )


@dataclass
class EditionMetadata:
    """One yearly edition of a survey."""

    id: str
    year: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EditionMetadata:
        return cls(id=data["id"], year=int(data["year"]))


@dataclass
class SurveyMetadata:
    """A survey and its editions."""

    id: str
    editions: list[EditionMetadata] = field(default_factory=list)

    def get_edition(self, edition_id: str) -> EditionMetadata | None:
        return next((e for e in self.editions if e.id == edition_id), None)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SurveyMetadata:
        return cls(
            id=data["id"],
            editions=[EditionMetadata.from_dict(e) for e in data.get("editions", [])],
        )


# =============================================================================
# Results
# =============================================================================


@dataclass
class BucketData:
    """Statistics shared by top-level buckets and facet buckets."""

    id: BucketId
    count: float = 0
    percentage_question: float | None = None
    percentage_survey: float | None = None
    average: float | None = None
    percentiles: Percentiles | None = None
    grouped_bucket_ids: list[BucketId] | None = None
    entity: dict[str, Any] | None = None
    token: dict[str, Any] | None = None
    label: str | None = None
    completion_count: int | None = None

    def _base_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "count": self.count,
                "percentageQuestion": self.percentage_question,
                "percentageSurvey": self.percentage_survey,
                "average": self.average,
                "percentiles": dict(self.percentiles) if self.percentiles is not None else None,
                "groupedBucketIds": list(self.grouped_bucket_ids)
                if self.grouped_bucket_ids is not None
                else None,
                "entity": self.entity,
                "token": self.token,
                "label": self.label,
                "completionCount": self.completion_count,
            }
        )

    @staticmethod
    def _base_kwargs(data: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": data.get("id"),
            "count": data.get("count") or 0,
            "percentage_question": data.get("percentageQuestion"),
            "percentage_survey": data.get("percentageSurvey"),
            "average": data.get("average"),
            "percentiles": data.get("percentiles"),
            "grouped_bucket_ids": data.get("groupedBucketIds"),
            "entity": data.get("entity"),
            "token": data.get("token"),
            "label": data.get("label"),
            "completion_count": data.get("completionCount"),
        }


@dataclass
class FacetBucket(BucketData):
    """A bucket nested under a parent bucket, for the facet axis."""

    percentage_bucket: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FacetBucket:
        return cls(**cls._base_kwargs(data), percentage_bucket=data.get("percentageBucket"))

    def to_dict(self) -> dict[str, Any]:
        result = self._base_dict()
        if self.percentage_bucket is not None:
            result["percentageBucket"] = self.percentage_bucket
        return result


@dataclass
class Bucket(BucketData):
    """One category of the main axis, with optional facet breakdown."""

    facet_buckets: list[FacetBucket] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Bucket:
        return cls(
            **cls._base_kwargs(data),
            facet_buckets=[FacetBucket.from_dict(fb) for fb in data.get("facetBuckets") or []],
        )

    def to_dict(self) -> dict[str, Any]:
        result = self._base_dict()
        result["facetBuckets"] = [fb.to_dict() for fb in self.facet_buckets]
        return result


@dataclass
class EditionCompletion:
    """Respondent totals for one edition."""

    total: int
    count: int
    percentage_survey: float

    def to_dict(self) -> dict[str, Any]:
        return {"total": self.total, "count": self.count, "percentageSurvey": self.percentage_survey}


@dataclass
class EditionResult:
    """The buckets of one survey edition; the unit of post-processing."""

    edition_id: str
    year: int | None = None
    buckets: list[Bucket] = field(default_factory=list)
    completion: EditionCompletion | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EditionResult:
        completion = data.get("completion")
        return cls(
            edition_id=data["editionId"],
            year=data.get("year"),
            buckets=[Bucket.from_dict(b) for b in data.get("buckets") or []],
            completion=EditionCompletion(
                total=completion["total"],
                count=completion["count"],
                percentage_survey=completion["percentageSurvey"],
            )
            if completion
            else None,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"editionId": self.edition_id}
        if self.year is not None:
            result["year"] = self.year
        if self.completion is not None:
            result["completion"] = self.completion.to_dict()
        result["buckets"] = [b.to_dict() for b in self.buckets]
        return result


# =============================================================================
# Axes
# =============================================================================


@dataclass(frozen=True)
class AxisParameters:
    """
    One fully-specified aggregation axis.

    ``order`` is +1 (ascending) or -1 (descending). ``options`` is the
    working option list: the question's options at first, its groups once
    bucket grouping has run (see ``with_groups_as_options``).
    """

    question: Question
    sort: str = "count"
    order: int = SORT_DESC
    cutoff: float = 1
    cutoff_percent: float | None = None
    limit: int = 50
    group_under_cutoff: bool = True
    group_over_limit: bool = True
    merge_other_buckets: bool = True
    enable_bucket_groups: bool = True
    enable_add_missing_buckets: bool = False
    options: tuple[Option, ...] | None = None

    def __post_init__(self) -> None:
        if self.order not in (1, -1):
            raise ValueError(f"order must be +1 or -1, got {self.order!r}")
        if self.limit < 0:
            raise ValueError(f"limit must be >= 0, got {self.limit!r}")

    @property
    def uses_groups(self) -> bool:
        return self.enable_bucket_groups and bool(self.question.groups)

    def with_groups_as_options(self) -> AxisParameters:
        """Return a copy whose working option list is the question's groups."""
        if not self.uses_groups:
            return self
        return dataclasses.replace(self, options=tuple(self.question.groups or ()))

    def option_ids(self) -> list[BucketId] | None:
        if self.options is None:
            return None
        return [o.id for o in self.options]

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "question": self.question.to_dict(),
                "sort": self.sort,
                "order": self.order,
                "cutoff": self.cutoff,
                "cutoffPercent": self.cutoff_percent,
                "limit": self.limit,
                "groupUnderCutoff": self.group_under_cutoff,
                "groupOverLimit": self.group_over_limit,
                "mergeOtherBuckets": self.merge_other_buckets,
                "enableBucketGroups": self.enable_bucket_groups,
                "enableAddMissingBuckets": self.enable_add_missing_buckets,
                "options": [o.to_dict() for o in self.options] if self.options is not None else None,
            }
        )


def as_number(value: Any) -> float | None:
    """Numeric value of a bucket id or option value, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None
