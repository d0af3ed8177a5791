"""Inbound compute request schemas.

Requests arrive in the camelCase shape used on the wire (``facetLimit``,
``mergeOtherBuckets``...) or as snake_case keyword arguments; both validate
to the same model.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from survey_spine.core.constants import DEFAULT_CUTOFF, DEFAULT_LIMIT, SubField


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )


class SortSpecifier(_WireModel):
    """Explicit sort override; either field may be omitted."""

    property: str | None = None
    order: Literal["asc", "desc"] | None = None


class ResponsesParameters(_WireModel):
    """Per-request aggregation parameters."""

    cutoff: int = Field(DEFAULT_CUTOFF, ge=0)
    cutoff_percent: float | None = Field(None, ge=0, le=100)
    sort: SortSpecifier | None = None
    limit: int = Field(DEFAULT_LIMIT, ge=0)
    facet_sort: SortSpecifier | None = None
    facet_limit: int = Field(DEFAULT_LIMIT, ge=0)
    facet_cutoff: int = Field(DEFAULT_CUTOFF, ge=0)
    facet_cutoff_percent: float | None = Field(None, ge=0, le=100)
    show_no_answer: bool | None = None
    merge_other_buckets: bool = True
    enable_bucket_groups: bool = True
    enable_add_overall_bucket: bool = True
    enable_add_missing_buckets: bool | None = None
    enable_cache: bool | None = None
    dataset_cutoff: int | None = Field(None, ge=0)
    dataset_cutoff_percent: float | None = Field(None, ge=0, le=100)

    def cache_relevant(self) -> dict[str, Any]:
        """Explicitly supplied parameters, minus cache-control flags."""
        return self.model_dump(
            by_alias=True,
            exclude_unset=True,
            exclude_none=True,
            exclude={"enable_cache"},
            mode="json",
        )


class ComputeRequest(_WireModel):
    """One generic compute request."""

    question_id: str
    edition_id: str | None = None
    facet: str | None = None
    sub_field: SubField = SubField.RESPONSES
    filters: dict[str, Any] | None = None
    parameters: ResponsesParameters = Field(default_factory=ResponsesParameters)

    @field_validator("facet")
    @classmethod
    def _blank_facet_is_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    def without_facet(self, question_id: str, **parameter_overrides: Any) -> ComputeRequest:
        """Derive the plain responses request used for the overall comparison bucket."""
        explicit = self.parameters.model_dump(exclude_unset=True)
        explicit.update({k: v for k, v in parameter_overrides.items() if v is not None})
        return self.model_copy(
            update={
                "question_id": question_id,
                "facet": None,
                "sub_field": SubField.RESPONSES,
                "parameters": ResponsesParameters.model_validate(explicit),
            }
        )
