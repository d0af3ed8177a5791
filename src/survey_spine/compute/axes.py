"""
Axis resolution.

Turns a question, the request's sort/cutoff/limit parameters and an optional
facet selector into one or two ``AxisParameters``.

Facet selectors resolve once into a tagged variant:

    NoFacet            → single-axis mode, axis2 unset
    SentimentFacet     → axis1 = "<Q>__sentiment" pseudo-question, axis2 = Q
    QuestionFacet(id)  → axis1 = facet question F, axis2 = Q

In both faceted cases the base question ends up as axis2: the facet (or
sentiment) is the inner dimension of the result, i.e. the facet buckets.

Examples:
    >>> parse_facet(None)
    NoFacet()
    >>> parse_facet("_sentiment")
    SentimentFacet()
    >>> parse_facet("user_info__gender")
    QuestionFacet(question_id='gender')
"""

from __future__ import annotations

from dataclasses import dataclass

from survey_spine.core.constants import (
    SENTIMENT_FACET,
    SENTIMENT_SUFFIX,
    SORT_ASC,
    SORT_DESC,
    SortProperty,
    SubField,
)
from survey_spine.core.errors import BadParamsError, MissingStoragePathError
from survey_spine.core.models import AxisParameters, DbPaths, Question
from survey_spine.compute.requests import ResponsesParameters, SortSpecifier
from survey_spine.framework.logging import get_logger

log = get_logger(__name__)

SOURCE_QUESTION_ID = "source"
SORT_PROPERTIES = frozenset(p.value for p in SortProperty)


# =============================================================================
# Facet selector variants
# =============================================================================


@dataclass(frozen=True)
class NoFacet:
    pass


@dataclass(frozen=True)
class SentimentFacet:
    pass


@dataclass(frozen=True)
class QuestionFacet:
    question_id: str


FacetSelector = NoFacet | SentimentFacet | QuestionFacet


def parse_facet(selector: str | None) -> FacetSelector:
    """
    Parse a raw facet selector.

    Selectors look like ``sectionId__fieldId`` or
    ``sectionId__fieldId__subPathId``; the facet question id is ``fieldId``
    (or ``fieldId__subPathId``). A selector without a section prefix is taken
    as a bare question id.
    """
    if not selector:
        return NoFacet()
    if selector == SENTIMENT_FACET:
        return SentimentFacet()
    parts = selector.split("__")
    if len(parts) == 1:
        return QuestionFacet(parts[0])
    _section_id, main_field_id, *rest = parts
    if rest:
        return QuestionFacet(f"{main_field_id}__{rest[0]}")
    return QuestionFacet(main_field_id)


@dataclass(frozen=True)
class ResolvedAxes:
    """Outcome of axis resolution, after any axis swap."""

    axis1: AxisParameters
    axis2: AxisParameters | None
    facet: FacetSelector

    @property
    def is_faceted(self) -> bool:
        return self.axis2 is not None

    @property
    def is_sentiment(self) -> bool:
        return isinstance(self.facet, SentimentFacet)

    @property
    def main_axis(self) -> AxisParameters:
        """Axis of the top-level buckets (the base question)."""
        return self.axis2 if self.axis2 is not None else self.axis1

    @property
    def facet_axis(self) -> AxisParameters | None:
        """Axis of the facet buckets, if any."""
        return self.axis1 if self.axis2 is not None else None


# =============================================================================
# Sort & storage path
# =============================================================================


def convert_order(order: str) -> int:
    return SORT_ASC if order == "asc" else SORT_DESC


def get_question_sort(
    question: Question,
    specifier: SortSpecifier | None = None,
    enable_bucket_groups: bool = True,
) -> tuple[str, int]:
    """
    Compute the (sort property, numeric order) of a question.

    Default priority: bucket groups → question default sort → sequential
    values (options order, or ascending id when no options are declared)
    → count descending. Explicit property/order override field by field.
    """
    default_order = "desc"
    if enable_bucket_groups and question.groups:
        default_sort = SortProperty.OPTIONS.value
    elif question.default_sort:
        default_sort = question.default_sort
    elif question.options_are_sequential:
        if question.options:
            default_sort = SortProperty.OPTIONS.value
        else:
            # numeric values with no declared options: sort by id for a curve
            default_sort = SortProperty.ID.value
            default_order = "asc"
    else:
        default_sort = SortProperty.COUNT.value

    sort = default_sort
    order = default_order
    if specifier is not None and specifier.property:
        sort = specifier.property
    if specifier is not None and specifier.order:
        order = specifier.order
    return sort, convert_order(order)


def get_db_path(question: Question, sub_field: SubField = SubField.RESPONSES) -> str | None:
    """Storage path of the representation selected by ``sub_field``."""
    paths = question.norm_paths
    if question.id == SOURCE_QUESTION_ID:
        return paths.other
    if sub_field in (SubField.RESPONSES, SubField.COMBINED):
        return paths.response
    if sub_field == SubField.PRENORMALIZED:
        return paths.prenormalized
    return paths.other


# =============================================================================
# Axis construction
# =============================================================================


def build_axis(
    question: Question,
    *,
    sort_specifier: SortSpecifier | None,
    cutoff: float,
    cutoff_percent: float | None,
    limit: int,
    parameters: ResponsesParameters,
) -> AxisParameters:
    sort, order = get_question_sort(question, sort_specifier, parameters.enable_bucket_groups)
    if sort not in SORT_PROPERTIES:
        raise BadParamsError(
            f"Unknown sort property '{sort}' for question {question.id}",
            field="sort",
            value=sort,
        )
    return AxisParameters(
        question=question,
        sort=sort,
        order=order,
        cutoff=cutoff,
        cutoff_percent=cutoff_percent,
        limit=limit,
        # always on; consumers ignore the extra groups when not needed
        group_under_cutoff=True,
        group_over_limit=True,
        merge_other_buckets=parameters.merge_other_buckets,
        enable_bucket_groups=parameters.enable_bucket_groups,
        enable_add_missing_buckets=bool(parameters.enable_add_missing_buckets),
        options=tuple(question.options) if question.options is not None else None,
    )


def build_sentiment_axis(axis: AxisParameters) -> AxisParameters:
    """Pseudo-axis reading the sentiment recorded alongside ``axis``'s question."""
    base = axis.question
    pseudo_question = Question(
        id=f"{base.id}{SENTIMENT_SUFFIX}",
        survey_id=base.survey_id,
        template=base.template,
        norm_paths=DbPaths(response=f"{base.norm_paths.base}.sentiment"),
    )
    return AxisParameters(
        question=pseudo_question,
        sort=axis.sort,
        order=axis.order,
        cutoff=axis.cutoff,
        limit=axis.limit,
        merge_other_buckets=False,
        enable_bucket_groups=False,
        enable_add_missing_buckets=False,
    )


def find_question(
    questions: list[Question], question_id: str, survey_id: str | None
) -> Question | None:
    return next(
        (q for q in questions if q.id == question_id and q.survey_id == survey_id),
        None,
    )


def resolve_axes(
    question: Question,
    parameters: ResponsesParameters,
    *,
    facet: str | None = None,
    questions: list[Question] | None = None,
    survey_id: str | None = None,
    sub_field: SubField = SubField.RESPONSES,
) -> ResolvedAxes:
    """
    Resolve the axes of a request.

    Raises:
        MissingStoragePathError: ``question`` has no storage path for
            ``sub_field``.
    """
    if not get_db_path(question, sub_field):
        raise MissingStoragePathError(question.id, sub_field.value)

    axis1 = build_axis(
        question,
        sort_specifier=parameters.sort,
        cutoff=parameters.cutoff,
        cutoff_percent=parameters.cutoff_percent,
        limit=parameters.limit,
        parameters=parameters,
    )
    selector = parse_facet(facet)

    if isinstance(selector, SentimentFacet):
        return ResolvedAxes(axis1=build_sentiment_axis(axis1), axis2=axis1, facet=selector)

    if isinstance(selector, QuestionFacet):
        facet_question = find_question(
            questions or [], selector.question_id, survey_id or question.survey_id
        )
        if facet_question is None:
            log.debug("axes.facet_dropped", facet=facet, facet_question=selector.question_id)
            return ResolvedAxes(axis1=axis1, axis2=None, facet=NoFacet())
        facet_axis = build_axis(
            facet_question,
            sort_specifier=parameters.facet_sort,
            cutoff=parameters.facet_cutoff,
            cutoff_percent=parameters.facet_cutoff_percent,
            limit=parameters.facet_limit,
            parameters=parameters,
        )
        # swap: the facet becomes the inner dimension
        return ResolvedAxes(axis1=facet_axis, axis2=axis1, facet=selector)

    return ResolvedAxes(axis1=axis1, axis2=None, facet=selector)
