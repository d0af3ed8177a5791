"""
Generic compute orchestrator.

Runs one request end to end: resolve the axes, build the match filter, fetch
raw results and respondent statistics, run the stage plan, memoize.

Manifesto:
    - **One request, one owner:** Results are created, mutated and returned
      by a single call; nothing is shared across requests but the cache
    - **Abort early:** A failed or timed-out fetch stops the request before
      any stage runs; there is no partial output
    - **Collaborators are injected:** Storage, statistics, filters and
      entity metadata arrive through ``ComputeContext``

Architecture:
    ::

        GenericComputation.compute(request)
          │
          ├── resolve_axes()          AxisParameters × 2, facet variant
          ├── build_match()           surveyId / storage path / editions
          ├── cache.get(key) ─────────────────────────────────── hit → return
          ├── asyncio.gather(
          │     stats.total_respondents_by_year,
          │     stats.completion_by_year,
          │     fetcher.fetch(raw query)        (timeout → FetchTimeoutError)
          │     fetcher.fetch(freeform query)   (combined sub-field only)
          │     compute(facet question)         (overall bucket only)
          │   )
          ├── StageRunner(single_axis_plan | two_axis_plan).run()
          ├── debug sink            computeArguments, axes, match, pipeline…
          └── cache.set(key, results, ttl)

Examples:
    >>> computation = GenericComputation(ComputeContext(fetcher=StaticResultFetcher(raw)))
    >>> results = await computation.compute(
    ...     ComputeRequest(question_id="tools", facet="user_info__gender"),
    ...     survey=survey,
    ...     edition=survey.get_edition("js2024"),
    ...     questions=questions,
    ... )

Tags:
    orchestration, asyncio, memoization, survey-spine

Doc-Types:
    - API Reference
    - Architecture Documentation
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any

from survey_spine.core.cache import CacheBackend, InMemoryCache
from survey_spine.core.constants import SubField
from survey_spine.core.errors import FetchTimeoutError, QuestionNotFoundError, SourceError
from survey_spine.core.models import EditionMetadata, EditionResult, Question, SurveyMetadata
from survey_spine.core.protocols import (
    DebugSink,
    EntityResolver,
    FilterCompiler,
    RawQuery,
    ResultFetcher,
    StatsProvider,
)
from survey_spine.core.settings import EngineSettings, get_settings
from survey_spine.compute.axes import QuestionFacet, ResolvedAxes, find_question, get_db_path, resolve_axes
from survey_spine.compute.cache_key import cache_key_digest, request_cache_key
from survey_spine.compute.debug import FileDebugSink
from survey_spine.compute.match import build_match
from survey_spine.compute.plan import PipelineState, StageContext, StagePlan, StageRunner
from survey_spine.compute.requests import ComputeRequest
from survey_spine.compute.stages import single_axis_plan, two_axis_plan
from survey_spine.framework.logging import get_logger, log_step, new_request_id, push_context

log = get_logger(__name__)


@dataclass
class ComputeContext:
    """Collaborators of a computation. Only ``fetcher`` is mandatory."""

    fetcher: ResultFetcher
    stats: StatsProvider | None = None
    filter_compiler: FilterCompiler | None = None
    entities: EntityResolver | None = None
    cache: CacheBackend | None = None
    debug_sink: DebugSink | None = None
    settings: EngineSettings = field(default_factory=get_settings)


def select_plan(resolved: ResolvedAxes) -> StagePlan:
    return two_axis_plan() if resolved.is_faceted else single_axis_plan()


def _apply_setting_defaults(request: ComputeRequest, settings: EngineSettings) -> ComputeRequest:
    """Fill ``cutoff`` / ``limit`` from settings when the request leaves them unset."""
    explicit = request.parameters.model_fields_set
    update: dict[str, Any] = {}
    if "cutoff" not in explicit:
        update["cutoff"] = settings.default_cutoff
    if "limit" not in explicit:
        update["limit"] = settings.default_limit
    if not update:
        return request
    return request.model_copy(update={"parameters": request.parameters.model_copy(update=update)})


class GenericComputation:
    """
    Computes chart-ready results for a question, optionally crossed with a facet.

    One instance can serve many requests concurrently; per-request state
    lives in local variables and in the ``PipelineState`` of each call.
    """

    def __init__(self, context: ComputeContext):
        self.context = context
        self.settings = context.settings
        if context.debug_sink is None and self.settings.debug:
            context.debug_sink = FileDebugSink(self.settings.debug_dir)
        if context.cache is None and self.settings.cache_enabled:
            context.cache = InMemoryCache(
                max_size=self.settings.cache_max_size,
                default_ttl_seconds=self.settings.cache_ttl_seconds,
            )

    async def compute(
        self,
        request: ComputeRequest,
        *,
        survey: SurveyMetadata,
        edition: EditionMetadata | None = None,
        question: Question | None = None,
        questions: list[Question] | None = None,
    ) -> list[EditionResult]:
        """
        Compute the results of ``request``.

        Args:
            request: The validated request.
            survey: Survey metadata (editions and years).
            edition: The current edition; defaults to the requested edition,
                else the survey's latest one.
            question: The base question; looked up in ``questions`` by
                ``request.question_id`` when omitted.
            questions: Question pool used to resolve the facet.

        Raises:
            QuestionNotFoundError: No question given and none found.
            MissingStoragePathError: The question has no storage path for
                the requested sub-field.
            FetchTimeoutError: The raw fetch exceeded the configured timeout.
        """
        questions = questions or []
        if question is None:
            question = find_question(questions, request.question_id, survey.id)
            if question is None:
                raise QuestionNotFoundError(request.question_id)
        edition = edition or self._current_edition(survey, request.edition_id)

        token = push_context(
            request_id=new_request_id(),
            survey=survey.id,
            edition=request.edition_id or edition.id,
            question=question.id,
            facet=request.facet,
        )
        try:
            with log_step("compute.generic", facet=request.facet, sub_field=request.sub_field.value) as timer:
                results = await self._compute(
                    request, survey=survey, edition=edition, question=question, questions=questions
                )
                timer.add_metric("editions", len(results))
            return results
        finally:
            token.restore()

    @staticmethod
    def _current_edition(survey: SurveyMetadata, edition_id: str | None) -> EditionMetadata:
        if edition_id:
            found = survey.get_edition(edition_id)
            if found is not None:
                return found
        if not survey.editions:
            raise SourceError(f"Survey {survey.id} has no editions")
        return max(survey.editions, key=lambda e: e.year)

    async def _compute(
        self,
        request: ComputeRequest,
        *,
        survey: SurveyMetadata,
        edition: EditionMetadata,
        question: Question,
        questions: list[Question],
    ) -> list[EditionResult]:
        ctx = self.context
        cache_key = request_cache_key(request, survey.id)
        request = _apply_setting_defaults(request, self.settings)
        parameters = request.parameters

        resolved = resolve_axes(
            question,
            parameters,
            facet=request.facet,
            questions=questions,
            survey_id=survey.id,
            sub_field=request.sub_field,
        )
        db_path = get_db_path(question, request.sub_field)
        match = await build_match(
            survey=survey,
            edition=edition,
            db_path=db_path,
            selected_edition_id=request.edition_id,
            filters=request.filters,
            filter_compiler=ctx.filter_compiler,
        )

        use_cache = ctx.cache is not None and parameters.enable_cache is not False
        digest = cache_key_digest(cache_key)
        if use_cache:
            cached = ctx.cache.get(digest)
            if cached is not None:
                log.debug("compute.cache_hit", key=cache_key)
                return [EditionResult.from_dict(e) for e in cached]

        query = RawQuery(
            survey_id=survey.id,
            storage_path=db_path,
            match=match,
            axis1=resolved.axis1,
            axis2=resolved.axis2,
            sub_field=request.sub_field,
            selected_edition_id=request.edition_id,
            show_no_answer=bool(parameters.show_no_answer),
        )

        (
            total_by_year,
            completion_by_year,
            raw_results,
            freeform_results,
            overall_results,
        ) = await asyncio.gather(
            self._total_respondents(survey),
            self._completion(survey, match),
            self._fetch(query),
            self._fetch_freeform(request, question, resolved, query, survey, edition),
            self._overall(request, resolved, survey=survey, edition=edition, questions=questions),
        )
        raw_snapshot = [e.to_dict() for e in raw_results]

        state = PipelineState(
            results=raw_results,
            main_axis=resolved.main_axis,
            facet_axis=resolved.facet_axis,
            context=StageContext(
                survey=survey,
                parameters=parameters,
                total_respondents_by_year=total_by_year,
                completion_by_year=completion_by_year,
                entities=ctx.entities,
                freeform_results=freeform_results,
                overall_results=overall_results,
                is_sentiment=resolved.is_sentiment,
            ),
        )
        state = await StageRunner(select_plan(resolved)).run(state)
        results = state.results

        if ctx.debug_sink is not None:
            try:
                self._write_debug(ctx.debug_sink, request, survey, resolved, query, raw_snapshot, results)
            except Exception:
                log.warning("compute.debug_write_failed", exc_info=True)
        if use_cache:
            ctx.cache.set(digest, [e.to_dict() for e in results], ttl_seconds=self.settings.cache_ttl_seconds)
        return results

    # -------------------------------------------------------------------------
    # Collaborator calls
    # -------------------------------------------------------------------------

    async def _total_respondents(self, survey: SurveyMetadata) -> dict[int, int]:
        if self.context.stats is None:
            return {}
        return await self.context.stats.total_respondents_by_year(survey)

    async def _completion(self, survey: SurveyMetadata, match: dict[str, Any]) -> dict[int, int]:
        if self.context.stats is None:
            return {}
        return await self.context.stats.completion_by_year(survey, match)

    async def _with_timeout(self, awaitable: Awaitable[list[EditionResult]]) -> list[EditionResult]:
        timeout = self.settings.fetch_timeout_seconds
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise FetchTimeoutError(timeout, cause=e) from e

    async def _fetch(self, query: RawQuery) -> list[EditionResult]:
        with log_step("compute.fetch", storage_path=query.storage_path) as timer:
            results = await self._with_timeout(self.context.fetcher.fetch(query))
            timer.add_metric("editions", len(results))
        return results

    async def _fetch_freeform(
        self,
        request: ComputeRequest,
        question: Question,
        resolved: ResolvedAxes,
        query: RawQuery,
        survey: SurveyMetadata,
        edition: EditionMetadata,
    ) -> list[EditionResult] | None:
        if request.sub_field != SubField.COMBINED:
            return None
        other_path = question.norm_paths.other
        if not other_path:
            log.debug("compute.freeform_skipped", reason="no other path")
            return None
        match = await build_match(
            survey=survey,
            edition=edition,
            db_path=other_path,
            selected_edition_id=request.edition_id,
            filters=request.filters,
            filter_compiler=self.context.filter_compiler,
        )
        freeform_query = RawQuery(
            survey_id=query.survey_id,
            storage_path=other_path,
            match=match,
            axis1=resolved.axis1,
            axis2=resolved.axis2,
            sub_field=SubField.OTHER,
            selected_edition_id=query.selected_edition_id,
            show_no_answer=query.show_no_answer,
        )
        return await self._fetch(freeform_query)

    async def _overall(
        self,
        request: ComputeRequest,
        resolved: ResolvedAxes,
        *,
        survey: SurveyMetadata,
        edition: EditionMetadata,
        questions: list[Question],
    ) -> list[EditionResult] | None:
        """Non-faceted results of the facet question, for the ``overall`` bucket."""
        parameters = request.parameters
        if not isinstance(resolved.facet, QuestionFacet) or not parameters.enable_add_overall_bucket:
            return None
        facet_question = resolved.axis1.question
        overall_request = request.without_facet(
            facet_question.id,
            cutoff=parameters.facet_cutoff,
            cutoff_percent=parameters.facet_cutoff_percent,
            limit=parameters.facet_limit,
            sort=parameters.facet_sort,
        )
        return await self.compute(
            overall_request,
            survey=survey,
            edition=edition,
            question=facet_question,
            questions=questions,
        )

    @staticmethod
    def _write_debug(
        sink: DebugSink,
        request: ComputeRequest,
        survey: SurveyMetadata,
        resolved: ResolvedAxes,
        query: RawQuery,
        raw_snapshot: list[dict[str, Any]],
        results: list[EditionResult],
    ) -> None:
        sink.write(
            "computeArguments",
            {"surveyId": survey.id, **request.model_dump(by_alias=True, exclude_none=True, mode="json")},
        )
        sink.write("axis1", resolved.axis1.to_dict())
        sink.write("axis2", resolved.axis2.to_dict() if resolved.axis2 else None)
        sink.write("match", query.match)
        sink.write("pipeline", query.to_dict())
        sink.write("rawResults", raw_snapshot)
        sink.write("results", [e.to_dict() for e in results])


async def compute_generic(
    request: ComputeRequest,
    *,
    survey: SurveyMetadata,
    edition: EditionMetadata | None = None,
    question: Question | None = None,
    questions: list[Question] | None = None,
    context: ComputeContext,
) -> list[EditionResult]:
    """Functional entry point; see ``GenericComputation.compute``."""
    return await GenericComputation(context).compute(
        request, survey=survey, edition=edition, question=question, questions=questions
    )
