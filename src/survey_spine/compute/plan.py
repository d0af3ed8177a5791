"""
Stage plans: explicit, validated orderings of the post-processing stages.

Each stage declares the facts it ``requires`` (established by an earlier
stage), the facts it ``provides``, and the facts that must *not* be
established yet when it runs (``before``). ``StagePlan.validate()`` checks
all three at composition time, so a plan that computes percentages before the
overall bucket exists, or limits before bucket groups became the working
options, is rejected before any data flows through it.

Architecture:
    ::

        StagePlan("two_axis")
        ├── Stage("discard_empty_ids",  provides={"ids"})
        ├── Stage("add_default_bucket_counts", requires={"ids"}, provides={"counts"})
        ├── ...
        └── Stage("add_labels", requires={"group_options"}, provides={"labels"})

        StageRunner.run(plan, state) → state
          for stage in plan: state = await stage(state)   (logged + timed)

Examples:
    >>> plan = StagePlan("demo", [Stage("b", fn, requires={"a"})])
    >>> plan.validate()
    Traceback (most recent call last):
    ...
    StageOrderError: Stage 'b' requires a which no earlier stage provides
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from survey_spine.core.errors import StageOrderError
from survey_spine.core.models import AxisParameters, EditionResult, SurveyMetadata
from survey_spine.core.protocols import EntityResolver
from survey_spine.compute.requests import ResponsesParameters
from survey_spine.framework.logging import get_logger, log_step, push_context

log = get_logger(__name__)


@dataclass
class StageContext:
    """Read-only inputs some stages need besides the results themselves."""

    survey: SurveyMetadata
    parameters: ResponsesParameters
    total_respondents_by_year: dict[int, int] = field(default_factory=dict)
    completion_by_year: dict[int, int] = field(default_factory=dict)
    entities: EntityResolver | None = None
    freeform_results: list[EditionResult] | None = None
    overall_results: list[EditionResult] | None = None
    is_sentiment: bool = False


@dataclass
class PipelineState:
    """
    The value threaded through a plan.

    ``main_axis`` describes top-level buckets and ``facet_axis`` the facet
    buckets (``None`` in single-axis mode). Stages mutate ``results`` in
    place or replace it; axes are only ever replaced, never mutated.
    """

    results: list[EditionResult]
    main_axis: AxisParameters
    facet_axis: AxisParameters | None
    context: StageContext

    def bucket_count(self) -> int:
        return sum(len(e.buckets) for e in self.results)


StageFn = Callable[[PipelineState], PipelineState | Awaitable[PipelineState]]


@dataclass(frozen=True)
class Stage:
    """One named post-processing step with its ordering contract."""

    name: str
    fn: StageFn
    requires: frozenset[str] = frozenset()
    provides: frozenset[str] = frozenset()
    before: frozenset[str] = frozenset()

    def __init__(
        self,
        name: str,
        fn: StageFn,
        *,
        requires: set[str] | frozenset[str] = frozenset(),
        provides: set[str] | frozenset[str] = frozenset(),
        before: set[str] | frozenset[str] = frozenset(),
    ):
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "fn", fn)
        object.__setattr__(self, "requires", frozenset(requires))
        object.__setattr__(self, "provides", frozenset(provides))
        object.__setattr__(self, "before", frozenset(before))

    async def __call__(self, state: PipelineState) -> PipelineState:
        result: Any = self.fn(state)
        if inspect.isawaitable(result):
            result = await result
        return result


class StagePlan:
    """An explicit ordered list of stages."""

    def __init__(self, name: str, stages: list[Stage]):
        self.name = name
        self.stages = list(stages)

    def __iter__(self) -> Iterator[Stage]:
        return iter(self.stages)

    def __len__(self) -> int:
        return len(self.stages)

    @property
    def stage_names(self) -> list[str]:
        return [s.name for s in self.stages]

    def validate(self) -> StagePlan:
        """
        Check every stage's preconditions against the stages before it.

        Raises:
            StageOrderError: A required fact is not yet established, or a
                fact the stage must precede already is.
        """
        established: set[str] = set()
        for stage in self.stages:
            missing = sorted(stage.requires - established)
            if missing:
                raise StageOrderError(stage.name, missing)
            too_late = sorted(stage.before & established)
            if too_late:
                raise StageOrderError(
                    stage.name, [f"running before {fact}" for fact in too_late]
                )
            established |= stage.provides
        return self

    def describe(self) -> list[dict[str, Any]]:
        return [
            {
                "name": s.name,
                "requires": sorted(s.requires),
                "provides": sorted(s.provides),
                "before": sorted(s.before),
            }
            for s in self.stages
        ]


class StageRunner:
    """Runs a validated plan strictly in order; failures abort the run."""

    def __init__(self, plan: StagePlan):
        self.plan = plan.validate()

    async def run(self, state: PipelineState) -> PipelineState:
        for stage in self.plan:
            token = push_context(stage=stage.name)
            try:
                with log_step(f"stage.{stage.name}", level="debug", editions=len(state.results)) as timer:
                    state = await stage(state)
                    timer.add_metric("buckets_out", state.bucket_count())
            finally:
                token.restore()
        return state
