"""
Root Typer application for the survey-spine CLI.

Runs computations against fixture files (see ``survey_spine.compute.static``)
so the pipeline can be exercised without a storage engine.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from pydantic import ValidationError as PydanticValidationError
from rich.table import Table

from survey_spine.cli.utils import console, fail, output_results, parse_json_option
from survey_spine.core.constants import SubField
from survey_spine.core.errors import SurveySpineError
from survey_spine.core.settings import get_settings

app = typer.Typer(
    name="survey-spine",
    help="survey-spine: two-axis survey aggregation engine.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from survey_spine import __version__

        typer.echo(f"survey-spine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Override SURVEY_SPINE_LOG_LEVEL."),
) -> None:
    """survey-spine CLI: compute results, inspect cache keys and stage plans."""
    from survey_spine.framework.logging import configure_logging

    settings = get_settings()
    configure_logging(level=log_level or settings.log_level, format=settings.log_format, force=True)


# ── Commands ─────────────────────────────────────────────────────────────


@app.command()
def compute(
    fixture: Path = typer.Argument(..., exists=True, dir_okay=False, help="Fixture JSON file"),
    question: str = typer.Option(..., "--question", "-q", help="Question id"),
    facet: str | None = typer.Option(None, "--facet", "-f", help="Facet selector, e.g. user_info__gender"),
    edition: str | None = typer.Option(None, "--edition", "-e", help="Restrict to one edition id"),
    sub_field: SubField = typer.Option(SubField.RESPONSES, "--sub-field", "-s"),
    params: str | None = typer.Option(None, "--params", "-p", help="Parameters as JSON"),
    filters: str | None = typer.Option(None, "--filters", help="Filters as JSON"),
    debug_dir: Path | None = typer.Option(None, "--debug-dir", help="Write debug artifacts here"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Compute the results of a question against a fixture."""
    from survey_spine.compute.debug import FileDebugSink
    from survey_spine.compute.generic import GenericComputation
    from survey_spine.compute.requests import ComputeRequest
    from survey_spine.compute.static import Fixture

    try:
        data = Fixture.load(fixture)
        request = ComputeRequest(
            question_id=question,
            edition_id=edition,
            facet=facet,
            sub_field=sub_field,
            filters=parse_json_option(filters, "--filters"),
            parameters=parse_json_option(params, "--params") or {},
        )
        context = data.context(debug_sink=FileDebugSink(debug_dir) if debug_dir else None)
        results = asyncio.run(
            GenericComputation(context).compute(
                request, survey=data.survey, questions=data.questions
            )
        )
    except (SurveySpineError, PydanticValidationError) as e:
        fail(e)
        return
    output_results(results, as_json=json_out)


@app.command("cache-key")
def cache_key(
    survey: str = typer.Option(..., "--survey", help="Survey id"),
    question: str = typer.Option(..., "--question", "-q", help="Question id"),
    facet: str | None = typer.Option(None, "--facet", "-f"),
    edition: str | None = typer.Option(None, "--edition", "-e"),
    sub_field: SubField = typer.Option(SubField.RESPONSES, "--sub-field", "-s"),
    params: str | None = typer.Option(None, "--params", "-p", help="Parameters as JSON"),
    filters: str | None = typer.Option(None, "--filters", help="Filters as JSON"),
    digest: bool = typer.Option(False, "--digest", help="Print the SHA-256 digest too"),
) -> None:
    """Print the memoization key of a request."""
    from survey_spine.compute.cache_key import cache_key_digest, request_cache_key
    from survey_spine.compute.requests import ComputeRequest

    try:
        request = ComputeRequest(
            question_id=question,
            edition_id=edition,
            facet=facet,
            sub_field=sub_field,
            filters=parse_json_option(filters, "--filters"),
            parameters=parse_json_option(params, "--params") or {},
        )
    except (SurveySpineError, PydanticValidationError) as e:
        fail(e)
        return
    key = request_cache_key(request, survey)
    typer.echo(key)
    if digest:
        typer.echo(cache_key_digest(key))


@app.command()
def stages(
    facet: bool = typer.Option(False, "--facet", help="Show the two-axis plan"),
) -> None:
    """Show the stage plan and each stage's ordering contract."""
    from survey_spine.compute.stages import single_axis_plan, two_axis_plan

    plan = two_axis_plan() if facet else single_axis_plan()
    table = Table(title=f"Plan: {plan.name}", pad_edge=False)
    table.add_column("#", justify="right")
    table.add_column("stage")
    table.add_column("requires", style="cyan")
    table.add_column("provides", style="green")
    table.add_column("before", style="yellow")
    for position, stage in enumerate(plan.describe(), start=1):
        table.add_row(
            str(position),
            stage["name"],
            ", ".join(stage["requires"]),
            ", ".join(stage["provides"]),
            ", ".join(stage["before"]),
        )
    console.print(table)


if __name__ == "__main__":
    app()
