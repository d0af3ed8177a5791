"""
CLI utility helpers: request parsing and output formatting.
"""

from __future__ import annotations

import json
from typing import Any

import typer
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.table import Table

from survey_spine.core.errors import BadParamsError, SurveySpineError, categorize_error, is_retryable
from survey_spine.core.models import EditionResult

console = Console()
err_console = Console(stderr=True)


# ── Input helpers ────────────────────────────────────────────────────────


def parse_json_option(value: str | None, option: str) -> dict[str, Any] | None:
    """Parse a JSON object given on the command line."""
    if not value:
        return None
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        raise BadParamsError(f"{option} is not valid JSON: {e.msg}", field=option, value=value) from e
    if not isinstance(parsed, dict):
        raise BadParamsError(f"{option} must be a JSON object", field=option, value=value)
    return parsed


def fail(error: Exception) -> None:
    """Print an error with its category and exit with status 1."""
    if isinstance(error, PydanticValidationError):
        err_console.print(f"[bold red]Error[/bold red] (VALIDATION): {error.error_count()} invalid field(s)")
        for item in error.errors():
            location = ".".join(str(part) for part in item["loc"])
            err_console.print(f"  [cyan]{location}[/cyan]: {item['msg']}")
        raise typer.Exit(code=1)

    message = error.message if isinstance(error, SurveySpineError) else str(error)
    hint = ", retryable" if is_retryable(error) else ""
    err_console.print(f"[bold red]Error[/bold red] ({categorize_error(error).value}{hint}): {message}")
    raise typer.Exit(code=1)


# ── Output helpers ───────────────────────────────────────────────────────


def _fmt(value: Any) -> str:
    return "" if value is None else str(value)


def output_results(results: list[EditionResult], *, as_json: bool = False) -> None:
    """Render computed editions as JSON or one Rich table per edition."""
    if as_json:
        console.print_json(json.dumps([e.to_dict() for e in results], default=str))
        return

    if not results:
        console.print("[dim]No results.[/dim]")
        return

    for edition in results:
        title = f"{edition.edition_id} ({edition.year})" if edition.year else edition.edition_id
        table = Table(title=title, show_lines=False, pad_edge=False)
        for column in ("id", "label", "count", "% question", "% survey", "facets", "grouped"):
            table.add_column(column, overflow="fold")
        for bucket in edition.buckets:
            table.add_row(
                _fmt(bucket.id),
                _fmt(bucket.label),
                _fmt(bucket.count),
                _fmt(bucket.percentage_question),
                _fmt(bucket.percentage_survey),
                _fmt(len(bucket.facet_buckets) or None),
                ", ".join(str(i) for i in bucket.grouped_bucket_ids or []),
            )
        console.print(table)
        if edition.completion is not None:
            c = edition.completion
            console.print(
                f"[dim]completion: {c.count} of {c.total} respondents ({c.percentage_survey}%)[/dim]\n"
            )
