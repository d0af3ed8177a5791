"""Tests for the survey-spine CLI commands."""

from __future__ import annotations

import json

import pytest
import typer
from typer.testing import CliRunner

from survey_spine.cli.app import app
from survey_spine.cli.utils import fail, parse_json_option
from survey_spine.core.errors import BadParamsError, FetchTimeoutError

runner = CliRunner()


# ── compute ──────────────────────────────────────────────────────────


class TestComputeCommand:
    """Tests for 'compute' against a fixture file."""

    def test_json_output(self, fixture_file):
        result = runner.invoke(
            app,
            ["--log-level", "ERROR", "compute", str(fixture_file), "-q", "tools", "-e", "js2024", "--json"],
        )
        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload[0]["editionId"] == "js2024"
        assert [b["id"] for b in payload[0]["buckets"]][:2] == ["react", "vue"]

    def test_params_are_applied(self, fixture_file):
        result = runner.invoke(
            app,
            [
                "--log-level",
                "ERROR",
                "compute",
                str(fixture_file),
                "-q",
                "tools",
                "-e",
                "js2024",
                "--params",
                '{"limit": 1}',
                "--json",
            ],
        )
        assert result.exit_code == 0, result.output
        ids = [b["id"] for b in json.loads(result.stdout)[0]["buckets"]]
        assert ids == ["react", "no_answer", "other_answers"]

    def test_table_output(self, fixture_file):
        result = runner.invoke(app, ["--log-level", "ERROR", "compute", str(fixture_file), "-q", "tools"])
        assert result.exit_code == 0, result.output
        assert "js2024" in result.stdout
        assert "react" in result.stdout
        assert "completion" in result.stdout

    def test_debug_dir(self, fixture_file, tmp_path):
        debug_dir = tmp_path / "artifacts"
        result = runner.invoke(
            app,
            [
                "--log-level",
                "ERROR",
                "compute",
                str(fixture_file),
                "-q",
                "tools",
                "-f",
                "user_info__gender",
                "--debug-dir",
                str(debug_dir),
                "--json",
            ],
        )
        assert result.exit_code == 0, result.output
        assert (debug_dir / "axis1.json").exists()

    def test_unknown_question_fails(self, fixture_file):
        result = runner.invoke(app, ["--log-level", "ERROR", "compute", str(fixture_file), "-q", "nope"])
        assert result.exit_code == 1

    def test_invalid_params_fail(self, fixture_file):
        result = runner.invoke(
            app,
            ["--log-level", "ERROR", "compute", str(fixture_file), "-q", "tools", "--params", '{"limit": -1}'],
        )
        assert result.exit_code == 1

    def test_missing_fixture_file(self, tmp_path):
        result = runner.invoke(app, ["compute", str(tmp_path / "missing.json"), "-q", "tools"])
        assert result.exit_code != 0


# ── cache-key ────────────────────────────────────────────────────────


class TestCacheKeyCommand:
    def test_plain_key(self):
        result = runner.invoke(app, ["--log-level", "ERROR", "cache-key", "--survey", "state_of_js", "-q", "tools"])
        assert result.exit_code == 0, result.output
        assert result.stdout.strip() == (
            'generic({"editionId":"allEditions(state_of_js)","questionId":"tools","subField":"responses"})'
        )

    def test_params_and_digest(self):
        result = runner.invoke(
            app,
            [
                "--log-level",
                "ERROR",
                "cache-key",
                "--survey",
                "state_of_js",
                "-q",
                "tools",
                "-p",
                '{"limit": 5, "enableCache": false}',
                "--digest",
            ],
        )
        assert result.exit_code == 0, result.output
        key, digest = result.stdout.strip().splitlines()
        assert '"parameters":{"limit":5}' in key
        assert "enableCache" not in key
        assert len(digest) == 32

    def test_bad_json(self):
        result = runner.invoke(
            app, ["--log-level", "ERROR", "cache-key", "--survey", "s", "-q", "tools", "-p", "{oops"]
        )
        assert result.exit_code == 1


# ── stages ───────────────────────────────────────────────────────────


class TestStagesCommand:
    def test_single_axis_plan(self):
        result = runner.invoke(app, ["--log-level", "ERROR", "stages"])
        assert result.exit_code == 0, result.output
        assert "single_axis" in result.stdout
        assert "add_labels" in result.stdout

    def test_two_axis_plan(self):
        result = runner.invoke(app, ["--log-level", "ERROR", "stages", "--facet"])
        assert result.exit_code == 0, result.output
        assert "two_axis" in result.stdout


class TestVersion:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "survey-spine" in result.stdout


# ── utils ────────────────────────────────────────────────────────────


class TestParseJsonOption:
    def test_empty_is_none(self):
        assert parse_json_option(None, "--params") is None
        assert parse_json_option("", "--params") is None

    def test_object(self):
        assert parse_json_option('{"cutoff": 2}', "--params") == {"cutoff": 2}

    def test_rejects_non_object(self):
        with pytest.raises(BadParamsError, match="must be a JSON object"):
            parse_json_option("[1, 2]", "--params")

    def test_rejects_invalid_json(self):
        with pytest.raises(BadParamsError, match="not valid JSON"):
            parse_json_option("{", "--params")


class TestFail:
    """Errors are printed with their category before exiting."""

    def test_transient_error_is_marked_retryable(self, capsys):
        with pytest.raises(typer.Exit) as exc_info:
            fail(FetchTimeoutError(5))
        assert exc_info.value.exit_code == 1
        err = capsys.readouterr().err
        assert "(NETWORK, retryable)" in err
        assert "timed out after 5s" in err

    def test_request_error_is_not_retryable(self, capsys):
        with pytest.raises(typer.Exit):
            fail(BadParamsError("cutoff must be positive"))
        err = capsys.readouterr().err
        assert "(VALIDATION)" in err
        assert "retryable" not in err

    def test_foreign_exception_is_categorized(self, capsys):
        with pytest.raises(typer.Exit):
            fail(ConnectionError("refused"))
        assert "(NETWORK): refused" in capsys.readouterr().err
