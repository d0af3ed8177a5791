"""
Shared pytest fixtures and configuration for survey-spine tests.

This module provides:
- Location-based markers (unit / integration)
- Isolation of the logging context between tests
- Engine settings that ignore the environment
- A complete survey fixture (questions, raw results, statistics, entities)
  usable through ``survey_spine.compute.static``

Usage:
    def test_something(fixture_data, engine_settings):
        context = fixture_data.context(settings=engine_settings)
"""

import copy
import json
from pathlib import Path
from typing import Any

import pytest

from survey_spine.compute.static import Fixture
from survey_spine.core.settings import EngineSettings
from survey_spine.framework.logging import clear_context


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)
        if "integration" in test_path.name:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def _isolated_log_context():
    """Each test starts with an empty log context."""
    clear_context()
    yield
    clear_context()


@pytest.fixture
def engine_settings(tmp_path: Path) -> EngineSettings:
    """Settings independent of SURVEY_SPINE_* variables and .env files."""
    return EngineSettings(
        _env_file=None,
        default_cutoff=1,
        default_limit=50,
        fetch_timeout_seconds=5.0,
        cache_ttl_seconds=60,
        debug=False,
        debug_dir=tmp_path / "debug",
        log_level="INFO",
        log_format="console",
    )


# =============================================================================
# Survey fixture
# =============================================================================


def _default(bucket_id: Any, count: int) -> dict[str, Any]:
    return {"id": bucket_id, "count": count, "facetBuckets": [{"id": "default", "count": count}]}


def _faceted(bucket_id: Any, facets: dict[str, int]) -> dict[str, Any]:
    return {
        "id": bucket_id,
        "facetBuckets": [{"id": k, "count": v} for k, v in facets.items()],
    }


def _paths(base: str) -> dict[str, str]:
    return {
        "base": base,
        "response": f"{base}.choices",
        "other": f"{base}.others.normalized",
        "prenormalized": f"{base}.others.prenormalized",
    }


FIXTURE_DATA: dict[str, Any] = {
    "survey": {
        "id": "state_of_js",
        "editions": [
            {"id": "js2023", "year": 2023},
            {"id": "js2024", "year": 2024},
            {"id": "js2025", "year": 2025},
        ],
    },
    "questions": [
        {"id": "tools", "surveyId": "state_of_js", "normPaths": _paths("tools")},
        {
            "id": "gender",
            "surveyId": "state_of_js",
            "options": [
                {"id": "male", "label": "Man"},
                {"id": "female", "label": "Woman"},
                {"id": "non_binary", "label": "Non-binary"},
            ],
            "normPaths": _paths("user_info.gender"),
        },
        {
            "id": "satisfaction",
            "surveyId": "state_of_js",
            "optionsAreSequential": True,
            "options": [{"id": str(i), "label": f"{i} stars"} for i in range(1, 6)],
            "normPaths": _paths("satisfaction"),
        },
    ],
    "results": {
        "tools.choices": [
            {
                "editionId": "js2023",
                "buckets": [_default("react", 40), _default("vue", 35), _default("svelte", 5)],
            },
            {
                "editionId": "js2024",
                "buckets": [
                    _default("react", 50),
                    _default("vue", 30),
                    _default("svelte", 12),
                    _default("solid", 3),
                    _default("qwik", 1),
                    _default("no_answer", 4),
                ],
            },
        ],
        "tools.choices::gender": [
            {
                "editionId": "js2024",
                "buckets": [
                    _faceted("react", {"male": 30, "female": 15, "non_binary": 5}),
                    _faceted("vue", {"male": 20, "female": 10}),
                    _faceted("svelte", {"male": 8, "female": 4}),
                    _faceted("solid", {"male": 2, "female": 1}),
                ],
            }
        ],
        "user_info.gender.choices": [
            {
                "editionId": "js2024",
                "buckets": [_default("male", 60), _default("female", 30), _default("non_binary", 5)],
            }
        ],
        "tools.others.normalized": [
            {"editionId": "js2024", "buckets": [_default("react", 2), _default("lit", 6)]}
        ],
        "satisfaction.choices": [
            {
                "editionId": "js2024",
                "buckets": [
                    _default("1", 5),
                    _default("2", 10),
                    _default("4", 20),
                    _default("5", 15),
                ],
            }
        ],
    },
    "totalRespondents": {"2023": 100, "2024": 120},
    "completion": {"2023": 80, "2024": 100},
    "entities": {"react": {"id": "react", "name": "React"}, "vue": {"id": "vue", "name": "Vue.js"}},
    "tokens": {"react": {"id": "react", "label": "React"}},
}


@pytest.fixture
def fixture_dict() -> dict[str, Any]:
    return copy.deepcopy(FIXTURE_DATA)


@pytest.fixture
def fixture_data(fixture_dict: dict[str, Any]) -> Fixture:
    return Fixture.from_dict(fixture_dict)


@pytest.fixture
def fixture_file(tmp_path: Path, fixture_dict: dict[str, Any]) -> Path:
    path = tmp_path / "fixture.json"
    path.write_text(json.dumps(fixture_dict), encoding="utf-8")
    return path
