"""Tests for survey_spine.framework.logging.context."""

import asyncio

import pytest

from survey_spine.framework.logging import (
    LogContext,
    bind_context,
    clear_context,
    get_context,
    new_request_id,
    push_context,
    set_context,
)
from survey_spine.framework.logging.context import add_context_processor


class TestLogContext:
    def test_to_dict_drops_none(self):
        assert LogContext(question="tools").to_dict() == {"question": "tools"}

    def test_merge_ignores_unknown_keys_and_none(self):
        merged = LogContext(question="tools").merge(facet="gender", bogus=1, question=None)
        assert merged.question == "tools"
        assert merged.facet == "gender"


class TestContextFunctions:
    """Test set/bind/push/clear semantics."""

    def test_set_replaces(self):
        set_context(question="tools", facet="gender")
        set_context(question="gender")
        assert get_context().facet is None

    def test_bind_merges(self):
        set_context(question="tools")
        bind_context(stage="sort_data")
        ctx = get_context()
        assert (ctx.question, ctx.stage) == ("tools", "sort_data")

    def test_push_and_restore(self):
        set_context(question="tools")
        token = push_context(stage="cutoff_data")
        assert get_context().stage == "cutoff_data"
        token.restore()
        assert get_context().stage is None
        assert get_context().question == "tools"

    def test_clear(self):
        set_context(question="tools")
        clear_context()
        assert get_context().to_dict() == {}

    def test_request_ids_are_unique(self):
        assert new_request_id() != new_request_id()
        assert len(new_request_id()) == 12

    @pytest.mark.asyncio
    async def test_concurrent_tasks_are_isolated(self):
        """Requests running on one event loop never see each other's context."""

        async def run(question: str) -> str | None:
            set_context(question=question)
            await asyncio.sleep(0.01)
            return get_context().question

        results = await asyncio.gather(run("tools"), run("gender"))
        assert results == ["tools", "gender"]


class TestContextProcessor:
    def test_adds_context_without_overriding(self):
        set_context(question="tools", stage="sort_data")
        event = add_context_processor(None, "info", {"event": "x", "stage": "explicit"})
        assert event["question"] == "tools"
        assert event["stage"] == "explicit"
