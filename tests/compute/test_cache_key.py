"""Tests for survey_spine.compute.cache_key."""

from survey_spine.compute.cache_key import (
    cache_key_digest,
    compute_key,
    generic_cache_key,
    request_cache_key,
)
from survey_spine.compute.requests import ComputeRequest


class TestGenericCacheKey:
    """Keys are pure functions of the logical request."""

    def test_minimal_key(self):
        key = generic_cache_key(survey_id="state_of_js", question_id="tools")
        assert key == (
            'generic({"editionId":"allEditions(state_of_js)","questionId":"tools","subField":"responses"})'
        )

    def test_selected_edition(self):
        key = generic_cache_key(survey_id="state_of_js", question_id="tools", selected_edition_id="js2024")
        assert '"editionId":"js2024"' in key

    def test_key_order_does_not_matter(self):
        a = generic_cache_key(
            survey_id="s", question_id="q", parameters={"limit": 3, "cutoff": 2}, filters={"b": 1, "a": 2}
        )
        b = generic_cache_key(
            survey_id="s", question_id="q", parameters={"cutoff": 2, "limit": 3}, filters={"a": 2, "b": 1}
        )
        assert a == b

    def test_empty_groups_are_omitted(self):
        """Empty parameters, filters and facet never fragment the cache."""
        bare = generic_cache_key(survey_id="s", question_id="q")
        empty = generic_cache_key(survey_id="s", question_id="q", parameters={}, filters={}, facet="")
        only_cache_flag = generic_cache_key(survey_id="s", question_id="q", parameters={"enableCache": True})
        assert bare == empty == only_cache_flag

    def test_facet_changes_key(self):
        assert generic_cache_key(survey_id="s", question_id="q", facet="u__gender") != generic_cache_key(
            survey_id="s", question_id="q"
        )

    def test_compute_key_format(self):
        assert compute_key("generic", {"b": 1, "a": [1, 2]}) == 'generic({"a":[1,2],"b":1})'


class TestRequestCacheKey:
    def test_default_parameters_match_missing_parameters(self):
        """A request carrying only cache-control flags keys like one without parameters."""
        plain = ComputeRequest(question_id="tools")
        cache_only = ComputeRequest.model_validate({"questionId": "tools", "parameters": {"enableCache": False}})
        assert request_cache_key(plain, "s") == request_cache_key(cache_only, "s")

    def test_camel_and_snake_requests_share_a_key(self):
        camel = ComputeRequest.model_validate({"questionId": "tools", "parameters": {"facetLimit": 4}})
        snake = ComputeRequest(question_id="tools", parameters={"facet_limit": 4})
        assert request_cache_key(camel, "s") == request_cache_key(snake, "s")


class TestDigest:
    def test_digest_is_stable_and_bounded(self):
        key = generic_cache_key(survey_id="s", question_id="q")
        assert cache_key_digest(key) == cache_key_digest(key)
        assert len(cache_key_digest(key)) == 32
        assert len(cache_key_digest(key, length=16)) == 16
