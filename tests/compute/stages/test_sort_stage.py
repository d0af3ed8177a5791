"""Tests for sort_data."""

import pytest

from survey_spine.compute.stages import sort_buckets, sort_data
from survey_spine.core.constants import CUTOFF_ANSWERS, NO_ANSWER, OTHER_ANSWERS, SORT_ASC, SORT_DESC
from survey_spine.core.models import Question
from tests._support.builders import axis, bucket, facet, ids, question, state

RATING = question("satisfaction", options=["1", "2", "3", "4", "5"], sequential=True)


class TestSortBuckets:
    """Deterministic ordering for every sort property."""

    def test_count_descending_with_sentinels_last(self):
        buckets = [bucket("a", 1), bucket("b", 5), bucket(NO_ANSWER, 10), bucket("c", 3)]
        assert ids(sort_buckets(buckets, axis(Question(id="q")))) == ["b", "c", "a", NO_ANSWER]

    def test_count_ascending(self):
        buckets = [bucket("a", 1), bucket("b", 5), bucket("c", 3)]
        assert ids(sort_buckets(buckets, axis(Question(id="q"), order=SORT_ASC))) == ["a", "c", "b"]

    def test_ties_keep_input_order(self):
        buckets = [bucket("x", 2), bucket("y", 2), bucket("z", 2)]
        assert ids(sort_buckets(buckets, axis(Question(id="q")))) == ["x", "y", "z"]

    @pytest.mark.parametrize("order", [SORT_ASC, SORT_DESC])
    def test_options_ignore_order(self, order):
        """Declared position wins; unlisted ids go last."""
        buckets = [bucket("5", 1), bucket("x", 9), bucket("1", 3), bucket(3, 2)]
        result = sort_buckets(buckets, axis(RATING, sort="options", order=order))
        assert ids(result) == ["1", 3, "5", "x"]

    def test_numeric_ids(self):
        buckets = [bucket("10"), bucket("9"), bucket("100")]
        assert ids(sort_buckets(buckets, axis(Question(id="q"), sort="id", order=SORT_ASC))) == [
            "9",
            "10",
            "100",
        ]

    def test_mixed_ids_sort_as_strings(self):
        buckets = [bucket("b"), bucket("10"), bucket("a")]
        assert ids(sort_buckets(buckets, axis(Question(id="q"), sort="id", order=SORT_ASC))) == [
            "10",
            "a",
            "b",
        ]

    def test_special_buckets_keep_their_order(self):
        buckets = [bucket(OTHER_ANSWERS, 50), bucket("a", 1), bucket(CUTOFF_ANSWERS, 99), bucket(NO_ANSWER)]
        assert ids(sort_buckets(buckets, axis(Question(id="q")))) == [
            "a",
            OTHER_ANSWERS,
            CUTOFF_ANSWERS,
            NO_ANSWER,
        ]

    def test_is_deterministic(self):
        buckets = [bucket(str(i), i % 3) for i in range(10)]
        a = ids(sort_buckets(list(buckets), axis(Question(id="q"))))
        b = ids(sort_buckets(list(buckets), axis(Question(id="q"))))
        assert a == b


class TestSortData:
    def test_sorts_facets_by_facet_axis(self):
        parent = bucket("react", 10)
        parent.facet_buckets = [
            facet("m", 3, percentage_bucket=30.0),
            facet("f", 7, percentage_bucket=70.0),
        ]
        s = state(
            [parent, bucket("vue", 20)],
            axis(Question(id="tools")),
            axis(Question(id="gender"), sort="percentageBucket"),
        )
        result = sort_data(s).results[0].buckets
        assert ids(result) == ["vue", "react"]
        assert ids(result[1].facet_buckets) == ["f", "m"]
