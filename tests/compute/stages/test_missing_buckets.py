"""Tests for add_missing_buckets."""

from survey_spine.compute.stages import add_missing_buckets
from tests._support.builders import axis, bucket, ids, question, state

RATING = question("satisfaction", options=["1", "2", "3", "4", "5"], sequential=True)
GENDER = question("gender", options=["male", "female"])


class TestAddMissingBuckets:
    """Declared options always appear, with zero counts when unanswered."""

    def test_adds_missing_option(self):
        s = state(
            [bucket("1", 5), bucket("2", 10), bucket("4", 20), bucket("5", 15)],
            axis(RATING, enable_add_missing_buckets=True),
        )
        buckets = add_missing_buckets(s).results[0].buckets
        assert sorted(ids(buckets)) == ["1", "2", "3", "4", "5"]
        assert next(b for b in buckets if b.id == "3").count == 0

    def test_ids_compare_as_strings(self):
        """Numeric bucket ids match string option ids."""
        s = state([bucket(1, 5), bucket(2, 3)], axis(RATING, enable_add_missing_buckets=True))
        assert ids(add_missing_buckets(s).results[0].buckets) == [1, 2, "3", "4", "5"]

    def test_disabled_by_default(self):
        s = state([bucket("1", 5)], axis(RATING))
        assert ids(add_missing_buckets(s).results[0].buckets) == ["1"]

    def test_no_options_is_noop(self):
        s = state([bucket("react", 5)], axis(question("tools"), enable_add_missing_buckets=True))
        assert ids(add_missing_buckets(s).results[0].buckets) == ["react"]

    def test_idempotent(self):
        s = state([bucket("2", 1)], axis(RATING, enable_add_missing_buckets=True))
        once = ids(add_missing_buckets(s).results[0].buckets)
        twice = ids(add_missing_buckets(s).results[0].buckets)
        assert once == twice
        assert len(twice) == 5

    def test_two_axis_full_cross_product(self):
        """Every bucket, synthesized or not, gets every facet option."""
        s = state(
            [bucket("1", 3, {"male": 3})],
            axis(RATING, enable_add_missing_buckets=True),
            axis(GENDER, enable_add_missing_buckets=True),
        )
        buckets = add_missing_buckets(s).results[0].buckets
        assert len(buckets) == 5
        for b in buckets:
            assert sorted(ids(b.facet_buckets)) == ["female", "male"]
        assert buckets[0].facet_buckets[0].count == 3
