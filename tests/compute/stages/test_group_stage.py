"""Tests for group_buckets and use_groups_as_options."""

from survey_spine.compute.stages import group_buckets, limit_data, use_groups_as_options
from survey_spine.core.constants import NO_ANSWER, OTHER_ANSWERS
from survey_spine.core.models import Option
from tests._support.builders import axis, bucket, ids, question, state

YEARS = question(
    "years_of_experience",
    groups=[
        Option(id="range_0_5", label="0-5 years", lower_bound=0, upper_bound=5),
        Option(id="range_5_10", label="5-10 years", lower_bound=5, upper_bound=10),
        Option(id="range_10_plus", label="10+ years", lower_bound=10),
    ],
)
COUNTRY = question(
    "country",
    groups=[Option(id="europe", items=["FR", "DE"]), Option(id="americas", items=["US", "BR"])],
)


class TestGroupBuckets:
    """Raw ids fold into the declared groups."""

    def test_range_groups(self):
        s = state(
            [bucket(1, 3), bucket(4, 2), bucket(7, 5), bucket(12, 1), bucket(NO_ANSWER, 4)],
            axis(YEARS, sort="options"),
        )
        buckets = group_buckets(s).results[0].buckets
        assert ids(buckets) == ["range_0_5", "range_5_10", "range_10_plus", NO_ANSWER]
        assert [b.count for b in buckets] == [5, 5, 1, 4]
        assert buckets[0].grouped_bucket_ids == [1, 4]

    def test_item_groups_and_leftovers(self):
        s = state([bucket("US", 4), bucket("FR", 2), bucket("JP", 1), bucket("DE", 3)], axis(COUNTRY))
        buckets = group_buckets(s).results[0].buckets
        assert ids(buckets) == ["europe", "americas", "JP"]
        assert buckets[0].grouped_bucket_ids == ["FR", "DE"]

    def test_empty_group_is_kept_with_zero_count(self):
        s = state([bucket("FR", 2)], axis(COUNTRY))
        americas = group_buckets(s).results[0].buckets[1]
        assert (americas.id, americas.count, americas.grouped_bucket_ids) == ("americas", 0, [])

    def test_disabled_groups(self):
        s = state([bucket("FR", 2)], axis(COUNTRY, enable_bucket_groups=False))
        assert ids(group_buckets(s).results[0].buckets) == ["FR"]

    def test_facet_groups_and_recombined_parent_facets(self):
        parent_a = bucket("FR", 3, {1: 2, 8: 1})
        parent_b = bucket("DE", 2, {3: 2})
        s = state([parent_a, parent_b], axis(COUNTRY), axis(YEARS))
        europe = group_buckets(s).results[0].buckets[0]
        assert europe.count == 5
        assert {fb.id: fb.count for fb in europe.facet_buckets} == {
            "range_0_5": 4,
            "range_5_10": 1,
            "range_10_plus": 0,
        }


class TestUseGroupsAsOptions:
    def test_replaces_working_options(self):
        s = use_groups_as_options(state([bucket("FR", 1)], axis(COUNTRY), axis(YEARS)))
        assert s.main_axis.option_ids() == ["europe", "americas"]
        assert s.facet_axis.option_ids() == ["range_0_5", "range_5_10", "range_10_plus"]


YOE = question(
    "yoe",
    groups=[Option(id="junior", items=["1", "2"]), Option(id="senior", items=["3", "4"])],
)


class TestAlreadyGroupedBuckets:
    """Buckets that already carry a group id are not grouped twice."""

    def test_grouped_facets_pass_through(self):
        overall = bucket("overall", 100, {"junior": 40, "senior": 60})
        overall.facet_buckets[0].grouped_bucket_ids = ["1", "2"]
        overall.facet_buckets[1].grouped_bucket_ids = ["3", "4"]
        s = state([overall], axis(question("tools")), axis(YOE, sort="options"))

        facets = group_buckets(s).results[0].buckets[0].facet_buckets

        assert [(fb.id, fb.count) for fb in facets] == [("junior", 40), ("senior", 60)]
        assert facets[0].grouped_bucket_ids == ["1", "2"]

    def test_grouped_and_raw_ids_merge(self):
        junior = bucket("junior", 10)
        junior.grouped_bucket_ids = ["1"]
        s = state([junior, bucket("2", 5), bucket("4", 1)], axis(YOE, sort="options"))

        buckets = group_buckets(s).results[0].buckets

        assert ids(buckets) == ["junior", "senior"]
        assert buckets[0].count == 15
        assert buckets[0].grouped_bucket_ids == ["1", "2"]


class TestGroupsKeepSortOrder:
    def test_count_sorted_groups(self):
        s = state([bucket("1", 10), bucket("4", 60)], axis(YOE, sort="count"))
        assert ids(group_buckets(s).results[0].buckets) == ["senior", "junior"]

    def test_limit_keeps_largest_group(self):
        s = state([bucket("1", 10), bucket("4", 60)], axis(YOE, sort="count", limit=1))
        for stage in (group_buckets, use_groups_as_options, limit_data):
            s = stage(s)

        buckets = s.results[0].buckets
        assert ids(buckets) == ["senior", OTHER_ANSWERS]
        assert buckets[0].count == 60
        assert buckets[1].grouped_bucket_ids == ["junior"]
