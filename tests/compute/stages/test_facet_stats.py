"""Tests for per-bucket averages and percentiles over the facet axis."""

from survey_spine.compute.stages import (
    add_averages_by_facet,
    add_percentiles_by_facet,
    weighted_average,
    weighted_percentiles,
)
from survey_spine.core.models import Option, Question
from tests._support.builders import axis, bucket, question, state

TOOLS = axis(Question(id="tools"))


class TestWeightedStatistics:
    def test_weighted_average(self):
        assert weighted_average([(1, 1), (3, 3)]) == 2.5

    def test_empty(self):
        assert weighted_average([]) is None
        assert weighted_percentiles([]) is None

    def test_percentiles(self):
        points = [(1.0, 1), (2.0, 1), (3.0, 1), (4.0, 1)]
        assert weighted_percentiles(points) == {"p0": 1.0, "p25": 1.0, "p50": 2.0, "p75": 3.0, "p100": 4.0}


class TestByFacet:
    """Facet values come from option averages, else numeric ids."""

    def test_numeric_ids(self):
        years = axis(question("years"))
        s = state([bucket("react", 4, {"1": 1, "3": 3, "unknown": 10})], TOOLS, years)
        react = add_averages_by_facet(s).results[0].buckets[0]
        assert react.average == 2.5

    def test_option_averages(self):
        salary = axis(
            question("salary", options=[Option(id="low", average=10.0), Option(id="high", average=100.0)])
        )
        s = state([bucket("react", 4, {"low": 3, "high": 1})], TOOLS, salary)
        s = add_percentiles_by_facet(add_averages_by_facet(s))
        react = s.results[0].buckets[0]
        assert react.average == 32.5
        assert react.percentiles["p50"] == 10.0
        assert react.percentiles["p100"] == 100.0

    def test_non_numeric_facets_leave_bucket_alone(self):
        s = state([bucket("react", 4, {"male": 4})], TOOLS, axis(question("gender")))
        react = add_percentiles_by_facet(add_averages_by_facet(s)).results[0].buckets[0]
        assert react.average is None
        assert react.percentiles is None

    def test_single_axis_is_noop(self):
        s = state([bucket("react", 4)], TOOLS)
        assert add_averages_by_facet(s).results[0].buckets[0].average is None
