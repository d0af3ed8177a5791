"""
survey-spine: chart-ready aggregation of survey responses.

Turns raw per-edition bucket counts for a question (optionally crossed with a
second "facet" question) into sorted, labelled result sets with counts,
percentages, averages and percentiles.

Usage:
    from survey_spine.compute import ComputeRequest, GenericComputation

    computation = GenericComputation(context)
    results = await computation.compute(request, survey=survey, edition=edition,
                                        question=question, questions=questions)
"""

__version__ = "0.3.0"
