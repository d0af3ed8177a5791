"""
Post-processing stages and the two canonical stage plans.

Each stage is a plain function ``PipelineState -> PipelineState`` (entity
lookups are async). The plans below are the only supported orderings; both
are validated when built.

Facts established along the way:

    shape            non-faceted buckets flattened
    ids              every bucket has an id
    editions         empty editions removed
    counts           every bucket has its final raw count
    missing_buckets  declared options synthesized
    completion       edition totals attached
    overall          comparison bucket added
    percentages      shares computed
    sorted           buckets in display order
    grouped          raw ids folded into bucket groups
    group_options    working options are the groups
    cutoff           rare answers merged
    limited          long tail merged
"""

from survey_spine.compute.plan import Stage, StagePlan
from survey_spine.compute.stages.counts import (
    add_completion_counts,
    add_default_bucket_counts,
    add_edition_years,
    add_overall_bucket,
)
from survey_spine.compute.stages.cutoff import apply_cutoff, cutoff_data, passes_cutoff
from survey_spine.compute.stages.dataset_cutoff import apply_dataset_cutoff
from survey_spine.compute.stages.enrich import add_entities, add_tokens
from survey_spine.compute.stages.facet_stats import (
    add_averages_by_facet,
    add_percentiles_by_facet,
    weighted_average,
    weighted_percentiles,
)
from survey_spine.compute.stages.group import group_buckets, use_groups_as_options
from survey_spine.compute.stages.labels import add_labels
from survey_spine.compute.stages.limit import apply_limit, limit_data
from survey_spine.compute.stages.merge import (
    combine_facet_buckets,
    flatten_grouped_ids,
    merge_buckets,
    merge_percentiles,
)
from survey_spine.compute.stages.missing import add_missing_buckets
from survey_spine.compute.stages.other import group_other, group_other_buckets
from survey_spine.compute.stages.percentages import add_percentages
from survey_spine.compute.stages.shape import (
    combine_freeform,
    discard_empty_editions,
    discard_empty_ids,
    normalize_shape,
)
from survey_spine.compute.stages.sort import sort_buckets, sort_data

NORMALIZE_SHAPE = Stage("normalize_shape", normalize_shape, provides={"shape", "counts"})
COMBINE_FREEFORM = Stage("combine_freeform", combine_freeform, provides={"freeform"}, before={"ids"})
DISCARD_EMPTY_IDS = Stage("discard_empty_ids", discard_empty_ids, provides={"ids"})
DISCARD_EMPTY_EDITIONS = Stage(
    "discard_empty_editions", discard_empty_editions, requires={"ids"}, provides={"editions"}
)
ADD_ENTITIES = Stage("add_entities", add_entities, requires={"ids"}, provides={"entities"})
ADD_TOKENS = Stage("add_tokens", add_tokens, requires={"ids"}, provides={"tokens"})
ADD_DEFAULT_BUCKET_COUNTS = Stage(
    "add_default_bucket_counts", add_default_bucket_counts, requires={"ids"}, provides={"counts"}
)
ADD_MISSING_BUCKETS = Stage(
    "add_missing_buckets",
    add_missing_buckets,
    requires={"counts"},
    provides={"missing_buckets"},
    before={"percentages"},
)
ADD_COMPLETION_COUNTS = Stage(
    "add_completion_counts", add_completion_counts, requires={"editions"}, provides={"completion"}
)
ADD_OVERALL_BUCKET = Stage(
    "add_overall_bucket",
    add_overall_bucket,
    requires={"completion"},
    provides={"overall"},
    before={"percentages"},
)
ADD_PERCENTAGES = Stage(
    "add_percentages",
    add_percentages,
    requires={"counts", "missing_buckets", "completion"},
    provides={"percentages"},
)
APPLY_DATASET_CUTOFF = Stage(
    "apply_dataset_cutoff", apply_dataset_cutoff, requires={"percentages"}, provides={"dataset_cutoff"}
)
ADD_EDITION_YEARS = Stage("add_edition_years", add_edition_years, requires={"editions"}, provides={"years"})
ADD_AVERAGES_BY_FACET = Stage(
    "add_averages_by_facet",
    add_averages_by_facet,
    requires={"counts"},
    provides={"averages"},
    before={"grouped"},
)
ADD_PERCENTILES_BY_FACET = Stage(
    "add_percentiles_by_facet",
    add_percentiles_by_facet,
    requires={"counts"},
    provides={"percentiles"},
    before={"grouped"},
)
SORT_DATA = Stage("sort_data", sort_data, requires={"percentages"}, provides={"sorted"})
GROUP_BUCKETS = Stage(
    "group_buckets", group_buckets, requires={"percentages", "sorted"}, provides={"grouped"}
)
USE_GROUPS_AS_OPTIONS = Stage(
    "use_groups_as_options",
    use_groups_as_options,
    requires={"grouped"},
    provides={"group_options"},
    before={"limited"},
)
CUTOFF_DATA = Stage(
    "cutoff_data", cutoff_data, requires={"percentages", "grouped"}, provides={"cutoff"}
)
LIMIT_DATA = Stage(
    "limit_data", limit_data, requires={"sorted", "group_options", "cutoff"}, provides={"limited"}
)
GROUP_OTHER_BUCKETS = Stage(
    "group_other_buckets",
    group_other_buckets,
    requires={"limited", "cutoff", "group_options"},
    provides={"other_grouped"},
)
ADD_LABELS = Stage("add_labels", add_labels, requires={"group_options"}, provides={"labels"})


def single_axis_plan() -> StagePlan:
    """Plan for a question without facet."""
    return StagePlan(
        "single_axis",
        [
            NORMALIZE_SHAPE,
            COMBINE_FREEFORM,
            DISCARD_EMPTY_IDS,
            DISCARD_EMPTY_EDITIONS,
            ADD_ENTITIES,
            ADD_TOKENS,
            ADD_MISSING_BUCKETS,
            ADD_COMPLETION_COUNTS,
            ADD_PERCENTAGES,
            APPLY_DATASET_CUTOFF,
            ADD_EDITION_YEARS,
            SORT_DATA,
            GROUP_BUCKETS,
            USE_GROUPS_AS_OPTIONS,
            CUTOFF_DATA,
            LIMIT_DATA,
            GROUP_OTHER_BUCKETS,
            ADD_LABELS,
        ],
    ).validate()


def two_axis_plan() -> StagePlan:
    """Plan for a question crossed with a facet question (or its sentiment)."""
    return StagePlan(
        "two_axis",
        [
            COMBINE_FREEFORM,
            DISCARD_EMPTY_IDS,
            DISCARD_EMPTY_EDITIONS,
            ADD_ENTITIES,
            ADD_TOKENS,
            ADD_DEFAULT_BUCKET_COUNTS,
            ADD_MISSING_BUCKETS,
            ADD_COMPLETION_COUNTS,
            ADD_OVERALL_BUCKET,
            ADD_PERCENTAGES,
            APPLY_DATASET_CUTOFF,
            ADD_EDITION_YEARS,
            ADD_AVERAGES_BY_FACET,
            ADD_PERCENTILES_BY_FACET,
            SORT_DATA,
            GROUP_BUCKETS,
            USE_GROUPS_AS_OPTIONS,
            CUTOFF_DATA,
            LIMIT_DATA,
            GROUP_OTHER_BUCKETS,
            ADD_LABELS,
        ],
    ).validate()


__all__ = [
    "add_averages_by_facet",
    "add_completion_counts",
    "add_default_bucket_counts",
    "add_edition_years",
    "add_entities",
    "add_labels",
    "add_missing_buckets",
    "add_overall_bucket",
    "add_percentages",
    "add_percentiles_by_facet",
    "add_tokens",
    "apply_cutoff",
    "apply_dataset_cutoff",
    "apply_limit",
    "combine_facet_buckets",
    "combine_freeform",
    "cutoff_data",
    "discard_empty_editions",
    "discard_empty_ids",
    "flatten_grouped_ids",
    "group_buckets",
    "group_other",
    "group_other_buckets",
    "limit_data",
    "merge_buckets",
    "merge_percentiles",
    "normalize_shape",
    "passes_cutoff",
    "single_axis_plan",
    "sort_buckets",
    "sort_data",
    "two_axis_plan",
    "use_groups_as_options",
    "weighted_average",
    "weighted_percentiles",
]
