from .pipeline import Pipeline, Step
from .relational import (
    COUNT_ALL,
    assign_columns,
    distinct_rows,
    filter_rows,
    group_aggregate,
    join,
    limit,
    select_columns,
    sort_rows,
)
from .window import lag, rank, running_sum, top_per_group

__all__ = [
    "Pipeline",
    "Step",
    "COUNT_ALL",
    "assign_columns",
    "distinct_rows",
    "filter_rows",
    "group_aggregate",
    "join",
    "limit",
    "select_columns",
    "sort_rows",
    "lag",
    "rank",
    "running_sum",
    "top_per_group",
]
