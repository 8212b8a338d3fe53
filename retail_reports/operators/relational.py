"""
Relational operators over DataFrames.

Every operator takes a DataFrame and returns a new one with a fresh
RangeIndex; inputs are never modified. Null handling follows SQL:
comparisons with null drop the row, aggregates skip nulls, and COUNT(*)
counts rows.
"""

from typing import Callable, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from retail_reports.exceptions import ReferentialIntegrityError
from retail_reports.logger import setup_logger

logger = setup_logger("reports.operators")

JOIN_KINDS = ("inner", "left", "right")
AGGREGATE_FUNCTIONS = ("count", "sum", "avg", "min", "max", "count_distinct")
COUNT_ALL = "*"

Keys = Union[str, Sequence[str]]


def _as_list(keys: Optional[Keys]) -> list[str]:
    if keys is None:
        return []
    if isinstance(keys, str):
        return [keys]
    return list(keys)


def filter_rows(frame: pd.DataFrame, predicate: Callable[[pd.DataFrame], pd.Series]) -> pd.DataFrame:
    """
    Keep rows where predicate is true; a null mask value counts as false.

    The predicate itself decides how nulls compare. Use the helpers in
    expressions (`compare`, `equals`, `not_null`) for SQL behaviour; a raw
    lambda such as `f["qty"] != 1` is True for a null qty and must handle
    nulls itself.
    """
    mask = predicate(frame)
    if not isinstance(mask, pd.Series):
        mask = pd.Series(mask, index=frame.index)
    mask = mask.fillna(False).astype(bool)
    return frame[mask].reset_index(drop=True)


def join(
    left: pd.DataFrame,
    right: pd.DataFrame,
    left_on: Keys,
    right_on: Optional[Keys] = None,
    how: str = "inner",
    require_match: bool = False,
    left_name: str = "left",
    right_name: str = "right",
) -> pd.DataFrame:
    """
    Join two tables on key columns.

    `how` is inner, left or right. Outer joins keep every row of the
    preserved side and fill the other side's columns with null. With
    require_match=True, an inner join whose non-null left keys do not all
    resolve in `right` raises ReferentialIntegrityError instead of dropping
    rows. Null keys never match anything.
    """
    if how not in JOIN_KINDS:
        raise ValueError(f"Unsupported join kind '{how}', expected one of {JOIN_KINDS}")

    left_keys = _as_list(left_on)
    right_keys = _as_list(right_on) if right_on is not None else left_keys
    if len(left_keys) != len(right_keys):
        raise ValueError(f"Join key count mismatch: {left_keys} vs {right_keys}")

    if require_match and how == "inner":
        left_tuples = left[left_keys].dropna().drop_duplicates()
        known = right[right_keys].drop_duplicates().set_axis(left_keys, axis=1)
        probe = left_tuples.merge(known, on=left_keys, how="left", indicator=True)
        unresolved = probe[probe["_merge"] == "left_only"]
        if len(unresolved) > 0:
            missing = [
                row[0] if len(row) == 1 else row
                for row in unresolved[left_keys].itertuples(index=False, name=None)
            ]
            logger.error(f"Join aborted: {len(missing)} keys of {left_keys} missing from {right_name}")
            raise ReferentialIntegrityError(
                left_name, ",".join(left_keys), right_name, missing
            )

    # SQL never matches null keys; pandas would pair NaN with NaN
    left_part = left
    right_part = right[right[right_keys].notna().all(axis=1)]
    if how == "right":
        right_part = right
        left_part = left[left[left_keys].notna().all(axis=1)]

    if left_keys == right_keys:
        joined = left_part.merge(right_part, on=left_keys, how=how, suffixes=("", "_right"))
    else:
        joined = left_part.merge(
            right_part, left_on=left_keys, right_on=right_keys, how=how, suffixes=("", "_right")
        )

    logger.debug(f"{how} join on {left_keys}: {len(left)} x {len(right)} -> {len(joined)} rows")
    return joined.reset_index(drop=True)


def group_aggregate(
    frame: pd.DataFrame,
    keys: Optional[Keys],
    aggregates: Mapping[str, tuple],
) -> pd.DataFrame:
    """
    Group rows by `keys` and compute aggregates per group.

    `aggregates` maps each output column to (input column, function). Use
    ("*", "count") for COUNT(*). Null key values form their own group.
    Without keys the whole table is one group, so the result has exactly
    one row even for an empty input. Groups come out sorted by key.
    """
    key_list = _as_list(keys)
    for name, (column, function) in aggregates.items():
        if function not in AGGREGATE_FUNCTIONS:
            raise ValueError(f"Unsupported aggregate '{function}' for column '{name}'")
        if column == COUNT_ALL and function != "count":
            raise ValueError(f"'*' is only valid with count, got {function}")
        if column != COUNT_ALL and column not in frame.columns:
            raise KeyError(f"Aggregate input column '{column}' not found")

    if not key_list:
        row = {name: _aggregate_series(frame, column, function) for name, (column, function) in aggregates.items()}
        return pd.DataFrame([row], columns=list(aggregates))

    if frame.empty:
        return pd.DataFrame(columns=key_list + list(aggregates))

    grouped = frame.groupby(key_list, dropna=False, sort=True)
    results = {}
    for name, (column, function) in aggregates.items():
        if column == COUNT_ALL:
            results[name] = grouped.size()
        elif function == "count":
            results[name] = grouped[column].count()
        elif function == "count_distinct":
            results[name] = grouped[column].nunique()
        elif function == "sum":
            results[name] = grouped[column].sum(min_count=1)
        elif function == "avg":
            results[name] = grouped[column].mean()
        elif function == "min":
            results[name] = grouped[column].min()
        else:
            results[name] = grouped[column].max()

    result = pd.DataFrame(results).reset_index()
    logger.debug(f"Grouped {len(frame)} rows by {key_list} into {len(result)} groups")
    return result[key_list + list(aggregates)]


def _aggregate_series(frame: pd.DataFrame, column: str, function: str):
    if column == COUNT_ALL:
        return len(frame)
    values = frame[column]
    if function == "count":
        return int(values.count())
    if function == "count_distinct":
        return int(values.nunique())
    if function == "sum":
        return values.sum(min_count=1)
    if function == "avg":
        return values.mean() if values.count() else np.nan
    if function == "min":
        return values.min() if values.count() else np.nan
    return values.max() if values.count() else np.nan


def assign_columns(frame: pd.DataFrame, **columns) -> pd.DataFrame:
    """Add or replace columns; values may be callables taking the frame."""
    return frame.assign(**columns).reset_index(drop=True)


def select_columns(frame: pd.DataFrame, columns: Union[Sequence[str], Mapping[str, str]]) -> pd.DataFrame:
    """Project columns; a mapping renames source -> output name."""
    if isinstance(columns, Mapping):
        return frame[list(columns)].rename(columns=dict(columns)).reset_index(drop=True)
    return frame[list(columns)].reset_index(drop=True)


def distinct_rows(frame: pd.DataFrame, columns: Optional[Keys] = None) -> pd.DataFrame:
    subset = _as_list(columns) or None
    if subset:
        frame = frame[subset]
    return frame.drop_duplicates().reset_index(drop=True)


def sort_rows(
    frame: pd.DataFrame,
    keys: Keys,
    ascending: Union[bool, Sequence[bool]] = True,
) -> pd.DataFrame:
    """
    Stable sort. Nulls sort last ascending and first descending, as in
    PostgreSQL.
    """
    key_list = _as_list(keys)
    if isinstance(ascending, bool):
        ascending = [ascending] * len(key_list)
    ascending = list(ascending)
    if len(ascending) != len(key_list):
        raise ValueError(f"Sort has {len(key_list)} keys but {len(ascending)} directions")

    # Sort one key at a time from last to first so each key gets its own
    # null placement while earlier keys keep priority
    result = frame
    for key, asc in reversed(list(zip(key_list, ascending))):
        result = result.sort_values(key, ascending=asc, kind="mergesort", na_position="last" if asc else "first")
    return result.reset_index(drop=True)


def limit(frame: pd.DataFrame, n: int) -> pd.DataFrame:
    if n < 0:
        raise ValueError(f"Limit must be non-negative, got {n}")
    return frame.head(n).reset_index(drop=True)
