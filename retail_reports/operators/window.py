"""
Window functions: rank, lag and running sum over partitions.

Window operators add one column and keep every input row in its original
position. Ordering inside a partition is stable, so ties keep input order.
"""

from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from retail_reports.logger import setup_logger
from .relational import Keys, _as_list, filter_rows

logger = setup_logger("reports.window")

Directions = Union[bool, Sequence[bool]]


def _directions(order_keys: list[str], ascending: Directions) -> list[bool]:
    if isinstance(ascending, bool):
        return [ascending] * len(order_keys)
    ascending = list(ascending)
    if len(ascending) != len(order_keys):
        raise ValueError(f"Window has {len(order_keys)} order keys but {len(ascending)} directions")
    return ascending


def _ordered(frame: pd.DataFrame, partition: list[str], order_keys: list[str], ascending: list[bool]) -> pd.DataFrame:
    """Frame sorted by partition then order keys, original index kept."""
    keys = partition + order_keys
    directions = [True] * len(partition) + ascending
    ordered = frame
    # One stable single-key sort per key, last key first
    for key, asc in reversed(list(zip(keys, directions))):
        ordered = ordered.sort_values(key, ascending=asc, kind="mergesort", na_position="last" if asc else "first")
    return ordered


def _partition_groups(ordered: pd.DataFrame, partition: list[str]):
    if partition:
        return ordered.groupby(partition, dropna=False, sort=False)
    # Whole table is one partition
    return ordered.groupby(np.zeros(len(ordered), dtype=int), sort=False)


def _peer_change(ordered: pd.DataFrame, groups, order_keys: list[str]) -> pd.Series:
    """True where a row's order keys differ from the previous row's in its partition."""
    previous = groups[order_keys].shift(1)
    current = ordered[order_keys]
    both_null = current.isna() & previous.isna()
    differs = (current != previous) & ~both_null
    first_in_partition = groups.cumcount() == 0
    return differs.any(axis=1) | first_in_partition


def rank(
    frame: pd.DataFrame,
    partition_keys: Optional[Keys],
    order_keys: Keys,
    ascending: Directions = True,
    output: str = "rank",
) -> pd.DataFrame:
    """
    SQL RANK(): rows with equal order keys share a rank and the following
    rank is skipped (1, 1, 3).
    """
    frame = frame.reset_index(drop=True)
    partition = _as_list(partition_keys)
    order = _as_list(order_keys)
    if frame.empty:
        return frame.assign(**{output: pd.Series(dtype="int64")}).reset_index(drop=True)

    ordered = _ordered(frame, partition, order, _directions(order, ascending))
    groups = _partition_groups(ordered, partition)
    position = groups.cumcount() + 1
    is_new_peer = _peer_change(ordered, groups, order)
    ranks = position.where(is_new_peer).ffill().astype("int64")

    result = frame.copy()
    result[output] = ranks.reindex(frame.index)
    return result.reset_index(drop=True)


def lag(
    frame: pd.DataFrame,
    partition_keys: Optional[Keys],
    order_keys: Keys,
    column: str,
    n: int = 1,
    output: Optional[str] = None,
    ascending: Directions = True,
) -> pd.DataFrame:
    """Value of `column` from `n` rows earlier in the partition; null if none."""
    if n < 1:
        raise ValueError(f"Lag offset must be at least 1, got {n}")

    frame = frame.reset_index(drop=True)
    partition = _as_list(partition_keys)
    order = _as_list(order_keys)
    output = output or f"previous_{column}"
    if frame.empty:
        return frame.assign(**{output: pd.Series(dtype="float64")}).reset_index(drop=True)

    ordered = _ordered(frame, partition, order, _directions(order, ascending))
    previous = _partition_groups(ordered, partition)[column].shift(n)

    result = frame.copy()
    result[output] = previous.reindex(frame.index)
    return result.reset_index(drop=True)


def running_sum(
    frame: pd.DataFrame,
    partition_keys: Optional[Keys],
    order_keys: Keys,
    column: str,
    output: Optional[str] = None,
    ascending: Directions = True,
) -> pd.DataFrame:
    """
    Cumulative SUM(column) OVER (PARTITION BY ... ORDER BY ...).

    Uses the SQL default frame (RANGE UNBOUNDED PRECEDING), so rows with
    equal order keys all get the total through the last of them. Nulls are
    skipped; the value stays null until the first non-null input.
    """
    frame = frame.reset_index(drop=True)
    partition = _as_list(partition_keys)
    order = _as_list(order_keys)
    output = output or f"running_{column}"
    if frame.empty:
        return frame.assign(**{output: pd.Series(dtype="float64")}).reset_index(drop=True)

    ordered = _ordered(frame, partition, order, _directions(order, ascending))
    groups = _partition_groups(ordered, partition)

    totals = ordered[column].fillna(0).groupby(groups.ngroup()).cumsum()
    seen = ordered[column].notna().astype(int).groupby(groups.ngroup()).cumsum()
    totals = totals.where(seen > 0)

    # Peers share the total of the last peer
    peer_id = _peer_change(ordered, groups, order).cumsum()
    totals = totals.groupby(peer_id).transform("last")

    result = frame.copy()
    result[output] = totals.reindex(frame.index)
    return result.reset_index(drop=True)


def top_per_group(
    frame: pd.DataFrame,
    partition_keys: Optional[Keys],
    order_keys: Keys,
    ascending: Directions = False,
    n: int = 1,
    output: str = "rank",
) -> pd.DataFrame:
    """
    Rank rows inside each partition and keep those ranked `n`.

    Ties at rank n all survive. Defaults to descending order, i.e. the
    largest value per partition.
    """
    ranked = rank(frame, partition_keys, order_keys, ascending=ascending, output=output)
    result = filter_rows(ranked, lambda f: f[output] == n)
    logger.debug(f"Top-per-group kept {len(result)} of {len(frame)} rows at rank {n}")
    return result
