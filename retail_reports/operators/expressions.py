"""
Column expressions used inside report pipelines.

Predicates take a DataFrame and return a boolean Series. Relative date
predicates never read the wall clock: the reference date is always passed in.
"""

import operator
from datetime import date
from typing import Callable, Sequence, Union

import numpy as np
import pandas as pd

Predicate = Callable[[pd.DataFrame], pd.Series]

PRICE_SEGMENTS = ("Less Expensive", "Medium Expensive", "Expensive")
LIFECYCLE_SEGMENTS = ("0-6 month", "6-12 month", "12-18 month", "18+")


# --------------------------------------------------
# Null-safe arithmetic
# --------------------------------------------------

def safe_divide(numerator, denominator):
    """Divide, giving null where the denominator is zero or null."""
    if isinstance(denominator, pd.Series):
        return numerator / denominator.where(denominator != 0)
    if denominator is None or pd.isna(denominator) or denominator == 0:
        return np.nan
    return numerator / denominator


def coalesce(values, default):
    """Substitute `default` where `values` is null."""
    if isinstance(values, pd.Series):
        return values.fillna(default)
    if values is None or pd.isna(values):
        return default
    return values


# --------------------------------------------------
# Date parts
# --------------------------------------------------

def year_of(column: str) -> Callable[[pd.DataFrame], pd.Series]:
    return lambda frame: frame[column].dt.year


def month_of(column: str) -> Callable[[pd.DataFrame], pd.Series]:
    return lambda frame: frame[column].dt.month


def month_year(column: str) -> Callable[[pd.DataFrame], pd.Series]:
    """Format a date column as MM-YYYY."""
    return lambda frame: frame[column].dt.strftime("%m-%Y")


def day_name(column: str) -> Callable[[pd.DataFrame], pd.Series]:
    return lambda frame: frame[column].dt.day_name()


def days_between(start: str, end: str) -> Callable[[pd.DataFrame], pd.Series]:
    """Whole days from `start` to `end` (negative when end is earlier)."""
    return lambda frame: (frame[end] - frame[start]).dt.days


# --------------------------------------------------
# Predicates
# --------------------------------------------------

def within_last(
    column: str,
    reference_date: Union[date, pd.Timestamp],
    years: int = 0,
    months: int = 0,
    days: int = 0,
) -> Predicate:
    """
    Rows where `column` falls between reference_date minus the interval and
    the end of reference_date, both inclusive.

    Calendar arithmetic: one year before 2024-02-29 is 2023-02-28.
    """
    reference = pd.Timestamp(reference_date).normalize()
    cutoff = reference - pd.DateOffset(years=years, months=months, days=days)
    end = reference + pd.Timedelta(days=1)
    return lambda frame: (frame[column] >= cutoff) & (frame[column] < end)


def month_year_equals(column: str, label: str) -> Predicate:
    """Rows whose date formats as `label` in MM-YYYY form."""
    return lambda frame: frame[column].dt.strftime("%m-%Y") == label


def year_equals(column: str, year: int) -> Predicate:
    return lambda frame: frame[column].dt.year == year


COMPARISONS = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


def compare(column: str, op: str, value) -> Predicate:
    """
    Compare a column with a literal, SQL style: a null operand makes the
    comparison unknown, so the row never matches. Plain pandas would give
    True for `NaN != value`.
    """
    if op not in COMPARISONS:
        raise ValueError(f"Unsupported comparison '{op}', expected one of {list(COMPARISONS)}")
    if value is None or (np.isscalar(value) and pd.isna(value)):
        return lambda frame: pd.Series(False, index=frame.index)
    function = COMPARISONS[op]
    return lambda frame: function(frame[column], value) & frame[column].notna()


def equals(column: str, value) -> Predicate:
    return compare(column, "==", value)


def is_null(column: str) -> Predicate:
    return lambda frame: frame[column].isna()


def not_null(column: str) -> Predicate:
    return lambda frame: frame[column].notna()


def both(*predicates: Predicate) -> Predicate:
    def combined(frame):
        mask = pd.Series(True, index=frame.index)
        for predicate in predicates:
            mask &= predicate(frame).fillna(False).astype(bool)
        return mask

    return combined


# --------------------------------------------------
# Buckets
# --------------------------------------------------

def price_segment(column: str, low: float = 500, high: float = 1000) -> Callable[[pd.DataFrame], pd.Series]:
    """
    Bucket prices: below `low` is "Less Expensive", `low` to `high`
    inclusive is "Medium Expensive", everything else (including null)
    is "Expensive".
    """
    def segment(frame):
        price = frame[column]
        conditions = [price < low, (price >= low) & (price <= high)]
        labels = np.select(conditions, PRICE_SEGMENTS[:2], default=PRICE_SEGMENTS[2])
        return pd.Series(labels, index=frame.index, dtype=object)

    return segment


def lifecycle_segment(
    sale_column: str,
    launch_column: str,
    boundaries: Sequence[int] = (6, 12, 18),
) -> Callable[[pd.DataFrame], pd.Series]:
    """
    Bucket each sale by months elapsed since the product launch.

    Bucket edges are inclusive on both ends and the first match wins, so a
    sale exactly six months after launch is "0-6 month". Sales before
    launch or with no launch date land in "18+".
    """
    if len(boundaries) != 3:
        raise ValueError(f"Expected three lifecycle boundaries, got {list(boundaries)}")

    def segment(frame):
        sale = frame[sale_column]
        launch = frame[launch_column]
        edges = [launch] + [launch + pd.DateOffset(months=m) for m in boundaries]
        conditions = [
            (sale >= edges[i]) & (sale <= edges[i + 1])
            for i in range(len(boundaries))
        ]
        labels = np.select(conditions, LIFECYCLE_SEGMENTS[:3], default=LIFECYCLE_SEGMENTS[3])
        return pd.Series(labels, index=frame.index, dtype=object)

    return segment
