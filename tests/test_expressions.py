"""
Unit tests for column expressions: null-safe arithmetic, relative date
predicates and bucket assignment.
"""

import pytest
import pandas as pd
import numpy as np
from datetime import date
from pathlib import Path
import sys

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from retail_reports.operators.expressions import (
    both,
    coalesce,
    compare,
    days_between,
    lifecycle_segment,
    month_year,
    month_year_equals,
    price_segment,
    safe_divide,
    within_last,
    year_equals,
)


class TestNullSafeArithmetic:
    """Test suite for safe_divide and coalesce."""

    def test_divide_by_zero_gives_null(self):
        """Test that a zero denominator yields null instead of raising."""
        result = safe_divide(pd.Series([5.0, 4.0]), pd.Series([0, 2]))
        assert pd.isna(result.iloc[0])
        assert result.iloc[1] == 2.0

    def test_divide_by_null_gives_null(self):
        """Test that a null denominator yields null."""
        result = safe_divide(pd.Series([5.0]), pd.Series([None], dtype="float64"))
        assert pd.isna(result.iloc[0])

    def test_scalar_division(self):
        """Test scalar inputs."""
        assert np.isnan(safe_divide(1, 0))
        assert safe_divide(1, 4) == 0.25

    def test_coalesce_series_and_scalars(self):
        """Test that coalesce substitutes the default for nulls only."""
        result = coalesce(pd.Series([np.nan, 2.0]), 0)
        assert list(result) == [0.0, 2.0]
        assert coalesce(None, 0) == 0
        assert coalesce(3, 0) == 3

    def test_coalesced_ratio_never_null(self):
        """Test the risk-percentage pattern: 0 claims over 0 units is 0."""
        claims = pd.Series([0, 3])
        units = pd.Series([0, 6])
        result = coalesce(safe_divide(claims, units) * 100, 0)
        assert list(result) == [0.0, 50.0]


class TestDatePredicates:
    """Test suite for date helpers."""

    @pytest.fixture
    def frame(self):
        return pd.DataFrame({
            "sale_date": pd.to_datetime(["2023-06-29", "2023-06-30", "2023-12-05", None]),
            "claim_date": pd.to_datetime(["2023-12-27", "2023-08-01", "2024-01-01", "2024-01-01"]),
        })

    def test_within_last_is_inclusive_of_cutoff(self, frame):
        """Test that the cutoff day itself is inside the window."""
        mask = within_last("sale_date", date(2024, 6, 30), years=1)(frame)
        assert list(mask) == [False, True, True, False]

    def test_within_last_uses_given_reference_not_today(self, frame):
        """Test that the reference date bounds both ends of the window."""
        mask = within_last("sale_date", date(2023, 7, 1), days=1)(frame)
        assert list(mask) == [False, True, False, False]

    def test_month_year_format(self, frame):
        """Test MM-YYYY formatting."""
        assert month_year("sale_date")(frame).iloc[2] == "12-2023"
        assert list(month_year_equals("sale_date", "12-2023")(frame)) == [False, False, True, False]

    def test_year_equals(self, frame):
        assert list(year_equals("claim_date", 2024)(frame)) == [False, False, True, True]

    def test_compare_treats_null_as_unknown(self):
        """Test that a null operand never matches, whatever the operator."""
        df = pd.DataFrame({"qty": [1.0, None, 3.0]})
        assert list(compare("qty", "!=", 1.0)(df)) == [False, False, True]
        assert list(compare("qty", "<=", 3.0)(df)) == [True, False, True]

    def test_compare_with_null_literal_matches_nothing(self):
        df = pd.DataFrame({"qty": [1.0, None]})
        assert list(compare("qty", "==", None)(df)) == [False, False]

    def test_compare_rejects_unknown_operator(self):
        with pytest.raises(ValueError):
            compare("qty", "<>", 1)

    def test_both_requires_every_predicate(self, frame):
        """Test that both() ANDs predicates and a null result counts as false."""
        mask = both(
            lambda f: pd.Series([True, True, None, True], index=f.index),
            compare("claim_date", ">=", pd.Timestamp("2023-08-01")),
        )(frame)
        assert list(mask) == [True, True, False, True]

    def test_days_between(self):
        """Test the 151-day and 212-day claim gaps."""
        df = pd.DataFrame({
            "sale_date": pd.to_datetime(["2023-01-01", "2023-01-01"]),
            "claim_date": pd.to_datetime(["2023-06-01", "2023-08-01"]),
        })
        assert list(days_between("sale_date", "claim_date")(df)) == [151, 212]


class TestPriceSegment:
    """Test suite for price buckets."""

    def test_price_buckets(self):
        """Test 499, 750 and 1500 land in the three buckets."""
        df = pd.DataFrame({"price": [499.0, 750.0, 1500.0]})
        result = price_segment("price")(df)
        assert list(result) == ["Less Expensive", "Medium Expensive", "Expensive"]

    def test_bucket_edges_are_medium(self):
        """Test that 500 and 1000 are both "Medium Expensive"."""
        df = pd.DataFrame({"price": [500.0, 1000.0]})
        assert list(price_segment("price")(df)) == ["Medium Expensive", "Medium Expensive"]

    def test_null_price_falls_in_default_bucket(self):
        """Test that an unclassifiable price is "Expensive", never unlabeled."""
        df = pd.DataFrame({"price": [None]}, dtype="float64")
        assert list(price_segment("price")(df)) == ["Expensive"]


class TestLifecycleSegment:
    """Test suite for lifecycle buckets."""

    @pytest.fixture
    def frame(self):
        launch = pd.Timestamp("2022-01-15")
        return pd.DataFrame({
            "launch_date": [launch] * 6 + [pd.NaT],
            "sale_date": pd.to_datetime([
                "2022-03-01",  # 0-6
                "2022-07-15",  # exactly 6 months
                "2022-10-01",  # 6-12
                "2023-05-01",  # 12-18
                "2024-01-01",  # 18+
                "2021-12-01",  # before launch
                "2022-03-01",  # no launch date
            ]),
        })

    def test_lifecycle_buckets(self, frame):
        """Test assignment to each period after launch."""
        result = list(lifecycle_segment("sale_date", "launch_date")(frame))
        assert result[:5] == ["0-6 month", "0-6 month", "6-12 month", "12-18 month", "18+"]

    def test_out_of_range_sales_fall_in_default_bucket(self, frame):
        """Test that sales before launch or without a launch date are "18+"."""
        result = list(lifecycle_segment("sale_date", "launch_date")(frame))
        assert result[5:] == ["18+", "18+"]

    def test_boundaries_must_have_three_edges(self):
        with pytest.raises(ValueError):
            lifecycle_segment("sale_date", "launch_date", boundaries=(6, 12))
