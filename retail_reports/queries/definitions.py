"""
Report definitions for the retail sales dataset.

Each report is a Pipeline over the five tables. Join policy:
  - claim questions start from warranty and inner-join sales, since every
    claim must belong to a sale;
  - questions about sales that may have no claim start from sales and
    left-join warranty.
Foreign-key joins use require_match=True so a dangling key aborts the
report instead of silently losing rows.
"""

import pandas as pd

from retail_reports.operators import COUNT_ALL, Pipeline
from retail_reports.operators.expressions import (
    PRICE_SEGMENTS,
    both,
    coalesce,
    compare,
    day_name,
    days_between,
    equals,
    is_null,
    lifecycle_segment,
    month_of,
    month_year,
    month_year_equals,
    not_null,
    price_segment,
    safe_divide,
    within_last,
    year_equals,
    year_of,
)
from .registry import QueryContext, report


def _sales(store):
    return Pipeline(store.table("sales"), name="sales")


def _warranty(store):
    return Pipeline(store.table("warranty"), name="warranty")


def _with_stores(pipeline, store):
    return pipeline.join(store.table("stores"), "store_id", require_match=True, right_name="stores")


def _with_products(pipeline, store):
    return pipeline.join(store.table("products"), "product_id", require_match=True, right_name="products")


def _with_sales(pipeline, store):
    return pipeline.join(store.table("sales"), "sale_id", require_match=True, right_name="sales")


def _revenue(frame):
    return frame["quantity"] * frame["price"]


# --------------------------------------------------
# Simple counts and totals
# --------------------------------------------------

@report("stores_per_country", ["country", "total_stores"])
def stores_per_country(store, ctx: QueryContext) -> pd.DataFrame:
    """Number of stores in each country, most stores first."""
    return (
        Pipeline(store.table("stores"), name="stores")
        .aggregate("country", total_stores=("store_id", "count"))
        .sort("total_stores", ascending=False)
        .run()
    )


@report("units_sold_per_store", ["store_id", "store_name", "total_units_sold"])
def units_sold_per_store(store, ctx: QueryContext) -> pd.DataFrame:
    """Total units sold by each store."""
    return (
        _with_stores(_sales(store), store)
        .aggregate(["store_id", "store_name"], total_units_sold=("quantity", "sum"))
        .sort("total_units_sold", ascending=False)
        .run()
    )


@report("sales_in_month", ["month", "total_sales"])
def sales_in_month(store, ctx: QueryContext, month=None) -> pd.DataFrame:
    """Number of sales in one MM-YYYY month."""
    label = ctx.setting("sales_month", month)
    return (
        _sales(store)
        .filter(month_year_equals("sale_date", label))
        .aggregate(None, total_sales=("sale_id", "count"))
        .assign(month=label)
        .run()
    )


@report("stores_without_claims", ["stores_without_claims"])
def stores_without_claims(store, ctx: QueryContext) -> pd.DataFrame:
    """Number of stores that never had a warranty claim filed."""
    claimed_stores = (
        _with_sales(_warranty(store), store)
        .distinct("store_id")
        .assign(has_claim=True)
    )
    return (
        Pipeline(store.table("stores"), name="stores")
        .join(claimed_stores, "store_id", how="left", right_name="claimed_stores")
        .filter(is_null("has_claim"))
        .aggregate(None, stores_without_claims=(COUNT_ALL, "count"))
        .run()
    )


@report("warranty_void_percentage", ["void_claims", "total_claims", "warranty_void_percentage"])
def warranty_void_percentage(store, ctx: QueryContext) -> pd.DataFrame:
    """Share of warranty claims marked "Warranty Void", in percent."""
    default = ctx.setting("coalesce_default")
    return (
        _warranty(store)
        .assign(void_claim_id=lambda f: f["claim_id"].where(f["repair_status"] == "Warranty Void"))
        .aggregate(None, void_claims=("void_claim_id", "count"), total_claims=(COUNT_ALL, "count"))
        .assign(
            warranty_void_percentage=lambda f: coalesce(
                safe_divide(f["void_claims"], f["total_claims"]) * 100, default
            ).round(2)
        )
        .run()
    )


@report("top_store_last_year", ["store_id", "store_name", "total_units_sold"])
def top_store_last_year(store, ctx: QueryContext) -> pd.DataFrame:
    """Store with the most units sold in the last year."""
    return (
        _with_stores(_sales(store).filter(within_last("sale_date", ctx.current_date, years=1)), store)
        .aggregate(["store_id", "store_name"], total_units_sold=("quantity", "sum"))
        .sort("total_units_sold", ascending=False)
        .limit(1)
        .run()
    )


@report("unique_products_last_year", ["unique_products_sold"])
def unique_products_last_year(store, ctx: QueryContext) -> pd.DataFrame:
    """Number of distinct products sold in the last year."""
    return (
        _sales(store)
        .filter(within_last("sale_date", ctx.current_date, years=1))
        .aggregate(None, unique_products_sold=("product_id", "count_distinct"))
        .run()
    )


@report("avg_price_per_category", ["category_id", "category_name", "avg_price"])
def avg_price_per_category(store, ctx: QueryContext) -> pd.DataFrame:
    """Average product price in each category."""
    return (
        Pipeline(store.table("products"), name="products")
        .join(store.table("category"), "category_id", require_match=True, right_name="category")
        .aggregate(["category_id", "category_name"], avg_price=("price", "avg"))
        .sort("avg_price", ascending=False)
        .run()
    )


@report("claims_in_year", ["year", "total_claims"])
def claims_in_year(store, ctx: QueryContext, year=None) -> pd.DataFrame:
    """Number of warranty claims filed in one calendar year."""
    year = int(ctx.setting("claims_year", year))
    return (
        _warranty(store)
        .filter(year_equals("claim_date", year))
        .aggregate(None, total_claims=(COUNT_ALL, "count"))
        .assign(year=year)
        .run()
    )


# --------------------------------------------------
# Ranked reports
# --------------------------------------------------

@report("best_day_per_store", ["store_id", "day_name", "total_units_sold", "rank"])
def best_day_per_store(store, ctx: QueryContext) -> pd.DataFrame:
    """Best-selling weekday of each store by units sold."""
    return (
        _sales(store)
        .assign(day_name=day_name("sale_date"))
        .aggregate(["store_id", "day_name"], total_units_sold=("quantity", "sum"))
        .top_per_group("store_id", "total_units_sold", ascending=False)
        .sort("store_id")
        .run()
    )


@report("least_selling_product_per_country", ["country", "product_name", "total_qty_sold", "rank"])
def least_selling_product_per_country(store, ctx: QueryContext) -> pd.DataFrame:
    """Least-selling product in each country by total units."""
    return (
        _with_products(_with_stores(_sales(store), store), store)
        .aggregate(["country", "product_name"], total_qty_sold=("quantity", "sum"))
        .top_per_group("country", "total_qty_sold", ascending=True)
        .sort("country")
        .run()
    )


# --------------------------------------------------
# Warranty reports
# --------------------------------------------------

@report("claims_within_window", ["window_days", "total_claims"])
def claims_within_window(store, ctx: QueryContext, days=None) -> pd.DataFrame:
    """Warranty claims filed within N days (default 180) of the sale."""
    days = int(ctx.setting("claim_window_days", days))
    return (
        _sales(store)
        .join(store.table("warranty"), "sale_id", how="left", right_name="warranty")
        .assign(days_to_claim=days_between("sale_date", "claim_date"))
        .filter(compare("days_to_claim", "<=", days))
        .aggregate(None, total_claims=("claim_id", "count"))
        .assign(window_days=days)
        .run()
    )


@report("claims_for_recent_launches", ["product_name", "total_claims", "total_sales"])
def claims_for_recent_launches(store, ctx: QueryContext, years=2) -> pd.DataFrame:
    """Claims and sales for products launched in the last two years."""
    return (
        _sales(store)
        .join(store.table("warranty"), "sale_id", how="left", right_name="warranty")
        .join(store.table("products"), "product_id", require_match=True, right_name="products")
        .filter(within_last("launch_date", ctx.current_date, years=years))
        .aggregate("product_name", total_claims=("claim_id", "count"), total_sales=("sale_id", "count"))
        .having(compare("total_claims", ">", 0))
        .sort("total_claims", ascending=False)
        .run()
    )


@report("top_claim_category", ["category_name", "total_claims"])
def top_claim_category(store, ctx: QueryContext, years=2) -> pd.DataFrame:
    """Claims per product category over the last two years, most first."""
    return (
        _with_products(_with_sales(_warranty(store).filter(within_last("claim_date", ctx.current_date, years=years)), store), store)
        .join(store.table("category"), "category_id", require_match=True, right_name="category")
        .aggregate("category_name", total_claims=("claim_id", "count"))
        .sort("total_claims", ascending=False)
        .run()
    )


@report("warranty_risk_per_country", ["country", "total_units_sold", "total_claims", "claim_risk_pct"])
def warranty_risk_per_country(store, ctx: QueryContext) -> pd.DataFrame:
    """Chance of a warranty claim per unit sold in each country, in percent."""
    default = ctx.setting("coalesce_default")
    return (
        _with_stores(_sales(store), store)
        .join(store.table("warranty"), "sale_id", how="left", right_name="warranty")
        .aggregate("country", total_units_sold=("quantity", "sum"), total_claims=("claim_id", "count"))
        .assign(
            claim_risk_pct=lambda f: coalesce(
                safe_divide(f["total_claims"], f["total_units_sold"]) * 100, default
            )
        )
        .sort("claim_risk_pct", ascending=False)
        .run()
    )


@report("claims_by_price_segment", ["price_segment", "total_claims"])
def claims_by_price_segment(store, ctx: QueryContext, years=5) -> pd.DataFrame:
    """Claims for each price range over the last five years."""
    bounds = ctx.setting("price_segments")
    order = {label: position for position, label in enumerate(PRICE_SEGMENTS)}
    return (
        _with_products(_with_sales(_warranty(store).filter(within_last("claim_date", ctx.current_date, years=years)), store), store)
        .assign(price_segment=price_segment("price", low=bounds["low"], high=bounds["high"]))
        .aggregate("price_segment", total_claims=("claim_id", "count"))
        .assign(segment_order=lambda f: f["price_segment"].map(order))
        .sort("segment_order")
        .run()
    )


@report(
    "paid_repair_ratio_per_store",
    ["store_id", "store_name", "paid_repaired", "total_repaired", "paid_repaired_pct"],
)
def paid_repair_ratio_per_store(store, ctx: QueryContext) -> pd.DataFrame:
    """Share of "Paid Repaired" claims among all claims of each store."""
    default = ctx.setting("coalesce_default")
    claims = _with_sales(_warranty(store), store)
    paid = (
        claims.filter(equals("repair_status", "Paid Repaired"))
        .aggregate("store_id", paid_repaired=("claim_id", "count"))
    )
    total = claims.aggregate("store_id", total_repaired=("claim_id", "count"))
    return (
        Pipeline(paid, name="paid_repaired")
        .join(total, "store_id", right_name="total_repaired")
        .join(store.table("stores"), "store_id", require_match=True, right_name="stores")
        .assign(
            paid_repaired_pct=lambda f: coalesce(
                safe_divide(f["paid_repaired"], f["total_repaired"]) * 100, default
            ).round(2)
        )
        .sort("paid_repaired_pct", ascending=False)
        .run()
    )


# --------------------------------------------------
# Trends
# --------------------------------------------------

@report(
    "yearly_growth_per_store",
    ["store_id", "store_name", "year", "last_year_sale", "current_year_sale", "growth_ratio"],
)
def yearly_growth_per_store(store, ctx: QueryContext) -> pd.DataFrame:
    """
    Year-over-year revenue growth of each store, in percent.

    Rows without a previous year are excluded, as is the current
    (incomplete) calendar year.
    """
    default = ctx.setting("coalesce_default")
    current_year = ctx.current_date.year
    return (
        _with_stores(_with_products(_sales(store), store), store)
        .assign(revenue=_revenue, year=year_of("sale_date"))
        .aggregate(["store_id", "store_name", "year"], current_year_sale=("revenue", "sum"))
        .lag("store_id", "year", "current_year_sale", output="last_year_sale")
        .filter(both(not_null("last_year_sale"), compare("year", "!=", current_year)))
        .assign(
            growth_ratio=lambda f: coalesce(
                safe_divide(f["current_year_sale"] - f["last_year_sale"], f["last_year_sale"]) * 100,
                default,
            ).round(3)
        )
        .sort(["store_name", "year"])
        .run()
    )


@report(
    "monthly_running_total_per_store",
    ["store_id", "year", "month", "total_revenue", "monthly_running_total"],
)
def monthly_running_total_per_store(store, ctx: QueryContext, years=4) -> pd.DataFrame:
    """Running total of monthly revenue per store over the last four years."""
    return (
        _with_products(_sales(store).filter(within_last("sale_date", ctx.current_date, years=years)), store)
        .assign(revenue=_revenue, year=year_of("sale_date"), month=month_of("sale_date"))
        .aggregate(["store_id", "year", "month"], total_revenue=("revenue", "sum"))
        .running_sum("store_id", ["year", "month"], "total_revenue", output="monthly_running_total")
        .sort(["store_id", "year", "month"])
        .run()
    )


@report("high_volume_months_usa", ["month", "total_units_sold"])
def high_volume_months_usa(store, ctx: QueryContext, country=None, threshold=None, years=3) -> pd.DataFrame:
    """Months in the last three years where US stores sold more than 5,000 units."""
    country = ctx.setting("usa_country", country)
    threshold = ctx.setting("usa_unit_threshold", threshold)
    return (
        _with_stores(_sales(store).filter(within_last("sale_date", ctx.current_date, years=years)), store)
        .filter(equals("country", country))
        .assign(year=year_of("sale_date"), month_number=month_of("sale_date"), month=month_year("sale_date"))
        .aggregate(["year", "month_number", "month"], total_units_sold=("quantity", "sum"))
        .having(compare("total_units_sold", ">", threshold))
        .sort(["year", "month_number"])
        .run()
    )


@report("product_lifecycle_sales", ["product_name", "lifecycle_stage", "total_qty_sold"])
def product_lifecycle_sales(store, ctx: QueryContext) -> pd.DataFrame:
    """Units sold per product in each period after launch (0-6, 6-12, 12-18, 18+ months)."""
    boundaries = ctx.setting("lifecycle_months")
    return (
        _with_products(_sales(store), store)
        .assign(lifecycle_stage=lifecycle_segment("sale_date", "launch_date", boundaries))
        .aggregate(["product_name", "lifecycle_stage"], total_qty_sold=("quantity", "sum"))
        .sort(["product_name", "total_qty_sold"], ascending=[True, False])
        .run()
    )
