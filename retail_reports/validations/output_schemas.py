from pandera.pandas import Check, Column, DataFrameSchema

from retail_reports.operators.expressions import LIFECYCLE_SEGMENTS, PRICE_SEGMENTS


# Report columns are checked for their invariants, not their dtypes:
# counts over empty inputs come back as object columns.
def percentage():
    return Column(None, Check.in_range(0, 100), nullable=False)


def non_negative():
    return Column(None, Check.ge(0), nullable=False)


def top_rank():
    return Column(None, Check.eq(1), nullable=False)


REPORT_SCHEMAS = {
    "stores_per_country": DataFrameSchema(
        {
            "country": Column(None, nullable=True),
            "total_stores": Column(None, Check.ge(1), nullable=False),
        },
        strict=True
    ),
    "warranty_void_percentage": DataFrameSchema(
        {
            "void_claims": non_negative(),
            "total_claims": non_negative(),
            "warranty_void_percentage": percentage(),
        },
        strict=True
    ),
    "best_day_per_store": DataFrameSchema(
        {
            "day_name": Column(None, nullable=False),
            "rank": top_rank(),
        },
        strict=False
    ),
    "least_selling_product_per_country": DataFrameSchema(
        {"rank": top_rank()},
        strict=False
    ),
    "warranty_risk_per_country": DataFrameSchema(
        {"claim_risk_pct": non_negative()},
        strict=False
    ),
    "claims_by_price_segment": DataFrameSchema(
        {
            "price_segment": Column(None, Check.isin(PRICE_SEGMENTS), nullable=False),
            "total_claims": non_negative(),
        },
        strict=True
    ),
    "paid_repair_ratio_per_store": DataFrameSchema(
        {"paid_repaired_pct": percentage()},
        strict=False
    ),
    "yearly_growth_per_store": DataFrameSchema(
        {
            "last_year_sale": Column(None, nullable=False),
            "growth_ratio": Column(None, nullable=False),
        },
        strict=False
    ),
    "monthly_running_total_per_store": DataFrameSchema(
        {
            "month": Column(None, Check.in_range(1, 12), nullable=False),
            "monthly_running_total": Column(None, Check.ge(0), nullable=True),
        },
        strict=False
    ),
    "product_lifecycle_sales": DataFrameSchema(
        {"lifecycle_stage": Column(None, Check.isin(LIFECYCLE_SEGMENTS), nullable=False)},
        strict=False
    ),
}
