import pandera.pandas as pa
from pandera.pandas import Check, Column, DataFrameSchema


stores_schema = DataFrameSchema(
    {
        # Identifiers ("ST-1" in the source data, plain ints in tests)
        "store_id": Column(None, nullable=False, unique=True),
        "store_name": Column(str, nullable=False),
        "city": Column(str, nullable=True),
        "country": Column(str, nullable=False),
    },
    strict=False  # Allow extra columns
)


category_schema = DataFrameSchema(
    {
        "category_id": Column(None, nullable=False, unique=True),
        "category_name": Column(str, nullable=False),
    },
    strict=False
)


products_schema = DataFrameSchema(
    {
        "product_id": Column(None, nullable=False, unique=True),
        "product_name": Column(str, nullable=False),
        "category_id": Column(None, nullable=True),
        "launch_date": Column(pa.DateTime, nullable=True, coerce=True),
        "price": Column(float, Check.ge(0), nullable=True, coerce=True),
    },
    strict=False
)


sales_schema = DataFrameSchema(
    {
        "sale_id": Column(None, nullable=False, unique=True),
        "sale_date": Column(pa.DateTime, nullable=False, coerce=True),
        "store_id": Column(None, nullable=False),
        "product_id": Column(None, nullable=False),
        "quantity": Column(int, Check.ge(0), nullable=False, coerce=True),
    },
    strict=False
)


warranty_schema = DataFrameSchema(
    {
        "claim_id": Column(None, nullable=False, unique=True),
        "claim_date": Column(pa.DateTime, nullable=False, coerce=True),
        "sale_id": Column(None, nullable=False),
        "repair_status": Column(str, nullable=True),
    },
    strict=False
)


TABLE_SCHEMAS = {
    "stores": stores_schema,
    "category": category_schema,
    "products": products_schema,
    "sales": sales_schema,
    "warranty": warranty_schema,
}


# (table, column, referenced table, referenced column)
FOREIGN_KEYS = [
    ("products", "category_id", "category", "category_id"),
    ("sales", "store_id", "stores", "store_id"),
    ("sales", "product_id", "products", "product_id"),
    ("warranty", "sale_id", "sales", "sale_id"),
]
