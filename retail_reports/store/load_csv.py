from pathlib import Path
from typing import Union

import pandas as pd

from retail_reports.logger import setup_logger
from retail_reports.store.table_store import PRIMARY_KEYS, normalize_columns

logger = setup_logger("reports.load_csv")


def load_tables_from_csv(directory: Union[str, Path]) -> dict[str, pd.DataFrame]:
    """
    Read stores.csv, category.csv, products.csv, sales.csv and warranty.csv
    from a directory and return DataFrames keyed by table name.
    Normalizes column names to lowercase with underscores.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Data directory not found: {directory}")

    tables = {}
    for name in PRIMARY_KEYS:
        path = directory / f"{name}.csv"
        if not path.exists():
            logger.error(f"Missing table file: {path}")
            raise FileNotFoundError(f"Table file not found: {path}")

        logger.info(f"Loading {name} from {path}")
        df = normalize_columns(pd.read_csv(path))
        logger.info(f"Loaded {len(df)} rows from {name}: columns {list(df.columns)}")
        tables[name] = df

    return tables


# Expected data directory layout:
# data/
# ├── category.csv
# ├── products.csv
# ├── sales.csv
# ├── stores.csv
# └── warranty.csv
