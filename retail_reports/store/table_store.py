from pathlib import Path
from typing import Any, Iterator, Optional, Union

import pandas as pd

from retail_reports.exceptions import UnknownTableError
from retail_reports.logger import setup_logger

logger = setup_logger("reports.store")

PRIMARY_KEYS = {
    "stores": "store_id",
    "category": "category_id",
    "products": "product_id",
    "sales": "sale_id",
    "warranty": "claim_id",
}

DATE_COLUMNS = {
    "products": ["launch_date"],
    "sales": ["sale_date"],
    "warranty": ["claim_date"],
}


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Lowercase column names and replace spaces with underscores."""
    df = df.copy()
    df.columns = df.columns.str.strip().str.lower().str.replace(" ", "_")
    return df


def parse_dates(df: pd.DataFrame, columns: list[str], dayfirst: bool = False) -> pd.DataFrame:
    """
    Parse date columns to datetimes.

    Unparseable values raise ValueError instead of becoming NaT.
    """
    for column in columns:
        if column not in df.columns or pd.api.types.is_datetime64_any_dtype(df[column]):
            continue
        try:
            df[column] = pd.to_datetime(df[column], format="mixed", dayfirst=dayfirst)
        except (ValueError, TypeError) as e:
            logger.error(f"Could not parse dates in column '{column}': {e}")
            raise ValueError(f"Malformed date in column '{column}': {e}") from e
    return df


class TableStore:
    """
    Read-only holder of the five retail tables.

    Tables are kept as DataFrames keyed by name. Callers get copies, so a
    query can never mutate the snapshot another query is reading.

    Example:
        store = TableStore.from_csv_dir("data/")
        store.lookup("stores", "ST-1")
    """

    def __init__(
        self,
        tables: dict[str, pd.DataFrame],
        dayfirst: bool = False,
        validate: bool = False,
        drop_invalid: bool = False,
    ):
        missing = sorted(set(PRIMARY_KEYS) - set(tables))
        if missing:
            raise UnknownTableError(f"Missing required tables: {missing}")

        prepared = {}
        for name, df in tables.items():
            df = normalize_columns(df)
            df = parse_dates(df, DATE_COLUMNS.get(name, []), dayfirst=dayfirst)
            prepared[name] = df.reset_index(drop=True)

        if validate:
            # Imported here to keep the store importable without pandera loaded
            from retail_reports.validations.validate_inputs import validate_tables

            prepared = validate_tables(prepared, drop_invalid=drop_invalid)

        self._tables = prepared
        logger.info(
            "Table store ready: "
            + ", ".join(f"{name}={len(df)}" for name, df in self._tables.items())
        )

    @classmethod
    def from_csv_dir(cls, directory: Union[str, Path], **kwargs) -> "TableStore":
        from retail_reports.store.load_csv import load_tables_from_csv

        dayfirst = kwargs.pop("dayfirst", False)
        return cls(load_tables_from_csv(directory), dayfirst=dayfirst, **kwargs)

    @property
    def names(self) -> list[str]:
        return list(self._tables)

    def primary_key(self, name: str) -> Optional[str]:
        self._check_name(name)
        return PRIMARY_KEYS.get(name)

    def table(self, name: str) -> pd.DataFrame:
        self._check_name(name)
        return self._tables[name].copy()

    def lookup(self, name: str, key: Any) -> Optional[dict[str, Any]]:
        """Return the row whose primary key equals `key`, or None."""
        key_column = self.primary_key(name)
        if key_column is None:
            raise UnknownTableError(f"Table '{name}' has no primary key")

        frame = self._tables[name]
        matches = frame[frame[key_column] == key]
        if matches.empty:
            return None
        return matches.iloc[0].to_dict()

    def scan(self, name: str) -> Iterator[dict[str, Any]]:
        """Lazily yield every row of a table as a dict; each call starts over."""
        self._check_name(name)
        frame = self._tables[name]
        columns = list(frame.columns)
        for values in frame.itertuples(index=False, name=None):
            yield dict(zip(columns, values))

    def __len__(self) -> int:
        return len(self._tables)

    def _check_name(self, name: str) -> None:
        if name not in self._tables:
            raise UnknownTableError(f"Unknown table '{name}'. Available: {self.names}")
