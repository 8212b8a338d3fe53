from .load_csv import load_tables_from_csv
from .table_store import PRIMARY_KEYS, TableStore

__all__ = ["TableStore", "PRIMARY_KEYS", "load_tables_from_csv"]
