from .validate_inputs import check_referential_integrity, validate_table, validate_tables
from .validate_outputs import validate_report

__all__ = ["check_referential_integrity", "validate_table", "validate_tables", "validate_report"]
