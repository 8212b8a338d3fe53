"""
Retail sales reports over the stores, category, products, sales and
warranty tables.
"""

from .exceptions import (
    InvalidReportError,
    InvalidTableError,
    ReferentialIntegrityError,
    ReportError,
    ReportExecutionError,
    UnknownReportError,
    UnknownTableError,
)
from .runner import ReportResult, ReportRunner, run_report
from .store import TableStore

__version__ = "1.0.0"

__all__ = [
    "ReportRunner",
    "ReportResult",
    "TableStore",
    "run_report",
    "InvalidReportError",
    "InvalidTableError",
    "ReferentialIntegrityError",
    "ReportError",
    "ReportExecutionError",
    "UnknownReportError",
    "UnknownTableError",
]
