from . import definitions  # noqa: F401  registers every report
from .registry import REPORTS, QueryContext, ReportDefinition, get_report, list_reports

__all__ = ["REPORTS", "QueryContext", "ReportDefinition", "get_report", "list_reports"]
