from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Optional

import pandas as pd

from retail_reports.exceptions import UnknownReportError

DEFAULT_SETTINGS = {
    "sales_month": "12-2023",
    "claims_year": 2020,
    "claim_window_days": 180,
    "usa_country": "United States",
    "usa_unit_threshold": 5000,
    "coalesce_default": 0,
    "price_segments": {"low": 500, "high": 1000},
    "lifecycle_months": [6, 12, 18],
}


@dataclass(frozen=True)
class QueryContext:
    """
    Evaluation context shared by every step of one report run.

    `current_date` replaces CURRENT_DATE: all "last N years" filters are
    computed from it, never from the wall clock.
    """

    current_date: date
    settings: dict = field(default_factory=dict)

    def setting(self, key: str, override: Any = None) -> Any:
        if override is not None:
            return override
        if key in self.settings:
            return self.settings[key]
        return DEFAULT_SETTINGS[key]


@dataclass(frozen=True)
class ReportDefinition:
    name: str
    function: Callable[..., pd.DataFrame]
    columns: tuple
    description: str = ""

    def execute(self, store, context: QueryContext, **params) -> pd.DataFrame:
        result = self.function(store, context, **params)
        return result[list(self.columns)].reset_index(drop=True)


REPORTS: dict[str, ReportDefinition] = {}


def report(name: str, columns, description: Optional[str] = None):
    """Register a query function under `name` with its output columns."""
    def decorator(function):
        if name in REPORTS:
            raise ValueError(f"Report '{name}' is already registered")
        doc = description or (function.__doc__ or "").strip().splitlines()[0]
        REPORTS[name] = ReportDefinition(name, function, tuple(columns), doc)
        return function

    return decorator


def get_report(name: str) -> ReportDefinition:
    try:
        return REPORTS[name]
    except KeyError:
        raise UnknownReportError(
            f"Unknown report '{name}'. Available: {sorted(REPORTS)}"
        ) from None


def list_reports() -> list[str]:
    return list(REPORTS)
