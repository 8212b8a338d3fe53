from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional, Union

import pandas as pd

from retail_reports.config import load_config, resolve_reference_date
from retail_reports.exceptions import ReportError, ReportExecutionError
from retail_reports.logger import set_log_level, setup_logger
from retail_reports.queries import QueryContext, get_report, list_reports
from retail_reports.store import TableStore
from retail_reports.validations import validate_report

logger = setup_logger("reports.runner")


@dataclass(frozen=True)
class ReportResult:
    """Ordered result table of one report run."""

    name: str
    columns: tuple
    rows: pd.DataFrame
    current_date: date

    def __len__(self) -> int:
        return len(self.rows)

    def records(self) -> list[dict[str, Any]]:
        """Rows as plain dicts; nulls become None."""
        frame = self.rows.astype(object).where(self.rows.notna(), None)
        return frame.to_dict(orient="records")

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "current_date": self.current_date.isoformat(),
            "columns": list(self.columns),
            "rows": self.records(),
        }


class ReportRunner:
    """
    Runs named reports against one TableStore snapshot.

    The evaluation date is fixed when the runner is created, so running the
    same report twice gives identical results.

    Example:
        runner = ReportRunner(store, current_date=date(2024, 6, 30))
        result = runner.run("stores_per_country")
    """

    def __init__(
        self,
        store: TableStore,
        current_date: Union[None, str, date, datetime] = None,
        config: Optional[dict] = None,
    ):
        self.store = store
        self.config = config if config is not None else load_config()

        if current_date is None:
            current_date = self.config.get("reference_date")
        self.current_date = resolve_reference_date(current_date)

        validation = self.config.get("validation", {})
        self.validate_outputs = validation.get("validate_outputs", True)
        self.context = QueryContext(
            current_date=self.current_date,
            settings=dict(self.config.get("reports", {})),
        )

    @classmethod
    def from_config(cls, config_path=None, current_date=None) -> "ReportRunner":
        """
        Build a store from the configured data directory and wrap it in a runner.

        Also applies `logging.level` to every "reports.*" logger. Log levels
        are process-wide, so this is the only place the runner touches them.
        """
        config = load_config(config_path)
        set_log_level(config.get("logging", {}).get("level", "INFO"))
        validation = config.get("validation", {})
        store = TableStore.from_csv_dir(
            config["data_dir"],
            dayfirst=config.get("dayfirst", False),
            validate=validation.get("validate_inputs", True),
            drop_invalid=validation.get("drop_invalid_rows", False),
        )
        return cls(store, current_date=current_date, config=config)

    def available_reports(self) -> list[str]:
        return list_reports()

    def run(self, name: str, **params) -> ReportResult:
        definition = get_report(name)
        logger.info(f"Running report '{name}' as of {self.current_date.isoformat()}")

        try:
            rows = definition.execute(self.store, self.context, **params)
        except ReportError:
            logger.error(f"Report '{name}' aborted")
            raise
        except Exception as e:
            logger.error(f"Unexpected error in report '{name}': {str(e)}", exc_info=True)
            raise ReportExecutionError(f"Report '{name}' failed: {str(e)}") from e

        if self.validate_outputs:
            rows = validate_report(name, rows)

        logger.info(f"Report '{name}' returned {len(rows)} rows")
        return ReportResult(name, definition.columns, rows, self.current_date)

    def run_all(self) -> dict[str, ReportResult]:
        return {name: self.run(name) for name in self.available_reports()}


def run_report(name: str, store: TableStore, current_date=None, config=None, **params) -> dict[str, Any]:
    """Run one report and return {"name", "current_date", "columns", "rows"}."""
    return ReportRunner(store, current_date=current_date, config=config).run(name, **params).to_dict()
