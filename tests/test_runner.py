"""
Tests for the report runner and configuration loading.
"""

import logging
import pytest
import pandas as pd
from datetime import date
from pathlib import Path
import sys

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from retail_reports.config import CONFIG_ENV_VAR, load_config, resolve_reference_date
from retail_reports.exceptions import ReportExecutionError, UnknownReportError
from retail_reports.logger import set_log_level
from retail_reports.queries import registry
from retail_reports.runner import ReportRunner, run_report


class TestReportRunner:
    """Test suite for ReportRunner."""

    def test_available_reports(self, runner):
        names = runner.available_reports()
        assert "stores_per_country" in names
        assert "product_lifecycle_sales" in names

    def test_unknown_report_raises(self, runner):
        with pytest.raises(UnknownReportError):
            runner.run("revenue_per_planet")

    def test_runs_are_idempotent(self, runner):
        """Test that two runs over the same snapshot and date are identical."""
        for name in ("yearly_growth_per_store", "monthly_running_total_per_store", "best_day_per_store"):
            first = runner.run(name)
            second = runner.run(name)
            pd.testing.assert_frame_equal(first.rows, second.rows)
            assert first.to_dict() == second.to_dict()

    def test_reference_date_drives_relative_filters(self, store, config):
        """Test that moving the evaluation date moves the one-year window."""
        early = ReportRunner(store, current_date=date(2023, 1, 15), config=config)
        result = early.run("top_store_last_year")
        # Sales between 2022-01-15 and 2023-01-15: S-1, S-6, S-7
        assert list(result.rows["store_id"]) == ["ST-1"]
        assert result.rows.iloc[0]["total_units_sold"] == 6

    def test_reference_date_from_config(self, store, config):
        config["reference_date"] = "2024-06-30"
        runner = ReportRunner(store, config=config)
        assert runner.current_date == date(2024, 6, 30)

    def test_report_settings_from_config(self, store, reference_date, config):
        """Test that report defaults come from the config."""
        config["reports"]["claim_window_days"] = 35
        runner = ReportRunner(store, current_date=reference_date, config=config)
        assert runner.run("claims_within_window").rows.iloc[0]["total_claims"] == 2

    def test_result_to_dict(self, runner):
        """Test the {columns, rows} adapter format."""
        payload = runner.run("stores_per_country").to_dict()
        assert payload["columns"] == ["country", "total_stores"]
        assert payload["rows"][0] == {"country": "United States", "total_stores": 2}
        assert payload["current_date"] == "2024-06-30"

    def test_records_turn_nulls_into_none(self, runner):
        result = runner.run("stores_per_country")
        result.rows.loc[0, "country"] = None
        assert result.records()[0]["country"] is None

    def test_run_report_adapter(self, store, reference_date, config):
        payload = run_report("claims_in_year", store, current_date=reference_date, config=config, year=2023)
        assert payload["rows"] == [{"year": 2023, "total_claims": 1}]

    def test_run_all(self, runner):
        results = runner.run_all()
        assert set(results) == set(runner.available_reports())

    def test_unexpected_errors_are_wrapped(self, runner, monkeypatch):
        """Test that a failing report surfaces as ReportExecutionError."""
        def broken(store, ctx):
            raise ZeroDivisionError("boom")

        definition = registry.REPORTS["stores_per_country"]
        monkeypatch.setitem(
            registry.REPORTS,
            "stores_per_country",
            registry.ReportDefinition(definition.name, broken, definition.columns),
        )
        with pytest.raises(ReportExecutionError) as exc_info:
            runner.run("stores_per_country")
        assert isinstance(exc_info.value.__cause__, ZeroDivisionError)

    def test_from_config_loads_csv_directory(self, sample_tables, tmp_path, reference_date):
        """Test building a runner end to end from a config file."""
        data_dir = tmp_path / "data"
        data_dir.mkdir()
        for name, df in sample_tables.items():
            df.to_csv(data_dir / f"{name}.csv", index=False)
        config_path = tmp_path / "config.yaml"
        config_path.write_text(f"data_dir: {data_dir}\ndayfirst: false\n")

        runner = ReportRunner.from_config(config_path, current_date=reference_date)
        assert runner.run("stores_without_claims").rows.iloc[0]["stores_without_claims"] == 1

    def test_constructing_runner_leaves_log_levels_alone(self, store, reference_date, config):
        """Test that a second runner with another level does not change logging for the first."""
        runner_logger = logging.getLogger("reports.runner")
        previous = runner_logger.level
        config["logging"]["level"] = "ERROR"
        try:
            ReportRunner(store, current_date=reference_date, config=config)
            assert runner_logger.level == previous
        finally:
            runner_logger.setLevel(previous)

    def test_from_config_applies_log_level(self, sample_tables, tmp_path, reference_date):
        """Test that the configured level reaches every reports logger."""
        data_dir = tmp_path / "data"
        data_dir.mkdir()
        for name, df in sample_tables.items():
            df.to_csv(data_dir / f"{name}.csv", index=False)
        config_path = tmp_path / "config.yaml"
        config_path.write_text(f"data_dir: {data_dir}\ndayfirst: false\nlogging:\n  level: WARNING\n")

        try:
            ReportRunner.from_config(config_path, current_date=reference_date)
            assert logging.getLogger("reports.runner").level == logging.WARNING
            assert logging.getLogger("reports.store").level == logging.WARNING
        finally:
            set_log_level("INFO")

class TestConfig:
    """Test suite for configuration loading."""

    def test_defaults_loaded(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        config = load_config()
        assert config["reports"]["claim_window_days"] == 180
        assert config["reports"]["price_segments"] == {"low": 500, "high": 1000}
        assert config["validation"]["validate_outputs"] is True

    def test_override_file_merges(self, tmp_path):
        """Test that an override only replaces the keys it names."""
        path = tmp_path / "override.yaml"
        path.write_text("reports:\n  claim_window_days: 90\n")
        config = load_config(path)
        assert config["reports"]["claim_window_days"] == 90
        assert config["reports"]["claims_year"] == 2020

    def test_env_var_override(self, tmp_path, monkeypatch):
        path = tmp_path / "env.yaml"
        path.write_text("reference_date: '2023-01-01'\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert load_config()["reference_date"] == "2023-01-01"

    def test_missing_override_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_non_mapping_config_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            load_config(path)

    def test_resolve_reference_date(self):
        assert resolve_reference_date("2024-02-29") == date(2024, 2, 29)
        assert resolve_reference_date(date(2024, 1, 1)) == date(2024, 1, 1)
        assert resolve_reference_date(None) == date.today()
        with pytest.raises(ValueError):
            resolve_reference_date("29/02/2024")
