import copy
import os
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from retail_reports.logger import setup_logger

logger = setup_logger("reports.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"
CONFIG_ENV_VAR = "RETAIL_REPORTS_CONFIG"


def _deep_merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_yaml(path: Path) -> dict:
    with open(path) as f:
        content = yaml.safe_load(f)
    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(content).__name__}")
    return content


def load_config(path: Optional[Union[str, Path]] = None) -> dict[str, Any]:
    """
    Load report configuration.

    The packaged config.yaml provides every default. A file given as `path`,
    or named by the RETAIL_REPORTS_CONFIG environment variable, is merged on
    top of it so it only needs the keys it changes.
    """
    config = _read_yaml(DEFAULT_CONFIG_PATH)

    override_path = path or os.environ.get(CONFIG_ENV_VAR)
    if override_path:
        override_path = Path(override_path)
        if not override_path.exists():
            raise FileNotFoundError(f"Config file not found: {override_path}")
        logger.info(f"Loading config overrides from {override_path}")
        config = _deep_merge(config, _read_yaml(override_path))

    return config


def resolve_reference_date(value: Union[None, str, date, datetime]) -> date:
    """Turn a configured reference date into a date; None means today."""
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value), "%Y-%m-%d").date()
    except ValueError as e:
        raise ValueError(f"reference_date must be YYYY-MM-DD, got '{value}'") from e
