import logging
import sys


def setup_logger(name: str = "reports") -> logging.Logger:
    """
    Configure and return a logger instance for report execution.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        logger.addHandler(handler)

    return logger


def set_log_level(level: str) -> None:
    """Apply a level name (e.g. "DEBUG") to every logger under "reports"."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level}")

    for name in list(logging.root.manager.loggerDict):
        if name == "reports" or name.startswith("reports."):
            logging.getLogger(name).setLevel(numeric)
