"""
Pytest configuration and fixtures for report tests.

This file is automatically discovered by pytest and provides
shared fixtures and configuration for all test modules.
"""

import pytest
import pandas as pd
import sys
from datetime import date
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from retail_reports.config import load_config
from retail_reports.runner import ReportRunner
from retail_reports.store import TableStore


REFERENCE_DATE = date(2024, 6, 30)


@pytest.fixture(scope="session")
def reference_date():
    """Fixed evaluation date so relative-date reports are deterministic."""
    return REFERENCE_DATE


@pytest.fixture
def sample_tables():
    """
    A small copy of the retail dataset.

    Four stores in three countries, four products in three categories,
    nine sales between 2020 and 2024 and six warranty claims. Store ST-4
    never had a claim.
    """
    return {
        "stores": pd.DataFrame({
            "store_id": ["ST-1", "ST-2", "ST-3", "ST-4"],
            "store_name": ["Apple Fifth Avenue", "Apple Union Square", "Apple Regent Street", "Apple Ginza"],
            "city": ["New York", "San Francisco", "London", "Tokyo"],
            "country": ["United States", "United States", "United Kingdom", "Japan"],
        }),
        "category": pd.DataFrame({
            "category_id": ["CAT-1", "CAT-2", "CAT-3"],
            "category_name": ["Smartphone", "Laptop", "Accessories"],
        }),
        "products": pd.DataFrame({
            "product_id": ["P-1", "P-2", "P-3", "P-4"],
            "product_name": ["iPhone 15", "MacBook Pro", "AirPods", "iPhone 12"],
            "category_id": ["CAT-1", "CAT-2", "CAT-3", "CAT-1"],
            "launch_date": ["2023-09-22", "2021-10-26", "2022-09-23", "2020-10-23"],
            "price": [999.0, 1999.0, 249.0, 799.0],
        }),
        "sales": pd.DataFrame({
            "sale_id": ["S-1", "S-2", "S-3", "S-4", "S-5", "S-6", "S-7", "S-8", "S-9"],
            "sale_date": [
                "2023-01-01", "2023-12-05", "2023-12-20", "2024-02-10", "2024-03-15",
                "2022-05-01", "2022-11-11", "2024-05-01", "2020-11-15",
            ],
            "store_id": ["ST-1", "ST-1", "ST-2", "ST-3", "ST-3", "ST-1", "ST-2", "ST-4", "ST-2"],
            "product_id": ["P-3", "P-1", "P-2", "P-1", "P-3", "P-4", "P-4", "P-3", "P-4"],
            "quantity": [2, 3, 1, 5, 1, 4, 2, 7, 1],
        }),
        "warranty": pd.DataFrame({
            "claim_id": ["C-1", "C-2", "C-3", "C-4", "C-5", "C-6"],
            "claim_date": ["2023-06-01", "2024-01-10", "2024-06-01", "2024-03-01", "2022-12-01", "2020-12-20"],
            "sale_id": ["S-1", "S-2", "S-3", "S-4", "S-6", "S-9"],
            "repair_status": [
                "Paid Repaired", "Warranty Void", "Paid Repaired", "Pending", "Paid Repaired", "Warranty Void",
            ],
        }),
    }


@pytest.fixture
def store(sample_tables):
    """Validated table store over the sample tables."""
    return TableStore(sample_tables, validate=True)


@pytest.fixture
def config():
    """Packaged default configuration."""
    return load_config()


@pytest.fixture
def runner(store, reference_date, config):
    return ReportRunner(store, current_date=reference_date, config=config)
