"""
Missing Data Deck - Pytest Configuration
Shared fixtures and configuration for all tests
"""

import os
import sys
from pathlib import Path

os.environ.setdefault("TEST_MODE", "true")

import numpy as np
import pandas as pd
import pytest

# Add project root to path
ROOT_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT_DIR))

from config.settings import settings
from core.data_loader import clean_attrition, generate_attrition_sample


# ==================== DATA FIXTURES ====================

@pytest.fixture
def raw_attrition():
    """Raw IBM-style attrition table (CamelCase columns, coded satisfaction)"""
    return generate_attrition_sample(n_rows=400, random_state=7)


@pytest.fixture
def attrition_df(raw_attrition):
    """Cleaned attrition table"""
    return clean_attrition(raw_attrition)


@pytest.fixture
def analysis_df(attrition_df):
    """Numeric analysis columns only"""
    return attrition_df[["monthly_income", "total_working_years", "job_level", "age", "years_at_company"]].copy()


@pytest.fixture
def df_with_missing():
    """Small numeric DataFrame with known gaps"""
    return pd.DataFrame({
        "y": [1.0, 2.0, np.nan, 4.0, 5.0, np.nan, 7.0, 8.0, 9.0, 10.0],
        "x": [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0, 9.0, 10.0],
        "z": [2.0, np.nan, 1.0, 3.0, np.nan, 2.0, 4.0, 1.0, 3.0, 2.0],
    })


@pytest.fixture
def linear_df():
    """y = 2 + 3x + noise, with the top x values missing in y"""
    rng = np.random.default_rng(0)
    x = np.arange(60, dtype=float)
    y = 2.0 + 3.0 * x + rng.normal(0, 1.0, 60)
    y[[5, 17, 33, 48]] = np.nan
    return pd.DataFrame({"y": y, "x": x})


# ==================== FILE FIXTURES ====================

@pytest.fixture
def attrition_csv(tmp_path, raw_attrition):
    """Raw attrition sample written to CSV"""
    path = tmp_path / "attrition.csv"
    raw_attrition.to_csv(path, index=False)
    return path


# ==================== CONFIGURATION FIXTURES ====================

@pytest.fixture
def output_dir(tmp_path):
    """Temporary output directory for rendered decks"""
    out = tmp_path / "output"
    out.mkdir()
    return out


@pytest.fixture
def test_settings():
    """Settings in test mode, restored afterwards"""
    original_test_mode = settings.TEST_MODE
    settings.TEST_MODE = True

    yield settings

    settings.TEST_MODE = original_test_mode


# ==================== PYTEST CONFIGURATION ====================

def pytest_configure(config):
    """Configure pytest"""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
