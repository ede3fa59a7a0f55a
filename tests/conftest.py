"""Shared fixtures for the customer insights test suite."""
import numpy as np
import pytest

from agents.insights_config import InsightsConfig
from agents.sample_data import generate_sample_table
from agents.table import Table


INSIGHTS_ENV_VARS = (
    "INSIGHTS_MAX_CLUSTERS",
    "INSIGHTS_MAX_ITERATIONS",
    "INSIGHTS_NUMERIC_SAMPLE_SIZE",
    "INSIGHTS_TREND_MONTHS",
    "INSIGHTS_CUSTOMER_RECORDS_LIMIT",
    "INSIGHTS_RANDOM_SEED",
    "INSIGHTS_SYNTHETIC_PLACEHOLDERS",
    "INSIGHTS_SEGMENTATION_STRATEGY",
)


@pytest.fixture(autouse=True)
def clean_insights_env(monkeypatch):
    """Keep developer environment variables from leaking into configs built by tests."""
    for name in INSIGHTS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def config():
    return InsightsConfig(random_seed=42)


@pytest.fixture
def scenario_table():
    """Three customers, one with a non-numeric amount."""
    return Table.from_records([
        {"email": "ana@example.com", "total_spent": "100", "signup_date": "2024-01-15"},
        {"email": "ben@example.com", "total_spent": "abc", "signup_date": "2024-02-03"},
        {"email": "cho@example.com", "total_spent": "250.5", "signup_date": "2024-02-20"},
    ])


@pytest.fixture
def sample_table():
    """The 250-row demo dataset, seeded."""
    return generate_sample_table(np.random.default_rng(7))
