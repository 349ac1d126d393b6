"""Shared fixtures for Increment tests."""

import json

import pytest

from increment.config import IncrementConfig, set_config


MMM_ROWS = [
    {"date": "W1", "baseline": 100, "Paid Search": 20, "Youtube": 5, "unattributed": 3},
    {"date": "W2", "baseline": 110, "Paid Search": 30, "Youtube": 7, "unattributed": 4},
]

ATTRIBUTION_CSV = "date,Paid Search,Youtube\nW1,35,0\nW2,45,0\n"

SPEND_CSV = (
    "Channels,Total Spend ($),Total Revenue  ($),Total ROI (%)\n"
    "Total,500,600,20\n"
    "paidsearch,100,150,50\n"
    "YouTube,40,30,-25\n"
)


@pytest.fixture(autouse=True)
def default_config():
    """Every test starts from the default configuration."""
    set_config(IncrementConfig())
    yield
    set_config(IncrementConfig())


@pytest.fixture
def mmm_json():
    return json.dumps(MMM_ROWS)


@pytest.fixture
def attribution_csv():
    return ATTRIBUTION_CSV


@pytest.fixture
def spend_csv():
    return SPEND_CSV


@pytest.fixture
def weekly_series():
    """60 weekly rows, W1..W60."""
    return [{"date": f"W{i}", "ChA": i} for i in range(1, 61)]
