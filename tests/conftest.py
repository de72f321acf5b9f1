"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime

import pytest
from pathlib import Path

from app.schemas.prediction import PredictionInput
from services.cache import clear_adjustment_cache

# Project root for test data
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Start of the year: no time decay, inside the early period
YEAR_START = datetime(2025, 1, 1, 0, 0)


@pytest.fixture(autouse=True)
def _clear_caches():
    clear_adjustment_cache()
    yield
    clear_adjustment_cache()


@pytest.fixture
def year_start():
    return YEAR_START


@pytest.fixture
def manual_input():
    """35 seats, 245 applicants, 100 revealed, ranked 12th, manual weight 0.5."""
    return PredictionInput(
        quota=35,
        real_applicants=245,
        revealed_count=100,
        my_rank=12,
        manual_weight=0.5,
        additional_passes=15,
        analysis_timestamp=YEAR_START,
    )


@pytest.fixture
def auto_input():
    """Low-competition department on the automatic weight path."""
    return PredictionInput(
        quota=10,
        real_applicants=11,
        revealed_count=5,
        my_rank=3,
        analysis_timestamp=YEAR_START,
    )


@pytest.fixture
def request_payload():
    """JSON body for the prediction endpoint."""
    return {
        "quota": 35,
        "real_applicants": 245,
        "revealed_count": 100,
        "my_rank": 12,
        "manual_weight": 0.5,
        "additional_passes": 15,
        "analysis_timestamp": "2025-01-01T00:00:00",
    }
