"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- Reading factories and sample histories
- A fixed reference clock
- A seeded shared driver for pipeline / service tests
"""
from datetime import datetime, timezone

import pytest

from backend.etforecast.forecast import ForecastDriver
from backend.etforecast.pipeline import reset_driver


# ============================================================
# Reading Fixtures
# ============================================================

def make_reading(timestamp, temperature=None, moisture=None, node_id=1) -> dict:
    reading = {"timestamp": timestamp, "node_id": node_id}
    if temperature is not None:
        reading["temperature"] = temperature
    if moisture is not None:
        reading["soilMoisture"] = moisture
    return reading


@pytest.fixture
def single_day_history() -> list[dict]:
    """Three readings on 2024-01-01 averaging to (22, 50)."""
    return [
        make_reading("2024-01-01T06:00:00Z", 20, 40),
        make_reading("2024-01-01T12:00:00Z", 22, 50),
        make_reading("2024-01-01T18:00:00Z", 24, 60),
    ]


@pytest.fixture
def two_day_history() -> list[dict]:
    """A cool dry day followed by a warm wet day."""
    return [
        make_reading("2024-05-01T08:00:00Z", 10, 20),
        make_reading("2024-05-02T08:00:00Z", 30, 60),
    ]


@pytest.fixture
def multi_node_history() -> list[dict]:
    """Two nodes reporting over a week with a warming trend."""
    readings = []
    for day in range(1, 8):
        for hour in (6, 14, 22):
            readings.append(make_reading(
                f"2024-06-{day:02d}T{hour:02d}:00:00Z",
                15 + day + hour / 10, 30 + 3 * day, node_id=1,
            ))
        readings.append(make_reading(
            f"2024-06-{day:02d}T12:00:00Z", 25 - day, 70 - 2 * day, node_id=2,
        ))
    return readings


# ============================================================
# Clock / Driver Fixtures
# ============================================================

@pytest.fixture
def now() -> datetime:
    return datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def seeded_driver():
    """Install a seeded shared driver and restore a fresh one afterwards."""
    driver = ForecastDriver(random_state=0)
    reset_driver(driver)
    yield driver
    reset_driver(None)
