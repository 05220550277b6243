"""
pipeline.py — Backend-to-Forecaster Connector
==============================================

Bridges the reading history polled by the dashboard backend to the
ForecastDriver and shapes the result for the chart components.

Flow:
    backend history arrives -> process_history() called
    -> readings normalized and filtered by node
    -> ForecastDriver retrains -> chart payload returned

    timer / GET request -> refresh() -> driver.tick()
    -> retrains hourly on the same history

One driver is shared per process (initialized on first call); cycles
run one at a time under a module lock, so concurrent requests of a
threaded server never interleave.
"""

import logging
import threading
from datetime import datetime

from . import config
from .aggregation import filter_by_node
from .forecast import ForecastDriver, to_chart_payload

logger = logging.getLogger("etforecast.pipeline")

_driver = None

# One forecast cycle at a time; the driver is not re-entrant
_lock = threading.Lock()

# Accepted spellings of each reading field, first match wins
_FIELD_ALIASES = {
    "timestamp": ("timestamp", "time", "createdAt"),
    "temperature": ("temperature", "temp"),
    "soilMoisture": ("soilMoisture", "soil_moisture", "moisture"),
    "node_id": ("node_id", "nodeId", "node"),
}


def get_driver() -> ForecastDriver:
    """Get or create the shared ForecastDriver."""
    global _driver
    if _driver is None:
        _driver = ForecastDriver()
    return _driver


def reset_driver(driver: ForecastDriver = None) -> None:
    """Replace the shared driver (a fresh one when None)."""
    global _driver
    _driver = driver


def normalize_reading(data: dict) -> dict:
    """
    Normalize a raw backend record to the reading format.

    Values are passed through untouched; numeric coercion happens
    during aggregation, where invalid values count as missing.

    Returns:
        Dict with keys: timestamp, temperature, soilMoisture, node_id.
    """
    reading = {}
    for field, aliases in _FIELD_ALIASES.items():
        reading[field] = next((data[a] for a in aliases if a in data), None)
    return reading


def _result(driver: ForecastDriver) -> dict:
    return {
        "forecast": to_chart_payload(driver.forecast),
        "samples": len(driver.samples),
        "trees": len(driver.model.estimators_) if driver.model is not None else 0,
        "last_run": driver.last_run.isoformat() if driver.last_run else None,
    }


def process_history(readings: list[dict], node: str = None,
                    now: datetime = None) -> dict:
    """
    Main entry point: retrain and forecast on a newly arrived history.

    Args:
        readings: Raw reading dicts from the backend.
        node: Node selection ("Node 3", "3", or config.ALL_NODES).
        now: Current time (defaults to UTC now).

    Returns:
        Dict with the chart payload, sample and stump counts.
    """
    records = [normalize_reading(r) for r in readings if isinstance(r, dict)]
    skipped = len(readings) - len(records)
    if skipped:
        logger.warning(f"Skipped {skipped} non-object history entries")

    history = filter_by_node(records, node)
    logger.info(f"History received: {len(records)} readings, "
                f"{len(history)} for {node or config.ALL_NODES}")

    with _lock:
        driver = get_driver()
        driver.update_history(history, now=now)
        return _result(driver)


def refresh(now: datetime = None) -> dict:
    """Periodic trigger: retrain on the current history when stale."""
    with _lock:
        driver = get_driver()
        driver.tick(now=now)
        return _result(driver)
