"""
train.py — Offline Training and Forecast from a Readings File
==============================================================

Loads a reading history exported from the dashboard backend, runs one
forecasting cycle and prints the forecast as JSON.

This script can be run standalone:
    python -m backend.etforecast.train history.json --node "Node 2" --seed 42

Or called programmatically:
    from backend.etforecast.train import forecast_from_file
    forecast_from_file("history.csv")

Accepted files:
    .json — list of reading objects (or {"readings": [...]})
    .csv  — one reading per row, columns named like the reading fields
"""

import argparse
import json
import logging
import os
import sys

import pandas as pd

from .aggregation import filter_by_node
from .forecast import ForecastDriver, to_chart_payload
from .pipeline import normalize_reading
from .utils import setup_logging

logger = logging.getLogger("etforecast.train")


def load_readings(path: str) -> list[dict]:
    """
    Read a history file into reading dicts.

    Raises:
        ValueError: For an unsupported file extension.
    """
    ext = os.path.splitext(path)[1].lower()
    if ext == ".csv":
        records = pd.read_csv(path, dtype={"node_id": str}).to_dict("records")
    elif ext == ".json":
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
        records = data.get("readings", []) if isinstance(data, dict) else data
    else:
        raise ValueError(f"Unsupported history file type: {ext or path}")

    readings = [normalize_reading(r) for r in records if isinstance(r, dict)]
    logger.info(f"Loaded {len(readings)} readings from {path}")
    return readings


def forecast_from_file(path: str, node: str = None,
                       random_state=None) -> dict:
    """
    Complete offline cycle: load -> filter -> aggregate -> train -> forecast.

    Returns:
        Chart payload plus the daily samples and stumps used.
    """
    readings = filter_by_node(load_readings(path), node)

    driver = ForecastDriver(random_state=random_state)
    points = driver.run(readings)

    logger.info("=" * 60)
    logger.info(f"Days aggregated:  {len(driver.samples)}")
    logger.info(f"Stumps accepted:  {len(driver.model.estimators_)}")
    for p in points:
        logger.info(f"  {p.label}  ET={p.et:.3f} mm/day")
    logger.info("=" * 60)

    return {
        **to_chart_payload(points),
        "samples": [
            {"day": s.day.isoformat(), "temperature": s.temperature,
             "moisture": s.moisture, "target": s.target}
            for s in driver.samples
        ],
        "trees": [repr(rule) for rule in driver.model.estimators_],
    }


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Train the ET forecaster on a readings file")
    parser.add_argument("path", help="History file (.json or .csv)")
    parser.add_argument("--node", default=None, help='Node selection, e.g. "Node 2"')
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    try:
        result = forecast_from_file(args.path, node=args.node, random_state=args.seed)
    except (OSError, ValueError) as e:
        logger.error(f"Cannot forecast from {args.path}: {e}")
        return 1

    print(json.dumps(result, indent=2))
    return 0


# ── CLI entry point ──────────────────────────────────────────────
if __name__ == "__main__":
    sys.exit(main())
