"""
aggregation.py — Daily Sample Aggregation
==========================================

Turns the raw, irregular reading history of the soil nodes into one
training sample per calendar day.

Input (per reading):
    timestamp     — ISO-8601 string, datetime, or epoch milliseconds
    temperature   — Soil temperature in °C
    soilMoisture  — Soil moisture in %
    node_id       — Identifier of the reporting node

Output (per UTC calendar day, ascending):
    temperature   — Mean of the day's temperature readings (20.0 if none)
    moisture      — Mean of the day's moisture readings (50.0 if none)
    target        — Proxy ET: 0.08·temperature + 0.03·moisture

All nodes are pooled. Readings whose timestamp cannot be parsed are
dropped; non-numeric sensor values count as missing so the daily
defaults still apply.
"""

import logging
from datetime import date
from typing import NamedTuple, Optional

import numpy as np
import pandas as pd

from . import config
from .utils import parse_timestamps, proxy_et

logger = logging.getLogger("etforecast.aggregation")


class DailySample(NamedTuple):
    """One day of pooled readings and its proxy ET target."""

    day: date
    temperature: float
    moisture: float
    target: float

    @property
    def features(self) -> tuple:
        return (self.temperature, self.moisture)


def _numeric_column(df: pd.DataFrame, column: str) -> pd.Series:
    """Coerce a sensor column to float; absent or invalid values become NaN."""
    if column not in df.columns:
        return pd.Series(np.nan, index=df.index, dtype=np.float64)
    values = pd.to_numeric(df[column], errors="coerce").astype(np.float64)
    invalid = int((values.isna() & df[column].notna()).sum())
    if invalid:
        logger.warning(f"{invalid} non-numeric '{column}' values treated as missing")
    return values


def aggregate_daily(readings) -> list[DailySample]:
    """
    Aggregate a reading history into ascending daily samples.

    Args:
        readings: Iterable of reading dicts (or a DataFrame) with a
            'timestamp' and optional 'temperature' / 'soilMoisture'.

    Returns:
        List of DailySample, one per distinct day, oldest first.
        Empty when no reading carries a usable timestamp.
    """
    df = readings if isinstance(readings, pd.DataFrame) else pd.DataFrame(list(readings or []))
    if df.empty or "timestamp" not in df.columns:
        return []

    timestamps = parse_timestamps(df["timestamp"])
    valid = timestamps.notna()
    dropped = int((~valid).sum())
    if dropped:
        logger.warning(f"Dropped {dropped} readings with unparseable timestamps")
    if not valid.any():
        return []

    frame = pd.DataFrame({
        "day": timestamps[valid].dt.date,
        "temperature": _numeric_column(df, "temperature")[valid],
        "moisture": _numeric_column(df, "soilMoisture")[valid],
    })

    # NaN-skipping means; a day with no observation of a sensor stays NaN
    daily = (
        frame.groupby("day", sort=True)
        .agg(temperature=("temperature", "mean"), moisture=("moisture", "mean"))
        .fillna({"temperature": config.DEFAULT_TEMPERATURE,
                 "moisture": config.DEFAULT_MOISTURE})
    )
    daily["target"] = proxy_et(daily["temperature"], daily["moisture"])

    samples = [
        DailySample(day, float(row.temperature), float(row.moisture), float(row.target))
        for day, row in daily.iterrows()
    ]
    logger.debug(f"Aggregated {int(valid.sum())} readings into {len(samples)} daily samples")
    return samples


def samples_to_arrays(samples: list[DailySample]) -> tuple:
    """
    Split daily samples into a feature matrix and a target vector.

    Returns:
        (X, y) with X of shape (n_days, 2) ordered as config.FEATURE_NAMES.
    """
    X = np.array([s.features for s in samples], dtype=np.float64).reshape(-1, 2)
    y = np.array([s.target for s in samples], dtype=np.float64)
    return X, y


def _node_key(node_id) -> str:
    """Text form of a node id; integral floats (1.0 from CSV) read as "1"."""
    if isinstance(node_id, float) and node_id.is_integer():
        return str(int(node_id))
    return str(node_id)


def filter_by_node(readings, node: Optional[str] = None) -> list[dict]:
    """
    Restrict readings to one node.

    ``node`` may be a raw node id ("3") or a selector label ("Node 3").
    None or config.ALL_NODES keeps every reading.
    """
    readings = list(readings or [])
    if node is None or node == config.ALL_NODES:
        return readings
    wanted = str(node)
    return [
        r for r in readings
        if wanted in (_node_key(r.get("node_id")), f"Node {_node_key(r.get('node_id'))}")
    ]
