"""
analytics.py — Dashboard Summary Figures
=========================================

Small non-model figures shown next to the forecast:
    - today's ET estimate from the latest per-node readings
    - a 24-hour summary with trends against the previous 24 hours
"""

import logging
from datetime import datetime, timedelta, timezone

import pandas as pd

from . import config
from .utils import parse_timestamps, proxy_et

logger = logging.getLogger("etforecast.analytics")


def _to_float(value, default: float) -> float:
    if value is None:
        return default
    number = pd.to_numeric(value, errors="coerce")
    return default if pd.isna(number) else float(number)


def estimate_et(temperature=None, moisture=None) -> float:
    """
    Proxy ET (mm/day) for one temperature / moisture pair.

    Missing or non-numeric inputs fall back to the daily defaults.
    """
    t = _to_float(temperature, config.DEFAULT_TEMPERATURE)
    m = _to_float(moisture, config.DEFAULT_MOISTURE)
    return round(proxy_et(t, m), config.FORECAST_DECIMALS)


def today_et(node_stats: list[dict]) -> float:
    """
    ET estimate from the latest reading of each node, averaged over nodes.

    A node without a usable value contributes 0 to that sensor's mean,
    as the dashboard's node cards do.

    Args:
        node_stats: One dict per node with 'temperature' and 'soilMoisture'.
    """
    if not node_stats:
        return estimate_et()
    df = pd.DataFrame(node_stats)

    def _col_mean(col):
        if col not in df:
            return 0.0
        return float(pd.to_numeric(df[col], errors="coerce").fillna(0.0).mean())

    return estimate_et(_col_mean("temperature"), _col_mean("soilMoisture"))


def _trend(recent: float, older: float) -> float:
    if older == 0:
        return 0.0
    return round((recent - older) / older * 100, 1)


def recent_summary(readings, now: datetime = None) -> dict:
    """
    Summarize the last 24 hours of readings.

    Args:
        readings: Reading dicts with 'timestamp', 'temperature', 'soilMoisture'.
        now: Reference time.  Defaults to the current UTC time.

    Returns:
        Dict with total, avg_temperature, avg_moisture (2 decimals) and
        temperature_trend, moisture_trend (percent, 1 decimal).  Missing
        sensor values count as 0, and a trend is 0 when the previous
        window has no data.
    """
    readings = list(readings or [])
    summary = {
        "total": len(readings),
        "avg_temperature": 0.0,
        "avg_moisture": 0.0,
        "temperature_trend": 0.0,
        "moisture_trend": 0.0,
    }
    if not readings:
        return summary

    now = pd.Timestamp(now or datetime.now(timezone.utc))
    if now.tzinfo is None:
        now = now.tz_localize("UTC")
    window = timedelta(seconds=config.SUMMARY_WINDOW_SECONDS)
    day_ago = now - window

    df = pd.DataFrame(readings)
    if "timestamp" not in df:
        return summary
    ts = parse_timestamps(df["timestamp"])
    for col in ("temperature", "soilMoisture"):
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0) if col in df else 0.0

    recent = df[ts > day_ago]
    older = df[(ts <= day_ago) & (ts > day_ago - window)]

    def _avg(frame, col):
        return float(frame[col].mean()) if len(frame) else 0.0

    recent_t, older_t = _avg(recent, "temperature"), _avg(older, "temperature")
    recent_m, older_m = _avg(recent, "soilMoisture"), _avg(older, "soilMoisture")

    summary.update(
        avg_temperature=round(recent_t, 2),
        avg_moisture=round(recent_m, 2),
        temperature_trend=_trend(recent_t, older_t),
        moisture_trend=_trend(recent_m, older_m),
    )
    logger.debug(f"Recent summary: {summary}")
    return summary
