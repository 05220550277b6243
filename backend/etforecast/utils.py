"""
utils.py — Shared Utility Functions and Logging Setup
======================================================

Common helpers used across the forecasting modules.
"""

import logging
import numbers

import numpy as np
import pandas as pd

from . import config


def setup_logging(level: str = None) -> None:
    """
    Configure logging for the forecaster.

    Sets up a console handler with timestamp, logger name, level,
    and message. All etforecast.* loggers inherit this configuration.

    Args:
        level: Log level string (DEBUG/INFO/WARNING/ERROR/CRITICAL).
               Defaults to config.LOG_LEVEL.
    """
    level = level or config.LOG_LEVEL
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(name)s] %(levelname)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    pkg_logger = logging.getLogger("etforecast")
    pkg_logger.setLevel(numeric_level)

    # Avoid duplicate handlers on repeated calls
    if not pkg_logger.handlers:
        pkg_logger.addHandler(handler)


def parse_timestamps(values) -> pd.Series:
    """
    Parse reading timestamps to UTC, keeping the input index.

    Numbers are epoch milliseconds (the dashboard backend's Date.now()),
    everything else is parsed as ISO-8601.  Unparseable entries are NaT.
    """
    values = pd.Series(values)
    if values.empty:
        return pd.Series(dtype="datetime64[ns, UTC]")

    is_epoch = values.map(
        lambda v: isinstance(v, numbers.Real) and not isinstance(v, bool)
    ).astype(bool)

    parts = []
    if is_epoch.any():
        parts.append(pd.to_datetime(values[is_epoch].astype(np.float64),
                                    unit="ms", utc=True, errors="coerce"))
    if (~is_epoch).any():
        parts.append(pd.to_datetime(values[~is_epoch], errors="coerce",
                                    utc=True, format="ISO8601"))
    return pd.concat(parts).reindex(values.index)


def round_half_up(values, step: float = 1) -> np.ndarray:
    """
    Round to the nearest multiple of ``step``, halves going up.

    Matches the threshold grid of the dashboard (2.5 → 3, -2.5 → -2),
    which numpy's banker's rounding would not.
    """
    values = np.asarray(values, dtype=np.float64)
    return np.floor(values / step + 0.5) * step


def proxy_et(temperature, moisture):
    """Linear ET proxy: ET_TEMP_WEIGHT·T + ET_MOISTURE_WEIGHT·M (mm/day)."""
    return config.ET_TEMP_WEIGHT * temperature + config.ET_MOISTURE_WEIGHT * moisture


def safe_mean(values) -> float:
    """Mean of ``values``, or 0.0 for an empty sequence."""
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        return 0.0
    return float(values.mean())


def safe_mse(values) -> float:
    """Population variance around the mean, or 0.0 for an empty sequence."""
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        return 0.0
    return float(((values - values.mean()) ** 2).mean())
