"""
forecast.py — Ten-Day ET Forecast Driver
=========================================

Runs one full forecasting cycle per trigger:
    history -> daily samples -> stump forest -> jittered future features
            -> predicted ET per day

Triggers:
    - update_history(): a new history object arrived from the backend.
    - tick(): periodic check; retrains once RETRAIN_INTERVAL_SECONDS have
      passed even if the history is unchanged, so the bootstrap and
      forecast noise are re-sampled.

Every cycle starts from scratch: the samples and the forest of the
previous cycle are replaced, never updated.  The driver is meant to be
called from a single thread.

Forecast features:
    Day i (1..horizon) uses the last known daily means plus independent
    uniform noise of ±TEMP_NOISE °C and ±MOISTURE_NOISE %.  The noise is
    always applied to the same base vector, so the forecast jitters
    around the last observed conditions instead of drifting.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import NamedTuple, Optional

import numpy as np
from sklearn.utils import check_random_state

from . import config
from .aggregation import DailySample, aggregate_daily, samples_to_arrays
from .forest import StumpForestRegressor, tree_count

logger = logging.getLogger("etforecast.forecast")


class ForecastPoint(NamedTuple):
    """Predicted ET (mm/day) for one future day."""

    day: date
    et: float

    @property
    def label(self) -> str:
        return self.day.isoformat()


def to_chart_payload(points: list[ForecastPoint]) -> dict:
    """Labels + values form consumed by the dashboard charts."""
    return {
        "labels": [p.label for p in points],
        "values": [p.et for p in points],
    }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ForecastDriver:
    """
    Retrains the stump forest and regenerates the ET forecast on demand.

    Usage:
        driver = ForecastDriver(random_state=42)
        driver.update_history(readings)
        driver.forecast    # list[ForecastPoint]
        driver.tick()      # call periodically

    Attributes:
        samples (list[DailySample]): Daily samples of the last cycle.
        model (StumpForestRegressor | None): Forest of the last cycle.
        forecast (list[ForecastPoint]): Output of the last cycle.
        last_run (datetime | None): When the last cycle ran.
    """

    def __init__(self, horizon: int = None, temp_noise: float = None,
                 moisture_noise: float = None, retrain_interval: float = None,
                 n_jobs: int = None, random_state=None):
        self.horizon = horizon or config.FORECAST_HORIZON_DAYS
        self.temp_noise = temp_noise if temp_noise is not None else config.TEMP_NOISE
        self.moisture_noise = (moisture_noise if moisture_noise is not None
                               else config.MOISTURE_NOISE)
        self.retrain_interval = retrain_interval or config.RETRAIN_INTERVAL_SECONDS
        self.n_jobs = n_jobs
        seed = random_state if random_state is not None else config.RANDOM_STATE
        # Own stream when unseeded, never numpy's global one
        self.rng = check_random_state(seed) if seed is not None else np.random.RandomState()

        self._history = None
        self.samples: list[DailySample] = []
        self.model: Optional[StumpForestRegressor] = None
        self.forecast: list[ForecastPoint] = []
        self.last_run: Optional[datetime] = None

    # ── Triggers ──────────────────────────────────────────────────

    def update_history(self, readings, now: datetime = None) -> bool:
        """
        Retrain if ``readings`` is a different history object than last time.

        Returns:
            True if a cycle ran.
        """
        if readings is self._history and self.last_run is not None:
            return False
        self._history = readings
        self.run(readings, now=now)
        return True

    def is_stale(self, now: datetime = None) -> bool:
        """Whether the retrain interval has elapsed since the last cycle."""
        if self.last_run is None:
            return True
        now = now or _utcnow()
        return (now - self.last_run).total_seconds() >= self.retrain_interval

    def tick(self, now: datetime = None) -> bool:
        """
        Periodic trigger: rerun on the current history when stale.

        Returns:
            True if a cycle ran.
        """
        if not self.is_stale(now):
            return False
        logger.info("Periodic forecast refresh")
        self.run(self._history or [], now=now)
        return True

    # ── Cycle ─────────────────────────────────────────────────────

    def run(self, readings, now: datetime = None) -> list[ForecastPoint]:
        """
        Aggregate, train and forecast from scratch.

        Args:
            readings: Reading history (see aggregation.aggregate_daily).
            now: Current time; its date anchors the forecast when there
                is no history.  Defaults to the current UTC time.

        Returns:
            The new forecast (also stored on self.forecast).
        """
        now = now or _utcnow()

        samples = aggregate_daily(readings)
        X, y = samples_to_arrays(samples)
        model = StumpForestRegressor(
            n_estimators=tree_count(len(samples)),
            n_jobs=self.n_jobs,
            random_state=self.rng,
        ).fit(X, y)

        if samples:
            base_temp, base_moist = samples[-1].features
            start = samples[-1].day
        else:
            base_temp, base_moist = config.FALLBACK_FEATURES
            start = now.date()

        points = []
        for i in range(1, self.horizon + 1):
            temp = base_temp + self.rng.uniform(-self.temp_noise, self.temp_noise)
            moist = base_moist + self.rng.uniform(-self.moisture_noise, self.moisture_noise)
            pred = model.predict_one(temp, moist)
            points.append(ForecastPoint(start + timedelta(days=i),
                                        round(pred, config.FORECAST_DECIMALS)))

        self.samples = samples
        self.model = model
        self.forecast = points
        self.last_run = now

        logger.info(
            f"Forecast cycle: {len(samples)} days, {len(model.estimators_)} stumps, "
            f"{points[0].label} → {points[-1].label}"
        )
        logger.debug(f"Forecast values: {[p.et for p in points]}")
        return points
