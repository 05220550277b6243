"""
config.py — Forecasting Engine Configuration Constants
=======================================================

Centralizes every knob of the evapotranspiration (ET) forecaster: the
ensemble size formula, the stratified bootstrap, the split-threshold
grids, the forecast noise and horizon, and the retraining cadence.

Soil nodes report:
- Soil temperature (°C)
- Soil moisture (%)
- Readings arrive at irregular intervals from the dashboard backend and
  are pooled across nodes before daily aggregation.
"""

import os

# ═══════════════════════════════════════════════════════════════════
# DAILY AGGREGATION
# ═══════════════════════════════════════════════════════════════════

# Fallback daily means when a day has no usable observation for a sensor.
DEFAULT_TEMPERATURE = 20.0
DEFAULT_MOISTURE = 50.0

# Proxy ET formula (mm/day): ET = 0.08·T + 0.03·M
# Stands in for a measured ET value until lysimeter data is available.
ET_TEMP_WEIGHT = 0.08
ET_MOISTURE_WEIGHT = 0.03

# Physically plausible ET range (humid → arid), used by the paired rule.
ET_MIN = 1.0
ET_MAX = 9.0

# ═══════════════════════════════════════════════════════════════════
# ENSEMBLE SIZE
# ═══════════════════════════════════════════════════════════════════

# Tree count = min(MAX_TREES, max(MIN_TREES, TREES_PER_SAMPLE × days))
MAX_TREES = 40
MIN_TREES = 1
TREES_PER_SAMPLE = 4

# ═══════════════════════════════════════════════════════════════════
# TREE FITTING
# ═══════════════════════════════════════════════════════════════════

# Number of contiguous strata for the stratified bootstrap.
NUM_STRATA = 5

# Threshold grid steps: temperature rounded to 1 °C, moisture to 5 %.
TEMP_THRESHOLD_STEP = 1
MOISTURE_THRESHOLD_STEP = 5

# Worker processes for fitting trees (1 = sequential).
N_JOBS = int(os.environ.get("ETF_N_JOBS", "1"))

# Seed for reproducible training / forecasts. Unset = fresh entropy.
_seed = os.environ.get("ETF_RANDOM_STATE")
RANDOM_STATE = int(_seed) if _seed else None

# ═══════════════════════════════════════════════════════════════════
# FORECAST
# ═══════════════════════════════════════════════════════════════════

# Days projected past the last known day.
FORECAST_HORIZON_DAYS = 10

# Half-widths of the uniform noise applied to the last known features.
TEMP_NOISE = 1.0
MOISTURE_NOISE = 2.0

# Feature vector used when there is no history at all.
FALLBACK_FEATURES = (25.0, 50.0)

# Decimals kept on each predicted value.
FORECAST_DECIMALS = 3

# Retrain even with unchanged history after this many seconds (1 hour),
# so the bootstrap and noise are re-sampled.
RETRAIN_INTERVAL_SECONDS = 60 * 60

# ═══════════════════════════════════════════════════════════════════
# NODE SELECTION / ANALYTICS
# ═══════════════════════════════════════════════════════════════════

# Selection label meaning "pool every node".
ALL_NODES = "All Nodes"

# Window used by the recent summary (24 hours).
SUMMARY_WINDOW_SECONDS = 24 * 60 * 60

# ═══════════════════════════════════════════════════════════════════
# SERVICE / LOGGING
# ═══════════════════════════════════════════════════════════════════

SERVICE_PORT = int(os.environ.get("ETF_SERVICE_PORT", "5050"))

# Log level for the forecaster (DEBUG, INFO, WARNING, ERROR, CRITICAL)
LOG_LEVEL = os.environ.get("ETF_LOG_LEVEL", "INFO")

# Feature order of every sample / query vector
FEATURE_NAMES = [
    "temperature",
    "moisture",
]
