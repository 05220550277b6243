"""
backend.etforecast — Evapotranspiration Forecasting for the Soil Dashboard
==========================================================================

This package implements the 10-day evapotranspiration (ET) forecast shown
on the soil monitoring dashboard.

Architecture:
    Soil nodes → Dashboard backend (reading history)
                        ↓
                 Python ET Forecaster:
                   1. Daily Aggregation (per-day means + proxy ET)
                   2. Stump Forest Training (stratified bootstrap)
                   3. Jittered Future Features
                   4. Ensemble Prediction
                        ↓
                 10-day forecast → Dashboard chart

Modules:
    config       — Model, forecast and service constants
    aggregation  — Reading history → daily samples, node filter
    tree         — Split rules, stratified bootstrap, stump fitting
    forest       — Stump forest regressor (training + prediction)
    forecast     — Forecast driver and retraining cadence
    analytics    — Today's ET estimate and 24-hour summary
    pipeline     — Backend payload connector, shared driver
    service      — Flask HTTP service
    train        — Offline forecast from a readings file
    utils        — Logging setup and numeric helpers
"""

__version__ = "1.0.0"
__author__ = "Soil Monitoring IoT Team"
