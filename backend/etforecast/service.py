"""
service.py — ET Forecast Microservice (Flask)
==============================================

Lightweight HTTP service that exposes the forecaster to the dashboard.
The dashboard backend posts the reading history whenever it changes and
the chart polls the current forecast.

Endpoints:
    POST /forecast   — Retrain on a history and return the forecast
    GET  /forecast   — Current forecast (retrained hourly)
    POST /summary    — Today's ET estimate and 24-hour summary
    GET  /health     — Service health check

Run:
    python -m backend.etforecast.service
    # Starts on port 5050 by default (configurable via ETF_SERVICE_PORT env var)
"""

import logging

from flask import Flask, request, jsonify

from . import config
from .analytics import recent_summary, today_et
from .pipeline import process_history, refresh
from .utils import setup_logging

setup_logging()

logger = logging.getLogger("etforecast.service")
app = Flask(__name__)


def _json_body():
    data = request.get_json(force=True, silent=True)
    if isinstance(data, list):
        data = {"readings": data}
    return data if isinstance(data, dict) else None


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "OK",
        "service": "Soil ET Forecaster",
    })


@app.route("/forecast", methods=["POST"])
def forecast():
    """
    Retrain on a reading history and return the 10-day forecast.

    Expects JSON body:
        { "readings": [ {timestamp, temperature, soilMoisture, node_id}, ... ],
          "node": "Node 1" }
    or the bare list of readings.
    """
    data = _json_body()
    if data is None or not isinstance(data.get("readings"), list):
        return jsonify({"error": "JSON body with a 'readings' list required"}), 400

    try:
        result = process_history(data["readings"], node=data.get("node"))
    except Exception as e:
        logger.error(f"Forecast error: {e}", exc_info=True)
        return jsonify({"status": "error", "message": str(e)}), 500

    return jsonify({"status": "processed", **result})


@app.route("/forecast", methods=["GET"])
def current_forecast():
    """Return the current forecast, retraining first if it is stale."""
    try:
        result = refresh()
    except Exception as e:
        logger.error(f"Refresh error: {e}", exc_info=True)
        return jsonify({"status": "error", "message": str(e)}), 500
    return jsonify({"status": "ok", **result})


@app.route("/summary", methods=["POST"])
def summary():
    """
    Dashboard summary figures.

    Expects JSON body:
        { "readings": [...], "nodeStats": [ {temperature, soilMoisture}, ... ] }
    """
    data = _json_body()
    if data is None:
        return jsonify({"error": "No JSON body provided"}), 400

    node_stats = data.get("nodeStats") or []
    readings = data.get("readings") or []
    if not isinstance(node_stats, list) or not isinstance(readings, list):
        return jsonify({"error": "'nodeStats' and 'readings' must be lists"}), 400

    try:
        result = {"et_today": today_et(node_stats), **recent_summary(readings)}
    except Exception as e:
        logger.error(f"Summary error: {e}", exc_info=True)
        return jsonify({"status": "error", "message": str(e)}), 500

    return jsonify(result)


if __name__ == "__main__":
    logger.info(f"Starting ET forecast service on port {config.SERVICE_PORT}")
    app.run(host="0.0.0.0", port=config.SERVICE_PORT, debug=False)
