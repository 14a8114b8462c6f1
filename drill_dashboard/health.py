# drill_dashboard/health.py
#
# Data layer behind the drill dashboard: pulls the live feed from the
# FastAPI store, flags readings that cross alarm thresholds, and shapes
# the series shown in the chart.

import os
from typing import Dict, List, Mapping, Optional

import numpy as np
import pandas as pd
import requests

from drill_dashboard.features import SENSOR_FIELDS
from drill_dashboard.predictions import Predictions

API_URL = os.getenv("API_URL", "http://127.0.0.1:8000/drill_data")
HISTORY_LIMIT = int(os.getenv("HISTORY_LIMIT", "50"))

# Reading is alarming when strictly above these
THRESHOLDS: Dict[str, float] = {
    "temperature": 70.0,
    "rpm": 4000.0,
    "load": 20.0,
    "vibration": 5.0,
    "depth": 40.0,
}

RUL_ALERT_CYCLES = 50
TEMPERATURE_ESTIMATE_TOLERANCE_C = 5.0

PREDICTION_METRICS = ("rul", "estimated_temperature")
CHART_METRICS = SENSOR_FIELDS + PREDICTION_METRICS


def fetch_drill_data(limit: int = HISTORY_LIMIT, api_url: str = API_URL) -> pd.DataFrame:
    """
    Pull the latest readings from the store, newest first.

    Adds a tz-naive `timestamp` column parsed from `recorded_at`. Request
    failures are re-raised as RuntimeError so the UI can show them.
    """
    try:
        resp = requests.get(api_url, params={"limit": limit}, timeout=5)
        resp.raise_for_status()
        data: List[Dict] = resp.json()
    except (requests.RequestException, ValueError) as exc:
        raise RuntimeError(f"Error calling drill data API: {exc}") from exc

    if not data:
        return pd.DataFrame(columns=[*SENSOR_FIELDS, "id", "recorded_at", "timestamp"])

    df = pd.DataFrame(data)
    df["timestamp"] = pd.to_datetime(df["recorded_at"], utc=True).dt.tz_convert(None)
    df = df.sort_values("timestamp", ascending=False).reset_index(drop=True)
    return df


def alert_flags(latest: Mapping) -> Dict[str, bool]:
    """Per-channel alarm flags for the most recent reading."""
    flags = {}
    for name, limit in THRESHOLDS.items():
        value = latest.get(name)
        flags[name] = value is not None and not pd.isna(value) and float(value) > limit
    return flags


def rul_alert(rul: Optional[int]) -> bool:
    return rul is not None and rul < RUL_ALERT_CYCLES


def temperature_estimate_alert(
    estimate: Optional[float], actual: Optional[float]
) -> bool:
    """
    True when the estimator disagrees with the measured temperature by > 5 °C.

    A missing measurement counts as 0 °C.
    """
    if estimate is None:
        return False
    if actual is None or pd.isna(actual):
        actual = 0.0
    return abs(estimate - float(actual)) > TEMPERATURE_ESTIMATE_TOLERANCE_C


def sampling_rate_seconds(df: pd.DataFrame) -> Optional[float]:
    """Mean interval between consecutive readings, in seconds."""
    if df.empty or "timestamp" not in df.columns:
        return None
    times = df["timestamp"].dropna().sort_values()
    if len(times) < 2:
        return None
    diffs = times.diff().dropna().dt.total_seconds()
    return float(diffs.mean())


def chart_frame(
    df: pd.DataFrame, metric: str, predictions: Predictions
) -> pd.DataFrame:
    """
    Chronological series for the selected chart metric.

    Prediction metrics have a single current value, so it is repeated
    across the window (0 while unavailable). Missing readings plot as 0.
    """
    if metric not in CHART_METRICS:
        raise ValueError(f"Unknown chart metric: {metric}")

    points = df.sort_values("timestamp") if not df.empty else df
    index = None
    if "timestamp" in points.columns:
        index = pd.Index(points["timestamp"], name="timestamp")

    if metric == "rul":
        values = np.full(len(points), predictions.rul or 0, dtype=float)
    elif metric == "estimated_temperature":
        values = np.full(len(points), predictions.temperature or 0.0, dtype=float)
    elif metric in points.columns:
        values = pd.to_numeric(points[metric], errors="coerce").fillna(0.0).to_numpy()
    else:
        values = np.zeros(len(points), dtype=float)

    return pd.DataFrame({metric: values}, index=index)
