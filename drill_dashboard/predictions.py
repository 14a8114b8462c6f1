"""
Client for the remote prediction service.

Two endpoints, both POST with a JSON body {"sequence": ...}:
  - /predict_rul   takes a batch of one full feature sequence, returns {"rul": ...}
  - /predict_temp  takes the flattened temperature-excluded sequence,
                   returns {"temp_est": ...}

A failed call never raises: the dashboard shows the prediction as
unavailable and keeps running.
"""

import logging
import math
import os
from dataclasses import dataclass
from typing import List, Optional, Sequence

import requests

from drill_dashboard.features import (
    WINDOW_SIZE,
    SampleLike,
    build_prediction_inputs,
    latest_window,
)

PREDICTION_URL = os.getenv("PREDICTION_URL", "http://localhost:5000")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Predictions:
    rul: Optional[int] = None
    temperature: Optional[float] = None


class PredictionClient:
    def __init__(self, base_url: str = PREDICTION_URL, timeout: float = 5.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _post(self, path: str, sequence, key: str) -> Optional[float]:
        url = f"{self.base_url}{path}"
        try:
            resp = requests.post(url, json={"sequence": sequence}, timeout=self.timeout)
            resp.raise_for_status()
            value = float(resp.json()[key])
        except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
            logger.warning("prediction call to %s failed: %s", url, exc)
            return None
        if not math.isfinite(value):
            logger.warning("prediction from %s is not finite: %r", url, value)
            return None
        return value

    def predict_rul(self, sequence: List[List[float]]) -> Optional[int]:
        """Remaining useful life in cycles, or None if unavailable."""
        rul = self._post("/predict_rul", [sequence], "rul")
        return None if rul is None else round(rul)

    def estimate_temperature(self, flat_sequence: List[float]) -> Optional[float]:
        estimate = self._post("/predict_temp", flat_sequence, "temp_est")
        return None if estimate is None else round(estimate, 2)


def run_predictions(
    records: Sequence[SampleLike],
    client: PredictionClient,
    window_size: int = WINDOW_SIZE,
) -> Predictions:
    """
    Run both predictions on the newest *window_size* records of a
    newest-first feed. Nothing is sent until the window is full.
    """
    window = latest_window(records, window_size)
    if window is None:
        return Predictions()

    inputs = build_prediction_inputs(window)
    return Predictions(
        rul=client.predict_rul(inputs.full_sequence),
        temperature=client.estimate_temperature(inputs.temperature_excluded),
    )
