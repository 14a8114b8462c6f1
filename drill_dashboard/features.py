"""Feature windows for the RUL predictor and the temperature estimator."""

import math
import os
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Union

import numpy as np

from drill_emulator.generator import DrillSample

WINDOW_SIZE = int(os.getenv("WINDOW_SIZE", "20"))

SENSOR_FIELDS = ("temperature", "rpm", "load", "vibration", "depth")
FEATURE_COLUMNS = SENSOR_FIELDS + ("temperature_change", "torque_estimate")

# load [A] * 9.55 / rpm
TORQUE_CONSTANT = 9.55

SampleLike = Union[DrillSample, Mapping[str, Any]]


@dataclass(frozen=True)
class PredictionInputs:
    full_sequence: List[List[float]]
    temperature_excluded: List[float]


def field_or_zero(sample: SampleLike, name: str) -> float:
    """Numeric field of a sample, 0.0 when it is missing, None or NaN."""
    if isinstance(sample, Mapping):
        value = sample.get(name)
    else:
        value = getattr(sample, name, None)
    if value is None:
        return 0.0
    value = float(value)
    # pandas records carry NaN for missing cells
    if math.isnan(value):
        return 0.0
    return value


def build_feature_rows(samples: Sequence[SampleLike]) -> np.ndarray:
    """
    Build a (W, 7) feature matrix from samples in chronological order.

    Columns follow FEATURE_COLUMNS. temperature_change is zero for the
    first row; torque_estimate divides by max(rpm, 1).
    """
    if len(samples) == 0:
        return np.empty((0, len(FEATURE_COLUMNS)), dtype=np.float64)

    raw = np.array(
        [[field_or_zero(s, name) for name in SENSOR_FIELDS] for s in samples],
        dtype=np.float64,
    )
    temperature = raw[:, 0]
    rpm = raw[:, 1]
    load = raw[:, 2]

    temperature_change = np.diff(temperature, prepend=temperature[0])
    torque_estimate = (load * TORQUE_CONSTANT) / np.maximum(rpm, 1.0)

    return np.column_stack([raw, temperature_change, torque_estimate])


def full_sequence(samples: Sequence[SampleLike]) -> List[List[float]]:
    return build_feature_rows(samples).tolist()


def temperature_excluded_sequence(samples: Sequence[SampleLike]) -> List[float]:
    """All feature rows minus the temperature column, flattened row by row."""
    return build_feature_rows(samples)[:, 1:].ravel().tolist()


def build_prediction_inputs(samples: Sequence[SampleLike]) -> PredictionInputs:
    rows = build_feature_rows(samples)
    return PredictionInputs(
        full_sequence=rows.tolist(),
        temperature_excluded=rows[:, 1:].ravel().tolist(),
    )


def latest_window(
    records: Sequence[SampleLike], size: int = WINDOW_SIZE
) -> Optional[List[SampleLike]]:
    """
    Turn a newest-first feed into the newest *size* records, oldest first.

    Returns None while the feed holds fewer than *size* records.
    """
    if size < 1:
        raise ValueError("size must be >= 1")
    if len(records) < size:
        return None
    return list(reversed(records[:size]))
