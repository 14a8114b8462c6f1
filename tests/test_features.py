import math

import pandas as pd
import pytest

from drill_dashboard.features import (
    FEATURE_COLUMNS,
    build_feature_rows,
    build_prediction_inputs,
    field_or_zero,
    full_sequence,
    latest_window,
    temperature_excluded_sequence,
)
from drill_emulator.generator import DrillSample


def _record(temperature, rpm=5000, load=10.0, vibration=1.0, depth=5.0):
    return {
        "temperature": temperature,
        "rpm": rpm,
        "load": load,
        "vibration": vibration,
        "depth": depth,
    }


def test_single_row_window() -> None:
    rows = full_sequence([_record(30.0, rpm=4000, load=12.0)])
    assert len(rows) == 1
    temperature, rpm, load, vibration, depth, change, torque = rows[0]
    assert (temperature, rpm, load, vibration, depth) == (30.0, 4000.0, 12.0, 1.0, 5.0)
    assert change == 0.0
    assert torque == pytest.approx(12.0 * 9.55 / 4000)


def test_temperature_change_sequence() -> None:
    rows = full_sequence([_record(30), _record(32), _record(31)])
    assert [row[5] for row in rows] == [0.0, 2.0, -1.0]


def test_zero_rpm_uses_unit_denominator() -> None:
    rows = full_sequence([_record(30, rpm=0, load=4.0), _record(31, rpm=2, load=4.0)])
    assert rows[0][6] == pytest.approx(4.0 * 9.55)
    assert rows[1][6] == pytest.approx(4.0 * 9.55 / 2)


def test_flattened_sequence_drops_temperature() -> None:
    window = [_record(30 + i, rpm=4000 - i) for i in range(20)]
    flat = temperature_excluded_sequence(window)
    rows = full_sequence(window)

    assert len(flat) == 6 * 20
    assert flat[:6] == rows[0][1:]
    assert flat[-6:] == rows[-1][1:]


def test_missing_fields_are_zero() -> None:
    rows = full_sequence([{"temperature": 25.0}, {"rpm": None, "load": 2.0}])
    assert rows[0] == [25.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0]
    assert rows[1][:5] == [0.0, 0.0, 2.0, 0.0, 0.0]
    assert rows[1][5] == -25.0
    assert rows[1][6] == pytest.approx(2.0 * 9.55)


def test_field_or_zero_handles_samples_and_mappings() -> None:
    sample = DrillSample(temperature=40.0, rpm=4500, load=1.5, vibration=2.0, depth=3.0)
    assert field_or_zero(sample, "rpm") == 4500.0
    assert field_or_zero(sample, "recorded_at") == 0.0
    assert field_or_zero({}, "load") == 0.0


def test_empty_window_gives_empty_outputs() -> None:
    assert build_feature_rows([]).shape == (0, len(FEATURE_COLUMNS))
    inputs = build_prediction_inputs([])
    assert inputs.full_sequence == []
    assert inputs.temperature_excluded == []


def test_derived_fields_keep_full_precision() -> None:
    rows = full_sequence([_record(30.0, rpm=3, load=1.0)])
    assert rows[0][6] == 9.55 / 3


def test_prediction_inputs_match_individual_builders() -> None:
    window = [_record(20 + i * 0.5, rpm=4990 - i) for i in range(5)]
    inputs = build_prediction_inputs(window)
    assert inputs.full_sequence == full_sequence(window)
    assert inputs.temperature_excluded == temperature_excluded_sequence(window)


def test_latest_window_reverses_newest_first_feed() -> None:
    feed = [_record(t) for t in (50, 49, 48, 47)]
    window = latest_window(feed, size=3)
    assert [r["temperature"] for r in window] == [48, 49, 50]


def test_latest_window_waits_for_full_window() -> None:
    assert latest_window([_record(30)] * 19) is None
    assert len(latest_window([_record(30)] * 25)) == 20


def test_nan_fields_from_dataframe_records_are_zero() -> None:
    df = pd.DataFrame([_record(30.0, rpm=4000, load=8.0), {"temperature": 31.0, "load": 8.0}])
    rows = full_sequence(df.to_dict("records"))

    assert rows[1][1] == 0.0
    assert rows[1][3] == 0.0
    assert rows[1][5] == 1.0
    assert rows[1][6] == pytest.approx(8.0 * 9.55)
    assert not any(math.isnan(v) for row in rows for v in row)
    assert not any(math.isnan(v) for v in temperature_excluded_sequence(df.to_dict("records")))
