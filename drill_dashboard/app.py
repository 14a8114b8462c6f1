# drill_dashboard/app.py
#
# Drill Ops Lab – Drill Monitoring Dashboard
#
# Streamlit UI that:
#   - Pulls the latest drill readings from the FastAPI store
#   - Shows metric cards for each channel, red when above threshold
#   - Builds a 20-reading feature window and asks the prediction service
#     for remaining useful life and an estimated temperature
#   - Plots any selected metric over the window
#   - Sends single random readings, or starts/stops a 5 s auto-sender
#   - Auto-refreshes so updates appear live without manual reloads

import os
from typing import Dict, Optional

import pandas as pd
import requests
import streamlit as st
from streamlit_autorefresh import st_autorefresh

from drill_dashboard.health import (
    API_URL,
    CHART_METRICS,
    HISTORY_LIMIT,
    alert_flags,
    chart_frame,
    fetch_drill_data,
    rul_alert,
    sampling_rate_seconds,
    temperature_estimate_alert,
)
from drill_dashboard.predictions import PredictionClient, Predictions, run_predictions
from drill_emulator.autosend import AutoSender
from drill_emulator.emulator import send_sample
from drill_emulator.generator import DrillState

# -------------------------------------------------
# Config
# -------------------------------------------------

PAGE_TITLE = "Drill Ops Lab – Drill Monitoring"
REFRESH_SECONDS = int(os.getenv("REFRESH_SECONDS", "2"))
AUTO_SEND_SECONDS = float(os.getenv("SEND_INTERVAL_SECONDS", "5"))

METRIC_LABELS: Dict[str, str] = {
    "temperature": "Temperature (°C)",
    "rpm": "RPM",
    "load": "Load (A)",
    "vibration": "Vibration (m/s²)",
    "depth": "Depth (mm)",
    "rul": "Predicted RUL (cycles)",
    "estimated_temperature": "Estimated temp (°C)",
}

# -------------------------------------------------
# Session state
# -------------------------------------------------

if "drill_state" not in st.session_state:
    # wear counter for readings sent from this dashboard session
    st.session_state["drill_state"] = DrillState.from_env()

if "auto_sender" not in st.session_state:
    _state = st.session_state["drill_state"]
    st.session_state["auto_sender"] = AutoSender(
        lambda: send_sample(_state, API_URL), AUTO_SEND_SECONDS
    )

if "status" not in st.session_state:
    st.session_state["status"] = "idle"


# -------------------------------------------------
# Actions
# -------------------------------------------------


def _send_one() -> None:
    st.session_state["status"] = send_sample(st.session_state["drill_state"], API_URL)


def _start_auto() -> None:
    st.session_state["auto_sender"].start()
    st.session_state["status"] = "auto-started"


def _stop_auto() -> None:
    st.session_state["auto_sender"].stop()
    st.session_state["status"] = "auto-stopped"


def _clear_store() -> None:
    try:
        resp = requests.delete(API_URL, timeout=3)
        resp.raise_for_status()
        st.session_state["status"] = f"cleared {resp.json().get('removed', 0)} readings"
    except requests.RequestException as exc:
        st.session_state["status"] = f"error: {exc}"


# -------------------------------------------------
# UI helpers
# -------------------------------------------------


def _fmt(value, digits: int = 2) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    if isinstance(value, float):
        return f"{value:.{digits}f}"
    return str(value)


def render_header() -> None:
    st.set_page_config(page_title=PAGE_TITLE, layout="wide")
    st.title(PAGE_TITLE)
    st.caption(
        "Synthetic drill telemetry flowing into FastAPI, with remaining-useful-life "
        "and temperature predictions from the model service."
    )


def render_controls(sender: AutoSender) -> None:
    c1, c2, c3, c4 = st.columns(4)
    with c1:
        st.button("Send random sample", on_click=_send_one)
    with c2:
        st.button(
            f"Start auto ({AUTO_SEND_SECONDS:.0f}s)",
            on_click=_start_auto,
            disabled=sender.is_running,
        )
    with c3:
        st.button("Stop auto", on_click=_stop_auto, disabled=not sender.is_running)
    with c4:
        st.button("Clear store", on_click=_clear_store)


def _card(label: str, value: str, alert: bool) -> None:
    color = "red" if alert else "inherit"
    st.markdown(
        f"<div style='font-size:22px;font-weight:700;color:{color}'>{value}</div>"
        f"<div style='color:#666'>{label}</div>",
        unsafe_allow_html=True,
    )


def render_metric_cards(latest: Dict, predictions: Predictions) -> None:
    flags = alert_flags(latest)
    cols = st.columns(7)
    for col, name in zip(cols, ("temperature", "rpm", "load", "vibration", "depth")):
        with col:
            _card(METRIC_LABELS[name], _fmt(latest.get(name)), flags[name])

    with cols[5]:
        _card(
            METRIC_LABELS["rul"],
            _fmt(predictions.rul) if predictions.rul is not None else "Calculating...",
            rul_alert(predictions.rul),
        )
    with cols[6]:
        _card(
            METRIC_LABELS["estimated_temperature"],
            _fmt(predictions.temperature)
            if predictions.temperature is not None
            else "Calculating...",
            temperature_estimate_alert(predictions.temperature, latest.get("temperature")),
        )


def render_chart(df: pd.DataFrame, predictions: Predictions) -> None:
    metric = st.selectbox(
        "Chart metric",
        CHART_METRICS,
        format_func=lambda m: METRIC_LABELS[m],
        key="selected_metric",
    )
    st.markdown(f"#### {METRIC_LABELS[metric]} over time")
    st.line_chart(chart_frame(df, metric, predictions), height=300)


def render_recent(df: pd.DataFrame) -> None:
    st.markdown("#### Recent entries (newest first)")
    st.dataframe(
        df[["timestamp", "temperature", "rpm", "load", "vibration", "depth"]],
        hide_index=True,
    )


def render_footer(df: pd.DataFrame, sender: AutoSender) -> None:
    rate: Optional[float] = sampling_rate_seconds(df)
    st.caption(f"Status: {st.session_state['status']}")
    st.caption(f"Sampling rate: {f'{rate:.2f} s' if rate is not None else 'N/A'}")
    st.caption(
        f"Drill wear: cycle {st.session_state['drill_state'].cycle} • "
        f"auto-send {'on' if sender.is_running else 'off'} "
        f"({sender.sends} sends)"
    )


# -------------------------------------------------
# Main layout
# -------------------------------------------------


def main() -> None:
    render_header()
    st_autorefresh(interval=REFRESH_SECONDS * 1000, key="data_refresh")

    sender: AutoSender = st.session_state["auto_sender"]
    render_controls(sender)

    try:
        df = fetch_drill_data(HISTORY_LIMIT)
    except RuntimeError as err:
        st.error(f"{err}\n\nMake sure the drill data API is running.")
        render_footer(pd.DataFrame(), sender)
        return

    if df.empty:
        st.info("No readings yet. Send one or start the auto-sender.")
        render_footer(df, sender)
        return

    records = df.to_dict("records")
    predictions = run_predictions(records, PredictionClient())

    st.markdown("---")
    render_metric_cards(records[0], predictions)
    st.markdown("---")

    chart_col, recent_col = st.columns([3, 2])
    with chart_col:
        render_chart(df, predictions)
    with recent_col:
        render_recent(df)

    render_footer(df, sender)


if __name__ == "__main__":
    main()
