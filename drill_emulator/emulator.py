# drill_emulator/emulator.py
#
# Drill Ops Lab – Drill Emulator
#
# Generates wear-aware drill telemetry and streams it into the FastAPI
# ingestion service on a fixed interval. The store assigns the record
# timestamp; this process only produces the readings.

import logging
import os
import time

import requests

from drill_emulator.autosend import AutoSender
from drill_emulator.generator import DrillState

API_URL = os.getenv("API_URL", "http://127.0.0.1:8000/drill_data")
SEND_INTERVAL_SECONDS = float(os.getenv("SEND_INTERVAL_SECONDS", "5"))

logger = logging.getLogger(__name__)


def send_sample(state: DrillState, api_url: str = API_URL) -> str:
    """
    Produce one sample and POST it to the store.

    Returns "sent" or "error: <reason>"; a failed write never raises so the
    auto-sender keeps running.
    """
    payload = state.step().to_payload()
    try:
        r = requests.post(api_url, json=payload, timeout=2)
        r.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("write error (cycle %d): %s", state.cycle, exc)
        return f"error: {exc}"

    logger.info("sent %s cycle=%d %s", r.status_code, state.cycle, payload)
    return "sent"


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="[emulator] %(message)s")

    state = DrillState.from_env()
    logger.info(
        "Sending drill data to %s every %.1fs (start cycle %d)",
        API_URL,
        SEND_INTERVAL_SECONDS,
        state.cycle,
    )

    sender = AutoSender(lambda: send_sample(state), SEND_INTERVAL_SECONDS)
    try:
        sender.start()
        while sender.is_running:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        sender.stop()


if __name__ == "__main__":
    main()
