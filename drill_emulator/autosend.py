# drill_emulator/autosend.py
#
# Repeating sender used by the emulator CLI and the dashboard's
# "Start auto" button. One background thread calls send() on a fixed
# interval until stop() is called.

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 5.0


class AutoSender:
    """
    Cancellable repeating task.

    start() is idempotent: while a loop is running, further calls do
    nothing. stop() is idempotent too and is safe to call when nothing
    is running. Use it as a context manager to guarantee teardown.
    """

    def __init__(
        self,
        send: Callable[[], object],
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        *,
        thread_name: str = "DrillAutoSender",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._send = send
        self.interval_seconds = float(interval_seconds)
        self._thread_name = thread_name
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self.sends = 0
        self.last_error: Optional[BaseException] = None

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> "AutoSender":
        with self._lock:
            if self.is_running:
                return self
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event,),
                name=self._thread_name,
                daemon=True,
            )
            self._thread.start()
        logger.info("auto-send started (every %.1fs)", self.interval_seconds)
        return self

    def stop(self, *, join: bool = True, timeout: Optional[float] = None) -> None:
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            self._stop_event.set()
            self._thread = None
        if join and thread is not threading.current_thread():
            thread.join(timeout)
        logger.info("auto-send stopped after %d sends", self.sends)

    def _run(self, stop_event: threading.Event) -> None:
        # wait() doubles as the interval timer; stop() cuts it short
        while not stop_event.wait(self.interval_seconds):
            try:
                self._send()
            except Exception as exc:
                self.last_error = exc
                logger.warning("auto-send call failed: %s", exc)
            else:
                self.last_error = None
            self.sends += 1

    def __enter__(self) -> "AutoSender":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
