"""Background loop that expires idle sessions even when nobody interacts."""

import threading
from typing import Optional

from ..utils.logger import get_logger
from .lifecycle import SessionLifecycle

logger = get_logger(__name__)


class SessionWatchdog:
    def __init__(self, lifecycle: SessionLifecycle, interval_seconds: float = 60):
        self.lifecycle = lifecycle
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _loop(self) -> None:
        logger.info("SESSION_WATCHDOG", action="loop_started", interval_seconds=self.interval_seconds)
        while not self._stop.wait(self.interval_seconds):
            try:
                self.lifecycle.tick()
            except Exception as e:
                logger.warning("SESSION_WATCHDOG", action="tick_failed", error=str(e))
        logger.info("SESSION_WATCHDOG", action="loop_stopped")

    def start(self) -> None:
        if self._thread is not None:
            logger.warning("SESSION_WATCHDOG", action="already_running")
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True, name="session-watchdog")
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=2)
            if self._thread.is_alive():
                logger.warning("SESSION_WATCHDOG", action="stop_timeout")
            self._thread = None
