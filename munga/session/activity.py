"""Operator activity signal.

Interaction sources (HTTP requests, terminal prompts) call `record()`; the
session lifecycle subscribes and refreshes the session's last activity.
"""

import threading
from typing import Callable, List

from ..utils.logger import get_logger

logger = get_logger(__name__)

ActivityListener = Callable[[str], None]


class ActivityMonitor:
    def __init__(self):
        self._listeners: List[ActivityListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: ActivityListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it"""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def record(self, source: str = "input") -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(source)
            except Exception as e:
                logger.warning("ACTIVITY_MONITOR", action="listener_failed", source=source, error=str(e))
