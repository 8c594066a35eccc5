"""Session lifecycle, activity tracking and the expiry watchdog"""

from .activity import ActivityMonitor
from .lifecycle import AUTO_DELETE_MS, SessionEvent, SessionLifecycle
from .watchdog import SessionWatchdog

__all__ = ["ActivityMonitor", "AUTO_DELETE_MS", "SessionEvent", "SessionLifecycle", "SessionWatchdog"]
