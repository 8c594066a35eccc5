"""
Session lifecycle: restore, activity refresh, inactivity expiry and purge.

The lifecycle is the only owner of the Session. A session lives while
`now - last_activity <= inactivity threshold` (30 minutes by default); there
is no absolute lifetime cap. Expiry, logout and an unreadable session record
all purge the same set of local records: session, chat history and vault.
"""

import threading
from enum import Enum
from typing import Callable, List, Optional

from ..models import Session, now_ms
from ..stores import LocalState
from ..utils.exceptions import StoreError
from ..utils.logger import get_logger
from .activity import ActivityMonitor

logger = get_logger(__name__)

AUTO_DELETE_MS = 30 * 60 * 1000


class SessionEvent(str, Enum):
    STARTED = "started"
    RESTORED = "restored"
    PURGED = "purged"


SessionListener = Callable[[SessionEvent, Optional[Session]], None]


class SessionLifecycle:
    """Holds, persists and expires the operator session"""

    def __init__(
        self,
        state: LocalState,
        inactivity_ms: int = AUTO_DELETE_MS,
        clock: Callable[[], int] = now_ms,
        persist_interval_ms: int = 1000,
    ):
        self.state = state
        self.inactivity_ms = inactivity_ms
        self._clock = clock
        # touch() may fire on every keystroke; the record is rewritten at most this often
        self.persist_interval_ms = persist_interval_ms
        self._session: Optional[Session] = None
        self._persisted_activity = 0
        self._listeners: List[SessionListener] = []
        self._lock = threading.RLock()

    @property
    def current(self) -> Optional[Session]:
        with self._lock:
            return self._session.model_copy() if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def subscribe(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def attach(self, monitor: ActivityMonitor) -> Callable[[], None]:
        """Refresh the session on every activity the monitor reports"""
        return monitor.subscribe(lambda _source: self.touch())

    def _notify(self, event: SessionEvent, session: Optional[Session]) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, session)
            except Exception as e:
                logger.warning("SESSION", action="listener_failed", event=event.value, error=str(e))

    def _persist(self, session: Session) -> None:
        self.state.session.set(session)
        self._persisted_activity = session.last_activity

    def restore(self) -> Optional[Session]:
        """
        Load the persisted session on startup.

        Returns the restored session, or None when the operator starts
        unauthenticated (no record, expired record, unreadable record).
        """
        with self._lock:
            saved = self.state.session.get()
            if saved is None:
                if self.state.session.exists():
                    logger.warning("SESSION", action="restore_failed", reason="corrupt_record")
                    self.purge(reason="corrupt")
                return None

            now = self._clock()
            if saved.is_expired(now, self.inactivity_ms):
                logger.info("SESSION", action="restore_expired", idle_ms=saved.idle_ms(now))
                self.purge(reason="expired")
                return None

            self._session = saved
            self._persisted_activity = saved.last_activity
            restored = saved.model_copy()

        logger.info("SESSION", action="restored", username=restored.username)
        self._notify(SessionEvent.RESTORED, restored)
        return restored

    def begin(self, session: Session) -> Session:
        """Install a freshly verified session, replacing any previous one"""
        with self._lock:
            started = session.model_copy(update={"last_activity": max(session.last_activity, self._clock())})
            self._session = started
            self._persist(started)
            result = started.model_copy()
        logger.info("SESSION", action="started", username=result.username)
        self._notify(SessionEvent.STARTED, result)
        return result

    def touch(self) -> bool:
        """
        Refresh last activity to now. Cheap and idempotent.

        Returns False when there is no live session. Activity arriving after
        the inactivity threshold purges instead of refreshing.
        """
        with self._lock:
            session = self._session
            if session is None:
                return False
            now = self._clock()
            if session.is_expired(now, self.inactivity_ms):
                logger.info("SESSION", action="expired", idle_ms=session.idle_ms(now))
                self.purge(reason="expired")
                return False
            if now > session.last_activity:
                session.last_activity = now
            if session.last_activity - self._persisted_activity >= self.persist_interval_ms:
                self._persist(session)
            return True

    def tick(self) -> bool:
        """Periodic expiry check. Returns True if the session was purged."""
        with self._lock:
            session = self._session
            if session is None:
                return False
            now = self._clock()
            if not session.is_expired(now, self.inactivity_ms):
                return False
            logger.info("SESSION", action="expired", idle_ms=session.idle_ms(now))
            self.purge(reason="expired")
            return True

    def purge(self, reason: str = "manual") -> None:
        """
        Clear the session, chat history and vault records and drop the
        in-memory session. Idempotent.
        """
        errors = []
        with self._lock:
            self._session = None
            self._persisted_activity = 0
            # session record last, so a partial failure still leaves it to be purged again
            for record in reversed(self.state.purgeable()):
                try:
                    record.clear()
                except StoreError as e:
                    errors.append(str(e))

        if errors:
            logger.error("SESSION", action="purge_incomplete", reason=reason, errors=errors)
        else:
            logger.info("SESSION", action="purged", reason=reason)
        self._notify(SessionEvent.PURGED, None)
        if errors:
            raise StoreError("; ".join(errors))

    def logout(self) -> None:
        self.purge(reason="logout")
