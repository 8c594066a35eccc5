"""
View routing.

`resolve_screen` is the pure gate: which screen renders for a given session
presence and requested view. `ViewRouter` holds the selected view, the
navigation overlay flag and a navigation epoch that lets screens detect that
the operator moved on before an AI response arrived.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .models import Session
from .utils.exceptions import NotAuthenticatedError
from .utils.logger import get_logger

logger = get_logger(__name__)


class ViewMode(str, Enum):
    LANDING = "LANDING"
    RESEARCH = "RESEARCH"
    ANALYTICS = "ANALYTICS"
    DOCUMENTS = "DOCUMENTS"
    COMMUNICATION = "COMMUNICATION"
    MARKET = "MARKET"
    ROADMAP = "ROADMAP"


class Screen(str, Enum):
    LANDING = "LANDING"
    AUTH = "AUTH"
    RESEARCH = "RESEARCH"
    ANALYTICS = "ANALYTICS"
    DOCUMENTS = "DOCUMENTS"
    COMMUNICATION = "COMMUNICATION"
    MARKET = "MARKET"
    ROADMAP = "ROADMAP"


DEFAULT_VIEW = ViewMode.RESEARCH


def resolve_screen(has_session: bool, mode: ViewMode) -> Screen:
    """Screen rendered for (session presence, selected view)"""
    if not has_session:
        return Screen.LANDING if mode == ViewMode.LANDING else Screen.AUTH
    if mode == ViewMode.LANDING:
        return Screen(DEFAULT_VIEW.value)
    return Screen(mode.value)


@dataclass(frozen=True)
class ViewTicket:
    """Snapshot taken when a screen issues a request"""

    mode: ViewMode
    epoch: int
    token: Optional[str]


class ViewRouter:
    """Currently selected view, gated by the session provider"""

    def __init__(self, session_provider: Callable[[], Optional[Session]]):
        self._session_provider = session_provider
        self._mode = ViewMode.LANDING
        self._epoch = 0
        self.nav_open = False
        self._lock = threading.RLock()

    @property
    def mode(self) -> ViewMode:
        return self._mode

    @property
    def epoch(self) -> int:
        return self._epoch

    def has_session(self) -> bool:
        return self._session_provider() is not None

    def screen(self) -> Screen:
        return resolve_screen(self.has_session(), self._mode)

    def _set_mode(self, mode: ViewMode) -> None:
        if mode != self._mode:
            self._epoch += 1
        self._mode = mode

    def select(self, mode: ViewMode) -> Screen:
        """
        Select a view from navigation and return the screen that renders.

        Without a session any view other than Landing renders the auth
        screen. Selecting always closes the navigation overlay.
        """
        mode = ViewMode(mode)
        with self._lock:
            self._set_mode(mode)
            self.nav_open = False
        screen = self.screen()
        logger.debug("VIEW_ROUTER", action="selected", view=mode.value, screen=screen.value)
        return screen

    def require_session(self) -> Session:
        session = self._session_provider()
        if session is None:
            raise NotAuthenticatedError("Session required")
        return session

    def toggle_nav(self) -> bool:
        self.nav_open = not self.nav_open
        return self.nav_open

    def reset(self, mode: ViewMode) -> None:
        """Route change driven by the session lifecycle (login, restore, purge)"""
        with self._lock:
            self._epoch += 1
            self._mode = mode
            self.nav_open = False

    def ticket(self) -> ViewTicket:
        session = self._session_provider()
        with self._lock:
            return ViewTicket(mode=self._mode, epoch=self._epoch, token=session.token if session else None)

    def is_current(self, ticket: ViewTicket) -> bool:
        """True while the ticket's view is still showing for the same session"""
        session = self._session_provider()
        token = session.token if session else None
        with self._lock:
            return (
                token is not None
                and ticket.token == token
                and ticket.mode == self._mode
                and ticket.epoch == self._epoch
            )
