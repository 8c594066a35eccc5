"""Main application object shared by the web API and the terminal client"""

from pathlib import Path
from typing import Any, Callable, Optional

from .ai import AIService
from .auth import AuthFlow, CodeDelivery, DeliveryResult, UserRegistry, create_code_delivery
from .features import (
    CommunicationDesk,
    DocumentVault,
    MarketScanner,
    ResearchDesk,
    RoadmapPlanner,
    StrategyAnalyst,
)
from .models import Session, now_ms
from .router import DEFAULT_VIEW, Screen, ViewMode, ViewRouter
from .session import ActivityMonitor, SessionEvent, SessionLifecycle, SessionWatchdog
from .stores import LocalState
from .utils.config import Settings, load_settings
from .utils.logger import get_logger, setup_logger

logger = get_logger(__name__)


class MungaApp:
    """Wires storage, auth, session lifecycle, routing and the screens"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        data_dir: Optional[Path] = None,
        ai_client: Any = None,
        code_delivery: Optional[CodeDelivery] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.settings = settings or load_settings()
        self.data_dir = Path(data_dir or self.settings.storage.data_dir)
        self.clock = clock

        self.state = LocalState(self.data_dir)
        self.registry = UserRegistry(self.state.registry)
        self.code_delivery = code_delivery or create_code_delivery(
            self.settings.auth.code_delivery,
            self.data_dir / "outbox",
            self.settings.auth.smtp,
        )
        self.auth_flow = AuthFlow(
            self.registry,
            self.code_delivery,
            transmission_delay_seconds=self.settings.auth.transmission_delay_seconds,
            clock=clock,
        )

        self.lifecycle = SessionLifecycle(
            self.state,
            inactivity_ms=self.settings.session.inactivity_ms,
            clock=clock,
        )
        self.activity = ActivityMonitor()
        self.lifecycle.attach(self.activity)
        self.router = ViewRouter(lambda: self.lifecycle.current)
        self.lifecycle.subscribe(self._on_session_event)
        self.watchdog = SessionWatchdog(self.lifecycle, self.settings.session.watchdog_interval_seconds)

        self.ai = AIService(self.settings.ai, client=ai_client)
        # an explicit data_dir keeps exports beside the records
        export_dir = self.data_dir / "exports" if data_dir else Path(self.settings.export.directory)
        self.research = ResearchDesk(self.ai, self.state.chat_history, self.router)
        self.market = MarketScanner(self.ai, self.router)
        self.roadmap = RoadmapPlanner(self.ai, self.router)
        self.predictions = StrategyAnalyst(self.ai, self.router)
        self.vault = DocumentVault(self.state.vault, export_dir)
        self.communication = CommunicationDesk(self.state.draft, self.settings.feedback.recipient)

    def _on_session_event(self, event: SessionEvent, session: Optional[Session]) -> None:
        if event == SessionEvent.PURGED:
            self.router.reset(ViewMode.LANDING)
        else:
            self.router.reset(DEFAULT_VIEW)

    def initialize(self, configure_logging: bool = True) -> "MungaApp":
        """Set up logging and restore any persisted session"""
        if configure_logging:
            log = self.settings.logging
            setup_logger(
                log_level=log.level,
                log_format=log.format,
                file_path=log.file_path,
                max_bytes=log.max_bytes,
                backup_count=log.backup_count,
            )
        logger.info(
            "APP",
            action="initializing",
            app_name=self.settings.app.name,
            version=self.settings.app.version,
            environment=self.settings.app.environment,
            ai_available=self.ai.is_available(),
            code_delivery=self.code_delivery.channel,
        )
        self.lifecycle.restore()
        return self

    def start_background(self) -> None:
        self.watchdog.start()

    def stop_background(self) -> None:
        self.watchdog.stop()

    @property
    def session(self) -> Optional[Session]:
        return self.lifecycle.current

    def screen(self) -> Screen:
        return self.router.screen()

    def submit_credentials(self, email: str, username: Optional[str] = None, register: bool = False) -> DeliveryResult:
        return self.auth_flow.submit_credentials(email, username=username, register=register)

    def verify_code(self, code: str) -> Session:
        """Finish the auth flow and start the session"""
        return self.lifecycle.begin(self.auth_flow.verify(code))

    def reset_auth(self) -> None:
        self.auth_flow.reset()

    def logout(self) -> None:
        self.lifecycle.logout()

    def select_view(self, mode: ViewMode) -> Screen:
        return self.router.select(mode)

    def record_activity(self, source: str = "input") -> bool:
        """
        Report operator input. Input arriving after the inactivity window
        does not revive the session; returns False when no session is live.
        """
        if self.lifecycle.tick():
            return False
        self.activity.record(source)
        return self.lifecycle.is_authenticated
