from pathlib import Path
from types import SimpleNamespace
from typing import List, Tuple
from unittest.mock import MagicMock

import pytest

from munga.app import MungaApp
from munga.auth import CodeDelivery, DeliveryResult
from munga.stores import LocalState
from munga.utils.config import AISettings, AuthSettings, Settings


class FakeClock:
    """Deterministic epoch-millisecond clock"""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, minutes: float = 0, seconds: float = 0) -> None:
        self.now += int((minutes * 60 + seconds) * 1000)


class RecordingDelivery(CodeDelivery):
    """Captures issued codes instead of sending them"""

    channel = "recording"

    def __init__(self):
        self.sent: List[Tuple[str, str]] = []

    def send_code(self, destination: str, code: str) -> DeliveryResult:
        self.sent.append((destination, code))
        return DeliveryResult(delivered=True, channel=self.channel)

    @property
    def last_code(self) -> str:
        return self.sent[-1][1]


def chat_response(content, annotations=None):
    """Shape of an OpenAI chat completion as read by AIService"""
    message = SimpleNamespace(content=content, annotations=annotations or [])
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def citation(title: str, url: str):
    return SimpleNamespace(type="url_citation", url_citation=SimpleNamespace(title=title, url=url))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def delivery() -> RecordingDelivery:
    return RecordingDelivery()


@pytest.fixture
def state(tmp_path: Path) -> LocalState:
    return LocalState(tmp_path / "data")


@pytest.fixture
def ai_client() -> MagicMock:
    client = MagicMock()
    client.chat.completions.create.return_value = chat_response("Intel synthesized.")
    client.images.generate.return_value = SimpleNamespace(data=[])
    return client


@pytest.fixture
def settings() -> Settings:
    return Settings(ai=AISettings(api_key="test-key"), auth=AuthSettings(transmission_delay_seconds=0))


@pytest.fixture
def munga(tmp_path: Path, settings: Settings, ai_client: MagicMock, delivery: RecordingDelivery, clock: FakeClock):
    app = MungaApp(
        settings=settings,
        data_dir=tmp_path / "data",
        ai_client=ai_client,
        code_delivery=delivery,
        clock=clock,
    )
    return app.initialize(configure_logging=False)


def sign_in(munga: MungaApp, delivery: RecordingDelivery, email: str = "alice@example.com", username: str = "Alice"):
    """Register an operator through the full two-step flow"""
    munga.submit_credentials(email, username=username, register=True)
    return munga.verify_code(delivery.last_code)
