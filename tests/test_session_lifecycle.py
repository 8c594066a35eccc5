import json
import time

import pytest

from munga.models import ChatMessage, FeedbackDraft, RegisteredUser, Session, VaultDocument
from munga.router import Screen
from munga.session import ActivityMonitor, SessionEvent, SessionLifecycle

from conftest import sign_in


def make_session(clock, minutes_ago: float = 0) -> Session:
    return Session(
        username="Alice",
        email="alice@example.com",
        token="tok-alice",
        last_activity=clock.now - int(minutes_ago * 60 * 1000),
    )


def seed_records(state, session: Session) -> None:
    state.session.set(session)
    state.chat_history.set([ChatMessage(role="user", content="status report")])
    state.vault.set(VaultDocument(title="Brief", content="classified"))
    state.draft.set(FeedbackDraft(subject="hello", body="world"))
    state.registry.set([RegisteredUser(email="alice@example.com", username="Alice")])


def test_restore_then_tick_does_not_purge(state, clock):
    seed_records(state, make_session(clock, minutes_ago=5))
    lifecycle = SessionLifecycle(state, clock=clock)

    restored = lifecycle.restore()
    assert restored is not None
    assert lifecycle.tick() is False

    assert lifecycle.current.username == "Alice"
    assert state.session.exists()
    assert state.vault.exists()


def test_tick_after_inactivity_purges_session_scoped_records(state, clock):
    seed_records(state, make_session(clock))
    lifecycle = SessionLifecycle(state, clock=clock)
    lifecycle.restore()

    clock.advance(minutes=31)
    assert lifecycle.tick() is True

    assert lifecycle.current is None
    assert not state.session.exists()
    assert not state.chat_history.exists()
    assert not state.vault.exists()
    # the draft and the registry outlive the session
    assert state.draft.get().subject == "hello"
    assert len(state.registry.get()) == 1


def test_restore_of_expired_session_purges(state, clock):
    seed_records(state, make_session(clock, minutes_ago=31))
    lifecycle = SessionLifecycle(state, clock=clock)

    assert lifecycle.restore() is None
    assert not state.session.exists()
    assert not state.chat_history.exists()
    assert not state.vault.exists()


def test_exactly_thirty_minutes_idle_is_still_live(state, clock):
    seed_records(state, make_session(clock, minutes_ago=30))
    lifecycle = SessionLifecycle(state, clock=clock)

    assert lifecycle.restore() is not None
    assert lifecycle.tick() is False


def test_corrupt_session_record_purges(state, clock):
    seed_records(state, make_session(clock))
    state.session.path.write_text("{not json", encoding="utf-8")
    lifecycle = SessionLifecycle(state, clock=clock)

    assert lifecycle.restore() is None
    assert not state.session.exists()
    assert not state.vault.exists()


def test_restore_without_record_starts_unauthenticated(state, clock):
    lifecycle = SessionLifecycle(state, clock=clock)

    assert lifecycle.restore() is None
    assert not lifecycle.is_authenticated


def test_touch_keeps_session_alive(state, clock):
    lifecycle = SessionLifecycle(state, clock=clock)
    lifecycle.begin(make_session(clock))

    clock.advance(minutes=20)
    assert lifecycle.touch() is True
    clock.advance(minutes=20)

    assert lifecycle.tick() is False
    assert lifecycle.is_authenticated


def test_touch_never_moves_activity_backwards(state, clock):
    lifecycle = SessionLifecycle(state, clock=clock)
    lifecycle.begin(make_session(clock))
    started = lifecycle.current.last_activity

    clock.advance(minutes=-5)
    lifecycle.touch()

    assert lifecycle.current.last_activity == started


def test_touch_without_session_is_noop(state, clock):
    lifecycle = SessionLifecycle(state, clock=clock)

    assert lifecycle.touch() is False
    assert not state.session.exists()


def test_touch_after_inactivity_purges_instead_of_refreshing(state, clock):
    seed_records(state, make_session(clock))
    lifecycle = SessionLifecycle(state, clock=clock)
    lifecycle.restore()

    clock.advance(minutes=45)

    assert lifecycle.touch() is False
    assert lifecycle.current is None
    assert lifecycle.tick() is False
    assert not state.session.exists()
    assert not state.vault.exists()


def test_late_monitor_activity_does_not_revive_session(state, clock):
    monitor = ActivityMonitor()
    lifecycle = SessionLifecycle(state, clock=clock)
    lifecycle.attach(monitor)
    lifecycle.begin(make_session(clock))

    clock.advance(minutes=31)
    monitor.record("keypress")

    assert not lifecycle.is_authenticated


def test_touch_persistence_is_throttled(state, clock):
    lifecycle = SessionLifecycle(state, clock=clock, persist_interval_ms=1000)
    lifecycle.begin(make_session(clock))
    started = clock.now

    clock.advance(seconds=0.5)
    lifecycle.touch()
    assert json.loads(state.session.path.read_text())["last_activity"] == started

    clock.advance(seconds=1)
    lifecycle.touch()
    assert json.loads(state.session.path.read_text())["last_activity"] == clock.now


def test_purge_is_idempotent_and_notifies(state, clock):
    events = []
    lifecycle = SessionLifecycle(state, clock=clock)
    lifecycle.subscribe(lambda event, session: events.append(event))
    lifecycle.begin(make_session(clock))

    lifecycle.logout()
    lifecycle.logout()

    assert events == [SessionEvent.STARTED, SessionEvent.PURGED, SessionEvent.PURGED]
    assert lifecycle.current is None


def test_activity_monitor_drives_touch(state, clock):
    monitor = ActivityMonitor()
    lifecycle = SessionLifecycle(state, clock=clock)
    unsubscribe = lifecycle.attach(monitor)
    lifecycle.begin(make_session(clock))

    clock.advance(minutes=10)
    monitor.record("keypress")
    assert lifecycle.current.last_activity == clock.now

    unsubscribe()
    clock.advance(minutes=10)
    monitor.record("keypress")
    assert lifecycle.current.last_activity == clock.now - 10 * 60 * 1000


def test_current_is_a_copy(state, clock):
    lifecycle = SessionLifecycle(state, clock=clock)
    lifecycle.begin(make_session(clock))

    snapshot = lifecycle.current
    snapshot.last_activity = 0

    assert lifecycle.current.last_activity == clock.now


def test_expiry_routes_to_landing(munga, delivery, clock):
    sign_in(munga, delivery)
    munga.research.history()
    munga.vault.save("Brief", "classified")
    assert munga.screen() == Screen.RESEARCH

    clock.advance(minutes=31)
    munga.lifecycle.tick()

    assert munga.session is None
    assert munga.screen() == Screen.LANDING
    assert not munga.state.chat_history.exists()
    assert not munga.state.vault.exists()


def test_late_input_does_not_revive_expired_session(munga, delivery, clock):
    sign_in(munga, delivery)

    clock.advance(minutes=45)

    assert munga.record_activity("keypress") is False
    assert munga.session is None


def test_restart_restores_persisted_session(munga, delivery, clock, settings, ai_client, tmp_path):
    from munga.app import MungaApp

    session = sign_in(munga, delivery)
    clock.advance(minutes=10)

    reopened = MungaApp(
        settings=settings,
        data_dir=tmp_path / "data",
        ai_client=ai_client,
        code_delivery=delivery,
        clock=clock,
    ).initialize(configure_logging=False)

    assert reopened.session.token == session.token
    assert reopened.screen() == Screen.RESEARCH


@pytest.mark.parametrize("minutes", [31, 120])
def test_restart_after_inactivity_lands_unauthenticated(munga, delivery, clock, settings, ai_client, tmp_path, minutes):
    from munga.app import MungaApp

    sign_in(munga, delivery)
    clock.advance(minutes=minutes)

    reopened = MungaApp(
        settings=settings,
        data_dir=tmp_path / "data",
        ai_client=ai_client,
        code_delivery=delivery,
        clock=clock,
    ).initialize(configure_logging=False)

    assert reopened.session is None
    assert reopened.screen() == Screen.LANDING


def test_watchdog_expires_idle_session(state, clock):
    from munga.session import SessionWatchdog

    lifecycle = SessionLifecycle(state, clock=clock)
    lifecycle.begin(make_session(clock))
    watchdog = SessionWatchdog(lifecycle, interval_seconds=0.01)
    watchdog.start()
    try:
        clock.advance(minutes=31)
        deadline = time.monotonic() + 2
        while lifecycle.is_authenticated and time.monotonic() < deadline:
            time.sleep(0.01)
    finally:
        watchdog.stop()

    assert not lifecycle.is_authenticated
    assert not watchdog.running
