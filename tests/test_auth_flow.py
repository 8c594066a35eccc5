import pytest

from munga.auth import AuthFlow, AuthStep, UserRegistry, generate_code
from munga.utils.exceptions import (
    AuthFlowStateError,
    CodeDeliveryError,
    DuplicateEmailError,
    InvalidCodeError,
    InvalidEmailError,
    MissingHandleError,
    UserNotFoundError,
)

from conftest import RecordingDelivery


def make_flow(state, delivery, clock, **kwargs):
    registry = UserRegistry(state.registry)
    return AuthFlow(registry, delivery, clock=clock, **kwargs), registry


def test_generate_code_is_six_digits():
    for _ in range(200):
        code = generate_code()
        assert len(code) == 6
        assert code.isdigit()


def test_register_then_verify_creates_single_registry_entry(state, delivery, clock):
    flow, registry = make_flow(state, delivery, clock)

    result = flow.submit_credentials("alice@example.com", username="Alice", register=True)
    assert result.delivered
    assert flow.step == AuthStep.VERIFY
    # nothing is registered before verification
    assert registry.list_users() == []

    session = flow.verify(delivery.last_code)

    users = registry.list_users()
    assert len(users) == 1
    assert users[0].email == "alice@example.com"
    assert users[0].username == "Alice"
    assert session.username == "Alice"
    assert session.email == "alice@example.com"
    assert session.is_verified
    assert session.last_activity == clock.now
    assert flow.step == AuthStep.CREDENTIALS


def test_code_is_delivered_out_of_band(state, delivery, clock):
    flow, _ = make_flow(state, delivery, clock)
    result = flow.submit_credentials("alice@example.com", username="Alice", register=True)

    destination, code = delivery.sent[-1]
    assert destination == "alice@example.com"
    assert code not in result.model_dump_json()


def test_duplicate_registration_is_case_insensitive(state, delivery, clock):
    flow, registry = make_flow(state, delivery, clock)
    registry.register("alice@example.com", "Alice")
    before = registry.list_users()

    with pytest.raises(DuplicateEmailError) as exc_info:
        flow.submit_credentials("ALICE@Example.com", username="Impostor", register=True)

    assert str(exc_info.value) == "EMAIL ALREADY REGISTERED. ACCESS DENIED."
    assert registry.list_users() == before
    assert flow.step == AuthStep.CREDENTIALS
    assert delivery.sent == []


def test_login_with_unknown_email_fails(state, delivery, clock):
    flow, _ = make_flow(state, delivery, clock)

    with pytest.raises(UserNotFoundError) as exc_info:
        flow.submit_credentials("ghost@example.com")

    assert "OPERATOR NOT FOUND" in str(exc_info.value)
    assert delivery.sent == []


def test_registration_requires_handle(state, delivery, clock):
    flow, _ = make_flow(state, delivery, clock)

    with pytest.raises(MissingHandleError):
        flow.submit_credentials("alice@example.com", username="   ", register=True)


def test_malformed_email_rejected(state, delivery, clock):
    flow, _ = make_flow(state, delivery, clock)

    with pytest.raises(InvalidEmailError):
        flow.submit_credentials("not-an-email", username="Alice", register=True)


@pytest.mark.parametrize("email", ["ops@corp.local", "root@localhost"])
def test_special_use_domains_rejected(state, delivery, clock, email):
    flow, _ = make_flow(state, delivery, clock)

    with pytest.raises(InvalidEmailError):
        flow.submit_credentials(email, username="Ops", register=True)
    assert delivery.sent == []


def test_wrong_code_keeps_verify_step_and_registry_unchanged(state, delivery, clock):
    flow, registry = make_flow(state, delivery, clock)
    flow.submit_credentials("alice@example.com", username="Alice", register=True)
    good = delivery.last_code
    wrong = "000000" if good != "000000" else "111111"

    for attempt in (wrong, "", "12345", "١٢٣٤٥٦", good + "0"):
        with pytest.raises(InvalidCodeError):
            flow.verify(attempt)
        assert flow.step == AuthStep.VERIFY
        assert registry.list_users() == []

    session = flow.verify(good)
    assert session.username == "Alice"
    assert len(registry.list_users()) == 1


def test_override_credentials_have_no_special_meaning(state, delivery, clock):
    flow, registry = make_flow(state, delivery, clock, code_factory=lambda: "482913")
    registry.register("commander@example.com", "Commander")
    flow.submit_credentials("commander@example.com")

    with pytest.raises(InvalidCodeError):
        flow.verify("000000")


def test_verify_without_pending_step_fails(state, delivery, clock):
    flow, _ = make_flow(state, delivery, clock)

    with pytest.raises(AuthFlowStateError):
        flow.verify("123456")


def test_login_uses_registered_handle(state, delivery, clock):
    flow, registry = make_flow(state, delivery, clock)
    registry.register("bob@example.com", "Bob")

    flow.submit_credentials("  Bob@Example.com ")
    session = flow.verify(delivery.last_code)

    assert session.username == "Bob"
    assert session.email == "bob@example.com"
    assert len(registry.list_users()) == 1


def test_each_verification_issues_a_fresh_token(state, delivery, clock):
    flow, registry = make_flow(state, delivery, clock)
    registry.register("bob@example.com", "Bob")

    flow.submit_credentials("bob@example.com")
    first = flow.verify(delivery.last_code)
    flow.submit_credentials("bob@example.com")
    second = flow.verify(delivery.last_code)

    assert first.token != second.token


def test_reset_discards_pending_code(state, delivery, clock):
    flow, _ = make_flow(state, delivery, clock)
    flow.submit_credentials("alice@example.com", username="Alice", register=True)
    code = delivery.last_code

    flow.reset()

    assert flow.step == AuthStep.CREDENTIALS
    assert flow.pending_email is None
    with pytest.raises(AuthFlowStateError):
        flow.verify(code)


def test_delivery_failure_stays_on_credentials(state, clock):
    class FailingDelivery(RecordingDelivery):
        def send_code(self, destination, code):
            raise CodeDeliveryError("TRANSMISSION FAILED. RETRY SECURE LINK.", channel="test")

    flow, _ = make_flow(state, FailingDelivery(), clock)

    with pytest.raises(CodeDeliveryError):
        flow.submit_credentials("alice@example.com", username="Alice", register=True)
    assert flow.step == AuthStep.CREDENTIALS


def test_failed_resubmission_drops_previous_code(state, clock):
    class FlakyDelivery(RecordingDelivery):
        fail = False

        def send_code(self, destination, code):
            if self.fail:
                raise CodeDeliveryError("TRANSMISSION FAILED. RETRY SECURE LINK.", channel="test")
            return super().send_code(destination, code)

    delivery = FlakyDelivery()
    flow, registry = make_flow(state, delivery, clock)
    flow.submit_credentials("alice@example.com", username="Alice", register=True)
    first_code = delivery.last_code

    delivery.fail = True
    with pytest.raises(CodeDeliveryError):
        flow.submit_credentials("alice@example.com", username="Alice", register=True)

    assert flow.step == AuthStep.CREDENTIALS
    with pytest.raises(AuthFlowStateError):
        flow.verify(first_code)
    assert registry.list_users() == []


def test_transmission_delay_applied_before_verify_step(state, delivery, clock):
    pauses = []
    flow, _ = make_flow(state, delivery, clock, transmission_delay_seconds=1.5, sleep=pauses.append)

    flow.submit_credentials("alice@example.com", username="Alice", register=True)

    assert pauses == [1.5]
    assert flow.step == AuthStep.VERIFY


def test_pending_verification_repr_hides_code(state, delivery, clock):
    flow, _ = make_flow(state, delivery, clock, code_factory=lambda: "135790")
    flow.submit_credentials("alice@example.com", username="Alice", register=True)

    assert "135790" not in repr(flow._pending)
    assert "135790" not in str(flow._pending)
