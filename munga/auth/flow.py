"""
Two-step operator authentication.

CREDENTIALS --submit_credentials--> VERIFY --verify--> Session
                                     |  ^
                    reset <----------+  +-- wrong code (stay in VERIFY)

The credential step validates the email against the registry and issues a
six-digit one-time code through the configured delivery channel. The verify
step compares the submitted code with the pending one; registration appends
the operator to the registry only after a successful verification.
"""

import secrets
import threading
import time
from enum import Enum
from typing import Callable, Optional

from pydantic import EmailStr, TypeAdapter, ValidationError

from ..models import PendingVerification, Session, now_ms
from ..utils.exceptions import (
    AuthFlowStateError,
    InvalidCodeError,
    InvalidEmailError,
    MissingHandleError,
    DuplicateEmailError,
    UserNotFoundError,
)
from ..utils.logger import get_logger
from .delivery import CodeDelivery, DeliveryResult
from .registry import UserRegistry

logger = get_logger(__name__)

CODE_LENGTH = 6
_email_adapter = TypeAdapter(EmailStr)


class AuthStep(str, Enum):
    CREDENTIALS = "credentials"
    VERIFY = "verify"


def generate_code() -> str:
    """Uniformly random six-digit numeric code (leading zeros allowed)"""
    return f"{secrets.randbelow(10 ** CODE_LENGTH):0{CODE_LENGTH}d}"


def issue_token() -> str:
    return secrets.token_urlsafe(32)


class AuthFlow:
    """Credential -> one-time passcode state machine producing a Session"""

    def __init__(
        self,
        registry: UserRegistry,
        delivery: CodeDelivery,
        transmission_delay_seconds: float = 0.0,
        code_factory: Callable[[], str] = generate_code,
        token_factory: Callable[[], str] = issue_token,
        clock: Callable[[], int] = now_ms,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.registry = registry
        self.delivery = delivery
        self.transmission_delay_seconds = transmission_delay_seconds
        self._code_factory = code_factory
        self._token_factory = token_factory
        self._clock = clock
        self._sleep = sleep
        self._pending: Optional[PendingVerification] = None
        self._lock = threading.RLock()

    @property
    def step(self) -> AuthStep:
        return AuthStep.VERIFY if self._pending is not None else AuthStep.CREDENTIALS

    @property
    def pending_email(self) -> Optional[str]:
        pending = self._pending
        return pending.email if pending else None

    @property
    def pending_category(self) -> Optional[str]:
        pending = self._pending
        return pending.category if pending else None

    @staticmethod
    def _normalize_email(email: str) -> str:
        candidate = (email or "").strip()
        try:
            return str(_email_adapter.validate_python(candidate)).lower()
        except ValidationError:
            raise InvalidEmailError(candidate)

    def submit_credentials(
        self,
        email: str,
        username: Optional[str] = None,
        register: bool = False,
    ) -> DeliveryResult:
        """
        Validate the credential step and issue a one-time code.

        Args:
            email: Operator email (case-insensitive)
            username: Operator handle, required when registering
            register: True for registration, False for login

        Returns:
            DeliveryResult from the delivery channel. The code itself is
            never returned.

        Raises:
            InvalidEmailError, UserNotFoundError, DuplicateEmailError,
            MissingHandleError, CodeDeliveryError
        """
        normalized = self._normalize_email(email)
        handle = (username or "").strip()

        with self._lock:
            existing = self.registry.find_by_email(normalized)
            if not register and existing is None:
                logger.info("AUTH_FLOW", action="rejected", reason="user_not_found")
                raise UserNotFoundError(normalized)
            if register and existing is not None:
                logger.info("AUTH_FLOW", action="rejected", reason="duplicate_email")
                raise DuplicateEmailError(normalized)
            if register and not handle:
                raise MissingHandleError()

            pending = PendingVerification(
                email=normalized,
                username=handle or None,
                code=self._code_factory(),
                category="register" if register else "login",
                issued_at=self._clock(),
            )
            # a delivery failure leaves the flow in CREDENTIALS, even on resubmission
            self._pending = None
            result = self.delivery.send_code(normalized, pending.code)
            if self.transmission_delay_seconds > 0:
                self._sleep(self.transmission_delay_seconds)
            self._pending = pending

        logger.info("AUTH_FLOW", action="code_issued", category=pending.category, channel=result.channel)
        return result

    def verify(self, code: str) -> Session:
        """
        Complete the flow with the submitted code.

        Raises:
            AuthFlowStateError: no credential step has been completed
            InvalidCodeError: code does not match; the flow stays in VERIFY
        """
        submitted = (code or "").strip()
        with self._lock:
            pending = self._pending
            if pending is None:
                raise AuthFlowStateError("NO PENDING HANDSHAKE. SUBMIT CREDENTIALS FIRST.")

            if not (submitted.isascii() and secrets.compare_digest(submitted, pending.code)):
                logger.info("AUTH_FLOW", action="verify_failed", category=pending.category)
                raise InvalidCodeError()

            if pending.category == "register":
                user = self.registry.register(pending.email, pending.username or "")
                username = user.username
            else:
                user = self.registry.find_by_email(pending.email)
                username = user.username if user else pending.email.split("@")[0]

            self._pending = None

        session = Session(
            username=username,
            email=pending.email,
            token=self._token_factory(),
            is_verified=True,
            last_activity=self._clock(),
        )
        logger.info("AUTH_FLOW", action="verified", category=pending.category, username=username)
        return session

    def reset(self) -> None:
        """Discard any pending verification and return to the credential step"""
        with self._lock:
            had_pending = self._pending is not None
            self._pending = None
        if had_pending:
            logger.info("AUTH_FLOW", action="reset")
