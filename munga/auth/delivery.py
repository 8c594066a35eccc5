"""
One-time passcode delivery channels.

The auth flow never shows the passcode itself; it hands the code to a
CodeDelivery implementation that reaches the operator out of band.

- OutboxCodeDelivery writes each message as an .eml file into a local outbox
  directory (a mail sink for development machines).
- SmtpCodeDelivery sends the message through an SMTP relay.
"""

import smtplib
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from email.message import EmailMessage
from pathlib import Path
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel
from tenacity import (
    RetryError,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..utils.config import SmtpSettings
from ..utils.exceptions import CodeDeliveryError, ConfigError
from ..utils.logger import get_logger

logger = get_logger(__name__)

SUBJECT = "MUNGA SECURE LINK // Verification code"


class DeliveryResult(BaseModel):
    delivered: bool
    channel: str
    detail: str = ""


def build_code_message(sender: str, destination: str, code: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = sender
    message["To"] = destination
    message["Subject"] = SUBJECT
    message.set_content(
        "Secure handshake requested for your operator link.\n\n"
        f"Verification code: {code}\n\n"
        "If you did not request access, ignore this transmission."
    )
    return message


class CodeDelivery(ABC):
    """Out-of-band channel for one-time passcodes"""

    channel = "abstract"

    @abstractmethod
    def send_code(self, destination: str, code: str) -> DeliveryResult:
        """Deliver `code` to `destination`. Raises CodeDeliveryError on failure."""


class OutboxCodeDelivery(CodeDelivery):
    """Drop each code message into a local outbox directory"""

    channel = "outbox"

    def __init__(self, outbox_dir: Path, sender: str = "no-reply@munga.local"):
        self.outbox_dir = Path(outbox_dir)
        self.sender = sender

    def send_code(self, destination: str, code: str) -> DeliveryResult:
        message = build_code_message(self.sender, destination, code)
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
        path = self.outbox_dir / f"{stamp}_{uuid4().hex[:8]}.eml"
        try:
            self.outbox_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(bytes(message))
        except OSError as e:
            raise CodeDeliveryError(f"Outbox unavailable: {e}", channel=self.channel)
        logger.info("CODE_DELIVERY", action="queued", channel=self.channel, file=path.name)
        return DeliveryResult(delivered=True, channel=self.channel, detail=str(path))


class SmtpCodeDelivery(CodeDelivery):
    """Send code messages through an SMTP relay"""

    channel = "smtp"

    def __init__(self, settings: SmtpSettings):
        if not settings.host:
            raise ConfigError("SMTP_HOST is required for smtp code delivery")
        self.settings = settings
        self.sender = settings.sender or settings.username or "no-reply@munga.local"

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type((smtplib.SMTPServerDisconnected, smtplib.SMTPConnectError, TimeoutError)),
    )
    def _transmit(self, message: EmailMessage) -> None:
        s = self.settings
        smtp_cls = smtplib.SMTP_SSL if s.use_ssl else smtplib.SMTP
        with smtp_cls(s.host, s.port, timeout=s.timeout_seconds) as client:
            if not s.use_ssl:
                client.starttls()
            if s.username and s.password:
                client.login(s.username, s.password)
            client.send_message(message)

    def send_code(self, destination: str, code: str) -> DeliveryResult:
        message = build_code_message(self.sender, destination, code)
        try:
            self._transmit(message)
        except (RetryError, smtplib.SMTPException, OSError) as e:
            logger.warning(
                "CODE_DELIVERY",
                action="failed",
                channel=self.channel,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise CodeDeliveryError("TRANSMISSION FAILED. RETRY SECURE LINK.", channel=self.channel)
        logger.info("CODE_DELIVERY", action="sent", channel=self.channel)
        return DeliveryResult(delivered=True, channel=self.channel)


def create_code_delivery(kind: str, outbox_dir: Path, smtp: Optional[SmtpSettings] = None) -> CodeDelivery:
    """Build the delivery channel named in configuration"""
    if kind == "smtp":
        return SmtpCodeDelivery(smtp or SmtpSettings())
    if kind == "outbox":
        return OutboxCodeDelivery(outbox_dir)
    raise ConfigError(f"Unknown code delivery channel: {kind}")
