"""Identity and session data models"""

import time
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds"""
    return int(time.time() * 1000)


class RegisteredUser(BaseModel):
    """Registry entry for a known operator. Email is the case-insensitive key."""

    model_config = ConfigDict(frozen=True)

    email: str
    username: str
    registered_at: int = Field(default_factory=now_ms)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class Session(BaseModel):
    """The authenticated operator's live state"""

    username: str
    email: str
    token: str
    is_verified: bool = True
    last_activity: int = Field(default_factory=now_ms)

    def idle_ms(self, now: int) -> int:
        return now - self.last_activity

    def is_expired(self, now: int, threshold_ms: int) -> bool:
        return self.idle_ms(now) > threshold_ms


class PendingVerification(BaseModel):
    """One-time passcode issued by the credential step; never persisted"""

    model_config = ConfigDict(frozen=True)

    email: str
    username: Optional[str] = None
    code: str = Field(pattern=r"^\d{6}$")
    category: Literal["login", "register"]
    issued_at: int = Field(default_factory=now_ms)

    def __repr__(self) -> str:
        # keep the code out of logs and tracebacks
        return f"PendingVerification(email={self.email!r}, category={self.category!r})"

    __str__ = __repr__
