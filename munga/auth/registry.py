"""
Local operator registry.

The registry is append-only: entries are created by the registration step of
the auth flow and are never updated or removed.
"""

from typing import List, Optional

from ..models import RegisteredUser
from ..stores import RecordStore
from ..utils.exceptions import DuplicateEmailError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class UserRegistry:
    """Lookup and registration of operators keyed by lower-cased email"""

    def __init__(self, store: RecordStore[List[RegisteredUser]]):
        self._store = store

    def list_users(self) -> List[RegisteredUser]:
        return list(self._store.get() or [])

    def find_by_email(self, email: str) -> Optional[RegisteredUser]:
        target = (email or "").strip().lower()
        for user in self.list_users():
            if user.email == target:
                return user
        return None

    def exists(self, email: str) -> bool:
        return self.find_by_email(email) is not None

    def register(self, email: str, username: str) -> RegisteredUser:
        """Append a new operator. Email must be unique (case-insensitive)."""
        users = self.list_users()
        user = RegisteredUser(email=email, username=username.strip())
        if any(u.email == user.email for u in users):
            raise DuplicateEmailError(email)
        users.append(user)
        self._store.set(users)
        logger.info("REGISTRY", action="registered", username=user.username)
        return user
