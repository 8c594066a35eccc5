"""
Typed local state storage with JSON-based persistence.

Each logical record (session, registry, chat history, feedback draft, vault)
lives in its own JSON document and is always rewritten whole. Components
receive only the record stores they own.
"""

import json
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Any, Generic, List, Optional, Type, TypeVar

from pydantic import TypeAdapter, ValidationError

from ..models import ChatMessage, FeedbackDraft, RegisteredUser, Session, VaultDocument
from ..utils.exceptions import StoreError
from ..utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

SESSION_FILE = "session.json"
REGISTRY_FILE = "user_registry.json"
CHAT_HISTORY_FILE = "chat_history.json"
DRAFT_FILE = "comm_draft.json"
VAULT_FILE = "vault.json"


def _atomic_write(path: Path, payload: Any) -> None:
    """Atomically write JSON to the target path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w", dir=str(path.parent), delete=False, encoding="utf-8"
    ) as tf:
        json.dump(payload, tf, indent=2, ensure_ascii=False, default=str)
        temp_path = Path(tf.name)
    try:
        shutil.move(str(temp_path), str(path))
    except Exception as e:
        if temp_path.exists():
            temp_path.unlink()
        raise StoreError(f"Failed to save {path}: {e}")


class RecordStore(Generic[T]):
    """get/set/clear access to one JSON record of a fixed type"""

    def __init__(self, path: Path, record_type: Type[T]):
        self.path = Path(path)
        self._adapter = TypeAdapter(record_type)
        self._lock = threading.RLock()

    @property
    def key(self) -> str:
        return self.path.stem

    def exists(self) -> bool:
        return self.path.exists()

    def get(self) -> Optional[T]:
        """Return the record, or None when it is absent or unreadable"""
        with self._lock:
            if not self.path.exists():
                return None
            try:
                raw = self.path.read_text(encoding="utf-8")
                return self._adapter.validate_json(raw)
            except (OSError, ValueError, ValidationError) as e:
                logger.warning("STATE_STORE", action="corrupt_record", key=self.key, error=str(e))
                return None

    def set(self, value: T) -> None:
        with self._lock:
            _atomic_write(self.path, self._adapter.dump_python(value, mode="json"))

    def clear(self) -> None:
        """Remove the record (idempotent)"""
        with self._lock:
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                raise StoreError(f"Failed to clear {self.path}: {e}")


class LocalState:
    """The set of records persisted for the operator on this machine"""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.session: RecordStore[Session] = RecordStore(self.base_dir / SESSION_FILE, Session)
        self.registry: RecordStore[List[RegisteredUser]] = RecordStore(
            self.base_dir / REGISTRY_FILE, List[RegisteredUser]
        )
        self.chat_history: RecordStore[List[ChatMessage]] = RecordStore(
            self.base_dir / CHAT_HISTORY_FILE, List[ChatMessage]
        )
        self.draft: RecordStore[FeedbackDraft] = RecordStore(self.base_dir / DRAFT_FILE, FeedbackDraft)
        self.vault: RecordStore[VaultDocument] = RecordStore(self.base_dir / VAULT_FILE, VaultDocument)

    def purgeable(self) -> List[RecordStore[Any]]:
        """Records removed on logout or expiry"""
        return [self.session, self.chat_history, self.vault]
