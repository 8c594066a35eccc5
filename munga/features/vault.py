"""Document vault: authored intel and its export"""

from pathlib import Path
from typing import Optional

from ..export import DEFAULT_TITLE, export_document
from ..models import VaultDocument
from ..stores import RecordStore

EMPTY_CONTENT = "No intelligence data recorded."
EXPORT_FORMATS = ("pdf", "md", "txt")


class DocumentVault:
    def __init__(self, store: RecordStore[VaultDocument], export_dir: Path):
        self.store = store
        self.export_dir = Path(export_dir)

    def load(self) -> VaultDocument:
        return self.store.get() or VaultDocument()

    def save(self, title: str, content: str) -> VaultDocument:
        document = VaultDocument(title=title or "", content=content or "")
        self.store.set(document)
        return document

    def export(self, fmt: str, title: Optional[str] = None, content: Optional[str] = None) -> Path:
        """
        Export the vault document (or the given title/content) as `fmt`.

        Blank title and content fall back to the export defaults.
        """
        document = self.load()
        title = document.title if title is None else title
        content = document.content if content is None else content
        return export_document(content or EMPTY_CONTENT, title or DEFAULT_TITLE, fmt, self.export_dir)
