"""Text to file export"""

from .documents import (
    DEFAULT_TITLE,
    MEDIA_TYPES,
    export_document,
    export_markdown,
    export_pdf,
    export_text,
    render_document,
    render_pdf,
    safe_filename,
)

__all__ = [
    "DEFAULT_TITLE",
    "MEDIA_TYPES",
    "export_document",
    "export_markdown",
    "export_pdf",
    "export_text",
    "render_document",
    "render_pdf",
    "safe_filename",
]
