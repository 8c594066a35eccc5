"""
Document export: vault text to .txt, .md and .pdf files.

The render_* functions are pure (content in, bytes out). export_document
writes the rendered bytes into the export directory under a filename derived
from the title.
"""

import io
import re
import textwrap
from pathlib import Path
from typing import Callable, Dict

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas as pdf_canvas

from ..utils.exceptions import ExportError
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TITLE = "Tactical_Intel_Export"
PDF_WRAP_COLUMNS = 90
MAX_EXPORT_CHARS = 1_000_000

PDF_FONT = "Helvetica"
PDF_FONT_SIZE = 10
PDF_LEADING = 5 * mm
PDF_MARGIN = 10 * mm

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._ -]+")


def safe_filename(title: str) -> str:
    """Filesystem-safe stem for a user-supplied title, defaulted if blank"""
    stem = _UNSAFE_FILENAME_CHARS.sub("_", (title or "").strip())
    stem = stem.strip(" ._")[:120]
    return stem or DEFAULT_TITLE


def render_text(content: str) -> bytes:
    return content.encode("utf-8")


def render_markdown(content: str) -> bytes:
    return content.encode("utf-8")


def wrap_lines(content: str, columns: int = PDF_WRAP_COLUMNS) -> list:
    """Split content into lines no wider than `columns`, keeping blank lines"""
    lines = []
    for raw_line in content.splitlines() or [""]:
        raw_line = raw_line.expandtabs(4)
        if not raw_line.strip():
            lines.append("")
            continue
        lines.extend(
            textwrap.wrap(raw_line, width=columns, break_long_words=True, replace_whitespace=False)
        )
    return lines


def _pdf_safe(line: str) -> str:
    # standard PDF fonts only cover cp1252
    line = _CONTROL_CHARS.sub("", line)
    return line.encode("cp1252", errors="replace").decode("cp1252")


def render_pdf(content: str, title: str = "", columns: int = PDF_WRAP_COLUMNS) -> bytes:
    """Render content as an A4 PDF, line-wrapped at a fixed column width"""
    buffer = io.BytesIO()
    pdf = pdf_canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(title or DEFAULT_TITLE)
    _, page_height = A4
    top = page_height - PDF_MARGIN

    pdf.setFont(PDF_FONT, PDF_FONT_SIZE)
    y = top
    for line in wrap_lines(content, columns):
        if y < PDF_MARGIN:
            pdf.showPage()
            pdf.setFont(PDF_FONT, PDF_FONT_SIZE)
            y = top
        pdf.drawString(PDF_MARGIN, y, _pdf_safe(line))
        y -= PDF_LEADING
    pdf.save()
    return buffer.getvalue()


RENDERERS: Dict[str, Callable[[str, str], bytes]] = {
    "txt": lambda content, title: render_text(content),
    "md": lambda content, title: render_markdown(content),
    "pdf": lambda content, title: render_pdf(content, title),
}

MEDIA_TYPES = {
    "txt": "text/plain",
    "md": "text/markdown",
    "pdf": "application/pdf",
}


def render_document(content: str, title: str, fmt: str) -> bytes:
    if fmt not in RENDERERS:
        raise ExportError(f"Unsupported export format: {fmt}")
    if len(content) > MAX_EXPORT_CHARS:
        raise ExportError(f"Content exceeds {MAX_EXPORT_CHARS} characters")
    return RENDERERS[fmt](content, title)


def export_document(content: str, title: str, fmt: str, directory: Path) -> Path:
    """
    Write content to `<directory>/<title>.<fmt>`.

    Args:
        content: Text to export
        title: User-supplied title; sanitized, defaulted when blank
        fmt: "txt", "md" or "pdf"
        directory: Export directory (created if missing)

    Returns:
        Path of the written file
    """
    data = render_document(content, title, fmt)
    directory = Path(directory)
    path = directory / f"{safe_filename(title)}.{fmt}"
    try:
        directory.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as e:
        raise ExportError(f"Failed to write {path}: {e}")
    logger.info("EXPORT", action="written", format=fmt, file=path.name, size=len(data))
    return path


def export_text(content: str, title: str, directory: Path) -> Path:
    return export_document(content, title, "txt", directory)


def export_markdown(content: str, title: str, directory: Path) -> Path:
    return export_document(content, title, "md", directory)


def export_pdf(content: str, title: str, directory: Path) -> Path:
    return export_document(content, title, "pdf", directory)
