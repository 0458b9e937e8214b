"""
I/O helpers for writing exported notes.
"""

from __future__ import annotations

from pathlib import Path

from .cache import document_date
from .output import doc_title
from .utils import slugify


def export_filename(doc: dict) -> str:
    return f"{document_date(doc)}-{slugify(doc_title(doc, 'meeting'))}.md"


def save_export(out_path: Path, markdown: str) -> Path:
    """
    Write an exported meeting to disk, creating parent directories.
    Returns the Path written.
    """
    out_path = out_path.expanduser()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(markdown, encoding="utf-8")
    return out_path
