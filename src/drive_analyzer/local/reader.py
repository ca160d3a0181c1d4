"""Extract text from local files selected for analysis."""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path

from drive_analyzer.exceptions import LocalFileError

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024
# Same cap as Drive files.
MAX_DOC_CHARS = 200_000

TEXT_EXTENSIONS = (
    ".txt", ".md", ".json", ".csv", ".log",
    ".js", ".ts", ".jsx", ".tsx", ".css", ".html", ".xml", ".yaml", ".yml",
)
TEXT_MIME_TYPES = ("application/json", "application/javascript", "application/typescript")


def guess_mime_type(path: Path) -> str:
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or ""


def is_text_file(name: str, mime_type: str) -> bool:
    mime_type = mime_type.lower()
    if mime_type.startswith("text/") or mime_type in TEXT_MIME_TYPES:
        return True
    return name.lower().endswith(TEXT_EXTENSIONS)


def extract_text_from_file(path: str | Path, mime_type: str | None = None) -> str:
    """Return the text content of a local file.

    Raises:
        LocalFileError: If the file exceeds 10MB or cannot be stat'ed.
    """
    path = Path(path)
    if mime_type is None:
        mime_type = guess_mime_type(path)

    try:
        size = path.stat().st_size
    except OSError as e:
        raise LocalFileError(f"Cannot access {path.name}: {e}") from e
    if size > MAX_FILE_SIZE:
        size_mb = int(size / 1024 / 1024 + 0.5)
        raise LocalFileError(
            f"File {path.name} is too large ({size_mb}MB). Maximum size is 10MB."
        )

    if not is_text_file(path.name, mime_type):
        return (
            f"(File {path.name} of type {mime_type or 'unknown'} is not supported "
            "for text extraction. Only text-based files are currently supported.)"
        )

    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.error(f"Error extracting text from file {path.name}: {e}")
        return f"(Error extracting content from {path.name}: {e})"
    return text[:MAX_DOC_CHARS]


def process_local_files(paths: list[str | Path]) -> list[str]:
    """Extract each file into a ``### Local File:`` section."""
    results = []
    for path in paths:
        path = Path(path)
        try:
            content = extract_text_from_file(path)
        except LocalFileError as e:
            logger.warning(f"Error processing file {path.name}: {e}")
            content = f"(Error: {e})"
        results.append(f"### Local File: {path.name}\n{content}")
    return results
