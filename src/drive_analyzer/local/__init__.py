"""Local file text extraction."""

from drive_analyzer.local.reader import (
    MAX_DOC_CHARS,
    MAX_FILE_SIZE,
    extract_text_from_file,
    process_local_files,
)

__all__ = [
    "MAX_DOC_CHARS",
    "MAX_FILE_SIZE",
    "extract_text_from_file",
    "process_local_files",
]
