"""Google Drive, Docs, Sheets and Slides content extraction.

Heavy imports are deferred. Use explicit imports:
    from drive_analyzer.google.client import DriveClient
    from drive_analyzer.google.auth import DriveAuth
"""

# Light imports only (no external deps)
from drive_analyzer.google.models import DriveFile
from drive_analyzer.google.extractors import (
    extract_document_text,
    extract_sheet_text,
    extract_slides_text,
)


def __getattr__(name):
    """Lazy imports for classes that require optional dependencies."""
    if name == "DriveClient":
        from drive_analyzer.google.client import DriveClient
        return DriveClient
    if name == "DriveAuth":
        from drive_analyzer.google.auth import DriveAuth
        return DriveAuth
    if name == "credentials_from_token":
        from drive_analyzer.google.auth import credentials_from_token
        return credentials_from_token
    raise AttributeError(f"module 'drive_analyzer.google' has no attribute {name!r}")


__all__ = [
    "DriveClient",
    "DriveFile",
    "DriveAuth",
    "credentials_from_token",
    "extract_document_text",
    "extract_sheet_text",
    "extract_slides_text",
]
