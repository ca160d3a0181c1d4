"""Data models for the Google Drive module."""

from __future__ import annotations

from dataclasses import dataclass

GOOGLE_DOC = "application/vnd.google-apps.document"
GOOGLE_SHEET = "application/vnd.google-apps.spreadsheet"
GOOGLE_SLIDES = "application/vnd.google-apps.presentation"
GOOGLE_FOLDER = "application/vnd.google-apps.folder"
PDF = "application/pdf"


@dataclass
class DriveFile:
    """A Drive file selected for analysis."""

    id: str
    name: str
    mime_type: str
    icon_link: str = ""
    description: str = ""

    @classmethod
    def from_api(cls, raw: dict) -> "DriveFile":
        return cls(
            id=raw["id"],
            name=raw.get("name", raw["id"]),
            mime_type=raw.get("mimeType", ""),
            icon_link=raw.get("iconLink", ""),
            description=raw.get("description", ""),
        )

    @property
    def is_folder(self) -> bool:
        return self.mime_type == GOOGLE_FOLDER
