"""Google Drive content client with sync and async interfaces."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from drive_analyzer.exceptions import DriveFetchError
from drive_analyzer.google.extractors import (
    extract_document_text,
    extract_sheet_text,
    extract_slides_text,
)
from drive_analyzer.google.models import (
    GOOGLE_DOC,
    GOOGLE_SHEET,
    GOOGLE_SLIDES,
    PDF,
    DriveFile,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILES = 20


class DriveClient:
    """Reads text out of Drive files via the Drive, Docs, Sheets and Slides APIs.

    Content fetchers fail soft: API errors become an inline
    ``Error extracting text from ...`` string so one bad file cannot abort
    a batch.

    Args:
        credentials: A google.oauth2.credentials.Credentials object.
    """

    def __init__(self, credentials):
        try:
            from googleapiclient.discovery import build
        except ImportError:
            raise ImportError(
                "google-api-python-client is required for DriveClient. "
                "Install with: pip install drive-analyzer[google]"
            )
        self._drive = build("drive", "v3", credentials=credentials, cache_discovery=False)
        self._docs = build("docs", "v1", credentials=credentials, cache_discovery=False)
        self._sheets = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        self._slides = build("slides", "v1", credentials=credentials, cache_discovery=False)

    # ---- Content extraction ----

    def fetch_document_content(self, file_id: str) -> str:
        try:
            doc = (
                self._docs.documents()
                .get(
                    documentId=file_id,
                    suggestionsViewMode="PREVIEW_WITHOUT_SUGGESTIONS",
                    includeTabsContent=True,
                )
                .execute()
            )
            return extract_document_text(doc)
        except Exception as e:
            logger.error(f"Error fetching Google Doc {file_id}: {e}")
            return f"Error extracting text from Google Doc: {e}"

    def fetch_sheet_content(self, file_id: str) -> str:
        try:
            meta = (
                self._sheets.spreadsheets()
                .get(spreadsheetId=file_id, fields="sheets.properties.title")
                .execute()
            )
            titles = [
                sheet["properties"]["title"]
                for sheet in meta.get("sheets", [])
                if sheet.get("properties", {}).get("title")
            ]
            if not titles:
                return extract_sheet_text([])
            data = (
                self._sheets.spreadsheets()
                .values()
                .batchGet(spreadsheetId=file_id, ranges=titles, majorDimension="ROWS")
                .execute()
            )
            return extract_sheet_text(data.get("valueRanges"))
        except Exception as e:
            logger.error(f"Error fetching Google Sheet {file_id}: {e}")
            return f"Error extracting text from Google Sheet: {e}"

    def fetch_slides_content(self, file_id: str) -> str:
        try:
            presentation = (
                self._slides.presentations()
                .get(presentationId=file_id)
                .execute()
            )
            return extract_slides_text(presentation)
        except Exception as e:
            logger.error(f"Error fetching Google Slides {file_id}: {e}")
            return f"Error extracting text from Google Slides: {e}"

    def fetch_pdf_content(self, file_id: str) -> str:
        try:
            data = (
                self._drive.files()
                .export(fileId=file_id, mimeType="text/plain")
                .execute()
            )
            if isinstance(data, bytes):
                return data.decode("utf-8", errors="replace")
            return str(data)
        except Exception as e:
            logger.error(f"Error fetching PDF {file_id}: {e}")
            return f"Error extracting text from PDF: {e}"

    def fetch_file_content(self, file: DriveFile) -> str:
        """Dispatch to the extractor matching the file's MIME type."""
        if file.mime_type == GOOGLE_DOC:
            return self.fetch_document_content(file.id)
        if file.mime_type == GOOGLE_SHEET:
            return self.fetch_sheet_content(file.id)
        if file.mime_type == GOOGLE_SLIDES:
            return self.fetch_slides_content(file.id)
        if file.mime_type == PDF:
            return self.fetch_pdf_content(file.id)
        return f"(File type {file.mime_type} not supported for text extraction)"

    # ---- Listing ----

    def list_folder_contents(
        self,
        folder_id: str,
        include_subfolders: bool = False,
        max_files: int = DEFAULT_MAX_FILES,
    ) -> list[DriveFile]:
        """List non-folder files in a Drive folder, optionally recursing."""
        files: list[DriveFile] = []
        pending = [folder_id]
        try:
            while pending and len(files) < max_files:
                current = pending.pop(0)
                for item in self._list_children(current):
                    if item.is_folder:
                        if include_subfolders:
                            pending.append(item.id)
                        continue
                    files.append(item)
                    if len(files) >= max_files:
                        break
        except Exception as e:
            raise DriveFetchError(f"Failed to list folder {folder_id}: {e}") from e

        logger.info(f"Found {len(files)} files in folder {folder_id}")
        return files

    def _list_children(self, folder_id: str) -> list[DriveFile]:
        """List direct children of a folder, handling pagination."""
        children: list[DriveFile] = []
        page_token = None
        while True:
            kwargs: dict[str, Any] = {
                "q": f"'{folder_id}' in parents and trashed = false",
                "fields": "nextPageToken, files(id, name, mimeType, iconLink, description)",
                "pageSize": 100,
            }
            if page_token:
                kwargs["pageToken"] = page_token
            response = self._drive.files().list(**kwargs).execute()
            children.extend(DriveFile.from_api(raw) for raw in response.get("files", []))
            page_token = response.get("nextPageToken")
            if not page_token:
                return children

    # ---- Async wrappers (asyncio.to_thread) ----

    async def afetch_file_content(self, file: DriveFile) -> str:
        """Async version of fetch_file_content."""
        return await asyncio.to_thread(self.fetch_file_content, file)

    async def alist_folder_contents(self, folder_id: str, **kwargs) -> list[DriveFile]:
        """Async version of list_folder_contents."""
        return await asyncio.to_thread(self.list_folder_contents, folder_id, **kwargs)
