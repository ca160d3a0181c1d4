"""Tests for the Drive client."""

from unittest.mock import MagicMock, patch

import pytest

from drive_analyzer.exceptions import DriveFetchError
from drive_analyzer.google.client import DriveClient
from drive_analyzer.google.models import GOOGLE_DOC, GOOGLE_FOLDER, PDF, DriveFile


@pytest.fixture
def client():
    with patch("googleapiclient.discovery.build") as mock_build:
        mock_build.return_value = MagicMock()
        yield DriveClient(credentials=MagicMock())


def test_fetch_document_content(client):
    client._docs.documents().get().execute.return_value = {
        "body": {"content": [{"paragraph": {"elements": [{"textRun": {"content": "Doc text"}}]}}]}
    }
    assert client.fetch_file_content(DriveFile("d1", "Doc", GOOGLE_DOC)) == "Doc text"


def test_fetch_document_error_is_inline(client):
    client._docs.documents().get().execute.side_effect = RuntimeError("quota exceeded")
    text = client.fetch_document_content("d1")
    assert text == "Error extracting text from Google Doc: quota exceeded"


def test_fetch_pdf_decodes_bytes(client):
    client._drive.files().export().execute.return_value = b"pdf text"
    assert client.fetch_file_content(DriveFile("p1", "Paper", PDF)) == "pdf text"


def test_unsupported_mime_type(client):
    text = client.fetch_file_content(DriveFile("i1", "Image", "image/png"))
    assert text == "(File type image/png not supported for text extraction)"


def test_list_folder_contents_recurses_and_caps(client):
    pages = {
        "'root' in parents and trashed = false": {"files": [
            {"id": "sub", "name": "Sub", "mimeType": GOOGLE_FOLDER},
            {"id": "a", "name": "A", "mimeType": GOOGLE_DOC},
        ]},
        "'sub' in parents and trashed = false": {"files": [
            {"id": "b", "name": "B", "mimeType": PDF},
            {"id": "c", "name": "C", "mimeType": PDF},
        ]},
    }

    def fake_list(**kwargs):
        request = MagicMock()
        request.execute.return_value = pages[kwargs["q"]]
        return request

    client._drive.files().list.side_effect = fake_list

    flat = client.list_folder_contents("root")
    assert [f.id for f in flat] == ["a"]

    nested = client.list_folder_contents("root", include_subfolders=True, max_files=2)
    assert [f.id for f in nested] == ["a", "b"]


def test_list_folder_error_raises(client):
    client._drive.files().list.side_effect = RuntimeError("forbidden")
    with pytest.raises(DriveFetchError, match="Failed to list folder root"):
        client.list_folder_contents("root")


def test_drive_file_from_api():
    f = DriveFile.from_api({"id": "x", "mimeType": GOOGLE_FOLDER})
    assert f.name == "x"
    assert f.is_folder
