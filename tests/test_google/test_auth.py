"""Tests for Google Drive sign-in."""

import json

import pytest
from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials

from drive_analyzer.exceptions import GoogleAuthError
from drive_analyzer.google.auth import (
    DRIVE_SCOPES,
    DriveAuth,
    credentials_from_token,
    resolve_credentials,
)


def write_token(data_dir, expiry, **extra):
    data = {
        "token": "ya29.saved",
        "refresh_token": "r",
        "client_id": "cid",
        "client_secret": "secret",
        "scopes": DRIVE_SCOPES,
        "expiry": expiry,
        **extra,
    }
    (data_dir / "google_token.json").write_text(json.dumps(data))


def test_credentials_from_token():
    creds = credentials_from_token("ya29.token")
    assert creds.token == "ya29.token"


def test_credentials_from_empty_token_raises():
    with pytest.raises(GoogleAuthError, match="Please sign in to Google Drive first"):
        credentials_from_token("")


def test_defaults(tmp_path):
    auth = DriveAuth(tmp_path)
    assert auth.scopes == DRIVE_SCOPES
    assert auth.client_secret_file == tmp_path / "client_secret.json"
    assert auth.token_path == tmp_path / "google_token.json"


def test_sign_in_requires_client_file(tmp_path):
    with pytest.raises(GoogleAuthError, match="OAuth client file not found"):
        DriveAuth(tmp_path, client_secret_file=tmp_path / "missing.json").sign_in()


def test_credentials_none_when_signed_out(tmp_path):
    assert DriveAuth(tmp_path).credentials() is None


def test_credentials_loads_valid_token(tmp_path):
    write_token(tmp_path, "2999-01-01T00:00:00Z")
    creds = DriveAuth(tmp_path).credentials()
    assert creds.token == "ya29.saved"


def test_refresh_failure_asks_to_sign_in_again(tmp_path, monkeypatch):
    write_token(tmp_path, "2000-01-01T00:00:00Z")

    def fail_refresh(self, request):
        raise RefreshError("invalid_grant")

    monkeypatch.setattr(Credentials, "refresh", fail_refresh)

    with pytest.raises(GoogleAuthError, match="drive-analyzer google signin"):
        DriveAuth(tmp_path).credentials()


def test_unreadable_token_raises(tmp_path):
    (tmp_path / "google_token.json").write_text(json.dumps({"token": "t"}))
    with pytest.raises(GoogleAuthError, match="unreadable"):
        DriveAuth(tmp_path).credentials()


def test_token_info_reports_missing_scopes_and_sign_out(tmp_path):
    auth = DriveAuth(tmp_path)
    assert auth.token_info() is None
    assert not auth.sign_out()

    write_token(tmp_path, "2999-01-01T00:00:00Z", scopes=DRIVE_SCOPES[:1])

    assert auth.signed_in
    info = auth.token_info()
    assert info["has_refresh_token"] is True
    assert info["scopes"] == DRIVE_SCOPES[:1]
    assert info["missing_scopes"] == DRIVE_SCOPES[1:]

    assert auth.sign_out()
    assert not auth.signed_in


def test_access_token_wins_over_saved_sign_in(tmp_path):
    write_token(tmp_path, "2999-01-01T00:00:00Z")
    assert resolve_credentials(tmp_path, "ya29.env").token == "ya29.env"
    assert resolve_credentials(tmp_path).token == "ya29.saved"
    assert resolve_credentials(tmp_path / "empty") is None
