"""Google sign-in for read-only Drive access.

Credentials come from one of two places: a bare access token in
``GOOGLE_ACCESS_TOKEN``, or the token saved by ``drive-analyzer google signin``
under the data directory.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from drive_analyzer.exceptions import GoogleAuthError

logger = logging.getLogger(__name__)

DRIVE_SCOPES = [
    "https://www.googleapis.com/auth/drive.readonly",
    "https://www.googleapis.com/auth/documents.readonly",
    "https://www.googleapis.com/auth/spreadsheets.readonly",
    "https://www.googleapis.com/auth/presentations.readonly",
]

TOKEN_FILE = "google_token.json"
CLIENT_SECRET_FILE = "client_secret.json"
SIGN_IN_AGAIN = "Run `drive-analyzer google signin` again."


def credentials_from_token(access_token: str) -> Credentials:
    """Wrap a bare OAuth access token (e.g. from a browser sign-in)."""
    if not access_token:
        raise GoogleAuthError("Please sign in to Google Drive first")
    return Credentials(token=access_token)


class DriveAuth:
    """The saved Drive sign-in under a data directory."""

    def __init__(
        self,
        data_dir: Path,
        client_secret_file: Path | None = None,
        scopes: list[str] | None = None,
    ):
        self.data_dir = Path(data_dir)
        self.client_secret_file = (
            Path(client_secret_file) if client_secret_file else self.data_dir / CLIENT_SECRET_FILE
        )
        self.scopes = scopes or list(DRIVE_SCOPES)

    @property
    def token_path(self) -> Path:
        return self.data_dir / TOKEN_FILE

    @property
    def signed_in(self) -> bool:
        return self.token_path.exists()

    def sign_in(self) -> Credentials:
        """Run the browser consent flow and save the resulting token."""
        if not self.client_secret_file.exists():
            raise GoogleAuthError(
                f"OAuth client file not found at {self.client_secret_file}. "
                "Create a Desktop OAuth client in Google Cloud Console and save its JSON there."
            )
        flow = InstalledAppFlow.from_client_secrets_file(str(self.client_secret_file), self.scopes)
        creds = flow.run_local_server(port=0)
        self._save(creds)
        logger.info(f"Saved Google Drive token to {self.token_path}")
        return creds

    def credentials(self) -> Credentials | None:
        """Saved credentials, refreshed if expired. None when not signed in."""
        if not self.signed_in:
            return None
        try:
            creds = Credentials.from_authorized_user_file(str(self.token_path), self.scopes)
        except ValueError as e:
            raise GoogleAuthError(f"Saved Google token is unreadable: {e}. {SIGN_IN_AGAIN}") from e

        if creds.expired and creds.refresh_token:
            try:
                creds.refresh(Request())
            except RefreshError as e:
                raise GoogleAuthError(f"Google token refresh failed: {e}. {SIGN_IN_AGAIN}") from e
            self._save(creds)
            logger.debug("Refreshed Google Drive token")

        if not creds.valid:
            raise GoogleAuthError(f"Saved Google token has expired. {SIGN_IN_AGAIN}")
        return creds

    def sign_out(self) -> bool:
        if not self.signed_in:
            return False
        self.token_path.unlink()
        logger.info("Removed saved Google Drive token")
        return True

    def token_info(self) -> dict | None:
        """What the saved token grants, without any secrets."""
        if not self.signed_in:
            return None
        try:
            data = json.loads(self.token_path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Could not read {self.token_path}: {e}")
            return None
        granted = data.get("scopes") or []
        return {
            "token_path": str(self.token_path),
            "has_refresh_token": bool(data.get("refresh_token")),
            "scopes": granted,
            "missing_scopes": [s for s in self.scopes if s not in granted],
        }

    def _save(self, creds: Credentials) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.token_path.write_text(creds.to_json())


def resolve_credentials(data_dir: Path, access_token: str = "") -> Credentials | None:
    """Drive credentials for this run: the bare access token wins over the saved sign-in."""
    if access_token:
        return credentials_from_token(access_token)
    return DriveAuth(data_dir).credentials()
