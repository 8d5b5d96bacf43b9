"""
Google Drive authentication.

Produces the single AuthSession shared by every distribution call of a
suite run. A persisted token is reused when it loads (and is refreshed when
expired); otherwise the installed-app OAuth consent flow runs once and the
resulting token is written back for the next run.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from oauthlib.oauth2.rfc6749.errors import OAuth2Error

from printcheck.app.config import DRIVE_FILE_SCOPE
from printcheck.app.errors import AuthError
from printcheck.app.schemas.artifacts import AuthSession

logger = logging.getLogger(__name__)


class DriveAuthenticator:
    """
    Builds an authenticated Drive v3 session from local credential files.

    Args:
        credentials_path:
            OAuth client secrets of an installed application.
        token_path:
            Where the user token is read from and persisted to.
        scopes:
            OAuth scopes; defaults to per-file Drive access.
    """

    def __init__(
        self,
        credentials_path: Path,
        token_path: Path,
        scopes: Optional[Sequence[str]] = None,
    ) -> None:
        self.credentials_path = Path(credentials_path)
        self.token_path = Path(token_path)
        self.scopes: List[str] = list(scopes or [DRIVE_FILE_SCOPE])

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def authenticate(self) -> AuthSession:
        try:
            credentials = self._load_token()
            if credentials is None:
                credentials = self._run_consent_flow()
                self._persist_token(credentials)

            service = build(
                "drive",
                "v3",
                credentials=credentials,
                cache_discovery=False,
            )
        except AuthError:
            raise
        except (OSError, ValueError, GoogleAuthError, OAuth2Error) as exc:
            raise AuthError(f"Failed to load credentials: {exc}") from exc

        logger.info("Drive session established (scopes=%s)", self.scopes)
        return AuthSession(credentials=credentials, service=service)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _load_token(self) -> Optional[Credentials]:
        """
        Return usable persisted credentials, or None to trigger consent.

        A token file that cannot be parsed is not fatal: the consent flow
        replaces it.
        """
        if not self.token_path.exists():
            return None

        try:
            credentials = Credentials.from_authorized_user_file(
                str(self.token_path), self.scopes
            )
        except (OSError, ValueError) as exc:
            logger.warning(
                "Failed to load token, falling back to manual auth: %s", exc
            )
            return None

        if credentials.valid:
            return credentials

        if credentials.expired and credentials.refresh_token:
            logger.info("Persisted token expired, refreshing")
            credentials.refresh(Request())
            self._persist_token(credentials)
            return credentials

        logger.warning("Persisted token is not usable, falling back to manual auth")
        return None

    def _run_consent_flow(self) -> Credentials:
        if not self.credentials_path.is_file():
            raise AuthError(
                f"OAuth client secrets not found: {self.credentials_path}"
            )

        flow = InstalledAppFlow.from_client_secrets_file(
            str(self.credentials_path), scopes=self.scopes
        )
        logger.info("Authorize this app in the browser window that opens")
        return flow.run_local_server(
            port=0,
            access_type="offline",
            prompt="consent",
        )

    def _persist_token(self, credentials: Credentials) -> None:
        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        self.token_path.write_text(credentials.to_json(), encoding="utf-8")
        logger.info("Token persisted: %s", self.token_path)
