"""Token-file OAuth credentials and Drive service construction."""

from __future__ import annotations

import logging
import os
from typing import Any, Sequence

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from gdrivetidy.errors import AuthError, InvalidArgumentError

from .auth_info import AuthInfo

logger = logging.getLogger(__name__)


class OAuthClient:
    """
    Credentials backed by an authorized-user token file.

    The host application runs the browser consent flow and writes the token
    file; this client only reads it, refreshes an expired access token and
    writes the refreshed token back.
    """

    def __init__(self, auth_info: AuthInfo) -> None:
        if auth_info.kind != "oauth":
            raise InvalidArgumentError("OAuthClient requires AuthInfo(kind='oauth')")
        self._auth_info = auth_info

    def get_credentials(self, scopes: Sequence[str], ensure_valid: bool = True) -> Credentials:
        """
        Load credentials for `scopes` from the token file.

        With ensure_valid=True an expired token is refreshed (and saved);
        credentials that remain invalid raise AuthError.
        """
        if not scopes or not all(isinstance(s, str) and s.strip() for s in scopes):
            raise InvalidArgumentError("scopes must be a non-empty sequence of strings")

        path = self._auth_info.token_file
        if not os.path.isfile(path):
            raise AuthError(
                "Token file not found; the OAuth consent flow must run first",
                details={"token_file": path},
            )

        try:
            creds = Credentials.from_authorized_user_file(path, scopes=list(scopes))
        except (OSError, ValueError) as exc:
            raise AuthError("Token file could not be read", details={"token_file": path}, cause=exc) from exc

        if ensure_valid and not creds.valid:
            self._refresh(creds)
        return creds

    def build_drive_service(self, scopes: Sequence[str], ensure_valid: bool = True) -> Any:
        """Return a Drive v3 service resource authorized with the token file."""
        creds = self.get_credentials(scopes=scopes, ensure_valid=ensure_valid)
        try:
            return build("drive", "v3", credentials=creds, cache_discovery=False)
        except Exception as exc:
            raise AuthError("Failed to build Drive service", cause=exc) from exc

    def _refresh(self, creds: Credentials) -> None:
        path = self._auth_info.token_file
        if not creds.refresh_token:
            raise AuthError(
                "Access token expired and no refresh token is stored",
                details={"token_file": path},
            )
        try:
            creds.refresh(Request())
        except Exception as exc:
            raise AuthError("Token refresh failed", details={"token_file": path}, cause=exc) from exc

        if not creds.valid:
            raise AuthError("Refreshed credentials are still invalid", details={"token_file": path})

        self._save(creds)
        logger.info("Refreshed OAuth access token in %s", path)

    def _save(self, creds: Credentials) -> None:
        path = self._auth_info.token_file
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(creds.to_json())
        except OSError as exc:
            raise AuthError("Token file could not be written", details={"token_file": path}, cause=exc) from exc
