"""Authentication settings: where the OAuth token file lives."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True, frozen=True)
class AuthInfo:
    """
    OAuth settings passed to GoogleDriveController.

    kind must be "oauth". data["token_file"] is required and points at an
    authorized-user JSON written by the host application's consent flow.
    data["client_secrets_file"] is optional and only carried for that flow.
    """

    kind: str
    data: dict[str, Any]

    def __post_init__(self) -> None:
        if self.kind != "oauth":
            raise ValueError("AuthInfo.kind must be 'oauth'")
        if not isinstance(self.data, dict):
            raise TypeError("AuthInfo.data must be a dict")

        for key, required in (("token_file", True), ("client_secrets_file", False)):
            value = self.data.get(key)
            if value is None and not required:
                continue
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"AuthInfo.data[{key!r}] must be a non-empty string")

    @property
    def token_file(self) -> str:
        return self.data["token_file"]
