"""Exception hierarchy and HTTP error mapping for gdrivetidy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class GDriveTidyError(Exception):
    """
    Root of every error raised by gdrivetidy.

    Attributes:
        details: Structured context for logs (status code, item ids, ...).
        cause: The lower-level exception this error wraps, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause


class InvalidStateError(GDriveTidyError):
    """A manager or store was used after close()."""


class AuthError(GDriveTidyError):
    """Token file missing, unreadable or not refreshable (HTTP 401)."""


class PermissionError(GDriveTidyError):
    """Drive denied access to an item (HTTP 403)."""


class InvalidArgumentError(GDriveTidyError):
    """Bad caller input or a request Drive rejected as malformed (HTTP 400)."""


class NotFoundError(GDriveTidyError):
    """Item does not exist or is trashed (HTTP 404/410)."""


class ConflictError(GDriveTidyError):
    """Destination already holds an item with the same name."""


class RateLimitError(GDriveTidyError):
    """Request throttled (HTTP 429, or 403 with a rate-limit reason)."""


class QuotaExceededError(GDriveTidyError):
    """Storage or daily quota exhausted; retrying soon will not help."""


class NetworkError(GDriveTidyError):
    """Transport failure before Drive answered."""


class ApiError(GDriveTidyError):
    """Any other Drive failure, including 5xx."""


class CursorInvalidError(GDriveTidyError):
    """Stored crawl cursor can no longer be used; a fresh crawl is required."""


@dataclass(frozen=True)
class HttpErrorInfo:
    """Status, reason and message extracted from a Drive HTTP error."""

    status_code: int
    reason: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None


_RATE_LIMIT_REASONS: frozenset[str] = frozenset(
    {"ratelimitexceeded", "userratelimitexceeded", "sharingratelimitexceeded"}
)
_QUOTA_REASON_MARKERS: tuple[str, ...] = ("quota", "dailylimit", "usagelimits")


def map_http_error(
    info: HttpErrorInfo,
    *,
    cause: Optional[BaseException] = None,
) -> GDriveTidyError:
    """
    Translate a Drive HTTP error into the gdrivetidy hierarchy.

        400       -> InvalidArgumentError
        401       -> AuthError
        403       -> RateLimitError / QuotaExceededError / PermissionError
                     depending on the reason
        404, 410  -> NotFoundError
        409, 412  -> ConflictError
        429       -> RateLimitError
        anything else (5xx included) -> ApiError
    """
    details: dict[str, Any] = {"status_code": info.status_code, "reason": info.reason}
    if info.details:
        details.update(info.details)
    message = info.message or f"Drive returned HTTP {info.status_code}"
    reason = (info.reason or "").lower()

    code = info.status_code
    if code == 400:
        cls: type[GDriveTidyError] = InvalidArgumentError
    elif code == 401:
        cls = AuthError
    elif code == 403:
        if reason in _RATE_LIMIT_REASONS:
            cls = RateLimitError
        elif any(marker in reason for marker in _QUOTA_REASON_MARKERS):
            cls = QuotaExceededError
        else:
            cls = PermissionError
    elif code in (404, 410):
        cls = NotFoundError
    elif code in (409, 412):
        cls = ConflictError
    elif code == 429:
        cls = RateLimitError
    else:
        cls = ApiError
    return cls(message, details=details, cause=cause)


def is_transient(exc: BaseException) -> bool:
    """True for failures worth retrying: throttling, transport errors and 5xx."""
    if isinstance(exc, (RateLimitError, NetworkError)):
        return True
    if isinstance(exc, ApiError):
        code = exc.details.get("status_code")
        return isinstance(code, int) and code >= 500
    return False
