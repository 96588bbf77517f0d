"""Public error exports for gdrivetidy."""

from __future__ import annotations

from .exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    CursorInvalidError,
    GDriveTidyError,
    HttpErrorInfo,
    InvalidArgumentError,
    InvalidStateError,
    NetworkError,
    NotFoundError,
    PermissionError,
    QuotaExceededError,
    RateLimitError,
    is_transient,
    map_http_error,
)

__all__ = [
    "GDriveTidyError",
    "InvalidStateError",
    "AuthError",
    "PermissionError",
    "InvalidArgumentError",
    "NotFoundError",
    "ConflictError",
    "RateLimitError",
    "QuotaExceededError",
    "NetworkError",
    "ApiError",
    "CursorInvalidError",
    "HttpErrorInfo",
    "is_transient",
    "map_http_error",
]
