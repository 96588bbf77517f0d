"""gdrivetidy public API."""

from __future__ import annotations

import logging

from gdrivetidy.analysis import DuplicateAnalyzer
from gdrivetidy.auth import AuthInfo, OAuthClient
from gdrivetidy.config import TidyConfig
from gdrivetidy.context import TidyContext
from gdrivetidy.controller import (
    CrawlCursor,
    GoogleDriveController,
    InMemoryDriveTree,
    RemoteTree,
)
from gdrivetidy.errors import (
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
    map_http_error,
)
from gdrivetidy.manager import DriveTidyManager
from gdrivetidy.models import (
    CrawlEntry,
    CrawlPage,
    DuplicateGroup,
    DuplicateStats,
    FileInfo,
    ItemRecord,
    OrganizeItemResult,
    OrganizeResult,
    SyncProgress,
    SyncResult,
    SyncState,
)
from gdrivetidy.organizer import OrganizerEngine
from gdrivetidy.store import MirrorStore
from gdrivetidy.sync import SyncEngine

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # High-level
    "DriveTidyManager",
    "TidyConfig",
    "TidyContext",
    # Engines
    "SyncEngine",
    "DuplicateAnalyzer",
    "OrganizerEngine",
    "MirrorStore",
    # Remote
    "RemoteTree",
    "GoogleDriveController",
    "InMemoryDriveTree",
    "CrawlCursor",
    # Auth
    "AuthInfo",
    "OAuthClient",
    # Models
    "FileInfo",
    "CrawlEntry",
    "CrawlPage",
    "ItemRecord",
    "SyncState",
    "SyncProgress",
    "SyncResult",
    "DuplicateGroup",
    "DuplicateStats",
    "OrganizeItemResult",
    "OrganizeResult",
    # Errors
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
    "map_http_error",
]
