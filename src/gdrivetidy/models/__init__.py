"""Public model exports for gdrivetidy."""

from __future__ import annotations

from .crawl import CrawlEntry, CrawlPage
from .file_info import FileInfo
from .item_record import ItemRecord
from .results import (
    DuplicateGroup,
    DuplicateStats,
    OrganizeItemResult,
    OrganizeItemStatus,
    OrganizeResult,
    SyncProgress,
    SyncResult,
    SyncState,
    SyncStatus,
)

__all__ = [
    "FileInfo",
    "CrawlEntry",
    "CrawlPage",
    "ItemRecord",
    "SyncState",
    "SyncStatus",
    "SyncProgress",
    "SyncResult",
    "DuplicateGroup",
    "DuplicateStats",
    "OrganizeItemStatus",
    "OrganizeItemResult",
    "OrganizeResult",
]
