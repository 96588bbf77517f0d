"""Result models for sync, duplicate analysis and organize runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional

from .item_record import ItemRecord


class SyncState(str, Enum):
    """Sync engine states."""

    IDLE = "IDLE"
    FRESH_CRAWL = "FRESH_CRAWL"
    RESUME = "RESUME"
    PAGING = "PAGING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"


SyncStatus = Literal["completed", "cancelled", "rejected"]
OrganizeItemStatus = Literal["moved", "planned", "skipped", "error"]


@dataclass(slots=True, frozen=True)
class SyncProgress:
    """Progress event emitted after each committed crawl page."""

    state: SyncState
    page_count: int
    processed_count: int
    deleted_count: int
    fresh_crawl: bool


@dataclass(slots=True)
class SyncResult:
    """Aggregate result of one sync pass."""

    status: SyncStatus
    processed_count: int = 0
    deleted_count: int = 0
    page_count: int = 0
    fresh_crawl: bool = False


@dataclass(slots=True)
class DuplicateGroup:
    """Non-folder records sharing one content hash (two or more members)."""

    content_hash: str
    items: list[ItemRecord]

    @property
    def member_count(self) -> int:
        return len(self.items)

    @property
    def sizes(self) -> set[int]:
        return {item.size or 0 for item in self.items}

    @property
    def size_mismatch(self) -> bool:
        return len(self.sizes) > 1

    @property
    def representative_size(self) -> int:
        """Largest observed member size (members are expected to be equal)."""
        return max(self.sizes, default=0)

    @property
    def wasted_bytes(self) -> int:
        return (self.member_count - 1) * self.representative_size


@dataclass(slots=True, frozen=True)
class DuplicateStats:
    """Duplicate summary: group count and bytes reclaimable by de-duplication."""

    group_count: int = 0
    wasted_bytes: int = 0
    mismatched_group_count: int = 0


@dataclass(slots=True)
class OrganizeItemResult:
    """Outcome for a single item of an organize run."""

    item_id: str
    name: str
    status: OrganizeItemStatus
    destination: Optional[str] = None
    date_source: Optional[str] = None
    error_type: Optional[str] = None
    error_message: Optional[str] = None


@dataclass(slots=True)
class OrganizeResult:
    """Aggregate result of OrganizerEngine.organize()."""

    moved_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    dry_run: bool = False
    cancelled: bool = False
    items: list[OrganizeItemResult] = field(default_factory=list)

    def record(self, item: OrganizeItemResult) -> None:
        self.items.append(item)
        if item.status in ("moved", "planned"):
            self.moved_count += 1
        elif item.status == "skipped":
            self.skipped_count += 1
        else:
            self.error_count += 1
