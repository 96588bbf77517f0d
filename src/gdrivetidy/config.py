"""Runtime configuration for gdrivetidy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True, frozen=True)
class TidyConfig:
    """
    Settings for a DriveTidyManager.

    Attributes:
        db_path: SQLite file for the mirror (":memory:" for a throwaway one).
        drive_id: Shared drive to mirror; None mirrors My Drive.
        scopes: OAuth scopes; None uses the controller default (full drive).
        supports_all_drives: Pass supportsAllDrives on every Drive request.
        crawl_page_size: Items per crawl page (Drive caps this at 1000).
        list_page_size: Items per page when listing a folder.
        max_retries: Transport-level retries for 429/5xx/network errors.
    """

    db_path: str
    drive_id: Optional[str] = None
    scopes: Optional[tuple[str, ...]] = None
    supports_all_drives: bool = True
    crawl_page_size: int = 1000
    list_page_size: int = 1000
    max_retries: int = 3

    def __post_init__(self) -> None:
        if not isinstance(self.db_path, str) or not self.db_path.strip():
            raise ValueError("TidyConfig.db_path must be a non-empty string")

        if self.drive_id is not None and (
            not isinstance(self.drive_id, str) or not self.drive_id.strip()
        ):
            raise ValueError("TidyConfig.drive_id must be a non-empty string or None")

        if self.scopes is not None:
            if not self.scopes or not all(isinstance(s, str) and s.strip() for s in self.scopes):
                raise ValueError("TidyConfig.scopes must be a non-empty tuple of strings")

        for name in ("crawl_page_size", "list_page_size"):
            value = getattr(self, name)
            if not isinstance(value, int) or not 1 <= value <= 1000:
                raise ValueError(f"TidyConfig.{name} must be an int in [1, 1000]")

        if not isinstance(self.max_retries, int) or self.max_retries < 0:
            raise ValueError("TidyConfig.max_retries must be a non-negative int")
