"""Narrow remote tree interface consumed by the sync and organizer engines."""

from __future__ import annotations

from typing import Literal, Optional, Protocol, Sequence

from gdrivetidy.models import CrawlPage, FileInfo

ConflictBehavior = Literal["fail", "rename"]


class RemoteTree(Protocol):
    def get_root(self, drive_id: Optional[str] = None) -> FileInfo: ...

    def crawl(self, cursor: Optional[str]) -> CrawlPage: ...

    def list_children(
        self,
        folder_id: str,
        *,
        name: Optional[str] = None,
        folders_only: bool = False,
        fields: Optional[Sequence[str]] = None,
        page_size: int = 1000,
    ) -> list[FileInfo]: ...

    def move(
        self,
        item_id: str,
        new_parent_id: str,
        new_name: Optional[str] = None,
    ) -> FileInfo: ...

    def delete(self, item_id: str) -> None: ...

    def create_folder(
        self,
        parent_id: str,
        name: str,
        *,
        on_conflict: ConflictBehavior = "fail",
    ) -> FileInfo: ...
