"""In-memory RemoteTree implementation (deterministic test double)."""

from __future__ import annotations

import copy
from datetime import datetime
from typing import Optional, Sequence

from gdrivetidy.errors import (
    ConflictError,
    CursorInvalidError,
    InvalidArgumentError,
    NotFoundError,
)
from gdrivetidy.models import CrawlEntry, CrawlPage, FileInfo
from gdrivetidy.util.mime import FOLDER_MIME
from gdrivetidy.util.time import now_utc

from .protocol import ConflictBehavior


class InMemoryDriveTree:
    """
    A Drive-like tree held in dicts, with a change feed and paged crawls.

    Cursors look like "files:<generation>:<offset>:<seq>" during a fresh pass
    and "changes:<generation>:<seq>" afterwards. expire_cursors() bumps the
    generation so every previously issued cursor is rejected.

    Failures can be injected per operation (and optionally per item id)
    with inject_failure(); every call is recorded in `calls`.
    """

    def __init__(
        self,
        *,
        root_id: str = "root",
        root_name: str = "My Drive",
        page_size: int = 100,
    ) -> None:
        if page_size <= 0:
            raise InvalidArgumentError("page_size must be positive")

        self.root_id = root_id
        self.page_size = page_size
        self.calls: list[tuple] = []

        self._items: dict[str, FileInfo] = {
            root_id: FileInfo(file_id=root_id, name=root_name, mime_type=FOLDER_MIME),
        }
        self._changes: list[CrawlEntry] = []
        self._generation = 0
        self._next_id = 0
        self._failures: dict[tuple[str, Optional[str]], list[Exception]] = {}

    # ----------------------------
    # Fixture helpers
    # ----------------------------
    def add_folder(
        self,
        name: str,
        parent_id: Optional[str] = None,
        *,
        file_id: Optional[str] = None,
    ) -> FileInfo:
        return self._add(
            FileInfo(
                file_id=file_id or self._new_id(),
                name=name,
                mime_type=FOLDER_MIME,
                parents=[parent_id or self.root_id],
                created_time=now_utc(),
                modified_time=now_utc(),
            )
        )

    def add_file(
        self,
        name: str,
        parent_id: Optional[str] = None,
        *,
        file_id: Optional[str] = None,
        md5_checksum: Optional[str] = None,
        size: Optional[int] = None,
        created_time: Optional[datetime] = None,
        photo_taken_time: Optional[datetime] = None,
        mime_type: str = "application/octet-stream",
    ) -> FileInfo:
        created = created_time or now_utc()
        return self._add(
            FileInfo(
                file_id=file_id or self._new_id(),
                name=name,
                mime_type=mime_type,
                parents=[parent_id or self.root_id],
                created_time=created,
                modified_time=created,
                size=size,
                md5_checksum=md5_checksum,
                photo_taken_time=photo_taken_time,
            )
        )

    def update_file(self, file_id: str, **changes: object) -> FileInfo:
        info = self._require(file_id)
        for key, value in changes.items():
            setattr(info, key, value)
        info.modified_time = now_utc()
        self._record(info)
        return info

    def remove(self, file_id: str) -> None:
        """Remove an item out of band (appears as a removed change)."""
        self._require(file_id)
        del self._items[file_id]
        self._changes.append(CrawlEntry(item_id=file_id, removed=True))

    def expire_cursors(self) -> None:
        self._generation += 1

    def inject_failure(
        self,
        operation: str,
        exc: Exception,
        *,
        item_id: Optional[str] = None,
        times: int = 1,
    ) -> None:
        self._failures.setdefault((operation, item_id), []).extend([exc] * times)

    def item(self, file_id: str) -> Optional[FileInfo]:
        info = self._items.get(file_id)
        return copy.deepcopy(info) if info is not None else None

    def live_ids(self) -> set[str]:
        return {i for i, info in self._items.items() if not info.trashed and i != self.root_id}

    # ----------------------------
    # RemoteTree API
    # ----------------------------
    def get_root(self, drive_id: Optional[str] = None) -> FileInfo:
        self.calls.append(("get_root", drive_id))
        self._maybe_fail("get_root")
        return copy.deepcopy(self._items[self.root_id])

    def crawl(self, cursor: Optional[str]) -> CrawlPage:
        self.calls.append(("crawl", cursor))
        self._maybe_fail("crawl")

        if cursor is None:
            return self._files_page(0, len(self._changes))

        parts = cursor.split(":")
        try:
            kind = parts[0]
            generation = int(parts[1])
            numbers = [int(p) for p in parts[2:]]
        except (IndexError, ValueError) as exc:
            raise CursorInvalidError("Malformed crawl cursor", cause=exc) from exc

        if generation != self._generation:
            raise CursorInvalidError("Crawl cursor expired", details={"cursor": cursor})
        if kind == "files" and len(numbers) == 2:
            return self._files_page(numbers[0], numbers[1])
        if kind == "changes" and len(numbers) == 1:
            return self._changes_page(numbers[0])
        raise CursorInvalidError("Unknown crawl cursor", details={"cursor": cursor})

    def list_children(
        self,
        folder_id: str,
        *,
        name: Optional[str] = None,
        folders_only: bool = False,
        fields: Optional[Sequence[str]] = None,
        page_size: int = 1000,
    ) -> list[FileInfo]:
        self.calls.append(("list_children", folder_id, name, folders_only))
        self._maybe_fail("list_children", folder_id)
        self._require(folder_id)

        children = [
            copy.deepcopy(info)
            for info in self._items.values()
            if folder_id in info.parents
            and not info.trashed
            and (name is None or info.name == name)
            and (not folders_only or info.is_folder)
        ]
        children.sort(key=lambda x: (x.name, x.file_id))
        return children

    def move(
        self,
        item_id: str,
        new_parent_id: str,
        new_name: Optional[str] = None,
    ) -> FileInfo:
        self.calls.append(("move", item_id, new_parent_id, new_name))
        self._maybe_fail("move", item_id)

        info = self._require(item_id)
        parent = self._require(new_parent_id)
        if not parent.is_folder:
            raise InvalidArgumentError("New parent must be a folder", details={"parent_id": new_parent_id})

        target_name = new_name if new_name is not None else info.name
        clash = self._child_named(new_parent_id, target_name)
        if clash is not None and clash.file_id != item_id:
            raise ConflictError(
                "Destination already contains an item with this name",
                details={"item_id": item_id, "parent_id": new_parent_id, "name": target_name},
            )

        info.parents = [new_parent_id]
        info.name = target_name
        self._record(info)
        return copy.deepcopy(info)

    def delete(self, item_id: str) -> None:
        self.calls.append(("delete", item_id))
        self._maybe_fail("delete", item_id)

        info = self._require(item_id)
        info.trashed = True
        self._record(info)

    def create_folder(
        self,
        parent_id: str,
        name: str,
        *,
        on_conflict: ConflictBehavior = "fail",
    ) -> FileInfo:
        self.calls.append(("create_folder", parent_id, name, on_conflict))
        self._maybe_fail("create_folder", parent_id)
        if on_conflict not in ("fail", "rename"):
            raise InvalidArgumentError("on_conflict must be 'fail' or 'rename'")

        self._require(parent_id)
        if self._child_named(parent_id, name) is not None:
            if on_conflict == "fail":
                raise ConflictError(
                    "An item with this name already exists",
                    details={"parent_id": parent_id, "name": name},
                )
            n = 1
            while self._child_named(parent_id, f"{name} {n}") is not None:
                n += 1
            name = f"{name} {n}"

        return copy.deepcopy(self.add_folder(name, parent_id))

    # ----------------------------
    # Internals
    # ----------------------------
    def _files_page(self, offset: int, start_seq: int) -> CrawlPage:
        ids = sorted(i for i, info in self._items.items() if i != self.root_id and not info.trashed)
        chunk = ids[offset : offset + self.page_size]
        entries = [CrawlEntry(item_id=i, file=copy.deepcopy(self._items[i])) for i in chunk]

        end = offset + len(chunk)
        if end < len(ids):
            return CrawlPage(
                entries=entries,
                next_page_link=f"files:{self._generation}:{end}:{start_seq}",
            )
        return CrawlPage(entries=entries, completion_link=f"changes:{self._generation}:{start_seq}")

    def _changes_page(self, seq: int) -> CrawlPage:
        chunk = self._changes[seq : seq + self.page_size]
        entries = [copy.deepcopy(entry) for entry in chunk]

        end = seq + len(chunk)
        if end < len(self._changes):
            return CrawlPage(entries=entries, next_page_link=f"changes:{self._generation}:{end}")
        return CrawlPage(entries=entries, completion_link=f"changes:{self._generation}:{end}")

    def _add(self, info: FileInfo) -> FileInfo:
        if info.file_id in self._items:
            raise InvalidArgumentError("Duplicate file_id", details={"file_id": info.file_id})
        for parent in info.parents:
            self._require(parent)
        self._items[info.file_id] = info
        self._record(info)
        return info

    def _record(self, info: FileInfo) -> None:
        self._changes.append(CrawlEntry(item_id=info.file_id, file=copy.deepcopy(info)))

    def _require(self, file_id: str) -> FileInfo:
        info = self._items.get(file_id)
        if info is None or info.trashed:
            raise NotFoundError("File not found", details={"file_id": file_id})
        return info

    def _child_named(self, parent_id: str, name: str) -> Optional[FileInfo]:
        for info in self._items.values():
            if parent_id in info.parents and not info.trashed and info.name == name:
                return info
        return None

    def _new_id(self) -> str:
        self._next_id += 1
        return f"item-{self._next_id:06d}"

    def _maybe_fail(self, operation: str, item_id: Optional[str] = None) -> None:
        for key in ((operation, item_id), (operation, None)):
            pending = self._failures.get(key)
            if pending:
                raise pending.pop(0)
