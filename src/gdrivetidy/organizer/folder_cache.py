"""Per-run cache of Year and Year/Month destination folder ids."""

from __future__ import annotations

import logging
from typing import Optional

from gdrivetidy.controller import RemoteTree
from gdrivetidy.errors import ConflictError

logger = logging.getLogger(__name__)


class FolderCache:
    """
    Resolve (and create on demand) destination folders under one root.

    Keys are "YYYY" and "YYYY/MM". Lookups return None for a missing
    folder instead of raising; creation uses fail-on-conflict semantics and
    a lost race is resolved by reading the folder the other writer created.
    """

    def __init__(self, remote: RemoteTree, root_folder_id: str) -> None:
        self._remote = remote
        self._root_folder_id = root_folder_id
        self._ids: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._ids.get(key)

    def ensure(self, year: int, month: int) -> str:
        """Return the Year/Month folder id, creating missing folders."""
        year_key, month_key = _keys(year, month)
        if month_key in self._ids:
            return self._ids[month_key]

        year_id = self._ids.get(year_key)
        if year_id is None:
            year_id = self._ensure_child(self._root_folder_id, year_key)
            self._ids[year_key] = year_id

        month_id = self._ensure_child(year_id, f"{month:02d}")
        self._ids[month_key] = month_id
        return month_id

    def lookup(self, year: int, month: int) -> Optional[str]:
        """Return the Year/Month folder id if it exists; never creates."""
        year_key, month_key = _keys(year, month)
        if month_key in self._ids:
            return self._ids[month_key]

        year_id = self._ids.get(year_key)
        if year_id is None:
            year_id = self._find_folder(self._root_folder_id, year_key)
            if year_id is None:
                return None
            self._ids[year_key] = year_id

        month_id = self._find_folder(year_id, f"{month:02d}")
        if month_id is not None:
            self._ids[month_key] = month_id
        return month_id

    def _ensure_child(self, parent_id: str, name: str) -> str:
        existing = self._find_folder(parent_id, name)
        if existing is not None:
            return existing

        try:
            created = self._remote.create_folder(parent_id, name, on_conflict="fail")
        except ConflictError:
            existing = self._find_folder(parent_id, name)
            if existing is None:
                # The clashing item is not a folder.
                raise
            return existing

        logger.info("Created folder %s in %s", name, parent_id)
        return created.file_id

    def _find_folder(self, parent_id: str, name: str) -> Optional[str]:
        matches = self._remote.list_children(parent_id, name=name, folders_only=True)
        return matches[0].file_id if matches else None


def _keys(year: int, month: int) -> tuple[str, str]:
    return f"{year:04d}", f"{year:04d}/{month:02d}"
