"""MirrorStore: SQLite-backed local mirror of remote item metadata."""

from __future__ import annotations

import logging
import os
import sqlite3
import threading
from typing import Any, Iterable, Optional, Union

from gdrivetidy.models import DuplicateGroup, DuplicateStats, ItemRecord
from gdrivetidy.util.time import parse_rfc3339, to_rfc3339

logger = logging.getLogger(__name__)

CURSOR_KEY: str = "sync_cursor"

# Stays well below SQLite's host-parameter limit for IN (...) lists.
_HASH_CHUNK_SIZE: int = 500

_COLUMNS: tuple[str, ...] = (
    "id",
    "name",
    "parent_id",
    "path",
    "content_hash",
    "size",
    "created_at",
    "modified_at",
    "is_folder",
    "web_url",
    "photo_taken_at",
    "camera_model",
    "is_transcribed",
    "transcript",
)

_SCHEMA: str = """
CREATE TABLE IF NOT EXISTS items (
  id TEXT PRIMARY KEY,
  name TEXT NOT NULL,
  parent_id TEXT,
  path TEXT,
  content_hash TEXT,
  size INTEGER,
  created_at TEXT,
  modified_at TEXT,
  is_folder INTEGER NOT NULL DEFAULT 0,
  web_url TEXT,
  photo_taken_at TEXT,
  camera_model TEXT,
  is_transcribed INTEGER NOT NULL DEFAULT 0,
  transcript TEXT
);

CREATE INDEX IF NOT EXISTS idx_items_content_hash ON items(content_hash);
CREATE INDEX IF NOT EXISTS idx_items_parent_id ON items(parent_id);
CREATE INDEX IF NOT EXISTS idx_items_size ON items(size);
CREATE INDEX IF NOT EXISTS idx_items_is_folder ON items(is_folder);

CREATE TABLE IF NOT EXISTS config (
  key TEXT PRIMARY KEY,
  value TEXT NOT NULL
);
"""

_UPSERT_SQL: str = (
    f"INSERT OR REPLACE INTO items({', '.join(_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in _COLUMNS)})"
)

_DUPLICATE_HASHES_SQL: str = """
SELECT content_hash
FROM items
WHERE is_folder = 0 AND content_hash IS NOT NULL
GROUP BY content_hash
HAVING COUNT(*) > 1
ORDER BY content_hash
"""

_DUPLICATE_STATS_SQL: str = """
SELECT content_hash,
       COUNT(*) AS member_count,
       MAX(COALESCE(size, 0)) AS max_size,
       MIN(COALESCE(size, 0)) AS min_size
FROM items
WHERE is_folder = 0 AND content_hash IS NOT NULL
GROUP BY content_hash
HAVING COUNT(*) > 1
"""


class MirrorStore:
    """
    Durable keyed collection of ItemRecords plus a key/value config table.

    Every operation runs under one lock, and each batch runs in one
    transaction, so readers never observe a partially applied batch.

    After close(), reads return empty/zero/None and writes are dropped.
    """

    def __init__(self, db_path: Union[str, os.PathLike] = ":memory:") -> None:
        self.db_path = os.fspath(db_path)
        self._lock = threading.RLock()

        if self.db_path != ":memory:":
            parent = os.path.dirname(os.path.abspath(self.db_path))
            os.makedirs(parent, exist_ok=True)

        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        conn.executescript(_SCHEMA)
        conn.commit()
        self._conn: Optional[sqlite3.Connection] = conn

    def __enter__(self) -> MirrorStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._conn is None

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            logger.info("Closing mirror store %s", self.db_path)
            self._conn.close()
            self._conn = None

    # ----------------------------
    # Item writes
    # ----------------------------
    def upsert_item(self, record: ItemRecord) -> None:
        self.upsert_many([record])

    def upsert_many(self, records: Iterable[ItemRecord]) -> None:
        """Insert or replace records by id, as one transaction."""
        rows = [_record_to_row(r) for r in records]
        if not rows:
            return
        with self._lock:
            if self._conn is None:
                return
            with self._conn:
                self._conn.executemany(_UPSERT_SQL, rows)
        logger.debug("Upserted %d records", len(rows))

    def delete_item(self, item_id: str) -> None:
        self.delete_many([item_id])

    def delete_many(self, ids: Iterable[str]) -> None:
        """Delete records by id; unknown ids are ignored."""
        params = [(i,) for i in ids]
        if not params:
            return
        with self._lock:
            if self._conn is None:
                return
            with self._conn:
                self._conn.executemany("DELETE FROM items WHERE id = ?", params)
        logger.debug("Deleted up to %d records", len(params))

    def clear_all(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            with self._conn:
                self._conn.execute("DELETE FROM items")
        logger.info("Cleared all mirror records")

    # ----------------------------
    # Item reads
    # ----------------------------
    def get_item(self, item_id: str) -> Optional[ItemRecord]:
        with self._lock:
            if self._conn is None:
                return None
            row = self._conn.execute("SELECT * FROM items WHERE id = ?", (item_id,)).fetchone()
        return _row_to_record(row) if row is not None else None

    def get_all_items(self) -> list[ItemRecord]:
        with self._lock:
            if self._conn is None:
                return []
            rows = self._conn.execute("SELECT * FROM items ORDER BY id").fetchall()
        return [_row_to_record(row) for row in rows]

    def get_item_count(self) -> int:
        with self._lock:
            if self._conn is None:
                return 0
            row = self._conn.execute("SELECT COUNT(*) FROM items").fetchone()
        return int(row[0])

    def get_total_size(self) -> int:
        """Sum of sizes over non-folder records (unknown sizes count as 0)."""
        with self._lock:
            if self._conn is None:
                return 0
            row = self._conn.execute(
                "SELECT COALESCE(SUM(size), 0) FROM items WHERE is_folder = 0"
            ).fetchone()
        return int(row[0])

    def get_duplicate_groups(self) -> list[DuplicateGroup]:
        """
        Return every content hash shared by two or more non-folder records.

        Two phases: an aggregate finds hashes with multiplicity > 1, then
        only the records carrying those hashes are fetched, in chunks.
        """
        with self._lock:
            if self._conn is None:
                return []

            hashes = [row[0] for row in self._conn.execute(_DUPLICATE_HASHES_SQL)]
            if not hashes:
                return []

            groups: dict[str, list[ItemRecord]] = {h: [] for h in hashes}
            for start in range(0, len(hashes), _HASH_CHUNK_SIZE):
                chunk = hashes[start : start + _HASH_CHUNK_SIZE]
                placeholders = ", ".join("?" for _ in chunk)
                rows = self._conn.execute(
                    "SELECT * FROM items "
                    f"WHERE is_folder = 0 AND content_hash IN ({placeholders}) "
                    "ORDER BY content_hash, id",
                    chunk,
                ).fetchall()
                for row in rows:
                    groups[row["content_hash"]].append(_row_to_record(row))

        logger.info("Found %d duplicate groups", len(groups))
        return [DuplicateGroup(content_hash=h, items=items) for h, items in groups.items()]

    def get_stats(self) -> DuplicateStats:
        """
        Return duplicate group count and wasted bytes.

        wasted = sum over groups of (members - 1) * largest member size.
        Groups whose members disagree on size are counted separately and
        logged; the largest size is used for them.
        """
        with self._lock:
            if self._conn is None:
                return DuplicateStats()
            rows = self._conn.execute(_DUPLICATE_STATS_SQL).fetchall()

        group_count = 0
        wasted = 0
        mismatched = 0
        for row in rows:
            group_count += 1
            wasted += (int(row["member_count"]) - 1) * int(row["max_size"])
            if row["min_size"] != row["max_size"]:
                mismatched += 1

        if mismatched:
            logger.warning(
                "%d duplicate groups have members with different sizes; "
                "largest size used for wasted-space estimate",
                mismatched,
            )
        return DuplicateStats(
            group_count=group_count,
            wasted_bytes=wasted,
            mismatched_group_count=mismatched,
        )

    # ----------------------------
    # Config / cursor
    # ----------------------------
    def get_config_value(self, key: str) -> Optional[str]:
        with self._lock:
            if self._conn is None:
                return None
            row = self._conn.execute("SELECT value FROM config WHERE key = ?", (key,)).fetchone()
        return row["value"] if row is not None else None

    def set_config_value(self, key: str, value: str) -> None:
        with self._lock:
            if self._conn is None:
                return
            with self._conn:
                self._conn.execute(
                    "INSERT OR REPLACE INTO config(key, value) VALUES (?, ?)",
                    (key, value),
                )

    def delete_config_value(self, key: str) -> None:
        with self._lock:
            if self._conn is None:
                return
            with self._conn:
                self._conn.execute("DELETE FROM config WHERE key = ?", (key,))

    def get_cursor(self) -> Optional[str]:
        return self.get_config_value(CURSOR_KEY)

    def save_cursor(self, cursor: str) -> None:
        self.set_config_value(CURSOR_KEY, cursor)

    def clear_cursor(self) -> None:
        self.delete_config_value(CURSOR_KEY)


def _dt_to_text(value: Any) -> Optional[str]:
    return to_rfc3339(value) if value is not None else None


def _text_to_dt(value: Optional[str]) -> Any:
    return parse_rfc3339(value) if value else None


def _record_to_row(record: ItemRecord) -> tuple[Any, ...]:
    return (
        record.id,
        record.name,
        record.parent_id,
        record.path,
        record.content_hash,
        record.size,
        _dt_to_text(record.created_at),
        _dt_to_text(record.modified_at),
        int(record.is_folder),
        record.web_url,
        _dt_to_text(record.photo_taken_at),
        record.camera_model,
        int(record.is_transcribed),
        record.transcript,
    )


def _row_to_record(row: sqlite3.Row) -> ItemRecord:
    return ItemRecord(
        id=row["id"],
        name=row["name"],
        parent_id=row["parent_id"],
        path=row["path"],
        content_hash=row["content_hash"],
        size=row["size"],
        created_at=_text_to_dt(row["created_at"]),
        modified_at=_text_to_dt(row["modified_at"]),
        is_folder=bool(row["is_folder"]),
        web_url=row["web_url"],
        photo_taken_at=_text_to_dt(row["photo_taken_at"]),
        camera_model=row["camera_model"],
        is_transcribed=bool(row["is_transcribed"]),
        transcript=row["transcript"],
    )
