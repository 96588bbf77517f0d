"""Mirror store record for one remote file or folder."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from gdrivetidy.util.time import normalize_dt

from .file_info import FileInfo


@dataclass(slots=True)
class ItemRecord:
    """
    A persisted mirror row.

    Notes:
        - id is assigned by Drive and never changes.
        - parent_id is a weak lookup reference; the parent may be missing.
        - path is advisory only and may be stale (Drive reports none).
        - content_hash None means "unknown", not "empty"; folders never
          carry one.
        - photo_taken_at, camera_model, is_transcribed and transcript are
          written by other stages and never read by the sync/analysis core.
    """

    id: str
    name: str
    parent_id: Optional[str] = None
    path: Optional[str] = None
    content_hash: Optional[str] = None
    size: Optional[int] = None
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    is_folder: bool = False
    web_url: Optional[str] = None

    photo_taken_at: Optional[datetime] = None
    camera_model: Optional[str] = None
    is_transcribed: bool = False
    transcript: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id:
            raise ValueError("ItemRecord.id must be a non-empty string")
        if self.is_folder and self.content_hash is not None:
            raise ValueError(f"Folder record must not carry a content hash: {self.id}")
        for name in ("created_at", "modified_at", "photo_taken_at"):
            value = getattr(self, name)
            if value is not None:
                normalize_dt(value)

    @classmethod
    def from_file_info(cls, info: FileInfo) -> ItemRecord:
        """Build a record from remote metadata (metadata only, no content fetch)."""
        folder = info.is_folder
        return cls(
            id=info.file_id,
            name=info.name,
            parent_id=info.parent_id,
            content_hash=None if folder else info.md5_checksum,
            size=info.size,
            created_at=info.created_time,
            modified_at=info.modified_time,
            is_folder=folder,
            web_url=info.web_view_link,
            photo_taken_at=info.photo_taken_time,
            camera_model=info.camera_model,
        )
