"""Data model for Drive items as reported by the remote tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from gdrivetidy.util.mime import is_folder


@dataclass(slots=True)
class FileInfo:
    """
    Remote metadata for one Drive file or folder.

    Notes:
        - parents holds Drive folder ids; the organizer and the mirror only
          use the first one.
        - photo_taken_time/camera_model come from imageMediaMetadata and are
          only present for photos Drive has indexed.
    """

    file_id: str
    name: str
    mime_type: str
    parents: list[str] = field(default_factory=list)

    trashed: bool = False
    modified_time: Optional[datetime] = None
    created_time: Optional[datetime] = None
    size: Optional[int] = None
    md5_checksum: Optional[str] = None
    web_view_link: Optional[str] = None
    photo_taken_time: Optional[datetime] = None
    camera_model: Optional[str] = None

    @property
    def is_folder(self) -> bool:
        return is_folder(self.mime_type)

    @property
    def parent_id(self) -> Optional[str]:
        return self.parents[0] if self.parents else None
