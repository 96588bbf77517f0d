"""Crawl page model returned by RemoteTree.crawl()."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .file_info import FileInfo


@dataclass(slots=True)
class CrawlEntry:
    """
    One change entry of a crawl page.

    An entry is a deletion when the remote marks it removed or trashed, an
    upsert when it carries file metadata, and is ignored otherwise (e.g.
    shared drive changes).
    """

    item_id: str
    removed: bool = False
    file: Optional[FileInfo] = None

    @property
    def is_deletion(self) -> bool:
        if self.removed:
            return True
        return self.file is not None and self.file.trashed

    @property
    def is_upsert(self) -> bool:
        return not self.is_deletion and self.file is not None


@dataclass(slots=True)
class CrawlPage:
    """
    One page of an incremental crawl.

    Exactly one of next_page_link (more pages remain in this pass) and
    completion_link (pass caught up; resting cursor for the next run) is
    expected to be set.
    """

    entries: list[CrawlEntry] = field(default_factory=list)
    next_page_link: Optional[str] = None
    completion_link: Optional[str] = None
