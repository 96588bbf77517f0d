"""Read-only duplicate queries over the mirror store."""

from __future__ import annotations

from gdrivetidy.context import TidyContext
from gdrivetidy.models import DuplicateGroup, DuplicateStats


class DuplicateAnalyzer:
    """Stable read boundary for duplicate groups and wasted-space statistics."""

    def __init__(self, context: TidyContext) -> None:
        self._store = context.store

    def get_duplicate_groups(self) -> list[DuplicateGroup]:
        return self._store.get_duplicate_groups()

    def get_stats(self) -> DuplicateStats:
        return self._store.get_stats()

    def largest_groups(self, limit: int = 20) -> list[DuplicateGroup]:
        """Duplicate groups ordered by wasted bytes, largest first."""
        if limit <= 0:
            return []
        groups = self.get_duplicate_groups()
        groups.sort(key=lambda g: (-g.wasted_bytes, g.content_hash))
        return groups[:limit]
