"""Date-based organizer."""

from __future__ import annotations

from .date_resolver import (
    FALLBACK_MONTH,
    FALLBACK_YEAR,
    DateSource,
    ResolvedDate,
    date_from_name,
    placement_for,
    resolve_date,
)
from .engine import OrganizerEngine
from .folder_cache import FolderCache

__all__ = [
    "OrganizerEngine",
    "FolderCache",
    "DateSource",
    "ResolvedDate",
    "resolve_date",
    "date_from_name",
    "placement_for",
    "FALLBACK_YEAR",
    "FALLBACK_MONTH",
]
