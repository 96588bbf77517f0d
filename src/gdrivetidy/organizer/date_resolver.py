"""Date resolution heuristics used to place items into Year/Month folders."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional

from gdrivetidy.models import FileInfo

logger = logging.getLogger(__name__)

FALLBACK_YEAR: int = 2000
FALLBACK_MONTH: int = 1

_TIMESTAMP_RE = re.compile(r"(?<!\d)(\d{4})(\d{2})(\d{2})_(\d{2})(\d{2})(\d{2})(?!\d)")
_DASHED_RE = re.compile(r"(?<!\d)(\d{4})-(\d{2})-(\d{2})(?!\d)")
_COMPACT_RE = re.compile(r"(?<!\d)(\d{4})(\d{2})(\d{2})(?!\d)")


class DateSource(str, Enum):
    """Which rule of the heuristic chain produced a date."""

    FILENAME_TIMESTAMP = "filename_timestamp"
    FILENAME_DASHED = "filename_dashed"
    FILENAME_COMPACT = "filename_compact"
    PHOTO_TAKEN = "photo_taken"
    CREATED = "created"


@dataclass(slots=True, frozen=True)
class ResolvedDate:
    value: date
    source: DateSource


def resolve_date(info: FileInfo) -> Optional[ResolvedDate]:
    """
    Resolve a date for an item, first match wins:

        1) name contains YYYYMMDD_HHMMSS
        2) name contains YYYY-MM-DD
        3) name contains YYYYMMDD
        4) photo taken time (imageMediaMetadata)
        5) created time

    Matches that are not real calendar dates are ignored. Returns None when
    nothing resolves.
    """
    from_name = date_from_name(info.name)
    if from_name is not None:
        return from_name
    if info.photo_taken_time is not None:
        return ResolvedDate(info.photo_taken_time.date(), DateSource.PHOTO_TAKEN)
    if info.created_time is not None:
        return ResolvedDate(info.created_time.date(), DateSource.CREATED)
    return None


def date_from_name(name: str) -> Optional[ResolvedDate]:
    for m in _TIMESTAMP_RE.finditer(name):
        parts = [int(g) for g in m.groups()]
        try:
            return ResolvedDate(datetime(*parts).date(), DateSource.FILENAME_TIMESTAMP)
        except ValueError:
            continue

    for pattern, source in (
        (_DASHED_RE, DateSource.FILENAME_DASHED),
        (_COMPACT_RE, DateSource.FILENAME_COMPACT),
    ):
        for m in pattern.finditer(name):
            y, mo, d = (int(g) for g in m.groups())
            try:
                return ResolvedDate(date(y, mo, d), source)
            except ValueError:
                continue

    return None


def placement_for(value: date, start_year: int, end_year: int) -> tuple[int, int]:
    """Return (year, month) for a resolved date; out-of-window years use 2000/01."""
    if start_year <= value.year <= end_year:
        return value.year, value.month
    logger.debug(
        "Year %d outside [%d, %d]; using fallback %04d/%02d",
        value.year,
        start_year,
        end_year,
        FALLBACK_YEAR,
        FALLBACK_MONTH,
    )
    return FALLBACK_YEAR, FALLBACK_MONTH
