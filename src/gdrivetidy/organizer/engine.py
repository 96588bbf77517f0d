"""OrganizerEngine: move a folder's files into Year/Month sub-folders."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from gdrivetidy.context import TidyContext
from gdrivetidy.errors import ConflictError, InvalidArgumentError
from gdrivetidy.models import FileInfo, OrganizeItemResult, OrganizeResult

from .date_resolver import placement_for, resolve_date
from .folder_cache import FolderCache

logger = logging.getLogger(__name__)


class OrganizerEngine:
    """
    Organize the direct children of a source folder by date.

    Each non-folder child is placed into <source>/YYYY/MM using the date
    heuristic chain. Years outside [start_year, end_year] go to the
    fallback bucket. A single bad item never aborts the run: conflicts are
    skipped and other failures are counted as errors.
    """

    def __init__(self, context: TidyContext, *, list_page_size: int = 1000) -> None:
        self._remote = context.remote
        self._list_page_size = list_page_size

    def organize(
        self,
        source_folder_id: str,
        start_year: int,
        end_year: int,
        *,
        dry_run: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> OrganizeResult:
        _validate_window(start_year, end_year)
        if not source_folder_id:
            raise InvalidArgumentError("source_folder_id must be non-empty")

        logger.info(
            "Organizing folder %s into [%d, %d]%s",
            source_folder_id,
            start_year,
            end_year,
            " (dry run)" if dry_run else "",
        )

        result = OrganizeResult(dry_run=dry_run)
        cache = FolderCache(self._remote, source_folder_id)
        children = self._remote.list_children(source_folder_id, page_size=self._list_page_size)

        for info in children:
            if cancel_event is not None and cancel_event.is_set():
                result.cancelled = True
                logger.info("Organize cancelled after %d items", len(result.items))
                break
            if info.is_folder:
                continue
            result.record(self._organize_item(info, cache, start_year, end_year, dry_run))

        logger.info(
            "Organize finished: %d %s, %d skipped, %d errors",
            result.moved_count,
            "planned" if dry_run else "moved",
            result.skipped_count,
            result.error_count,
        )
        return result

    def _organize_item(
        self,
        info: FileInfo,
        cache: FolderCache,
        start_year: int,
        end_year: int,
        dry_run: bool,
    ) -> OrganizeItemResult:
        resolved = resolve_date(info)
        if resolved is None:
            logger.warning("No date could be resolved for %s (%s); skipped", info.name, info.file_id)
            return OrganizeItemResult(item_id=info.file_id, name=info.name, status="skipped")

        year, month = placement_for(resolved.value, start_year, end_year)
        destination = f"{year:04d}/{month:02d}"
        outcome = OrganizeItemResult(
            item_id=info.file_id,
            name=info.name,
            status="moved",
            destination=destination,
            date_source=resolved.source.value,
        )

        try:
            if dry_run:
                dest_id = cache.lookup(year, month)
                outcome.status = "skipped" if dest_id in info.parents else "planned"
                return outcome

            dest_id = cache.ensure(year, month)
            if dest_id in info.parents:
                outcome.status = "skipped"
                return outcome

            self._remote.move(info.file_id, dest_id)
            logger.debug("Moved %s to %s", info.name, destination)
        except ConflictError as exc:
            logger.info("Name conflict moving %s to %s; skipped", info.name, destination)
            outcome.status = "skipped"
            outcome.error_type = type(exc).__name__
            outcome.error_message = str(exc)
        except Exception as exc:
            logger.exception("Failed to organize %s (%s)", info.name, info.file_id)
            outcome.status = "error"
            outcome.error_type = type(exc).__name__
            outcome.error_message = str(exc)
        return outcome


def _validate_window(start_year: int, end_year: int) -> None:
    if start_year <= 0 or end_year <= 0:
        raise InvalidArgumentError(
            "Years must be positive",
            details={"start_year": start_year, "end_year": end_year},
        )
    if start_year > end_year:
        raise InvalidArgumentError(
            "start_year must not exceed end_year",
            details={"start_year": start_year, "end_year": end_year},
        )
