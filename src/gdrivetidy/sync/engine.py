"""SyncEngine: resumable, checkpointed incremental crawl into the mirror."""

from __future__ import annotations

import logging
import threading
from typing import Iterator, Optional

from gdrivetidy.context import TidyContext
from gdrivetidy.errors import CursorInvalidError
from gdrivetidy.models import (
    CrawlEntry,
    CrawlPage,
    ItemRecord,
    SyncProgress,
    SyncResult,
    SyncState,
)
from gdrivetidy.util.mime import is_google_app

logger = logging.getLogger(__name__)

_ACTIVE_STATES: frozenset[SyncState] = frozenset(
    {SyncState.FRESH_CRAWL, SyncState.RESUME, SyncState.PAGING}
)


class SyncEngine:
    """
    Drive one crawl pass from the stored cursor into the mirror store.

    Checkpoint discipline:
        - A page's deletions and upserts are committed before its
          continuation link is stored as the cursor.
        - A next-page link is stored before the next page is fetched; a
          completion link is stored as the resting cursor and ends the pass.
        So at most one page is replayed after a crash, and replay is safe
        because upserts and deletions are idempotent.

    Only one pass runs at a time per engine; a second request while a pass
    is active is ignored (status "rejected"), not queued.
    """

    def __init__(self, context: TidyContext, *, drive_id: Optional[str] = None) -> None:
        self._remote = context.remote
        self._store = context.store
        self._drive_id = drive_id

        self._guard = threading.Lock()
        self._running = False
        self._state = SyncState.IDLE
        self._processed_count = 0

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def processed_count(self) -> int:
        """Items upserted by the current/last pass (progress signal only)."""
        return self._processed_count

    def run(self, cancel_event: Optional[threading.Event] = None) -> SyncResult:
        """Run one pass to completion (or cancellation) and summarize it."""
        last: Optional[SyncProgress] = None
        for last in self.iter_sync(cancel_event):
            pass

        if last is None:
            return SyncResult(status="rejected")

        return SyncResult(
            status="cancelled" if last.state is SyncState.CANCELLED else "completed",
            processed_count=last.processed_count,
            deleted_count=last.deleted_count,
            page_count=last.page_count,
            fresh_crawl=last.fresh_crawl,
        )

    def iter_sync(
        self,
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[SyncProgress]:
        """
        Run one pass, yielding a SyncProgress after each committed page.

        Yields nothing if another pass is already running. Closing the
        generator early cancels the pass; the last yielded page is already
        checkpointed. Errors propagate with the cursor at the last
        committed page.
        """
        with self._guard:
            if self._running:
                logger.warning("Sync already in progress; request ignored")
                return
            self._running = True

        try:
            yield from self._run_pass(cancel_event)
        except GeneratorExit:
            if self._state in _ACTIVE_STATES:
                self._state = SyncState.CANCELLED
            logger.info("Sync pass closed by caller after %d items", self._processed_count)
            raise
        except Exception:
            self._state = SyncState.FAILED
            logger.exception("Sync pass failed after %d items", self._processed_count)
            raise
        finally:
            with self._guard:
                self._running = False

    # ----------------------------
    # Internals
    # ----------------------------
    def _run_pass(self, cancel_event: Optional[threading.Event]) -> Iterator[SyncProgress]:
        self._processed_count = 0
        deleted_count = 0
        page_count = 0

        page, fresh = self._first_page()
        self._state = SyncState.PAGING

        while True:
            deletions, upserts = _partition(page.entries)
            self._store.delete_many(deletions)
            self._store.upsert_many(upserts)

            page_count += 1
            deleted_count += len(deletions)
            self._processed_count += len(upserts)

            done = False
            if page.next_page_link:
                self._store.save_cursor(page.next_page_link)
            elif page.completion_link:
                self._store.save_cursor(page.completion_link)
                done = True
            else:
                logger.warning("Crawl page carried no continuation link; ending pass")
                done = True

            logger.debug(
                "Committed page %d: %d upserts, %d deletions (%d items so far)",
                page_count,
                len(upserts),
                len(deletions),
                self._processed_count,
            )

            cancelled = not done and cancel_event is not None and cancel_event.is_set()
            if done:
                self._state = SyncState.COMPLETED
            elif cancelled:
                self._state = SyncState.CANCELLED

            yield SyncProgress(
                state=self._state,
                page_count=page_count,
                processed_count=self._processed_count,
                deleted_count=deleted_count,
                fresh_crawl=fresh,
            )

            if done:
                logger.info(
                    "Sync complete: %d pages, %d upserts, %d deletions",
                    page_count,
                    self._processed_count,
                    deleted_count,
                )
                return
            if cancelled:
                logger.info("Sync cancelled after %d pages; cursor checkpointed", page_count)
                return

            page = self._remote.crawl(page.next_page_link)

    def _first_page(self) -> tuple[CrawlPage, bool]:
        cursor = self._store.get_cursor()
        if not cursor:
            return self._fresh_crawl(), True

        self._state = SyncState.RESUME
        logger.info("Resuming sync from stored cursor")
        try:
            return self._remote.crawl(cursor), False
        except CursorInvalidError as exc:
            logger.warning("Stored cursor rejected (%s); restarting with a fresh crawl", exc)
            self._store.clear_cursor()
            return self._fresh_crawl(), True

    def _fresh_crawl(self) -> CrawlPage:
        self._state = SyncState.FRESH_CRAWL
        logger.info("No usable cursor; starting fresh crawl")

        root = self._remote.get_root(self._drive_id)
        root.parents = []
        self._store.upsert_many([ItemRecord.from_file_info(root)])
        return self._remote.crawl(None)


def _partition(entries: list[CrawlEntry]) -> tuple[list[str], list[ItemRecord]]:
    """Split a page into deleted ids and upsert records (last entry per id wins)."""
    latest: dict[str, CrawlEntry] = {}
    for entry in entries:
        latest.pop(entry.item_id, None)
        latest[entry.item_id] = entry

    deletions: list[str] = []
    upserts: list[ItemRecord] = []
    for item_id, entry in latest.items():
        if entry.is_deletion:
            deletions.append(item_id)
        elif entry.is_upsert:
            info = entry.file
            if is_google_app(info.mime_type):  # type: ignore[union-attr]
                logger.debug("Google document %s has no content hash; never grouped", item_id)
            upserts.append(ItemRecord.from_file_info(info))  # type: ignore[arg-type]
    return deletions, upserts
