"""DriveTidyManager: owns the remote controller, mirror store and engines."""

from __future__ import annotations

import logging
import threading
from typing import Iterator, Optional

from gdrivetidy.analysis import DuplicateAnalyzer
from gdrivetidy.auth import AuthInfo
from gdrivetidy.config import TidyConfig
from gdrivetidy.context import TidyContext
from gdrivetidy.controller import GoogleDriveController
from gdrivetidy.errors import InvalidStateError
from gdrivetidy.models import OrganizeResult, SyncProgress, SyncResult
from gdrivetidy.organizer import OrganizerEngine
from gdrivetidy.store import MirrorStore
from gdrivetidy.sync import SyncEngine

logger = logging.getLogger(__name__)


class DriveTidyManager:
    """
    High-level entry point: mirror a drive, analyze duplicates, organize.

    Typical use:

        with DriveTidyManager(auth_info, TidyConfig(db_path="mirror.db")) as mgr:
            mgr.sync()
            stats = mgr.analyzer.get_stats()
    """

    def __init__(self, auth_info: AuthInfo, config: TidyConfig) -> None:
        controller = GoogleDriveController(
            auth_info,
            scopes=config.scopes,
            supports_all_drives=config.supports_all_drives,
            drive_id=config.drive_id,
            crawl_page_size=config.crawl_page_size,
            max_retries=config.max_retries,
        )
        store = MirrorStore(config.db_path)
        self._init_state(TidyContext(remote=controller, store=store), config)

    @classmethod
    def from_context(
        cls,
        context: TidyContext,
        config: Optional[TidyConfig] = None,
    ) -> "DriveTidyManager":
        """Create manager with an injected context (useful for tests)."""
        obj = cls.__new__(cls)
        obj._init_state(context, config or TidyConfig(db_path=context.store.db_path))
        return obj

    def _init_state(self, context: TidyContext, config: TidyConfig) -> None:
        self._config = config
        self._context: Optional[TidyContext] = context
        self._sync = SyncEngine(context, drive_id=config.drive_id)
        self._analyzer = DuplicateAnalyzer(context)
        self._organizer = OrganizerEngine(context, list_page_size=config.list_page_size)

    def __enter__(self) -> "DriveTidyManager":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def config(self) -> TidyConfig:
        return self._config

    @property
    def context(self) -> TidyContext:
        """Return the active context. Raises InvalidStateError after close()."""
        return self._require_open()

    @property
    def store(self) -> MirrorStore:
        return self.context.store

    @property
    def analyzer(self) -> DuplicateAnalyzer:
        self._require_open()
        return self._analyzer

    @property
    def sync_engine(self) -> SyncEngine:
        return self._sync

    def close(self) -> None:
        """Close the mirror store. Safe to call more than once."""
        if self._context is None:
            return
        if self._sync.is_running:
            logger.warning("Closing manager while a sync pass is running")
        self._context.store.close()
        self._context = None

    # ----------------------------
    # Operations
    # ----------------------------
    def sync(self, cancel_event: Optional[threading.Event] = None) -> SyncResult:
        """Run one sync pass. Status "rejected" means a pass was already running."""
        self._require_open()
        return self._sync.run(cancel_event)

    def iter_sync(self, cancel_event: Optional[threading.Event] = None) -> Iterator[SyncProgress]:
        self._require_open()
        return self._sync.iter_sync(cancel_event)

    def organize(
        self,
        source_folder_id: str,
        start_year: int,
        end_year: int,
        *,
        dry_run: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> OrganizeResult:
        self._require_open()
        return self._organizer.organize(
            source_folder_id,
            start_year,
            end_year,
            dry_run=dry_run,
            cancel_event=cancel_event,
        )

    def delete_item(self, item_id: str) -> None:
        """Delete an item remotely (trash on Drive), then drop it from the mirror."""
        ctx = self.context
        ctx.remote.delete(item_id)
        ctx.store.delete_item(item_id)
        logger.info("Deleted item %s", item_id)

    def get_setting(self, key: str) -> Optional[str]:
        return self.context.store.get_config_value(key)

    def set_setting(self, key: str, value: str) -> None:
        self.context.store.set_config_value(key, value)

    def _require_open(self) -> TidyContext:
        if self._context is None:
            raise InvalidStateError("Manager is closed")
        return self._context
