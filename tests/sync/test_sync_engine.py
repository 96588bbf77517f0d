import threading
import unittest

from gdrivetidy.context import TidyContext
from gdrivetidy.controller import InMemoryDriveTree
from gdrivetidy.errors import NetworkError
from gdrivetidy.models import CrawlEntry, CrawlPage, FileInfo, SyncState
from gdrivetidy.store import MirrorStore
from gdrivetidy.sync import SyncEngine


class TestSyncEngine(unittest.TestCase):
    def setUp(self) -> None:
        self.tree = InMemoryDriveTree(page_size=2)
        self.photos = self.tree.add_folder("Photos")
        self.files = [
            self.tree.add_file(f"f{i}.jpg", self.photos.file_id, md5_checksum=f"h{i}", size=i)
            for i in range(5)
        ]
        self.store = MirrorStore()
        self.engine = SyncEngine(TidyContext(remote=self.tree, store=self.store))

    def tearDown(self) -> None:
        self.store.close()

    def _mirrored_ids(self) -> set[str]:
        return {r.id for r in self.store.get_all_items()}

    def test_first_sync_mirrors_every_item(self) -> None:
        result = self.engine.run()

        self.assertEqual(result.status, "completed")
        self.assertTrue(result.fresh_crawl)
        self.assertEqual(result.page_count, 3)
        self.assertEqual(result.processed_count, 6)
        self.assertEqual(self.engine.state, SyncState.COMPLETED)
        self.assertEqual(self._mirrored_ids(), self.tree.live_ids() | {"root"})
        self.assertIsNone(self.store.get_item("root").parent_id)
        self.assertTrue(self.store.get_cursor().startswith("changes:"))

    def test_second_sync_is_incremental(self) -> None:
        self.engine.run()
        added = self.tree.add_file("new.jpg", self.photos.file_id)

        result = self.engine.run()

        self.assertFalse(result.fresh_crawl)
        self.assertEqual(result.processed_count, 1)
        self.assertIn(added.file_id, self._mirrored_ids())

    def test_cancelled_sync_resumes_without_loss(self) -> None:
        cancel = threading.Event()
        cancel.set()

        first = self.engine.run(cancel)
        self.assertEqual(first.status, "cancelled")
        self.assertEqual(first.page_count, 1)
        self.assertEqual(self.engine.state, SyncState.CANCELLED)
        self.assertTrue(self.store.get_cursor().startswith("files:"))

        second = self.engine.run()
        self.assertEqual(second.status, "completed")
        self.assertFalse(second.fresh_crawl)
        self.assertEqual(self._mirrored_ids(), self.tree.live_ids() | {"root"})

    def test_closing_iterator_keeps_checkpoint(self) -> None:
        events = self.engine.iter_sync()
        progress = next(events)
        events.close()

        self.assertEqual(progress.page_count, 1)
        self.assertEqual(self.engine.state, SyncState.CANCELLED)
        self.assertFalse(self.engine.is_running)

        self.engine.run()
        self.assertEqual(self._mirrored_ids(), self.tree.live_ids() | {"root"})

    def test_expired_cursor_falls_back_to_fresh_crawl(self) -> None:
        self.engine.run()
        self.tree.expire_cursors()
        added = self.tree.add_file("late.jpg")

        result = self.engine.run()

        self.assertEqual(result.status, "completed")
        self.assertTrue(result.fresh_crawl)
        self.assertIn(added.file_id, self._mirrored_ids())

    def test_deletions_are_applied(self) -> None:
        self.engine.run()
        self.tree.remove(self.files[0].file_id)
        self.tree.delete(self.files[1].file_id)

        result = self.engine.run()

        self.assertEqual(result.deleted_count, 2)
        self.assertIsNone(self.store.get_item(self.files[0].file_id))
        self.assertIsNone(self.store.get_item(self.files[1].file_id))

    def test_last_entry_for_an_item_wins_within_a_page(self) -> None:
        self.engine.run()
        target = self.files[2].file_id
        self.tree.update_file(target, name="renamed.jpg")
        self.tree.remove(target)

        self.engine.run()

        self.assertIsNone(self.store.get_item(target))

    def test_concurrent_request_is_rejected(self) -> None:
        events = self.engine.iter_sync()
        next(events)
        self.assertTrue(self.engine.is_running)

        self.assertEqual(self.engine.run().status, "rejected")
        self.assertEqual(list(self.engine.iter_sync()), [])

        for _ in events:
            pass
        self.assertFalse(self.engine.is_running)
        self.assertEqual(self.engine.state, SyncState.COMPLETED)

    def test_failure_propagates_and_keeps_cursor(self) -> None:
        cancel = threading.Event()
        cancel.set()
        self.engine.run(cancel)
        checkpoint = self.store.get_cursor()

        self.tree.inject_failure("crawl", NetworkError("connection reset"))
        with self.assertRaises(NetworkError):
            self.engine.run()

        self.assertEqual(self.engine.state, SyncState.FAILED)
        self.assertFalse(self.engine.is_running)
        self.assertEqual(self.store.get_cursor(), checkpoint)

        self.assertEqual(self.engine.run().status, "completed")
        self.assertEqual(self._mirrored_ids(), self.tree.live_ids() | {"root"})


class _SinglePageRemote:
    """Remote that answers every crawl with one fixed page."""

    def __init__(self, page: CrawlPage) -> None:
        self.page = page
        self.cursors = []

    def crawl(self, cursor):
        self.cursors.append(cursor)
        return self.page


class TestSyncEnginePageEdgeCases(unittest.TestCase):
    def setUp(self) -> None:
        self.store = MirrorStore()
        self.store.save_cursor("old")

    def tearDown(self) -> None:
        self.store.close()

    def _engine(self, *entries: CrawlEntry) -> SyncEngine:
        remote = _SinglePageRemote(CrawlPage(entries=list(entries)))
        return SyncEngine(TidyContext(remote=remote, store=self.store))

    def test_page_without_links_ends_pass_and_keeps_cursor(self) -> None:
        engine = self._engine(
            CrawlEntry(item_id="x"),
            CrawlEntry(item_id="F", file=FileInfo(file_id="F", name="f.txt", mime_type="text/plain")),
        )

        with self.assertLogs("gdrivetidy.sync.engine", level="WARNING") as logs:
            result = engine.run()

        self.assertEqual(result.status, "completed")
        self.assertEqual(result.processed_count, 1)
        self.assertEqual(self.store.get_cursor(), "old")
        self.assertEqual([r.id for r in self.store.get_all_items()], ["F"])
        self.assertTrue(any("no continuation link" in line for line in logs.output))

    def test_google_documents_are_mirrored_without_hash(self) -> None:
        doc = FileInfo(file_id="D", name="notes", mime_type="application/vnd.google-apps.document")
        engine = self._engine(CrawlEntry(item_id="D", file=doc))

        with self.assertLogs("gdrivetidy.sync.engine", level="DEBUG") as logs:
            engine.run()

        self.assertIsNone(self.store.get_item("D").content_hash)
        self.assertTrue(any("no content hash" in line for line in logs.output))


if __name__ == "__main__":
    unittest.main()
