import os
import tempfile
import unittest
from datetime import datetime, timezone

from gdrivetidy.models import ItemRecord
from gdrivetidy.store import CURSOR_KEY, MirrorStore


def _file(item_id: str, content_hash=None, size=None, parent_id="root") -> ItemRecord:
    return ItemRecord(
        id=item_id,
        name=f"{item_id}.bin",
        parent_id=parent_id,
        content_hash=content_hash,
        size=size,
    )


class TestMirrorStoreItems(unittest.TestCase):
    def setUp(self) -> None:
        self.store = MirrorStore()

    def tearDown(self) -> None:
        self.store.close()

    def test_upsert_is_idempotent(self) -> None:
        record = _file("A", "h1", 100)
        self.store.upsert_item(record)
        self.store.upsert_item(record)
        self.assertEqual(self.store.get_item_count(), 1)

    def test_upsert_replaces_existing_record(self) -> None:
        self.store.upsert_item(_file("A", "h1", 100))
        self.store.upsert_item(ItemRecord(id="A", name="renamed", content_hash="h2", size=5))
        item = self.store.get_item("A")
        self.assertEqual(item.name, "renamed")
        self.assertEqual(item.content_hash, "h2")

    def test_record_fields_survive_storage(self) -> None:
        created = datetime(2021, 2, 3, 4, 5, 6, tzinfo=timezone.utc)
        record = ItemRecord(
            id="P",
            name="photo.jpg",
            parent_id="root",
            content_hash="h",
            size=42,
            created_at=created,
            web_url="https://example.invalid/P",
            photo_taken_at=created,
            camera_model="Pixel",
            is_transcribed=True,
            transcript="hello",
        )
        self.store.upsert_item(record)
        self.assertEqual(self.store.get_item("P"), record)

    def test_delete_unknown_id_is_noop(self) -> None:
        self.store.upsert_item(_file("A"))
        self.store.delete_item("missing")
        self.assertEqual(self.store.get_item_count(), 1)

    def test_delete_many(self) -> None:
        self.store.upsert_many([_file("A"), _file("B"), _file("C")])
        self.store.delete_many(["A", "C", "Z"])
        self.assertEqual([r.id for r in self.store.get_all_items()], ["B"])

    def test_total_size_excludes_folders(self) -> None:
        self.store.upsert_many(
            [
                _file("A", size=10),
                _file("B", size=None),
                ItemRecord(id="D", name="dir", is_folder=True, size=999),
            ]
        )
        self.assertEqual(self.store.get_total_size(), 10)

    def test_clear_all(self) -> None:
        self.store.upsert_many([_file("A"), _file("B")])
        self.store.clear_all()
        self.assertEqual(self.store.get_all_items(), [])


class TestMirrorStoreDuplicates(unittest.TestCase):
    def setUp(self) -> None:
        self.store = MirrorStore()

    def tearDown(self) -> None:
        self.store.close()

    def test_groups_and_stats(self) -> None:
        self.store.upsert_many([_file("A", "h1", 100), _file("B", "h1", 100), _file("C", "h2", 50)])

        groups = self.store.get_duplicate_groups()
        self.assertEqual(len(groups), 1)
        self.assertEqual(groups[0].content_hash, "h1")
        self.assertEqual([r.id for r in groups[0].items], ["A", "B"])

        stats = self.store.get_stats()
        self.assertEqual(stats.group_count, 1)
        self.assertEqual(stats.wasted_bytes, 100)
        self.assertEqual(stats.mismatched_group_count, 0)

    def test_missing_hash_never_groups(self) -> None:
        self.store.upsert_many([_file("A", None, 10), _file("B", None, 10)])
        self.assertEqual(self.store.get_duplicate_groups(), [])
        self.assertEqual(self.store.get_stats().group_count, 0)

    def test_mismatched_sizes_use_largest(self) -> None:
        self.store.upsert_many([_file("A", "h", 100), _file("B", "h", 150), _file("C", "h", 100)])
        stats = self.store.get_stats()
        self.assertEqual(stats.wasted_bytes, 300)
        self.assertEqual(stats.mismatched_group_count, 1)

    def test_many_groups_are_fetched_in_chunks(self) -> None:
        records = []
        for i in range(1200):
            records.append(_file(f"a{i:04d}", f"h{i:04d}", 1))
            records.append(_file(f"b{i:04d}", f"h{i:04d}", 1))
        self.store.upsert_many(records)

        groups = self.store.get_duplicate_groups()
        self.assertEqual(len(groups), 1200)
        self.assertTrue(all(g.member_count == 2 for g in groups))
        self.assertEqual(self.store.get_stats().wasted_bytes, 1200)


class TestMirrorStoreConfig(unittest.TestCase):
    def test_cursor_lifecycle(self) -> None:
        with MirrorStore() as store:
            self.assertIsNone(store.get_cursor())
            store.save_cursor("c1")
            self.assertEqual(store.get_config_value(CURSOR_KEY), "c1")
            store.save_cursor("c2")
            self.assertEqual(store.get_cursor(), "c2")
            store.clear_cursor()
            self.assertIsNone(store.get_cursor())

    def test_config_values(self) -> None:
        with MirrorStore() as store:
            store.set_config_value("organize_source", "F1")
            self.assertEqual(store.get_config_value("organize_source"), "F1")
            store.delete_config_value("organize_source")
            self.assertIsNone(store.get_config_value("organize_source"))

    def test_file_store_persists_across_instances(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "nested", "mirror.db")
            with MirrorStore(path) as store:
                store.upsert_item(_file("A", "h", 1))
                store.save_cursor("c")
            with MirrorStore(path) as store:
                self.assertEqual(store.get_item("A").content_hash, "h")
                self.assertEqual(store.get_cursor(), "c")


class TestMirrorStoreClosed(unittest.TestCase):
    def test_closed_store_degrades_to_empty(self) -> None:
        store = MirrorStore()
        store.upsert_item(_file("A", "h", 1))
        store.close()
        store.close()

        self.assertTrue(store.closed)
        store.upsert_item(_file("B"))
        store.delete_item("A")
        store.save_cursor("c")
        self.assertIsNone(store.get_item("A"))
        self.assertEqual(store.get_all_items(), [])
        self.assertEqual(store.get_item_count(), 0)
        self.assertEqual(store.get_total_size(), 0)
        self.assertEqual(store.get_duplicate_groups(), [])
        self.assertEqual(store.get_stats().group_count, 0)
        self.assertIsNone(store.get_cursor())


if __name__ == "__main__":
    unittest.main()
