import unittest

from gdrivetidy.controller import InMemoryDriveTree
from gdrivetidy.errors import (
    ConflictError,
    CursorInvalidError,
    NetworkError,
    NotFoundError,
)


class TestInMemoryDriveTree(unittest.TestCase):
    def setUp(self) -> None:
        self.tree = InMemoryDriveTree(page_size=2)
        self.folder = self.tree.add_folder("Photos")
        self.a = self.tree.add_file("a.jpg", self.folder.file_id, md5_checksum="h1", size=10)
        self.b = self.tree.add_file("b.jpg", self.folder.file_id, md5_checksum="h2", size=20)

    def _drain(self, cursor=None):
        ids = []
        page = self.tree.crawl(cursor)
        ids.extend(e.item_id for e in page.entries)
        while page.next_page_link:
            page = self.tree.crawl(page.next_page_link)
            ids.extend(e.item_id for e in page.entries)
        return ids, page.completion_link

    def test_fresh_crawl_lists_every_live_item_except_root(self) -> None:
        ids, completion = self._drain()
        self.assertEqual(sorted(ids), sorted(self.tree.live_ids()))
        self.assertNotIn("root", ids)
        self.assertIsNotNone(completion)

    def test_completion_link_yields_later_changes(self) -> None:
        _, completion = self._drain()
        c = self.tree.add_file("c.jpg", self.folder.file_id)
        self.tree.remove(self.a.file_id)

        page = self.tree.crawl(completion)
        self.assertEqual([e.item_id for e in page.entries], [c.file_id, self.a.file_id])
        self.assertTrue(page.entries[1].is_deletion)
        self.assertIsNotNone(page.completion_link)

    def test_expired_cursor_is_rejected(self) -> None:
        _, completion = self._drain()
        self.tree.expire_cursors()
        with self.assertRaises(CursorInvalidError):
            self.tree.crawl(completion)
        with self.assertRaises(CursorInvalidError):
            self.tree.crawl("files:x")

    def test_move_conflict(self) -> None:
        other = self.tree.add_folder("Other")
        self.tree.add_file("a.jpg", other.file_id)
        with self.assertRaises(ConflictError):
            self.tree.move(self.a.file_id, other.file_id)

    def test_move_updates_parent(self) -> None:
        other = self.tree.add_folder("Other")
        moved = self.tree.move(self.a.file_id, other.file_id)
        self.assertEqual(moved.parents, [other.file_id])
        self.assertEqual(self.tree.item(self.a.file_id).parents, [other.file_id])

    def test_create_folder_conflict_modes(self) -> None:
        with self.assertRaises(ConflictError):
            self.tree.create_folder(self.folder.file_id, "a.jpg", on_conflict="fail")
        renamed = self.tree.create_folder(self.folder.file_id, "a.jpg", on_conflict="rename")
        self.assertEqual(renamed.name, "a.jpg 1")

    def test_delete_trashes_item(self) -> None:
        self.tree.delete(self.b.file_id)
        self.assertNotIn(self.b.file_id, self.tree.live_ids())
        with self.assertRaises(NotFoundError):
            self.tree.move(self.b.file_id, self.folder.file_id)

    def test_list_children_filters(self) -> None:
        self.tree.add_folder("2020", self.folder.file_id)
        names = [c.name for c in self.tree.list_children(self.folder.file_id)]
        self.assertEqual(names, ["2020", "a.jpg", "b.jpg"])
        folders = self.tree.list_children(self.folder.file_id, folders_only=True)
        self.assertEqual([f.name for f in folders], ["2020"])
        self.assertEqual(
            [c.file_id for c in self.tree.list_children(self.folder.file_id, name="b.jpg")],
            [self.b.file_id],
        )

    def test_injected_failure_fires_once(self) -> None:
        self.tree.inject_failure("move", NetworkError("down"), item_id=self.a.file_id)
        with self.assertRaises(NetworkError):
            self.tree.move(self.a.file_id, self.folder.file_id)
        self.tree.move(self.a.file_id, self.folder.file_id)


if __name__ == "__main__":
    unittest.main()
