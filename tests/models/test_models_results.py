import unittest

from gdrivetidy.models import (
    DuplicateGroup,
    ItemRecord,
    OrganizeItemResult,
    OrganizeResult,
    SyncResult,
    SyncState,
)


def _rec(item_id: str, size) -> ItemRecord:
    return ItemRecord(id=item_id, name=item_id, content_hash="h", size=size)


class TestDuplicateGroup(unittest.TestCase):
    def test_wasted_bytes(self) -> None:
        group = DuplicateGroup(content_hash="h", items=[_rec("a", 100), _rec("b", 100), _rec("c", 100)])
        self.assertEqual(group.member_count, 3)
        self.assertFalse(group.size_mismatch)
        self.assertEqual(group.wasted_bytes, 200)

    def test_size_mismatch_uses_largest(self) -> None:
        group = DuplicateGroup(content_hash="h", items=[_rec("a", 100), _rec("b", 120)])
        self.assertTrue(group.size_mismatch)
        self.assertEqual(group.representative_size, 120)
        self.assertEqual(group.wasted_bytes, 120)

    def test_unknown_size_counts_as_zero(self) -> None:
        group = DuplicateGroup(content_hash="h", items=[_rec("a", None), _rec("b", None)])
        self.assertEqual(group.wasted_bytes, 0)


class TestOrganizeResult(unittest.TestCase):
    def test_record_counts_by_status(self) -> None:
        result = OrganizeResult()
        result.record(OrganizeItemResult(item_id="1", name="a", status="moved"))
        result.record(OrganizeItemResult(item_id="2", name="b", status="planned"))
        result.record(OrganizeItemResult(item_id="3", name="c", status="skipped"))
        result.record(OrganizeItemResult(item_id="4", name="d", status="error"))

        self.assertEqual(result.moved_count, 2)
        self.assertEqual(result.skipped_count, 1)
        self.assertEqual(result.error_count, 1)
        self.assertEqual(len(result.items), 4)


class TestSyncResult(unittest.TestCase):
    def test_defaults(self) -> None:
        r = SyncResult(status="rejected")
        self.assertEqual(r.processed_count, 0)
        self.assertFalse(r.fresh_crawl)

    def test_state_values_are_strings(self) -> None:
        self.assertEqual(SyncState.COMPLETED, "COMPLETED")


if __name__ == "__main__":
    unittest.main()
