import argparse
import os
import tempfile
import unittest
from pathlib import Path

from gdrivetidy import AuthInfo, DriveTidyManager, TidyConfig

DEFAULT_SCOPES = ("https://www.googleapis.com/auth/drive",)


@unittest.skipUnless(
    os.environ.get("GDRIVETIDY_TOKEN_FILE", "").strip(),
    "Set GDRIVETIDY_TOKEN_FILE to run Google Drive integration tests",
)
class TestGoogleDriveIntegration(unittest.TestCase):
    """
    Integration test with real Google Drive.

    Required env vars:
        - GDRIVETIDY_TOKEN_FILE: path to an authorized-user token json

    Optional:
        - GDRIVETIDY_SCOPES: comma-separated scopes (default: full drive)
        - GDRIVETIDY_TEST_ROOT_ID: sandbox folder for the organizer dry run
    """

    @classmethod
    def setUpClass(cls) -> None:
        cls.token_file = os.environ["GDRIVETIDY_TOKEN_FILE"].strip()
        cls.root_id = os.environ.get("GDRIVETIDY_TEST_ROOT_ID", "").strip()

        scopes_raw = os.environ.get("GDRIVETIDY_SCOPES", "").strip()
        if scopes_raw:
            cls.scopes = tuple(s.strip() for s in scopes_raw.split(",") if s.strip())
        else:
            cls.scopes = DEFAULT_SCOPES

        cls.auth_info = AuthInfo(kind="oauth", data={"token_file": cls.token_file})

    def test_sync_and_stats_smoke(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config = TidyConfig(db_path=str(Path(tmp) / "mirror.db"), scopes=self.scopes)
            with DriveTidyManager(self.auth_info, config) as mgr:
                # 1) full pass
                first = mgr.sync()
                self.assertEqual(first.status, "completed")
                self.assertTrue(first.fresh_crawl)
                self.assertGreaterEqual(mgr.store.get_item_count(), 1)

                # 2) incremental pass from the stored cursor
                second = mgr.sync()
                self.assertEqual(second.status, "completed")
                self.assertFalse(second.fresh_crawl)

                stats = mgr.analyzer.get_stats()
                self.assertGreaterEqual(stats.wasted_bytes, 0)

    def test_organize_dry_run(self) -> None:
        if not self.root_id:
            self.skipTest("Set GDRIVETIDY_TEST_ROOT_ID to enable the organizer dry run")

        with tempfile.TemporaryDirectory() as tmp:
            config = TidyConfig(db_path=str(Path(tmp) / "mirror.db"), scopes=self.scopes)
            with DriveTidyManager(self.auth_info, config) as mgr:
                result = mgr.organize(self.root_id, 2000, 2100, dry_run=True)

        # dry run never creates folders or moves items
        self.assertTrue(result.dry_run)
        self.assertEqual(result.error_count, 0)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose unittest output",
    )
    return parser.parse_args()


if __name__ == "__main__":
    args = _parse_args()
    unittest.main(verbosity=2 if args.verbose else 1)
