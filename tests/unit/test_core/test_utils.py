# SPDX-License-Identifier: LGPL-3.0-or-later
import logging
import sys
import tempfile
import unittest
from pathlib import Path

from driverprov.core.utils import U

LOG = logging.getLogger("driverprov.test")


class TestUtilsFileOperations(unittest.TestCase):
    """Test utility file operations."""

    def test_ensure_dir_creates_directory(self):
        """Test that ensure_dir creates directory."""
        with tempfile.TemporaryDirectory() as td:
            new_dir = Path(td) / "subdir" / "nested"

            self.assertEqual(U.ensure_dir(new_dir), new_dir)

            self.assertTrue(new_dir.is_dir())

    def test_ensure_dir_handles_existing(self):
        """Test that ensure_dir handles existing directory."""
        with tempfile.TemporaryDirectory() as td:
            existing = Path(td) / "existing"
            existing.mkdir()

            # Should not raise
            U.ensure_dir(existing)

            self.assertTrue(existing.exists())


class TestUtilsFormatting(unittest.TestCase):
    def test_human_bytes(self):
        self.assertEqual(U.human_bytes(None), "unknown")
        self.assertEqual(U.human_bytes(512), "512 B")
        self.assertEqual(U.human_bytes(1536), "1.50 KiB")
        self.assertEqual(U.human_bytes(5 * 1024 * 1024), "5.00 MiB")

    def test_json_dump_handles_paths(self):
        self.assertIn('"p": "x"', U.json_dump({"p": Path("x")}))

    def test_now_iso_is_utc(self):
        self.assertTrue(U.now_iso().endswith("+00:00"))


class TestRunCmd(unittest.TestCase):
    def test_nonzero_exit_does_not_raise(self):
        cp = U.run_cmd(LOG, [sys.executable, "-c", "import sys; print('hi'); sys.exit(3)"], timeout=60)

        self.assertEqual(cp.returncode, 3)
        self.assertEqual(cp.stdout.strip(), "hi")

    def test_missing_binary_raises_oserror(self):
        with self.assertRaises(OSError):
            U.run_cmd(LOG, ["definitely-not-a-real-binary-driverprov"], timeout=5)


if __name__ == "__main__":
    unittest.main()
