import os
import sys
import tempfile
import time
import unittest

# Ensure project root is in path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(project_root)

from packages.tiv_service.concurrency import ConcurrencyManager


class TestConcurrencyManager(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.manager = ConcurrencyManager(lock_dir=self.tmpdir.name, stale_seconds=60)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_fail_fast_on_contention(self):
        with self.manager.acquire_lock("session-1"):
            with self.assertRaises(BlockingIOError):
                with self.manager.acquire_lock("session-1"):
                    pass
            # Other resources are independent
            with self.manager.acquire_lock("session-2"):
                pass

    def test_released_after_block(self):
        with self.manager.acquire_lock("session-1"):
            pass
        with self.manager.acquire_lock("session-1"):
            pass
        self.assertEqual(os.listdir(self.tmpdir.name), [])

    def test_released_on_error(self):
        with self.assertRaises(RuntimeError):
            with self.manager.acquire_lock("session-1"):
                raise RuntimeError("boom")
        with self.manager.acquire_lock("session-1"):
            pass

    def test_stale_lock_is_removed(self):
        path = os.path.join(self.tmpdir.name, "session-1.lock")
        with open(path, "w") as f:
            f.write("0")
        old = time.time() - 120
        os.utime(path, (old, old))
        with self.manager.acquire_lock("session-1"):
            pass

    def test_unsafe_ids_are_sanitized(self):
        with self.manager.acquire_lock("../escape"):
            self.assertEqual(os.listdir(self.tmpdir.name), [".._escape.lock"])


if __name__ == "__main__":
    unittest.main()
