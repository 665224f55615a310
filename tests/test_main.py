import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import main


class SingleInstanceLockTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.lock_path = Path(self._tmp.name) / "factionwatch_bot.lock"
        patcher = patch.object(main, "LOCK_FILE_PATH", self.lock_path)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(self._tmp.cleanup)

    def test_lock_writes_pid(self):
        fd = main.acquire_lock()
        self.addCleanup(os.close, fd)
        self.assertEqual(self.lock_path.read_text(), str(os.getpid()))

    def test_leftover_file_from_dead_process_does_not_block(self):
        self.lock_path.write_text("999999")
        fd = main.acquire_lock()
        self.addCleanup(os.close, fd)
        self.assertEqual(self.lock_path.read_text(), str(os.getpid()))

    def test_second_holder_exits(self):
        fd = main.acquire_lock()
        self.addCleanup(os.close, fd)
        with self.assertRaises(SystemExit) as ctx:
            main.acquire_lock()
        self.assertEqual(ctx.exception.code, 1)


if __name__ == "__main__":
    unittest.main()
