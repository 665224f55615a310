import json
import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock

from src.handlers.shutdown import shutdown_handler
from src.services.torn.engine import ReconciliationEngine
from src.services.torn.persistence import AbsenceStateStore, JailStateStore

SAVED_JAIL_STATE = {"7": {"time": 120, "lastSeen": 1_000_000, "name": "Echo"}}


async def _no_fetch():
    return {"members": []}


class ShutdownFlushTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.jail_path = self.dir / "jailstate.json"
        self.jail_path.write_text(json.dumps(SAVED_JAIL_STATE), encoding="utf-8")

    def tearDown(self):
        self._tmp.cleanup()

    def make_bot(self):
        engine = ReconciliationEngine(
            fetch=_no_fetch,
            jail_store=JailStateStore(self.jail_path),
            absence_store=AbsenceStateStore(self.dir / "not_oc.json", self.dir / "not_oc.csv"),
        )
        return SimpleNamespace(
            poll_scheduler=None,
            report_scheduler=None,
            engine=engine,
            torn_client=SimpleNamespace(close=AsyncMock()),
        )

    async def test_unloaded_state_is_not_written_over_saved_files(self):
        bot = self.make_bot()

        await shutdown_handler(bot)

        saved = json.loads(self.jail_path.read_text(encoding="utf-8"))
        self.assertIn("7", saved)
        self.assertFalse((self.dir / "not_oc.json").exists())
        bot.torn_client.close.assert_awaited_once()

    async def test_loaded_state_is_flushed(self):
        bot = self.make_bot()
        bot.engine.load_state()
        bot.engine.jail_tracker.get("7").confinement_seconds = 60

        await shutdown_handler(bot)

        saved = json.loads(self.jail_path.read_text(encoding="utf-8"))
        self.assertEqual(saved["7"]["time"], 60)
        self.assertTrue((self.dir / "not_oc.json").exists())


if __name__ == "__main__":
    unittest.main()
