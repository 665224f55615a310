from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from src.core.settings import BotSettings


class BotSettingsTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "config.json"

    def tearDown(self):
        self._tmp.cleanup()

    def test_missing_file_is_unconfigured(self):
        settings = BotSettings(self.path).load()
        self.assertFalse(settings.is_jail_configured)
        self.assertIsNone(settings.not_oc_channel_id)

    def test_loads_camel_case_keys(self):
        self.path.write_text(json.dumps({"channelId": "123", "roleId": 456, "notOcChannelId": "789"}), encoding="utf-8")
        settings = BotSettings(self.path).load()
        self.assertEqual((settings.channel_id, settings.role_id, settings.not_oc_channel_id), (123, 456, 789))
        self.assertTrue(settings.is_jail_configured)

    def test_channel_without_role_is_not_configured(self):
        self.path.write_text(json.dumps({"channelId": "123"}), encoding="utf-8")
        self.assertFalse(BotSettings(self.path).load().is_jail_configured)

    def test_save_preserves_unknown_keys(self):
        self.path.write_text(json.dumps({"welcomeChannelId": "55", "channelId": "1", "roleId": "2"}), encoding="utf-8")
        settings = BotSettings(self.path).load()
        self.assertTrue(settings.set_not_oc_channel(999))

        data = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertEqual(data["welcomeChannelId"], "55")
        self.assertEqual(data["notOcChannelId"], "999")
        self.assertEqual(data["channelId"], "1")

    def test_set_jail_target_round_trips(self):
        BotSettings(self.path).set_jail_target(10, 20)
        settings = BotSettings(self.path).load()
        self.assertEqual((settings.channel_id, settings.role_id), (10, 20))

    def test_malformed_file_is_ignored(self):
        self.path.write_text("[1, 2]", encoding="utf-8")
        self.assertFalse(BotSettings(self.path).load().is_jail_configured)


if __name__ == "__main__":
    unittest.main()
