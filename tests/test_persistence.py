from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from src.services.torn.errors import PersistenceFailure
from src.services.torn.models import AbsenceRecord, JailRecord
from src.services.torn.persistence import AbsenceStateStore, JailStateStore, coerce_timestamp


class CoerceTimestampTests(unittest.TestCase):
    def test_seconds_pass_through(self):
        self.assertEqual(coerce_timestamp(1_700_000_000), 1_700_000_000)
        self.assertEqual(coerce_timestamp("1700000000"), 1_700_000_000)

    def test_milliseconds_are_converted(self):
        self.assertEqual(coerce_timestamp(1_700_000_000_123), 1_700_000_000)

    def test_invalid_values(self):
        for value in (None, "", "abc", True, -5, 0):
            self.assertIsNone(coerce_timestamp(value))


class JailStateStoreTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_save_writes_expected_shape(self):
        store = JailStateStore(self.dir / "jailstate.json")
        store.save({"7": JailRecord(id="7", name="November", confinement_seconds=120, last_seen_at=1000)})
        data = json.loads((self.dir / "jailstate.json").read_text(encoding="utf-8"))
        self.assertEqual(data, {"7": {"time": 120, "lastSeen": 1000, "name": "November"}})

    def test_load_converts_legacy_milliseconds(self):
        path = self.dir / "jailstate.json"
        path.write_text(json.dumps({"7": {"time": 60, "lastSeen": 1_700_000_000_000, "name": "Oscar"}}), encoding="utf-8")
        record = JailStateStore(path).load()["7"]
        self.assertEqual(record.last_seen_at, 1_700_000_000)
        self.assertEqual(record.confinement_seconds, 60)
        self.assertEqual(record.name, "Oscar")

    def test_missing_file_is_empty(self):
        self.assertEqual(JailStateStore(self.dir / "nope.json").load(), {})

    def test_corrupt_file_is_empty(self):
        path = self.dir / "jailstate.json"
        path.write_text("{not json", encoding="utf-8")
        self.assertEqual(JailStateStore(path).load(), {})

    def test_unwritable_path_raises_persistence_failure(self):
        blocker = self.dir / "blocker"
        blocker.write_text("file, not a directory", encoding="utf-8")
        store = JailStateStore(blocker / "jailstate.json")
        with self.assertRaises(PersistenceFailure):
            store.save({})


class AbsenceStateStoreTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.store = AbsenceStateStore(self.dir / "not_oc.json", self.dir / "not_oc.csv")

    def tearDown(self):
        self._tmp.cleanup()

    def test_csv_has_only_absent_rows_and_quotes_names(self):
        records = {
            "1": AbsenceRecord(id="1", name='Papa, "the" Great', absence_started_at=500, last_seen_at=900),
            "2": AbsenceRecord(id="2", name="Quebec", absence_started_at=None, last_seen_at=900),
        }
        self.store.save(records)
        lines = (self.dir / "not_oc.csv").read_text(encoding="utf-8").splitlines()
        self.assertEqual(lines, [
            "player_id,name,last_not_in_oc,lastSeen",
            '1,"Papa, ""the"" Great",500,900',
        ])

    def test_json_keeps_every_record(self):
        self.store.save({
            "2": AbsenceRecord(id="2", name="Quebec", absence_started_at=None, last_seen_at=900),
        })
        data = json.loads((self.dir / "not_oc.json").read_text(encoding="utf-8"))
        self.assertEqual(data, {"2": {"name": "Quebec", "last_not_in_oc": None, "lastSeen": 900}})

    def test_json_is_preferred_over_csv(self):
        (self.dir / "not_oc.json").write_text(
            json.dumps({"1": {"name": "Romeo", "last_not_in_oc": 100, "lastSeen": 200}}), encoding="utf-8"
        )
        (self.dir / "not_oc.csv").write_text("player_id,name,last_not_in_oc,lastSeen\n9,\"Other\",1,2\n", encoding="utf-8")
        self.assertEqual(list(self.store.load()), ["1"])

    def test_csv_fallback_when_json_missing(self):
        (self.dir / "not_oc.csv").write_text(
            'player_id,name,last_not_in_oc,lastSeen\n5,"Sierra, Jr",1700000000000,1700000000500\n',
            encoding="utf-8",
        )
        record = self.store.load()["5"]
        self.assertEqual(record.name, "Sierra, Jr")
        self.assertEqual(record.absence_started_at, 1_700_000_000)
        self.assertEqual(record.last_seen_at, 1_700_000_000)

    def test_nothing_on_disk(self):
        self.assertEqual(self.store.load(), {})


if __name__ == "__main__":
    unittest.main()
