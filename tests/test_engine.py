from __future__ import annotations

import asyncio
import tempfile
import unittest
from pathlib import Path

from src.services.torn.engine import CycleState, CycleStatus, ReconciliationEngine
from src.services.torn.errors import NormalizationWarning, UpstreamReportedError, UpstreamUnavailable
from src.services.torn.models import JailEventKind, JailRecord
from src.services.torn.persistence import AbsenceStateStore, JailStateStore

DAY = 24 * 60 * 60


class FakeFetch:
    """Returns queued payloads in order; queued exceptions are raised."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


class RecordingSink:
    def __init__(self, fail_for: set[str] | None = None):
        self.events = []
        self.fail_for = fail_for or set()

    async def __call__(self, event):
        if event.id in self.fail_for:
            raise RuntimeError("discord is down")
        self.events.append(event)


class Clock:
    def __init__(self, now: float):
        self.now = now

    def __call__(self) -> float:
        return self.now


def jailed(player_id: int, name: str, until: int) -> dict:
    return {"id": player_id, "name": name, "status": {"state": "Jailed", "until": until}}


def free(player_id: int, name: str, in_oc: bool = False) -> dict:
    member = {"id": player_id, "name": name, "status": {"state": "Okay", "until": 0}}
    if in_oc:
        member["organised_crime"] = True
    return member


class ReconciliationEngineTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.clock = Clock(1_000_000)
        self.sink = RecordingSink()

    def tearDown(self):
        self._tmp.cleanup()

    def make_engine(self, fetch, configured: bool = True, **kwargs) -> ReconciliationEngine:
        return ReconciliationEngine(
            fetch=fetch,
            sink=kwargs.pop("sink", self.sink),
            clock=self.clock,
            is_configured=lambda: configured,
            jail_store=JailStateStore(self.dir / "jailstate.json"),
            absence_store=AbsenceStateStore(self.dir / "not_oc.json", self.dir / "not_oc.csv"),
            **kwargs,
        )

    async def test_unconfigured_cycle_is_a_no_op(self):
        fetch = FakeFetch({"members": [jailed(1, "Tango", 1_000_100)]})
        engine = self.make_engine(fetch, configured=False)

        result = await engine.run_cycle()

        self.assertEqual(result.status, CycleStatus.SKIPPED_UNCONFIGURED)
        self.assertEqual(fetch.calls, 0)
        self.assertEqual(len(engine.jail_tracker), 0)
        self.assertFalse((self.dir / "jailstate.json").exists())

    async def test_malformed_payload_then_valid_payload(self):
        fetch = FakeFetch({}, {"members": [jailed(7, "Uniform", 1_000_120), free(8, "Victor")]})
        engine = self.make_engine(fetch)

        with self.assertWarns(NormalizationWarning):
            first = await engine.run_cycle()
        self.assertEqual(first.status, CycleStatus.COMPLETED)
        self.assertEqual(first.members, 0)
        self.assertEqual(self.sink.events, [])

        self.clock.now += 60
        second = await engine.run_cycle()

        self.assertEqual(second.members, 2)
        self.assertEqual([(e.id, e.kind) for e in self.sink.events], [("7", JailEventKind.CONFINED)])
        self.assertEqual(self.sink.events[0].confinement_seconds, 60)
        self.assertEqual(engine.jail_tracker.get("8").confinement_seconds, 0)

    async def test_full_jail_cycle_sequence(self):
        now = 1_000_000
        fetch = FakeFetch(
            {"members": [free(7, "Whiskey")]},
            {"members": [jailed(7, "Whiskey", now + 60 + 120)]},
            {"members": [free(7, "Whiskey")]},
        )
        engine = self.make_engine(fetch)
        for _ in range(3):
            await engine.run_cycle()
            self.clock.now += 60
        self.assertEqual([e.kind for e in self.sink.events], [JailEventKind.CONFINED, JailEventKind.RELEASED])

    async def test_upstream_error_leaves_state_untouched(self):
        fetch = FakeFetch(UpstreamReportedError({"code": 2, "error": "Incorrect key"}))
        engine = self.make_engine(fetch)
        engine.jail_tracker.records["1"] = JailRecord(id="1", name="Xray", confinement_seconds=300, last_seen_at=5)

        result = await engine.run_cycle()

        self.assertEqual(result.status, CycleStatus.UPSTREAM_ERROR)
        self.assertEqual(engine.jail_tracker.get("1").confinement_seconds, 300)
        self.assertEqual(engine.jail_tracker.get("1").last_seen_at, 5)
        self.assertFalse((self.dir / "jailstate.json").exists())
        self.assertEqual(engine.state, CycleState.IDLE)

    async def test_upstream_unavailable_aborts(self):
        engine = self.make_engine(FakeFetch(UpstreamUnavailable("HTTP 502", status=502)))
        result = await engine.run_cycle()
        self.assertEqual(result.status, CycleStatus.UPSTREAM_UNAVAILABLE)
        self.assertFalse((self.dir / "not_oc.json").exists())

    async def test_fetch_timeout_aborts(self):
        async def slow_fetch():
            await asyncio.sleep(5)
            return {"members": []}

        engine = self.make_engine(slow_fetch, fetch_timeout=0.01)
        result = await engine.run_cycle()
        self.assertEqual(result.status, CycleStatus.UPSTREAM_UNAVAILABLE)
        self.assertEqual(engine.state, CycleState.IDLE)

    async def test_overlapping_cycle_is_skipped(self):
        release = asyncio.Event()
        started = asyncio.Event()

        async def blocking_fetch():
            started.set()
            await release.wait()
            return {"members": [free(1, "Yankee")]}

        engine = self.make_engine(blocking_fetch)
        first = asyncio.create_task(engine.run_cycle())
        await started.wait()

        self.assertEqual(engine.state, CycleState.RUNNING)
        second = await engine.run_cycle()
        self.assertEqual(second.status, CycleStatus.SKIPPED_OVERRUN)

        release.set()
        result = await first
        self.assertEqual(result.status, CycleStatus.COMPLETED)
        self.assertEqual(engine.state, CycleState.IDLE)

    async def test_failed_notification_does_not_stop_cycle(self):
        sink = RecordingSink(fail_for={"1"})
        fetch = FakeFetch({"members": [jailed(1, "Zulu", 1_000_300), jailed(2, "Alfa", 1_000_300)]})
        engine = self.make_engine(fetch, sink=sink)

        result = await engine.run_cycle()

        self.assertEqual(result.notify_failures, 1)
        self.assertEqual([e.id for e in sink.events], ["2"])
        self.assertTrue(result.persisted)
        self.assertTrue((self.dir / "jailstate.json").exists())

    async def test_state_is_persisted_and_reloaded(self):
        fetch = FakeFetch({"members": [jailed(1, "Bravo", 1_000_300), free(2, "Charlie")]})
        engine = self.make_engine(fetch)
        await engine.run_cycle()

        csv_lines = (self.dir / "not_oc.csv").read_text(encoding="utf-8").splitlines()
        self.assertEqual(len(csv_lines), 3)

        reloaded = self.make_engine(FakeFetch())
        reloaded.load_state()
        self.assertEqual(reloaded.jail_tracker.get("1").confinement_seconds, 300)
        self.assertEqual(reloaded.current_absence_duration("2", 1_000_600), 600)

    async def test_failed_save_keeps_memory_and_retries_next_cycle(self):
        blocker = self.dir / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        fetch = FakeFetch(
            {"members": [jailed(1, "Bravo", 1_000_300), free(2, "Charlie")]},
            {"members": [jailed(1, "Bravo", 1_000_300), free(2, "Charlie")]},
        )
        engine = self.make_engine(fetch)
        engine.jail_store = JailStateStore(blocker / "jailstate.json")

        result = await engine.run_cycle()

        self.assertIs(result.status, CycleStatus.COMPLETED)
        self.assertIs(result.persisted, False)
        self.assertEqual(engine.jail_tracker.get("1").confinement_seconds, 300)
        self.assertTrue((self.dir / "not_oc.json").exists())
        self.assertFalse((self.dir / "jailstate.json").exists())

        engine.jail_store = JailStateStore(self.dir / "jailstate.json")
        self.clock.now += 60
        result = await engine.run_cycle()

        self.assertIs(result.persisted, True)
        self.assertEqual(result.events, [])
        saved = JailStateStore(self.dir / "jailstate.json").load()
        self.assertEqual(saved["1"].confinement_seconds, 240)

    async def test_stale_records_retired_after_cycle(self):
        now = 1_000_000
        fetch = FakeFetch({"members": [free(1, "Delta")]})
        engine = self.make_engine(fetch)
        engine.jail_tracker.records["gone"] = JailRecord(id="gone", name="Gone", last_seen_at=now - 8 * DAY)
        engine.jail_tracker.records["away"] = JailRecord(id="away", name="Away", last_seen_at=now - 6 * DAY)

        result = await engine.run_cycle()

        self.assertEqual(result.retired, ["gone"])
        self.assertIn("away", engine.jail_tracker)

    async def test_report_queries(self):
        fetch = FakeFetch({"members": [free(1, "Echo"), free(2, "Foxtrot", in_oc=True)]})
        engine = self.make_engine(fetch)
        await engine.run_cycle()

        report = engine.build_absence_report(1900, now=1_000_000 + 3600)
        self.assertIn("[Echo]", report)
        self.assertNotIn("Foxtrot", report)
        self.assertIsNone(engine.current_absence_duration("2"))
        self.assertEqual(engine.build_jail_status_report(), "Nobody's in jail right now.")


if __name__ == "__main__":
    unittest.main()
