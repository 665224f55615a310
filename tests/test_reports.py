from __future__ import annotations

import unittest

from src.services.torn.activity_tracker import ActivityWindowTracker
from src.services.torn.jail_tracker import JailStateTracker
from src.services.torn.models import AbsenceRecord, JailRecord
from src.services.torn.reports import (
    ABSENCE_REPORT_EMPTY,
    ABSENCE_REPORT_HEADER,
    JAIL_REPORT_EMPTY,
    build_absence_report,
    build_jail_status_report,
    build_oc_embed_lines,
    truncation_suffix,
)

NOW = 1_000_000


def absences(*entries: tuple[str, str, int | None]) -> ActivityWindowTracker:
    return ActivityWindowTracker({
        pid: AbsenceRecord(id=pid, name=name, absence_started_at=started, last_seen_at=NOW)
        for pid, name, started in entries
    })


class AbsenceReportTests(unittest.TestCase):
    def test_everyone_in_oc_sentinel(self):
        tracker = absences(("1", "A", None), ("2", "B", None))
        self.assertEqual(build_absence_report(tracker, 1900, NOW), ABSENCE_REPORT_EMPTY)

    def test_longest_absence_first(self):
        tracker = absences(("1", "Short", NOW - 60), ("2", "Long", NOW - 7200), ("3", "Mid", NOW - 600))
        report = build_absence_report(tracker, 1900, NOW)
        self.assertTrue(report.startswith(ABSENCE_REPORT_HEADER))
        names = [line.split("]")[0].lstrip("• [") for line in report.splitlines() if line.startswith("• ")]
        self.assertEqual(names, ["Long", "Mid", "Short"])

    def test_ties_keep_insertion_order(self):
        tracker = absences(("3", "Third", NOW - 60), ("1", "First", NOW - 60), ("2", "Second", NOW - 60))
        report = build_absence_report(tracker, 1900, NOW)
        self.assertLess(report.index("Third"), report.index("First"))
        self.assertLess(report.index("First"), report.index("Second"))

    def test_line_format(self):
        tracker = absences(("55", "Hotel", NOW - 3720))
        report = build_absence_report(tracker, 1900, NOW)
        self.assertIn("• [Hotel](https://www.torn.com/profiles.php?XID=55) - 1h 2m\n", report)

    def test_truncation_bound_and_count(self):
        total = 30
        tracker = absences(*[(str(1000 + i), f"Player{i:02d}", NOW - i * 60) for i in range(total)])
        max_chars = 400

        report = build_absence_report(tracker, max_chars, NOW)
        listed = sum(1 for line in report.splitlines() if line.startswith("• "))
        omitted = total - listed

        self.assertGreater(omitted, 0)
        self.assertTrue(report.endswith(f"*... and {omitted} more*"))
        self.assertLessEqual(len(report), max_chars + len(truncation_suffix(omitted)))

    def test_budget_shorter_than_header_drops_header(self):
        tracker = absences(("1", "A", NOW - 10), ("2", "B", NOW - 20))
        max_chars = len(ABSENCE_REPORT_HEADER) - 1

        report = build_absence_report(tracker, max_chars, NOW)

        self.assertEqual(report, truncation_suffix(2))
        self.assertLessEqual(len(report), max_chars + len(truncation_suffix(2)))

    def test_no_suffix_when_everything_fits(self):
        tracker = absences(("1", "A", NOW - 10), ("2", "B", NOW - 20))
        self.assertNotIn("more*", build_absence_report(tracker, 1900, NOW))

    def test_oc_embed_lines(self):
        tracker = absences(("1", "India", NOW - 90061))
        self.assertEqual(
            build_oc_embed_lines(tracker, NOW),
            ["• [India](https://www.torn.com/profiles.php?XID=1) - not in OC for **1d 1h**"],
        )


class JailStatusReportTests(unittest.TestCase):
    def test_nobody_jailed_sentinel(self):
        self.assertEqual(build_jail_status_report(JailStateTracker(), NOW), JAIL_REPORT_EMPTY)

    def test_lists_jailed_in_tracker_order(self):
        tracker = JailStateTracker({
            "2": JailRecord(id="2", name="Juliet", confinement_seconds=600, last_seen_at=NOW),
            "1": JailRecord(id="1", name="Kilo", confinement_seconds=0, last_seen_at=NOW),
            "3": JailRecord(id="3", name="Lima", confinement_seconds=7200, last_seen_at=NOW),
        })
        lines = build_jail_status_report(tracker, NOW).split("\n")
        self.assertEqual(lines, [
            "• [Juliet](https://www.torn.com/profiles.php?XID=2): 10m",
            "• [Lima](https://www.torn.com/profiles.php?XID=3): 2h 0m",
        ])

    def test_elapsed_time_since_last_poll_is_subtracted(self):
        tracker = JailStateTracker({
            "2": JailRecord(id="2", name="Mike", confinement_seconds=600, last_seen_at=NOW - 300),
        })
        self.assertTrue(build_jail_status_report(tracker, NOW).endswith(": 5m"))


if __name__ == "__main__":
    unittest.main()
