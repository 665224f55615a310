"""
FactionWatch Bot - Report Builders
==================================

Text reports rendered from tracker state. These return plain strings so
commands and schedulers can put them in a message or an embed unchanged.
"""

from typing import Optional

from src.core.config import TORN_PROFILE_URL
from src.services.torn.activity_tracker import ActivityWindowTracker
from src.services.torn.jail_tracker import JailStateTracker
from src.services.torn.models import AbsenceRecord
from src.utils.duration import format_duration, format_jail_time


# =============================================================================
# Report Text
# =============================================================================

ABSENCE_REPORT_HEADER = "📊 **Not-in-OC Report**\n\n"
ABSENCE_REPORT_EMPTY = ABSENCE_REPORT_HEADER + "Everyone's in OC! 🎉"
JAIL_REPORT_EMPTY = "Nobody's in jail right now."


def profile_link(player_id: str) -> str:
    """Torn profile URL for a player."""
    return TORN_PROFILE_URL.format(player_id=player_id)


def truncation_suffix(remaining: int) -> str:
    return f"\n*... and {remaining} more*"


# =============================================================================
# Absence Report
# =============================================================================

def sorted_absences(
    tracker: ActivityWindowTracker,
    now: int,
) -> list[tuple[AbsenceRecord, int]]:
    """
    Absent members with their elapsed seconds, longest absence first.

    The sort is stable, so ties keep the tracker's insertion order.
    """
    entries = [
        (record, max(0, now - record.absence_started_at))
        for record in tracker.absent()
    ]
    entries.sort(key=lambda entry: entry[1], reverse=True)
    return entries


def absence_line(record: AbsenceRecord, seconds: int) -> str:
    return f"• [{record.name or 'Unknown'}]({profile_link(record.id)}) - {format_duration(seconds)}\n"


def build_absence_report(tracker: ActivityWindowTracker, max_chars: int, now: int) -> str:
    """
    Newline-delimited not-in-OC report bounded to max_chars.

    When the next line would push the text past max_chars, the listing stops
    and a "... and N more" line is appended, N being the unlisted count. The
    result can therefore exceed max_chars by at most that suffix, even for a
    max_chars shorter than the header.
    """
    entries = sorted_absences(tracker, now)
    if not entries:
        return ABSENCE_REPORT_EMPTY

    report = ABSENCE_REPORT_HEADER if len(ABSENCE_REPORT_HEADER) <= max_chars else ""
    listed = 0

    for record, seconds in entries:
        line = absence_line(record, seconds)
        if len(report) + len(line) > max_chars:
            report += truncation_suffix(len(entries) - listed)
            break
        report += line
        listed += 1

    return report


def build_oc_embed_lines(tracker: ActivityWindowTracker, now: int) -> list[str]:
    """Lines for the /oc embed, longest absence first."""
    return [
        f"• [{record.name or 'Unknown'}]({profile_link(record.id)}) - not in OC for **{format_duration(seconds)}**"
        for record, seconds in sorted_absences(tracker, now)
    ]


# =============================================================================
# Jail Status Report
# =============================================================================

def remaining_jail_seconds(confinement_seconds: int, last_seen_at: int, now: Optional[int]) -> int:
    """Stored remaining time minus what has elapsed since the poll that stored it."""
    if now is None:
        return confinement_seconds
    return max(0, confinement_seconds - max(0, now - last_seen_at))


def build_jail_status_report(tracker: JailStateTracker, now: Optional[int] = None) -> str:
    """One line per jailed member, in tracker order; a sentinel when nobody is jailed."""
    lines = [
        f"• [{record.name or 'Unknown'}]({profile_link(record.id)}): "
        f"{format_jail_time(remaining_jail_seconds(record.confinement_seconds, record.last_seen_at, now))}"
        for record in tracker.jailed()
    ]
    return "\n".join(lines) if lines else JAIL_REPORT_EMPTY


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "ABSENCE_REPORT_HEADER",
    "ABSENCE_REPORT_EMPTY",
    "JAIL_REPORT_EMPTY",
    "profile_link",
    "truncation_suffix",
    "sorted_absences",
    "build_absence_report",
    "build_oc_embed_lines",
    "build_jail_status_report",
]
