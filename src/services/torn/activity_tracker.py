"""
FactionWatch Bot - Activity Window Tracker
==========================================

Tracks how long each member has been out of an organised crime.

A record's absence_started_at is set the first poll a member is seen NOT in
OC and cleared as soon as they are back in one. Nothing is accumulated: the
elapsed time is always computed on demand from absence_started_at and now.
Records are never pruned here.
"""

from typing import Iterator, Optional

from src.core.logger import logger
from src.services.torn.models import AbsenceRecord, MemberSnapshot


class ActivityWindowTracker:
    """Owns the AbsenceRecord map."""

    def __init__(self, records: Optional[dict[str, AbsenceRecord]] = None) -> None:
        self.records: dict[str, AbsenceRecord] = dict(records or {})

    def __len__(self) -> int:
        return len(self.records)

    def get(self, player_id: str) -> Optional[AbsenceRecord]:
        return self.records.get(player_id)

    def observe(self, snapshot: MemberSnapshot, now: int) -> AbsenceRecord:
        """Fold one member snapshot in and return the updated record."""
        record = self.records.get(snapshot.id)
        if record is None:
            record = AbsenceRecord(id=snapshot.id, name=snapshot.name, absence_started_at=None, last_seen_at=now)
            self.records[snapshot.id] = record

        record.name = snapshot.name or record.name
        record.last_seen_at = now

        if not snapshot.in_organized_activity and record.absence_started_at is None:
            record.absence_started_at = now
            logger.debug("Tracking Member Not In OC", [
                ("Player", f"{record.name} [{record.id}]"),
                ("Since", str(now)),
            ])
        elif snapshot.in_organized_activity and record.absence_started_at is not None:
            record.absence_started_at = None
            logger.debug("Member Back In OC", [
                ("Player", f"{record.name} [{record.id}]"),
            ])

        return record

    def current_absence_duration(self, player_id: str, now: int) -> Optional[int]:
        """Seconds since the member left OC, or None if not absent / unknown."""
        record = self.records.get(player_id)
        if record is None or record.absence_started_at is None:
            return None
        return now - record.absence_started_at

    def absent(self) -> Iterator[AbsenceRecord]:
        """Records currently outside OC, in insertion order."""
        return (r for r in self.records.values() if r.absence_started_at is not None)

    def to_dict(self) -> dict[str, dict]:
        return {player_id: record.to_dict() for player_id, record in self.records.items()}


__all__ = ["ActivityWindowTracker"]
