"""
FactionWatch Bot - Tracker Persistence
======================================

Loads and saves tracker state as flat files in the data directory.

    jailstate.json   {id: {"time", "lastSeen", "name"}}
    not_oc.json      {id: {"name", "last_not_in_oc", "lastSeen"}}
    not_oc.csv       player_id,name,last_not_in_oc,lastSeen  (absent members only)

Every save is a full overwrite. Loading never
raises: a missing file is empty state, an unreadable one is empty state
plus a warning. Timestamps above 10^12 are taken to be milliseconds (files
written by the previous bot) and converted to seconds.
"""

import csv
import json
from pathlib import Path
from typing import Any, Optional

from src.core.logger import logger
from src.services.torn.errors import PersistenceFailure
from src.services.torn.models import AbsenceRecord, JailRecord


MILLISECOND_THRESHOLD = 10 ** 12
CSV_HEADER = ("player_id", "name", "last_not_in_oc", "lastSeen")


# =============================================================================
# Helpers
# =============================================================================

def coerce_timestamp(value: Any) -> Optional[int]:
    """Integer UNIX seconds from a persisted value, None when missing or invalid."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number <= 0:
        return None
    if number > MILLISECOND_THRESHOLD:
        number /= 1000
    return int(number)


def _coerce_seconds(value: Any) -> int:
    try:
        return max(0, int(float(value)))
    except (TypeError, ValueError):
        return 0


def _write_text(path: Path, text: str) -> None:
    """Overwrite path with text."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(text)
    except OSError as e:
        raise PersistenceFailure(path, e) from e


def _read_json_object(path: Path, label: str) -> dict:
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to Load {label}", [
            ("Path", str(path)),
            ("Error", str(e)),
            ("Action", "Starting with empty state"),
        ])
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring Malformed {label}", [
            ("Path", str(path)),
            ("Type", type(data).__name__),
        ])
        return {}
    return data


# =============================================================================
# Jail State
# =============================================================================

class JailStateStore:
    """JSON adapter for JailStateTracker records."""

    def __init__(self, path: Path) -> None:
        self.path: Path = path

    def load(self) -> dict[str, JailRecord]:
        records: dict[str, JailRecord] = {}
        for player_id, raw in _read_json_object(self.path, "Jail State").items():
            if not isinstance(raw, dict):
                continue
            player_id = str(player_id)
            records[player_id] = JailRecord(
                id=player_id,
                name=str(raw.get("name") or "Unknown"),
                confinement_seconds=_coerce_seconds(raw.get("time")),
                last_seen_at=coerce_timestamp(raw.get("lastSeen")) or 0,
            )

        if records:
            logger.info("Loaded Jail State", [
                ("Path", str(self.path)),
                ("Records", str(len(records))),
                ("Jailed", str(sum(1 for r in records.values() if r.confinement_seconds > 0))),
            ])
        return records

    def save(self, records: dict[str, JailRecord]) -> None:
        """Overwrite the file. Raises PersistenceFailure."""
        payload = {player_id: record.to_dict() for player_id, record in records.items()}
        _write_text(self.path, json.dumps(payload, indent=2))


# =============================================================================
# Not-in-OC State
# =============================================================================

class AbsenceStateStore:
    """JSON + CSV adapter for ActivityWindowTracker records."""

    def __init__(self, json_path: Path, csv_path: Path) -> None:
        self.json_path: Path = json_path
        self.csv_path: Path = csv_path

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(self) -> dict[str, AbsenceRecord]:
        """Load from JSON, or from the CSV when no JSON file exists yet."""
        if self.json_path.exists():
            records = self._load_json()
            source = self.json_path
        else:
            records = self._load_csv()
            source = self.csv_path

        if records:
            logger.info("Loaded Not-in-OC State", [
                ("Path", str(source)),
                ("Records", str(len(records))),
                ("Not In OC", str(sum(1 for r in records.values() if r.is_absent))),
            ])
        return records

    def _load_json(self) -> dict[str, AbsenceRecord]:
        records: dict[str, AbsenceRecord] = {}
        for player_id, raw in _read_json_object(self.json_path, "Not-in-OC State").items():
            if not isinstance(raw, dict):
                continue
            player_id = str(player_id)
            records[player_id] = AbsenceRecord(
                id=player_id,
                name=str(raw.get("name") or "Unknown"),
                absence_started_at=coerce_timestamp(raw.get("last_not_in_oc")),
                last_seen_at=coerce_timestamp(raw.get("lastSeen")) or 0,
            )
        return records

    def _load_csv(self) -> dict[str, AbsenceRecord]:
        records: dict[str, AbsenceRecord] = {}
        if not self.csv_path.exists():
            return records

        try:
            with open(self.csv_path, "r", encoding="utf-8", newline="") as f:
                reader = csv.reader(f)
                header = next(reader, None)
                if header is None:
                    return records
                for row in reader:
                    if not row or not row[0].strip():
                        continue
                    row = row + [""] * (len(CSV_HEADER) - len(row))
                    player_id, name, started, last_seen = (cell.strip() for cell in row[:4])
                    records[player_id] = AbsenceRecord(
                        id=player_id,
                        name=name or "Unknown",
                        absence_started_at=coerce_timestamp(started),
                        last_seen_at=coerce_timestamp(last_seen) or 0,
                    )
        except (OSError, csv.Error, UnicodeDecodeError) as e:
            logger.warning("Failed to Load Not-in-OC CSV", [
                ("Path", str(self.csv_path)),
                ("Error", str(e)),
            ])
            return {}
        return records

    # -------------------------------------------------------------------------
    # Saving
    # -------------------------------------------------------------------------

    @staticmethod
    def _quote(value: str) -> str:
        return '"' + value.replace('"', '""') + '"'

    def render_csv(self, records: dict[str, AbsenceRecord]) -> str:
        """CSV text with one row per currently absent member; names always quoted."""
        rows = [",".join(CSV_HEADER)]
        for player_id, record in records.items():
            if record.absence_started_at is None:
                continue
            rows.append(",".join([
                player_id,
                self._quote(str(record.name)),
                str(record.absence_started_at),
                str(record.last_seen_at or ""),
            ]))
        return "\n".join(rows)

    def save(self, records: dict[str, AbsenceRecord]) -> None:
        """Overwrite JSON and CSV. Raises PersistenceFailure."""
        payload = {player_id: record.to_dict() for player_id, record in records.items()}
        _write_text(self.json_path, json.dumps(payload, indent=2))
        _write_text(self.csv_path, self.render_csv(records))


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "JailStateStore",
    "AbsenceStateStore",
    "coerce_timestamp",
    "CSV_HEADER",
]
