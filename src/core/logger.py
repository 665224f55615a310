"""
FactionWatch Bot - Logger
=========================

Tree-style logger shared by every module of the bot.

Each call takes a title and an optional list of (key, value) pairs that are
rendered underneath it with box-drawing characters, so one poll cycle reads
as one block in the console and in the log files.

Features:
- Per-process run ID written into a session header
- Timestamps in a configurable zone (LOG_TIMEZONE, default UTC / Torn City Time)
- Console and file output at the same time
- Daily log folders with a separate errors file
- Old log folders pruned at startup

Log Structure:
    logs/
    ├── 2026-10-17/
    │   ├── FactionWatch-2026-10-17.log
    │   └── FactionWatch-Errors-2026-10-17.log
    └── 2026-10-18/
        ├── FactionWatch-2026-10-18.log
        └── FactionWatch-Errors-2026-10-18.log
"""

import os
import re
import shutil
import uuid
import traceback
from datetime import datetime
from pathlib import Path
from typing import List, Tuple, Optional, Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


# =============================================================================
# Constants
# =============================================================================

LOG_RETENTION_DAYS = 7
LOG_FILE_PREFIX = "FactionWatch"

EMOJI_PATTERN = re.compile(
    "["
    "\U0001F600-\U0001F64F"  # emoticons
    "\U0001F300-\U0001F5FF"  # symbols & pictographs
    "\U0001F680-\U0001F6FF"  # transport & map symbols
    "\U0001F1E0-\U0001F1FF"  # flags
    "\U00002702-\U000027B0"  # dingbats
    "\U0001F900-\U0001F9FF"  # supplemental symbols
    "\U00002600-\U000026FF"  # misc symbols
    "\U0001FA70-\U0001FAFF"  # symbols extended
    "\U00002300-\U000023FF"  # misc technical
    "]+",
    flags=re.UNICODE
)


# =============================================================================
# Tree Symbols
# =============================================================================

class TreeSymbols:
    """Box-drawing characters for tree formatting."""
    BRANCH = "├─"
    LAST = "└─"
    PIPE = "│ "
    SPACE = "  "


def _resolve_timezone(name: str) -> ZoneInfo:
    """Return the named zone, falling back to UTC for unknown names."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


# =============================================================================
# TreeLogger
# =============================================================================

class TreeLogger:
    """Logger with tree-style formatting and daily file rotation."""

    def __init__(
        self,
        logs_dir: Optional[Path] = None,
        timezone_name: Optional[str] = None,
    ) -> None:
        self.run_id: str = str(uuid.uuid4())[:8]

        default_dir = Path(__file__).parent.parent.parent / "logs"
        self.logs_base_dir: Path = logs_dir or Path(os.getenv("LOG_DIR", str(default_dir)))
        self.logs_base_dir.mkdir(parents=True, exist_ok=True)

        self._timezone = _resolve_timezone(timezone_name or os.getenv("LOG_TIMEZONE", "UTC"))

        self.current_date = datetime.now(self._timezone).strftime("%Y-%m-%d")
        self._point_files_at(self.current_date)

        self._cleanup_old_logs()
        self._write_header("NEW SESSION - RUN ID")

    # =========================================================================
    # Private Methods - Setup
    # =========================================================================

    def _point_files_at(self, date_str: str) -> None:
        """Create the daily folder and set the log file paths inside it."""
        self.log_dir = self.logs_base_dir / date_str
        self.log_dir.mkdir(exist_ok=True)
        self.log_file: Path = self.log_dir / f"{LOG_FILE_PREFIX}-{date_str}.log"
        self.error_file: Path = self.log_dir / f"{LOG_FILE_PREFIX}-Errors-{date_str}.log"

    def _check_date_rotation(self) -> None:
        """Switch to a new daily folder when the date changes."""
        current_date = datetime.now(self._timezone).strftime("%Y-%m-%d")
        if current_date != self.current_date:
            self.current_date = current_date
            self._point_files_at(current_date)
            self._write_header("LOG ROTATION - Continuing session")

    def _cleanup_old_logs(self) -> None:
        """Delete daily folders older than the retention period."""
        try:
            now = datetime.now(self._timezone)
            deleted_count = 0

            for folder in self.logs_base_dir.iterdir():
                if not folder.is_dir():
                    continue
                try:
                    folder_date = datetime.strptime(folder.name, "%Y-%m-%d")
                except ValueError:
                    continue
                folder_date = folder_date.replace(tzinfo=self._timezone)

                if (now - folder_date).days > LOG_RETENTION_DAYS:
                    shutil.rmtree(folder)
                    deleted_count += 1

            if deleted_count > 0:
                print(f"[LOG CLEANUP] Deleted {deleted_count} old log folders (>{LOG_RETENTION_DAYS} days)")
        except OSError as e:
            print(f"[LOG CLEANUP ERROR] {e}")

    def _write_header(self, label: str) -> None:
        """Write a session banner to both log files."""
        header = (
            f"\n{'='*60}\n"
            f"{label} {self.run_id}\n"
            f"{self._get_timestamp()}\n"
            f"{'='*60}\n\n"
        )
        self._append(self.log_file, header)
        self._append(self.error_file, header)

    # =========================================================================
    # Private Methods - Formatting
    # =========================================================================

    def _get_timestamp(self) -> str:
        """Current time in the configured zone, e.g. [03:15:42 PM UTC]."""
        current_time = datetime.now(self._timezone)
        tz_name = current_time.strftime("%Z")
        return current_time.strftime(f"[%I:%M:%S %p {tz_name}]")

    def _strip_emojis(self, text: str) -> str:
        """Remove emojis from text so the level emoji is not doubled."""
        return EMOJI_PATTERN.sub("", text).strip()

    @staticmethod
    def _append(path: Path, text: str) -> None:
        try:
            with open(path, "a", encoding="utf-8") as f:
                f.write(text)
        except OSError:
            pass

    def _format_line(self, message: str, emoji: str) -> str:
        clean_message = self._strip_emojis(message)
        timestamp = self._get_timestamp()
        return f"{timestamp} {emoji} {clean_message}" if emoji else f"{timestamp} {clean_message}"

    def _write(self, message: str, emoji: str = "", to_error: bool = False) -> None:
        """Write a timestamped title line to console and file(s)."""
        self._check_date_rotation()
        full_message = self._format_line(message, emoji)
        print(full_message)
        self._append(self.log_file, f"{full_message}\n")
        if to_error:
            self._append(self.error_file, f"{full_message}\n")

    def _write_raw(self, message: str, to_error: bool = False) -> None:
        """Write an untimestamped line (tree branches)."""
        print(message)
        self._append(self.log_file, f"{message}\n")
        if to_error:
            self._append(self.error_file, f"{message}\n")

    def _render(
        self,
        title: str,
        items: Optional[List[Tuple[str, Any]]],
        emoji: str,
        status: str,
        to_error: bool = False,
    ) -> None:
        """Render a title and its branches, or a single Status branch."""
        self._write(title, emoji, to_error=to_error)

        if not items:
            items = [("Status", status)]

        for i, (key, value) in enumerate(items):
            prefix = TreeSymbols.LAST if i == len(items) - 1 else TreeSymbols.BRANCH
            self._write_raw(f"  {prefix} {key}: {value}", to_error=to_error)

        self._write_raw("", to_error=to_error)

    # =========================================================================
    # Public Methods - Log Levels
    # =========================================================================

    def info(self, msg: str, details: Optional[List[Tuple[str, Any]]] = None) -> None:
        """Log an informational message."""
        self._render(msg, details, "ℹ️", "OK")

    def success(self, msg: str, details: Optional[List[Tuple[str, Any]]] = None) -> None:
        """Log a success message."""
        self._render(msg, details, "✅", "Complete")

    def warning(self, msg: str, details: Optional[List[Tuple[str, Any]]] = None) -> None:
        """Log a warning (also written to the errors file)."""
        self._render(msg, details, "⚠️", "Warning", to_error=True)

    def error(self, msg: str, details: Optional[List[Tuple[str, Any]]] = None) -> None:
        """Log an error (also written to the errors file)."""
        self._render(msg, details, "❌", "Failed", to_error=True)

    def critical(self, msg: str, details: Optional[List[Tuple[str, Any]]] = None) -> None:
        """Log a fatal error (also written to the errors file)."""
        self._render(msg, details, "🚨", "Critical", to_error=True)

    def debug(self, msg: str, details: Optional[List[Tuple[str, Any]]] = None) -> None:
        """Log a debug message, only when the DEBUG env var is set."""
        if os.getenv("DEBUG", "").lower() in ("1", "true", "yes"):
            self._render(msg, details, "🔍", "Debug")

    def exception(self, msg: str, details: Optional[List[Tuple[str, Any]]] = None) -> None:
        """Log an error followed by the active traceback."""
        self._render(msg, details, "💥", "Exception", to_error=True)
        tb = traceback.format_exc()
        self._append(self.log_file, f"{tb}\n")
        self._append(self.error_file, f"{tb}\n")

    # =========================================================================
    # Public Methods - Tree Formatting
    # =========================================================================

    def tree(
        self,
        title: str,
        items: List[Tuple[str, Any]],
        emoji: str = "📦"
    ) -> None:
        """
        Log structured data in tree format.

        Example output:
            [03:00:00 PM UTC] 🚨 Member Jailed
              ├─ Player: Example [123456]
              ├─ Time Left: 2h 15m
              └─ Previous: 0s
        """
        self._render(title, items, emoji, "OK")

    def tree_list(
        self,
        title: str,
        items: List[str],
        emoji: str = "📋"
    ) -> None:
        """Log a flat list of strings under a title."""
        self._write(title, emoji)
        for i, item in enumerate(items):
            prefix = TreeSymbols.LAST if i == len(items) - 1 else TreeSymbols.BRANCH
            self._write_raw(f"  {prefix} {item}")
        self._write_raw("")

    def error_tree(
        self,
        title: str,
        error: BaseException,
        context: Optional[List[Tuple[str, Any]]] = None
    ) -> None:
        """Log an exception's type and message plus optional context."""
        items: List[Tuple[str, Any]] = [
            ("Type", type(error).__name__),
            ("Message", str(error)),
        ]
        if context:
            items.extend(context)
        self._render(title, items, "❌", "Failed", to_error=True)


# =============================================================================
# Module Export
# =============================================================================

logger = TreeLogger()

__all__ = ["logger", "TreeLogger", "TreeSymbols"]
