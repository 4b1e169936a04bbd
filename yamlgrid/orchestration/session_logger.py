"""SessionLogger for writing a structured report of an editing session.

This module provides the SessionLogger class, which writes a plain-text log
with sections for the header, the load phase, the edits made, the save phase
and a summary. The log is an output report only; nothing reads it back.
"""

import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional, TextIO

from yamlgrid.models import ChangeKind, FileStatus, LoadResult, SaveResult, TableChange


class SessionLogger:
    """Logger for editing sessions with a structured output format.

    Usage:
        with SessionLogger(log_path, dry_run=False) as logger:
            logger.log_header()
            logger.log_load_phase(load_result)
            logger.log_edit(change)
            logger.log_save_phase(save_result)
            logger.log_summary(duration_seconds)

    Attributes:
        SEPARATOR: The 65-character separator line used between sections.
    """

    SEPARATOR = "=" * 65

    def __init__(self, log_file_path: Optional[Path] = None, dry_run: bool = False) -> None:
        """Initialize the SessionLogger.

        Args:
            log_file_path: Optional path for the log file. If not provided,
                generates a timestamped filename in the current directory.
            dry_run: Whether saves in this session are simulated.

        Raises:
            OSError: If the log file path is not writable.
        """
        self._dry_run = dry_run
        self._start_timestamp = datetime.now()
        self._file_handle: Optional[TextIO] = None
        self._edit_counter = 0
        self._files_loaded = 0
        self._files_saved = 0
        self._errors: List[str] = []

        if log_file_path is None:
            timestamp_str = self._start_timestamp.strftime("%Y-%m-%d_%H-%M-%S")
            self._log_file_path = Path.cwd() / f"yamlgrid_{timestamp_str}.log"
        else:
            self._log_file_path = Path(log_file_path)

        self._validate_path()

    def _validate_path(self) -> None:
        """Validate that the log file's directory exists and is writable.

        Raises:
            OSError: If the parent directory doesn't exist or is not writable.
        """
        parent = self._log_file_path.parent
        if not parent.exists():
            raise OSError(f"Parent directory does not exist: {parent}")
        if not parent.is_dir():
            raise OSError(f"Parent path is not a directory: {parent}")
        try:
            test_file = parent / f".yamlgrid_test_{id(self)}"
            test_file.touch()
            test_file.unlink()
        except PermissionError:
            raise OSError(f"Permission denied: cannot write to {parent}")

    def __enter__(self) -> "SessionLogger":
        """Open the log file.

        Raises:
            OSError: If the file cannot be opened for writing.
        """
        try:
            self._file_handle = open(self._log_file_path, "w", encoding="utf-8")
        except OSError as e:
            raise OSError(f"Cannot open log file for writing: {e}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Close the log file, even if an exception occurred."""
        if self._file_handle is not None:
            try:
                self._file_handle.close()
            except OSError as e:
                print(f"Warning: Error closing log file: {e}", file=sys.stderr)
            finally:
                self._file_handle = None

    def get_log_path(self) -> Path:
        return self._log_file_path

    def log_header(self) -> None:
        """Write the title, timestamp and mode (LIVE or DRY RUN)."""
        self._write_separator()
        self._write_line("yamlgrid - Session Log")
        self._write_separator()
        self._write_line(f"Timestamp: {self._format_timestamp(self._start_timestamp)}")
        self._write_line(f"Mode: {'DRY RUN' if self._dry_run else 'LIVE'}")
        self._write_line("")

    def log_load_phase(self, result: LoadResult) -> None:
        """Write one line per file of a load batch.

        Args:
            result: The LoadResult returned by the session.
        """
        self._write_separator()
        self._write_line("LOAD PHASE")
        self._write_separator()
        self._write_line(f"Files requested: {len(result.outcomes)}")
        self._write_line(f"Files loaded: {len(result.succeeded)}")
        for outcome in result.outcomes:
            line = f"- [{outcome.status.value}] {outcome.file_id}"
            if outcome.message:
                line += f" ({outcome.message})"
            self._write_line(line, indent=2)
        self._write_line("")

        self._files_loaded += len(result.succeeded)
        self._errors.extend(result.errors)

    def log_edit(self, change: TableChange) -> None:
        """Write an entry for a cell edit or key rename. Other changes are ignored.

        Args:
            change: The TableChange emitted by the merge table.
        """
        if change.kind not in (ChangeKind.CELL, ChangeKind.RENAME):
            return

        if self._edit_counter == 0:
            self._write_separator()
            self._write_line("EDITS")
            self._write_separator()

        self._edit_counter += 1
        now = self._format_timestamp(datetime.now())
        if change.kind is ChangeKind.RENAME:
            self._write_line(f"[{now}] Renamed key: {change.old_value!r} -> {change.new_value!r}")
        else:
            self._write_line(f"[{now}] Edited {change.row_key!r} in {change.file_id}")
            self._write_line(f"Old: {self._truncate(change.old_value)}", indent=4)
            self._write_line(f"New: {self._truncate(change.new_value)}", indent=4)

    def log_save_phase(self, result: SaveResult) -> None:
        """Write one line per file of a save request.

        Args:
            result: The SaveResult returned by the session.
        """
        if self._edit_counter:
            self._write_line("")
        self._write_separator()
        self._write_line("SAVE PHASE" + (" [DRY RUN]" if result.dry_run else ""))
        self._write_separator()
        for outcome in result.outcomes:
            line = f"- [{outcome.status.value}] {outcome.file_id}"
            if outcome.message:
                line += f" ({outcome.message})"
            self._write_line(line, indent=2)
        self._write_line("")

        self._files_saved += sum(1 for o in result.outcomes if o.status is FileStatus.SAVED)
        self._errors.extend(result.errors)

    def log_summary(self, duration_seconds: float) -> None:
        """Write the summary section.

        Args:
            duration_seconds: Length of the session.
        """
        self._write_separator()
        self._write_line("SUMMARY")
        self._write_separator()
        self._write_line(f"Files loaded: {self._files_loaded}")
        self._write_line(f"Edits: {self._edit_counter}")
        self._write_line(f"Files saved: {self._files_saved}")
        if self._errors:
            self._write_line(f"Total errors: {len(self._errors)}")
            self._write_line("Errors:")
            for error in self._errors:
                self._write_line(f"  - {error}")
        self._write_line(f"Duration: {self._format_duration(duration_seconds)}")
        self._write_line("")
        self._write_line(f"Log file: {self._log_file_path}")
        self._write_separator()

    def _format_duration(self, seconds: float) -> str:
        """Format a duration as "45s", "5m 23s" or "1h 5m 30s"."""
        total_seconds = int(seconds)

        if total_seconds < 60:
            return f"{total_seconds}s"

        hours = total_seconds // 3600
        minutes = (total_seconds % 3600) // 60
        secs = total_seconds % 60

        if hours > 0:
            return f"{hours}h {minutes}m {secs}s"
        return f"{minutes}m {secs}s"

    def _format_timestamp(self, dt: datetime) -> str:
        return dt.strftime("%Y-%m-%d %H:%M:%S")

    def _truncate(self, value: Optional[str], max_length: int = 60) -> str:
        text = repr(value or "")
        if len(text) > max_length:
            return text[: max_length - 3] + "..."
        return text

    def _write_separator(self) -> None:
        self._write_line(self.SEPARATOR)

    def _write_line(self, text: str, indent: int = 0) -> None:
        """Write a line to the log file with optional indentation."""
        if self._file_handle is None:
            print(
                f"Warning: Attempted to write to closed log file: {text}",
                file=sys.stderr,
            )
            return

        try:
            self._file_handle.write(" " * indent + text + "\n")
        except OSError as e:
            print(f"Warning: Error writing to log file: {e}", file=sys.stderr)
