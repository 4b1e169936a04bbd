"""
Core data models for yamlgrid.

This module contains the following dataclasses:
- SourceDocument: A parsed YAML file (transient, not kept in sync with edits)
- MergeRow: One row of the merge table, keyed by a top-level YAML key,
  with the loaded value of each cell kept alongside its text
- TableSnapshot: A consistent copy of the table used for rendering and saving
- TableChange: Notification emitted when the table is mutated
- FileOutcome: The result of loading or saving one file
- LoadResult: Aggregate outcome of loading a batch of files
- SaveResult: Aggregate outcome of saving every open file
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .file_status import FileStatus


@dataclass
class SourceDocument:
    """A YAML file parsed into a flat mapping of top-level keys."""
    file_id: str                      # Resolved path as a string
    path: Path                        # Location on disk
    content: Dict[str, Any]           # Top-level key -> raw parsed value


@dataclass
class MergeRow:
    """One unified key and its display value in every open file."""
    key: str                          # Top-level YAML key
    cells: Dict[str, str] = field(default_factory=dict)  # file_id -> cell text ("" = absent)
    originals: Dict[str, Any] = field(default_factory=dict)  # file_id -> value as loaded

    def get(self, file_id: str) -> str:
        """Return the cell for file_id, or "" if the file has no cell."""
        return self.cells.get(file_id, "")


@dataclass
class TableSnapshot:
    """A deep copy of the merge table at one point in time."""
    columns: List[str]                # File ids in upload order
    labels: Dict[str, str]            # file_id -> column header
    rows: List[MergeRow]              # Rows in display order
    version: int = 0                  # Table version the snapshot was taken at

    def label(self, file_id: str) -> str:
        """Return the column header for file_id."""
        return self.labels.get(file_id, file_id)


class ChangeKind(Enum):
    """The kind of mutation a TableChange describes."""
    INGEST = "ingest"                 # A document was merged into a column
    CELL = "cell"                     # One cell was edited
    RENAME = "rename"                 # A row key was renamed
    REMOVE_FILE = "remove_file"       # A column was dropped


@dataclass
class TableChange:
    """Describes a single mutation of the merge table."""
    kind: ChangeKind
    version: int                      # Table version after the change
    row_key: Optional[str] = None
    file_id: Optional[str] = None
    old_value: Optional[str] = None   # Old cell text, or old key for RENAME
    new_value: Optional[str] = None   # New cell text, or new key for RENAME


@dataclass
class FileOutcome:
    """The result of loading or saving a single file."""
    file_id: str
    status: FileStatus
    message: str = ""                 # Error description, empty on success

    @property
    def ok(self) -> bool:
        return not self.status.is_failure


@dataclass
class LoadResult:
    """Per-file outcomes of a load batch, in the order the files were given."""
    outcomes: List[FileOutcome] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> List[FileOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failures(self) -> List[FileOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def errors(self) -> List[str]:
        """Failure messages formatted for display."""
        return [f"{o.file_id}: {o.message}" for o in self.failures]


@dataclass
class SaveResult:
    """Per-file outcomes of a save request, in column order."""
    outcomes: List[FileOutcome] = field(default_factory=list)
    dry_run: bool = False
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> List[FileOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failures(self) -> List[FileOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def errors(self) -> List[str]:
        """Failure messages formatted for display."""
        return [f"{o.file_id}: {o.message}" for o in self.failures]
