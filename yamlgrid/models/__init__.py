"""
Models package for yamlgrid.

This package provides convenient imports for all data models:
- FileStatus: Enum for per-file load/save outcomes
- SourceDocument: Parsed YAML file
- MergeRow: Row of the merge table
- TableSnapshot: Consistent copy of the table
- ChangeKind, TableChange: Table change notifications
- FileOutcome, LoadResult, SaveResult: Aggregate operation results
"""

from .file_status import FileStatus
from .data_models import (
    ChangeKind,
    FileOutcome,
    LoadResult,
    MergeRow,
    SaveResult,
    SourceDocument,
    TableChange,
    TableSnapshot,
)

__all__ = [
    "FileStatus",
    "ChangeKind",
    "FileOutcome",
    "LoadResult",
    "MergeRow",
    "SaveResult",
    "SourceDocument",
    "TableChange",
    "TableSnapshot",
]
