"""yamlgrid - side-by-side editor for YAML files.

Loads several YAML files, merges their top-level keys into one table (one row
per key, one column per file), applies edits, and writes every file back.
"""

__version__ = "0.1.0"

from .exceptions import (
    DuplicateKeyError,
    IoError,
    ParseError,
    SerializationError,
    YamlGridError,
)
from .models import (
    FileOutcome,
    FileStatus,
    LoadResult,
    MergeRow,
    SaveResult,
    SourceDocument,
    TableSnapshot,
)

__all__ = [
    "__version__",
    "DuplicateKeyError",
    "IoError",
    "ParseError",
    "SerializationError",
    "YamlGridError",
    "FileOutcome",
    "FileStatus",
    "LoadResult",
    "MergeRow",
    "SaveResult",
    "SourceDocument",
    "TableSnapshot",
]


def main() -> None:
    """Entry point for the yamlgrid CLI application.

    Imports and runs the Typer app from the yamlgrid.cli module.
    """
    from yamlgrid.cli import app
    app()
