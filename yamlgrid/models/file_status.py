"""
FileStatus enum for per-file outcomes of load and save operations.

Statuses fall into two groups:
1. Success - LOADED, RELOADED (file was already open), SAVED, SKIPPED (dry run)
2. Failure - PARSE_ERROR, IO_ERROR, SERIALIZATION_ERROR
"""

from enum import Enum


class FileStatus(Enum):
    """Encodes the outcome of loading or saving a single file."""
    LOADED = "loaded"                            # New column added to the table
    RELOADED = "reloaded"                        # Existing column re-ingested
    SAVED = "saved"                              # File rewritten from table state
    SKIPPED = "skipped"                          # Dry run: document built, not written
    PARSE_ERROR = "parse_error"                  # Not YAML, or top level not a mapping
    IO_ERROR = "io_error"                        # Unreadable or unwritable
    SERIALIZATION_ERROR = "serialization_error"  # Document could not be dumped

    @property
    def is_failure(self) -> bool:
        """True for the error statuses."""
        return self in (
            FileStatus.PARSE_ERROR,
            FileStatus.IO_ERROR,
            FileStatus.SERIALIZATION_ERROR,
        )
