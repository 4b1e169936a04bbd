"""
Exception hierarchy for yamlgrid.

All errors raised by the core derive from YamlGridError so callers can catch
them with a single except clause:

- ParseError: a file is not valid YAML or its top level is not a mapping
- SerializationError: a value could not be serialized (display or YAML dump)
- DuplicateKeyError: a row rename collides with another row's key
- IoError: a file could not be read or written

Batch operations (loading several files, saving every file) never let these
escape; they are recorded per file in a LoadResult or SaveResult instead.

Example:
    >>> from yamlgrid.exceptions import DuplicateKeyError
    >>> try:
    ...     table.rename_row_key("host", "port")
    ... except DuplicateKeyError as e:
    ...     print(f"Cannot rename: {e}")
"""

from typing import Optional

__all__ = [
    "YamlGridError",
    "ParseError",
    "SerializationError",
    "DuplicateKeyError",
    "IoError",
]


class YamlGridError(Exception):
    """Base exception for all yamlgrid errors.

    Args:
        message: Human-readable description.
        file_id: Identifier of the file involved, if any.
    """

    def __init__(self, message: str, file_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.file_id = file_id


class ParseError(YamlGridError):
    """Raised when a file is not a YAML document with a mapping at the top level."""

    pass


class SerializationError(YamlGridError):
    """Raised when a value cannot be serialized for display or for writing."""

    pass


class DuplicateKeyError(YamlGridError):
    """Raised when renaming a row would give it the key of another row."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Row key already exists: {key!r}")
        self.key = key


class IoError(YamlGridError):
    """Raised when a file cannot be read or written."""

    pass
