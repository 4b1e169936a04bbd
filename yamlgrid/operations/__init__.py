"""File operations package for yamlgrid.

This package provides the DocumentWriter class, which reconciles the merge
table into one YAML mapping per open file and writes each file atomically.

Example:
    >>> from yamlgrid.operations import DocumentWriter
    >>> writer = DocumentWriter(dry_run=True)
    >>> result = writer.save_all(table.snapshot())
    >>> print([o.status.value for o in result.outcomes])
"""

from .document_writer import DocumentWriter

__all__ = ["DocumentWriter"]
