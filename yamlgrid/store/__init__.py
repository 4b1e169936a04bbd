"""Document store package for yamlgrid.

Provides DocumentStore, which parses YAML files with a top-level mapping into
SourceDocuments, and file_id_for(), which names a file by its resolved path.
"""

from .document_store import DocumentStore, file_id_for

__all__ = ["DocumentStore", "file_id_for"]
