"""
Loading of YAML source files into SourceDocuments.

This module provides the DocumentStore class, which parses files whose top
level is a mapping and keeps the most recent parse of each open file. Loading
a batch isolates failures per file: one malformed file is reported and the
rest of the batch still loads.

Example:
    >>> from pathlib import Path
    >>> from yamlgrid.store import DocumentStore
    >>> store = DocumentStore()
    >>> outcomes = store.load_many([Path("a.yaml"), Path("b.yaml")])
    >>> for outcome in outcomes:
    ...     print(outcome.file_id, outcome.status.value)
    >>> document = store.get(outcomes[0].file_id)
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import yaml

from yamlgrid.codec import decode
from yamlgrid.exceptions import IoError, ParseError, YamlGridError
from yamlgrid.models import FileOutcome, FileStatus, SourceDocument

logger = logging.getLogger("yamlgrid.store")

PathLike = Union[str, Path]


def file_id_for(path: PathLike) -> str:
    """Return the identifier used for a file: its resolved absolute path."""
    return str(Path(path).expanduser().resolve())


class TextKeyLoader(yaml.SafeLoader):
    """SafeLoader that turns the keys of the top-level mapping into cell text.

    Keys are converted while the pairs are read, so ``1`` and ``true`` stay
    two separate keys (``"1"`` and ``"true"``) instead of colliding in a dict.
    Nested mappings are constructed as usual.
    """

    def construct_document(self, node: yaml.Node) -> Any:
        self._root_node = node
        return super().construct_document(node)

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> Dict[Any, Any]:
        if node is not getattr(self, "_root_node", None):
            return super().construct_mapping(node, deep=deep)

        self.flatten_mapping(node)
        mapping: Dict[str, Any] = {}
        for key_node, value_node in node.value:
            key = self.construct_object(key_node, deep=True)
            row_key = key if isinstance(key, str) else decode(key)
            if row_key in mapping:
                logger.warning(f"Top-level key {key!r} repeats {row_key!r}; keeping the later value")
            mapping[row_key] = self.construct_object(value_node, deep=deep)
        return mapping


class DocumentStore:
    """Parses YAML files and holds the latest SourceDocument for each.

    Documents are parse results only. Once merged into the table they are not
    updated by edits, and unloading one does not touch the table.

    Attributes:
        _documents: Mapping of file id to its most recent SourceDocument.
        _errors: Messages for every failed load since the last clear_errors().
    """

    def __init__(self) -> None:
        self._documents: Dict[str, SourceDocument] = {}
        self._errors: List[str] = []
        self._lock = threading.Lock()

    def load(self, path: PathLike) -> SourceDocument:
        """Parse a YAML file whose top level is a mapping.

        An empty file loads as an empty mapping. Non-string top-level keys are
        converted to their cell text (``1`` becomes ``"1"``).

        Args:
            path: File to read.

        Returns:
            The parsed SourceDocument, which also replaces any earlier
            document for the same file.

        Raises:
            IoError: If the file cannot be read.
            ParseError: If the content is not YAML, holds more than one
                document, or its top level is not a mapping.
        """
        resolved = Path(path).expanduser().resolve()
        file_id = str(resolved)

        try:
            text = resolved.read_text(encoding="utf-8")
        except UnicodeDecodeError as err:
            raise ParseError(f"{resolved.name} is not UTF-8 text: {err}", file_id) from err
        except OSError as err:
            raise IoError(f"Cannot read {resolved}: {err.strerror or err}", file_id) from err

        try:
            data = yaml.load(text, Loader=TextKeyLoader)
        except yaml.YAMLError as err:
            raise ParseError(f"Invalid YAML in {resolved.name}: {err}", file_id) from err

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ParseError(
                f"Top level of {resolved.name} is a {type(data).__name__}, expected a mapping",
                file_id,
            )

        content: Dict[str, Any] = data

        document = SourceDocument(file_id=file_id, path=resolved, content=content)
        with self._lock:
            self._documents[file_id] = document
        logger.debug(f"Loaded {resolved} ({len(content)} keys)")
        return document

    def load_many(self, paths: Iterable[PathLike], max_workers: int = 1) -> List[FileOutcome]:
        """Load several files, isolating failures per file.

        Args:
            paths: Files to load.
            max_workers: Number of parser threads. Files are independent, so
                with more than one worker they are parsed concurrently.

        Returns:
            One FileOutcome per path, in the order given. Successful files
            have status LOADED and their document is available via get().
        """
        paths = list(paths)
        if max_workers > 1 and len(paths) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                return list(executor.map(self._load_outcome, paths))
        return [self._load_outcome(p) for p in paths]

    def _load_outcome(self, path: PathLike) -> FileOutcome:
        file_id = file_id_for(path)
        try:
            self.load(path)
        except ParseError as e:
            return self._failure(file_id, FileStatus.PARSE_ERROR, e)
        except IoError as e:
            return self._failure(file_id, FileStatus.IO_ERROR, e)
        return FileOutcome(file_id=file_id, status=FileStatus.LOADED)

    def _failure(self, file_id: str, status: FileStatus, error: YamlGridError) -> FileOutcome:
        message = str(error)
        logger.warning(message)
        with self._lock:
            self._errors.append(message)
        return FileOutcome(file_id=file_id, status=status, message=message)

    def unload(self, file_id: str) -> Optional[SourceDocument]:
        """Forget the document for file_id. Returns it, or None if unknown."""
        with self._lock:
            return self._documents.pop(file_id, None)

    def get(self, file_id: str) -> Optional[SourceDocument]:
        return self._documents.get(file_id)

    def file_ids(self) -> List[str]:
        return list(self._documents)

    def get_errors(self) -> List[str]:
        """Return a copy of the error messages collected so far."""
        return self._errors.copy()

    def clear_errors(self) -> None:
        self._errors.clear()

    def __contains__(self, file_id: object) -> bool:
        return file_id in self._documents

    def __len__(self) -> int:
        return len(self._documents)
