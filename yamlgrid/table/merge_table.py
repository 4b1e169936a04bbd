"""
The row-per-key, column-per-file merge table.

MergeTable unifies the top-level keys of every open file into one row each.
Every row has a cell for every open file; a cell is "" when the key is absent
from that file. Once files are ingested the table, not the SourceDocuments,
holds the authoritative edited state.

Example:
    >>> table = MergeTable()
    >>> table.ingest("a.yaml", {"x": 1, "y": 2})
    >>> table.ingest("b.yaml", {"y": 3, "z": 4})
    >>> [(r.key, r.cells) for r in table.rows()]
    [('x', {'a.yaml': '1', 'b.yaml': ''}),
     ('y', {'a.yaml': '2', 'b.yaml': '3'}),
     ('z', {'a.yaml': '', 'b.yaml': '4'})]
"""

import copy
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from yamlgrid.codec import DEFAULT_CONFIG, CodecConfig, decode
from yamlgrid.exceptions import DuplicateKeyError
from yamlgrid.models import ChangeKind, MergeRow, TableChange, TableSnapshot

logger = logging.getLogger("yamlgrid.table")

ChangeCallback = Callable[[TableChange], None]


class MergeTable:
    """Mutable merge of several documents keyed by top-level key.

    Rows keep their insertion order; renaming a row keeps its position. The
    column order is the order files were first ingested.

    Args:
        codec_config: Formatting options used to decode values into cells.

    Attributes:
        version: Incremented on every mutation, for callers that poll.
    """

    def __init__(self, codec_config: CodecConfig = DEFAULT_CONFIG) -> None:
        self._codec_config = codec_config
        self._rows: Dict[str, MergeRow] = {}
        self._columns: List[str] = []
        self._subscribers: List[ChangeCallback] = []
        self.version = 0

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def ingest(self, file_id: str, document: Mapping[str, Any]) -> None:
        """Merge a document into the column for file_id.

        A new file id adds a column with "" in every existing row. Each key of
        the document gets a row (created if needed) whose cell for file_id is
        the decoded value. When file_id was already ingested, rows whose key is
        missing from the new document are reset to "" for that column.
        Rows are never removed.

        Args:
            file_id: Column to fill.
            document: Top-level key -> parsed value.
        """
        if file_id not in self._columns:
            self._columns.append(file_id)
            for row in self._rows.values():
                row.cells[file_id] = ""
        else:
            for key, row in self._rows.items():
                if key not in document:
                    row.cells[file_id] = ""
                    row.originals.pop(file_id, None)

        for key, value in document.items():
            row = self._rows.get(key)
            if row is None:
                row = MergeRow(key=key, cells={f: "" for f in self._columns})
                self._rows[key] = row
            row.cells[file_id] = decode(value, self._codec_config)
            row.originals[file_id] = value

        logger.debug(f"Ingested {len(document)} keys into {file_id}")
        self._notify(ChangeKind.INGEST, file_id=file_id)

    def set_cell(self, row_key: str, file_id: str, new_value: str) -> None:
        """Overwrite one cell. Any string is accepted, including "".

        Raises:
            KeyError: If the row or the file is unknown.
        """
        row = self._require_row(row_key)
        self._require_column(file_id)
        old_value = row.cells[file_id]
        row.cells[file_id] = new_value
        self._notify(
            ChangeKind.CELL,
            row_key=row_key,
            file_id=file_id,
            old_value=old_value,
            new_value=new_value,
        )

    def rename_row_key(self, old_key: str, new_key: str) -> None:
        """Rename a row, keeping its position and cells.

        Collisions are rejected rather than merged, so two rows can never
        share a key.

        Raises:
            KeyError: If old_key is not a row.
            ValueError: If new_key is empty or only whitespace.
            DuplicateKeyError: If new_key already names another row.
        """
        row = self._require_row(old_key)
        if not new_key or not new_key.strip():
            raise ValueError("Row key must not be empty")
        if new_key == old_key:
            return
        if new_key in self._rows:
            raise DuplicateKeyError(new_key)

        row.key = new_key
        self._rows = {
            (new_key if key == old_key else key): r for key, r in self._rows.items()
        }
        self._notify(
            ChangeKind.RENAME,
            row_key=new_key,
            old_value=old_key,
            new_value=new_key,
        )

    def remove_file(self, file_id: str) -> None:
        """Drop the column for file_id from every row. Rows are kept.

        Raises:
            KeyError: If the file is unknown.
        """
        self._require_column(file_id)
        self._columns.remove(file_id)
        for row in self._rows.values():
            row.cells.pop(file_id, None)
            row.originals.pop(file_id, None)
        self._notify(ChangeKind.REMOVE_FILE, file_id=file_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def columns(self) -> List[str]:
        """Return file ids in upload order."""
        return list(self._columns)

    def rows(self) -> List[MergeRow]:
        """Return copies of all rows in display order."""
        return [copy.deepcopy(row) for row in self._rows.values()]

    def keys(self) -> List[str]:
        return list(self._rows)

    def get_row(self, row_key: str) -> MergeRow:
        return copy.deepcopy(self._require_row(row_key))

    def get_cell(self, row_key: str, file_id: str) -> str:
        self._require_column(file_id)
        return self._require_row(row_key).cells[file_id]

    def snapshot(self, labels: Optional[Dict[str, str]] = None) -> TableSnapshot:
        """Return a deep copy of the table for rendering or saving.

        Args:
            labels: Optional column headers; defaults to the file ids.
        """
        return TableSnapshot(
            columns=self.columns(),
            labels=dict(labels) if labels else {f: f for f in self._columns},
            rows=self.rows(),
            version=self.version,
        )

    def __contains__(self, row_key: object) -> bool:
        return row_key in self._rows

    def __len__(self) -> int:
        return len(self._rows)

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        """Register callback for every change.

        Returns:
            A function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self, kind: ChangeKind, **details: Optional[str]) -> None:
        self.version += 1
        change = TableChange(kind=kind, version=self.version, **details)
        for callback in list(self._subscribers):
            try:
                callback(change)
            except Exception:
                logger.exception(f"Table change subscriber failed on {kind.value}")

    def _require_row(self, row_key: str) -> MergeRow:
        try:
            return self._rows[row_key]
        except KeyError:
            raise KeyError(f"Unknown row key: {row_key!r}") from None

    def _require_column(self, file_id: str) -> None:
        if file_id not in self._columns:
            raise KeyError(f"Unknown file: {file_id!r}")
