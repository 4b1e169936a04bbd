"""EditorSession coordinating loading, editing and saving of YAML files.

This module provides the EditorSession class, the single entry point the
presentation layer (TUI or CLI) calls into. It coordinates DocumentStore,
MergeTable, DocumentWriter and an optional SessionLogger.

Example:
    from pathlib import Path
    from yamlgrid.orchestration import EditorSession

    session = EditorSession()
    load_result = session.on_files_selected([Path("a.yaml"), Path("b.yaml")])
    snapshot = session.get_table_snapshot()
    session.on_cell_edited("y", snapshot.columns[1], "30")
    save_result = session.on_save_requested()
"""

import logging
import time
from collections import Counter
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

from yamlgrid.codec import DEFAULT_CONFIG, CodecConfig
from yamlgrid.models import (
    FileStatus,
    LoadResult,
    SaveResult,
    TableChange,
    TableSnapshot,
)
from yamlgrid.operations import DocumentWriter
from yamlgrid.orchestration.session_logger import SessionLogger
from yamlgrid.store import DocumentStore, file_id_for
from yamlgrid.table import MergeTable

logger = logging.getLogger("yamlgrid.session")


class EditorSession:
    """Coordinates one editing session over a set of YAML files.

    All table mutations happen on the caller's thread; only parsing (and
    optionally writing) fans out to worker threads.

    Attributes:
        dry_run: Whether saves build documents without writing them.
        reparse: Whether saves recover native values from cell text.
        max_workers: Worker threads for parsing and writing.
    """

    def __init__(
        self,
        codec_config: CodecConfig = DEFAULT_CONFIG,
        reparse: bool = True,
        dry_run: bool = False,
        max_workers: int = 1,
        logger_instance: Optional[SessionLogger] = None,
    ) -> None:
        """Initialize the EditorSession.

        Args:
            codec_config: Formatting options for structured cell values.
            reparse: If False, every cell is written back as a string.
            dry_run: If True, saving reports what would be written and
                touches no file.
            max_workers: Threads used to parse and write files. Must be >= 1.
            logger_instance: Optional SessionLogger (already entered) that
                receives load, edit and save events.

        Raises:
            ValueError: If max_workers is less than 1.
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")

        self.dry_run = dry_run
        self.reparse = reparse
        self.max_workers = max_workers

        self._store = DocumentStore()
        self._table = MergeTable(codec_config)
        self._writer = DocumentWriter(
            reparse=reparse,
            dry_run=dry_run,
            max_workers=max_workers,
            codec_config=codec_config,
        )
        self._logger = logger_instance
        self._saved_version = self._table.version

        if self._logger is not None:
            self._table.subscribe(self._logger.log_edit)

    @property
    def table(self) -> MergeTable:
        return self._table

    @property
    def store(self) -> DocumentStore:
        return self._store

    def on_files_selected(self, paths: Iterable[Union[str, Path]]) -> LoadResult:
        """Load files and merge them into the table.

        Each file is loaded independently; failures are reported and the rest
        of the batch is merged. A file that is already open is re-read and its
        column replaced (status RELOADED). A path listed twice is loaded once.

        Args:
            paths: Files chosen by the user.

        Returns:
            LoadResult with one outcome per distinct file, in the order given.
        """
        start_time = time.time()

        unique_paths: List[Union[str, Path]] = []
        seen = set()
        for path in paths:
            file_id = file_id_for(path)
            if file_id not in seen:
                seen.add(file_id)
                unique_paths.append(path)

        outcomes = self._store.load_many(unique_paths, max_workers=self.max_workers)

        clean = self._table.version == self._saved_version
        open_files = set(self._table.columns())
        for outcome in outcomes:
            if not outcome.ok:
                continue
            document = self._store.get(outcome.file_id)
            if outcome.file_id in open_files:
                outcome.status = FileStatus.RELOADED
            self._table.ingest(outcome.file_id, document.content)
        if clean:
            self._saved_version = self._table.version

        result = LoadResult(outcomes=outcomes, duration_seconds=time.time() - start_time)
        logger.info(f"Loaded {len(result.succeeded)} of {len(outcomes)} file(s)")

        if self._logger is not None:
            self._logger.log_load_phase(result)

        return result

    def on_file_closed(self, file_id: str) -> None:
        """Close a file: drop its column and its document. Rows are kept.

        Raises:
            KeyError: If the file is not open.
        """
        self._table.remove_file(file_id)
        self._store.unload(file_id)

    def get_table_snapshot(self) -> TableSnapshot:
        """Return a copy of the table with display labels for each column."""
        return self._table.snapshot(self._labels())

    def on_cell_edited(self, row_key: str, file_id: str, new_text: str) -> None:
        """Apply a cell edit.

        Raises:
            KeyError: If the row or file is unknown.
        """
        self._table.set_cell(row_key, file_id, new_text)

    def on_key_edited(self, old_key: str, new_text: str) -> None:
        """Apply a row key edit.

        Raises:
            KeyError: If old_key is unknown.
            ValueError: If new_text is empty.
            DuplicateKeyError: If new_text is another row's key.
        """
        self._table.rename_row_key(old_key, new_text)

    def on_save_requested(self) -> SaveResult:
        """Rewrite every open file from one snapshot of the table.

        Returns:
            SaveResult with one outcome per open file.
        """
        snapshot = self.get_table_snapshot()
        result = self._writer.save_all(snapshot)

        if not result.dry_run and result.ok:
            self._saved_version = snapshot.version

        saved = sum(1 for o in result.outcomes if o.status is FileStatus.SAVED)
        logger.info(f"Saved {saved} of {len(result.outcomes)} file(s)")

        if self._logger is not None:
            self._logger.log_save_phase(result)

        return result

    def has_unsaved_changes(self) -> bool:
        """True if the table changed since the last successful save or clean load."""
        return self._table.version != self._saved_version

    def subscribe(self, callback: Callable[[TableChange], None]) -> Callable[[], None]:
        """Register a table change callback. Returns an unsubscribe function."""
        return self._table.subscribe(callback)

    def resolve_file_id(self, ref: Union[str, Path]) -> str:
        """Find the open file that ref names.

        Args:
            ref: A file id, a path to an open file, or a column label / file
                name that matches exactly one open file.

        Returns:
            The file id.

        Raises:
            KeyError: If no open file matches.
            ValueError: If ref matches more than one open file.
        """
        columns = self._table.columns()
        ref_str = str(ref)
        if ref_str in columns:
            return ref_str

        file_id = file_id_for(ref)
        if file_id in columns:
            return file_id

        labels = self._labels()
        matches = [f for f in columns if labels[f] == ref_str or Path(f).name == ref_str]
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            raise ValueError(f"{ref_str!r} matches several open files; use a path")
        raise KeyError(f"No open file matches {ref_str!r}")

    def _labels(self) -> Dict[str, str]:
        """Column headers: the file name, or the full path when names clash."""
        columns = self._table.columns()
        name_counts = Counter(Path(f).name for f in columns)
        return {f: (Path(f).name if name_counts[Path(f).name] == 1 else f) for f in columns}
