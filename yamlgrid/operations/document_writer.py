"""
Reconciliation of the merge table back into per-file YAML documents.

This module contains the DocumentWriter class, which rebuilds a flat mapping
for every open file from one table snapshot and writes it out atomically.
"""

import contextlib
import logging
import os
import shutil
import tempfile
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict

import yaml

from yamlgrid.codec import DEFAULT_CONFIG, CodecConfig, decode, encode
from yamlgrid.exceptions import IoError, SerializationError
from yamlgrid.models import FileOutcome, FileStatus, MergeRow, SaveResult, TableSnapshot

logger = logging.getLogger("yamlgrid.writer")


class DocumentWriter:
    """
    Builds and writes the YAML document of every column of a table snapshot.

    Every file is rewritten on every save; there is no dirty tracking. A row
    whose cell is empty for a file is left out of that file's document.
    """

    def __init__(
        self,
        reparse: bool = True,
        dry_run: bool = False,
        max_workers: int = 1,
        codec_config: CodecConfig = DEFAULT_CONFIG,
    ) -> None:
        """
        Create a DocumentWriter.

        Parameters:
            reparse (bool): Recover native values from cell text. When False every value is written as a string.
            dry_run (bool): Build documents without writing any file.
            max_workers (int): Number of files written concurrently. All writes come from the same snapshot.
            codec_config (CodecConfig): Must match the config the table decoded its cells with.
        """
        self.reparse = reparse
        self.dry_run = dry_run
        self.max_workers = max_workers
        self.codec_config = codec_config

    def build_document(self, snapshot: TableSnapshot, file_id: str) -> Dict[str, Any]:
        """
        Reconstruct the mapping for one file from a snapshot.

        Parameters:
            snapshot (TableSnapshot): Table state to write.
            file_id (str): Column to reconstruct.

        Returns:
            dict: Row key -> value, in row order, for every non-empty cell and every key loaded with an empty string value.
        """
        document: Dict[str, Any] = {}
        for row in snapshot.rows:
            text = row.get(file_id)
            if text == "" and not self._loaded_empty(row, file_id):
                continue
            document[row.key] = self._value_for(row, file_id, text)
        return document

    def _loaded_empty(self, row: MergeRow, file_id: str) -> bool:
        """True if the file had this key with a value whose cell text is empty."""
        if file_id not in row.originals:
            return False
        return decode(row.originals[file_id], self.codec_config) == ""

    def _value_for(self, row: MergeRow, file_id: str, text: str) -> Any:
        """
        Choose the value written for one cell.

        An unedited cell (its text still equals the decoded loaded value) is written as the loaded value, keeping its type. An edited cell goes through encode().
        """
        if not self.reparse:
            return text
        if file_id in row.originals:
            original = row.originals[file_id]
            if decode(original, self.codec_config) == text:
                return original
        return encode(text, reparse=True)

    def save(self, path: Path, document: Dict[str, Any]) -> None:
        """
        Serialize a document as a YAML mapping and replace the file at path.

        The text goes to a temporary file in the same directory, which is fsynced and then renamed over the target, so the target is never left half-written. The target's permission bits are kept.

        Parameters:
            path (Path): File to replace (or create).
            document (dict): Mapping to write.

        Raises:
            SerializationError: If the document cannot be represented as YAML.
            IoError: If the file cannot be written.
        """
        path = Path(path)
        try:
            text = yaml.safe_dump(
                document,
                sort_keys=False,
                default_flow_style=False,
                allow_unicode=True,
            )
        except yaml.YAMLError as err:
            raise SerializationError(f"Cannot write {path.name} as YAML: {err}", str(path)) from err

        tmp_path = None
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
            tmp_path = Path(tmp_name)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            if path.exists():
                shutil.copymode(path, tmp_path)
            tmp_path.replace(path)
        except OSError as err:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    tmp_path.unlink()
            raise IoError(f"Cannot write {path}: {err.strerror or err}", str(path)) from err

        logger.debug(f"Wrote {path} ({len(document)} keys)")

    def save_all(self, snapshot: TableSnapshot) -> SaveResult:
        """
        Write every column of the snapshot to its file.

        Failures are isolated per file: every file is attempted and each failure is reported in the result.

        Parameters:
            snapshot (TableSnapshot): One consistent copy of the table.

        Returns:
            SaveResult: One outcome per column, in column order.
        """
        start_time = time.time()

        if self.max_workers > 1 and len(snapshot.columns) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                outcomes = list(
                    executor.map(lambda f: self._save_column(snapshot, f), snapshot.columns)
                )
        else:
            outcomes = [self._save_column(snapshot, f) for f in snapshot.columns]

        return SaveResult(
            outcomes=outcomes,
            dry_run=self.dry_run,
            duration_seconds=time.time() - start_time,
        )

    def _save_column(self, snapshot: TableSnapshot, file_id: str) -> FileOutcome:
        document = self.build_document(snapshot, file_id)

        if self.dry_run:
            logger.debug(f"[DRY RUN] Would write {len(document)} keys to {file_id}")
            return FileOutcome(file_id=file_id, status=FileStatus.SKIPPED)

        try:
            self.save(Path(file_id), document)
        except SerializationError as e:
            logger.warning(str(e))
            return FileOutcome(file_id=file_id, status=FileStatus.SERIALIZATION_ERROR, message=str(e))
        except IoError as e:
            logger.warning(str(e))
            return FileOutcome(file_id=file_id, status=FileStatus.IO_ERROR, message=str(e))

        return FileOutcome(file_id=file_id, status=FileStatus.SAVED)
