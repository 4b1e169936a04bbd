"""Unit tests for SessionLogger."""

import os
import re
from datetime import datetime
from pathlib import Path

import pytest

from yamlgrid.models import (
    ChangeKind,
    FileOutcome,
    FileStatus,
    LoadResult,
    SaveResult,
    TableChange,
)
from yamlgrid.orchestration import SessionLogger


@pytest.fixture
def load_result() -> LoadResult:
    return LoadResult(
        outcomes=[
            FileOutcome("/data/a.yaml", FileStatus.LOADED),
            FileOutcome("/data/bad.yaml", FileStatus.PARSE_ERROR, "Invalid YAML in bad.yaml"),
        ]
    )


@pytest.fixture
def save_result() -> SaveResult:
    return SaveResult(outcomes=[FileOutcome("/data/a.yaml", FileStatus.SAVED)])


def cell_change(old: str = "2", new: str = "30") -> TableChange:
    return TableChange(
        kind=ChangeKind.CELL,
        version=1,
        row_key="y",
        file_id="/data/a.yaml",
        old_value=old,
        new_value=new,
    )


class TestSessionLoggerBasic:
    """Test basic SessionLogger functionality."""

    def test_log_file_creation_with_auto_generated_filename(self, temp_dir: Path):
        """Test that the log file name is timestamped in the current directory."""
        original_cwd = os.getcwd()
        try:
            os.chdir(temp_dir)
            with SessionLogger() as logger:
                log_path = logger.get_log_path()
                assert log_path.parent == temp_dir
                pattern = r"yamlgrid_\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2}\.log"
                assert re.match(pattern, log_path.name)
        finally:
            os.chdir(original_cwd)

    def test_custom_log_file_path(self, temp_dir: Path):
        custom_path = temp_dir / "session.log"
        with SessionLogger(log_file_path=custom_path) as logger:
            assert logger.get_log_path() == custom_path
            logger.log_header()

        assert "yamlgrid - Session Log" in custom_path.read_text()

    def test_file_created_on_enter(self, temp_dir: Path):
        log_path = temp_dir / "test.log"
        logger = SessionLogger(log_file_path=log_path)

        assert not log_path.exists()
        with logger:
            assert log_path.exists()

    def test_dry_run_mode_in_header(self, temp_dir: Path):
        log_path = temp_dir / "dry_run.log"
        with SessionLogger(log_file_path=log_path, dry_run=True) as logger:
            logger.log_header()

        content = log_path.read_text()
        assert "Mode: DRY RUN" in content
        assert "Mode: LIVE" not in content

    def test_live_mode_in_header(self, temp_dir: Path):
        log_path = temp_dir / "live.log"
        with SessionLogger(log_file_path=log_path) as logger:
            logger.log_header()

        content = log_path.read_text()
        assert "Mode: LIVE" in content
        assert "Mode: DRY RUN" not in content


class TestSessionLoggerHeader:
    def test_header_layout(self, temp_dir: Path):
        log_path = temp_dir / "header.log"
        with SessionLogger(log_file_path=log_path) as logger:
            logger.log_header()

        lines = log_path.read_text().split("\n")
        assert lines[0] == "=" * 65
        assert lines[1] == "yamlgrid - Session Log"
        assert lines[2] == "=" * 65
        assert lines[3].startswith("Timestamp: ")
        assert lines[4].startswith("Mode: ")
        assert lines[5] == ""

    def test_timestamp_formatting(self, temp_dir: Path):
        log_path = temp_dir / "timestamp.log"
        with SessionLogger(log_file_path=log_path) as logger:
            logger.log_header()

        match = re.search(r"Timestamp: (\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})", log_path.read_text())
        assert match is not None
        assert datetime.strptime(match.group(1), "%Y-%m-%d %H:%M:%S")


class TestSessionLoggerPhases:
    """Test load, edit and save sections."""

    def test_load_phase_lists_every_file(self, temp_dir: Path, load_result: LoadResult):
        log_path = temp_dir / "load.log"
        with SessionLogger(log_file_path=log_path) as logger:
            logger.log_load_phase(load_result)

        content = log_path.read_text()
        assert "LOAD PHASE" in content
        assert "Files requested: 2" in content
        assert "Files loaded: 1" in content
        assert "  - [loaded] /data/a.yaml" in content
        assert "  - [parse_error] /data/bad.yaml (Invalid YAML in bad.yaml)" in content

    def test_edit_section_written_once(self, temp_dir: Path):
        log_path = temp_dir / "edits.log"
        with SessionLogger(log_file_path=log_path) as logger:
            logger.log_edit(cell_change())
            logger.log_edit(cell_change("30", "31"))

        content = log_path.read_text()
        assert content.count("EDITS") == 1
        assert content.count("Edited 'y' in /data/a.yaml") == 2
        assert "    Old: '2'" in content
        assert "    New: '30'" in content

    def test_rename_entry(self, temp_dir: Path):
        log_path = temp_dir / "rename.log"
        change = TableChange(
            kind=ChangeKind.RENAME, version=1, row_key="why", old_value="y", new_value="why"
        )
        with SessionLogger(log_file_path=log_path) as logger:
            logger.log_edit(change)

        assert "Renamed key: 'y' -> 'why'" in log_path.read_text()

    def test_ingest_and_remove_are_not_edits(self, temp_dir: Path):
        log_path = temp_dir / "ignored.log"
        with SessionLogger(log_file_path=log_path) as logger:
            logger.log_edit(TableChange(kind=ChangeKind.INGEST, version=1, file_id="/data/a.yaml"))
            logger.log_edit(TableChange(kind=ChangeKind.REMOVE_FILE, version=2, file_id="/data/a.yaml"))
            logger.log_summary(0)

        content = log_path.read_text()
        assert "EDITS" not in content
        assert "Edits: 0" in content

    def test_long_values_are_truncated(self, temp_dir: Path):
        log_path = temp_dir / "long.log"
        with SessionLogger(log_file_path=log_path) as logger:
            logger.log_edit(cell_change(new="v" * 200))

        new_line = [l for l in log_path.read_text().splitlines() if "New:" in l][0]
        assert new_line.endswith("...")
        assert len(new_line.strip()) <= len("New: ") + 60

    def test_save_phase(self, temp_dir: Path, save_result: SaveResult):
        log_path = temp_dir / "save.log"
        with SessionLogger(log_file_path=log_path) as logger:
            logger.log_save_phase(save_result)

        content = log_path.read_text()
        assert "SAVE PHASE" in content
        assert "[DRY RUN]" not in content
        assert "  - [saved] /data/a.yaml" in content

    def test_dry_run_save_phase(self, temp_dir: Path):
        log_path = temp_dir / "save_dry.log"
        result = SaveResult(
            outcomes=[FileOutcome("/data/a.yaml", FileStatus.SKIPPED)], dry_run=True
        )
        with SessionLogger(log_file_path=log_path, dry_run=True) as logger:
            logger.log_save_phase(result)

        content = log_path.read_text()
        assert "SAVE PHASE [DRY RUN]" in content
        assert "  - [skipped] /data/a.yaml" in content


class TestSessionLoggerSummary:
    def test_summary_counts(
        self, temp_dir: Path, load_result: LoadResult, save_result: SaveResult
    ):
        log_path = temp_dir / "summary.log"
        with SessionLogger(log_file_path=log_path) as logger:
            logger.log_load_phase(load_result)
            logger.log_edit(cell_change())
            logger.log_save_phase(save_result)
            logger.log_summary(12.5)

        content = log_path.read_text()
        assert "Files loaded: 1" in content
        assert "Edits: 1" in content
        assert "Files saved: 1" in content
        assert "Total errors: 1" in content
        assert "  - /data/bad.yaml: Invalid YAML in bad.yaml" in content
        assert "Duration: 12s" in content
        assert f"Log file: {log_path}" in content

    def test_summary_without_errors(self, temp_dir: Path, save_result: SaveResult):
        log_path = temp_dir / "clean.log"
        with SessionLogger(log_file_path=log_path) as logger:
            logger.log_save_phase(save_result)
            logger.log_summary(0)

        assert "Total errors" not in log_path.read_text()

    @pytest.mark.parametrize(
        "seconds, expected",
        [(45, "45s"), (323, "5m 23s"), (3930, "1h 5m 30s")],
    )
    def test_duration_formatting(self, temp_dir: Path, seconds: float, expected: str):
        log_path = temp_dir / "duration.log"
        with SessionLogger(log_file_path=log_path) as logger:
            logger.log_summary(seconds)

        assert f"Duration: {expected}" in log_path.read_text()


class TestSessionLoggerErrors:
    def test_missing_parent_directory(self, temp_dir: Path):
        with pytest.raises(OSError, match="Parent directory does not exist"):
            SessionLogger(log_file_path=temp_dir / "missing" / "session.log")

    def test_parent_is_a_file(self, temp_dir: Path):
        blocker = temp_dir / "file.txt"
        blocker.write_text("x")
        with pytest.raises(OSError, match="not a directory"):
            SessionLogger(log_file_path=blocker / "session.log")

    def test_file_closed_after_exception(self, temp_dir: Path):
        log_path = temp_dir / "error.log"
        logger = SessionLogger(log_file_path=log_path)

        with pytest.raises(RuntimeError):
            with logger:
                logger.log_header()
                raise RuntimeError("boom")

        assert "yamlgrid - Session Log" in log_path.read_text()

    def test_write_after_close_warns(self, temp_dir: Path, capsys):
        logger = SessionLogger(log_file_path=temp_dir / "closed.log")
        with logger:
            pass
        logger.log_header()

        assert "closed log file" in capsys.readouterr().err
