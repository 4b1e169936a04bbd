"""End-to-end tests for the yamlgrid CLI.

This module drives the commands through Typer's CliRunner against real
YAML files in a temporary directory.
"""

import logging
from pathlib import Path
from typing import Dict, Generator

import pytest
import yaml
from typer.testing import CliRunner

from yamlgrid import __version__
from yamlgrid.cli import app


@pytest.fixture
def cli_runner() -> CliRunner:
    """Return a CliRunner instance for testing."""
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_package_logger() -> Generator[None, None, None]:
    """Undo the handler and level the CLI installs on the package logger."""
    yield
    package_logger = logging.getLogger("yamlgrid")
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)


def read_yaml(path: Path):
    return yaml.safe_load(path.read_text(encoding="utf-8"))


class TestGlobalOptions:
    def test_version(self, cli_runner: CliRunner):
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"yamlgrid v{__version__}" in result.stdout

    def test_help_lists_commands(self, cli_runner: CliRunner):
        result = cli_runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("show", "set", "rename", "edit"):
            assert command in result.stdout


class TestShowCommand:
    def test_show_prints_table(self, cli_runner: CliRunner, scenario_files: Dict[str, Path]):
        result = cli_runner.invoke(app, ["show", str(scenario_files["a"]), str(scenario_files["b"])])

        assert result.exit_code == 0
        assert "Merged Keys (3)" in result.stdout
        assert "a.yaml" in result.stdout
        assert "b.yaml" in result.stdout

    def test_show_reports_bad_file(self, cli_runner: CliRunner, scenario_files, write_yaml):
        bad = write_yaml("bad.yaml", "a: [1, 2\n")

        result = cli_runner.invoke(app, ["show", str(scenario_files["a"]), str(bad)])

        assert result.exit_code == 1
        assert "Merged Keys (2)" in result.stdout

    def test_show_does_not_modify_files(self, cli_runner: CliRunner, scenario_files):
        before = scenario_files["a"].read_text()
        cli_runner.invoke(app, ["show", str(scenario_files["a"])])
        assert scenario_files["a"].read_text() == before

    def test_show_requires_files(self, cli_runner: CliRunner):
        result = cli_runner.invoke(app, ["show"])
        assert result.exit_code != 0


class TestSetCommand:
    def test_set_value(self, cli_runner: CliRunner, scenario_files):
        result = cli_runner.invoke(app, [
            "set", str(scenario_files["a"]), str(scenario_files["b"]),
            "--key", "y", "--file", "b.yaml", "--value", "30",
        ])

        assert result.exit_code == 0, result.stdout
        assert read_yaml(scenario_files["a"]) == {"x": 1, "y": 2}
        assert read_yaml(scenario_files["b"]) == {"y": 30, "z": 4}

    def test_set_fills_absent_cell(self, cli_runner: CliRunner, scenario_files):
        result = cli_runner.invoke(app, [
            "set", str(scenario_files["a"]), str(scenario_files["b"]),
            "-k", "x", "-f", str(scenario_files["b"]), "--value", '{"nested": [1, 2]}',
        ])

        assert result.exit_code == 0, result.stdout
        assert read_yaml(scenario_files["b"]) == {"x": {"nested": [1, 2]}, "y": 3, "z": 4}

    def test_empty_value_removes_key(self, cli_runner: CliRunner, scenario_files):
        result = cli_runner.invoke(app, [
            "set", str(scenario_files["a"]), "--key", "x", "--file", "a.yaml", "--value", "",
        ])

        assert result.exit_code == 0, result.stdout
        assert read_yaml(scenario_files["a"]) == {"y": 2}

    def test_raw_writes_string(self, cli_runner: CliRunner, scenario_files):
        result = cli_runner.invoke(app, [
            "set", str(scenario_files["a"]), "--key", "y", "--file", "a.yaml",
            "--value", "30", "--raw",
        ])

        assert result.exit_code == 0, result.stdout
        assert read_yaml(scenario_files["a"]) == {"x": "1", "y": "30"}

    def test_dry_run_writes_nothing(self, cli_runner: CliRunner, scenario_files):
        before = scenario_files["a"].read_text()

        result = cli_runner.invoke(app, [
            "set", str(scenario_files["a"]), "--key", "y", "--file", "a.yaml",
            "--value", "30", "--dry-run",
        ])

        assert result.exit_code == 0, result.stdout
        assert "DRY RUN" in result.stdout
        assert scenario_files["a"].read_text() == before

    def test_unknown_key(self, cli_runner: CliRunner, scenario_files):
        result = cli_runner.invoke(app, [
            "set", str(scenario_files["a"]), "--key", "missing", "--file", "a.yaml", "--value", "1",
        ])

        assert result.exit_code == 1
        assert "Unknown row key" in result.stdout

    def test_unknown_file(self, cli_runner: CliRunner, scenario_files):
        result = cli_runner.invoke(app, [
            "set", str(scenario_files["a"]), "--key", "x", "--file", "c.yaml", "--value", "1",
        ])

        assert result.exit_code == 1
        assert "No open file" in result.stdout

    def test_refuses_to_save_when_a_file_failed(self, cli_runner: CliRunner, scenario_files, temp_dir):
        before = scenario_files["a"].read_text()

        result = cli_runner.invoke(app, [
            "set", str(scenario_files["a"]), str(temp_dir / "missing.yaml"),
            "--key", "x", "--file", "a.yaml", "--value", "5",
        ])

        assert result.exit_code == 1
        assert "Not saving" in result.stdout
        assert scenario_files["a"].read_text() == before


class TestRenameCommand:
    def test_rename_in_every_file(self, cli_runner: CliRunner, scenario_files):
        result = cli_runner.invoke(app, [
            "rename", str(scenario_files["a"]), str(scenario_files["b"]), "--from", "y", "--to", "why",
        ])

        assert result.exit_code == 0, result.stdout
        assert read_yaml(scenario_files["a"]) == {"x": 1, "why": 2}
        assert read_yaml(scenario_files["b"]) == {"why": 3, "z": 4}

    def test_rename_collision(self, cli_runner: CliRunner, scenario_files):
        before = scenario_files["a"].read_text()

        result = cli_runner.invoke(app, [
            "rename", str(scenario_files["a"]), str(scenario_files["b"]), "--from", "x", "--to", "z",
        ])

        assert result.exit_code == 1
        assert "already exists" in result.stdout
        assert scenario_files["a"].read_text() == before

    def test_rename_unknown_key(self, cli_runner: CliRunner, scenario_files):
        result = cli_runner.invoke(app, [
            "rename", str(scenario_files["a"]), "--from", "nope", "--to", "other",
        ])
        assert result.exit_code == 1


class TestLogFile:
    def test_log_file_written(self, cli_runner: CliRunner, scenario_files, temp_dir):
        log_path = temp_dir / "session.log"

        result = cli_runner.invoke(app, [
            "set", str(scenario_files["a"]), "--key", "y", "--file", "a.yaml",
            "--value", "30", "--log-file", str(log_path),
        ])

        assert result.exit_code == 0, result.stdout
        content = log_path.read_text()
        assert "LOAD PHASE" in content
        assert "EDITS" in content
        assert "SAVE PHASE" in content
        assert "SUMMARY" in content

    def test_bad_log_directory(self, cli_runner: CliRunner, scenario_files, temp_dir):
        result = cli_runner.invoke(app, [
            "set", str(scenario_files["a"]), "--key", "y", "--file", "a.yaml",
            "--value", "30", "--log-file", str(temp_dir / "missing" / "session.log"),
        ])

        assert result.exit_code == 1
        assert "Failed to create log file" in result.stdout


class TestEditCommand:
    def test_interactive_edit(self, cli_runner: CliRunner, scenario_files):
        result = cli_runner.invoke(
            app,
            ["edit", str(scenario_files["a"]), str(scenario_files["b"])],
            input="e\ny\n2\n30\nw\nq\n",
        )

        assert result.exit_code == 0, result.stdout
        assert read_yaml(scenario_files["b"]) == {"y": 30, "z": 4}

    def test_no_loadable_files(self, cli_runner: CliRunner, temp_dir):
        result = cli_runner.invoke(app, ["edit", str(temp_dir / "missing.yaml")])

        assert result.exit_code == 1
        assert "No file could be loaded" in result.stdout
