"""Pytest fixtures for yamlgrid tests."""

import io
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator

import pytest
from rich.console import Console

from yamlgrid.orchestration import EditorSession
from yamlgrid.store import file_id_for
from yamlgrid.ui import GridTUI


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for isolated test environments.

    Yields:
        Path to the temporary directory.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def write_yaml(temp_dir: Path) -> Callable[..., Path]:
    """Return a helper that writes YAML text to a file under temp_dir.

    Usage:
        path = write_yaml("a.yaml", "x: 1\\n")
        path = write_yaml("nested/b.yaml", "y: 2\\n")
    """

    def _write(name: str, text: str) -> Path:
        path = temp_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def scenario_files(write_yaml: Callable[..., Path]) -> Dict[str, Path]:
    """Create the two-file scenario used throughout the tests.

    Creates:
        a.yaml: {x: 1, y: 2}
        b.yaml: {y: 3, z: 4}

    Returns:
        Dictionary with 'a' and 'b' mapped to the file paths.
    """
    return {
        "a": write_yaml("a.yaml", "x: 1\ny: 2\n"),
        "b": write_yaml("b.yaml", "y: 3\nz: 4\n"),
    }


@pytest.fixture
def scenario_ids(scenario_files: Dict[str, Path]) -> Dict[str, str]:
    """File ids (resolved paths) of the scenario files."""
    return {name: file_id_for(path) for name, path in scenario_files.items()}


@pytest.fixture
def loaded_session(scenario_files: Dict[str, Path]) -> EditorSession:
    """An EditorSession with a.yaml and b.yaml loaded, in that order."""
    session = EditorSession()
    session.on_files_selected([scenario_files["a"], scenario_files["b"]])
    return session


@pytest.fixture
def tui_with_captured_output() -> GridTUI:
    """Create a GridTUI instance with Console output captured to StringIO.

    Access captured output via: tui.console.file.getvalue()
    """
    output = io.StringIO()
    console = Console(file=output, force_terminal=True, width=160)
    return GridTUI(console=console)
