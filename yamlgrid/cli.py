"""
yamlgrid - CLI Interface.

A command-line interface for viewing and editing several YAML files as one
table: one row per top-level key, one column per file.

Usage Examples:
    # Show the merged table
    yamlgrid show dev.yaml staging.yaml prod.yaml

    # Change one value and rewrite every file
    yamlgrid set dev.yaml prod.yaml --key replicas --file prod.yaml --value 5

    # Rename a key in every file (preview only)
    yamlgrid rename dev.yaml prod.yaml --from db_host --to database_host --dry-run

    # Interactive editor with a session log
    yamlgrid edit dev.yaml prod.yaml --log-file session.log --verbose
"""

import logging
import time
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from yamlgrid import __version__
from yamlgrid.codec import CodecConfig
from yamlgrid.exceptions import DuplicateKeyError
from yamlgrid.models import LoadResult, SaveResult
from yamlgrid.orchestration import EditorSession, SessionLogger
from yamlgrid.ui import GridTUI

# Initialize Typer app
app = typer.Typer(
    name="yamlgrid",
    help="Edit several YAML files side by side as one key-per-row table.",
    add_completion=False,
    no_args_is_help=True,
)

# Rich console for consistent output formatting
console = Console()

FILES_ARGUMENT = typer.Argument(..., help="YAML files to open (top level must be a mapping).")
DRY_RUN_OPTION = typer.Option(False, "--dry-run", "-n", help="Show what would be saved without writing files.")
RAW_OPTION = typer.Option(False, "--raw", help="Write every value back as a string instead of re-parsing cell text.")
INDENT_OPTION = typer.Option(2, "--indent", min=1, max=8, help="Indentation of lists and mappings shown as JSON.")
WORKERS_OPTION = typer.Option(1, "--workers", "-w", min=1, help="Threads used to parse and write files.")
LOG_FILE_OPTION = typer.Option(None, "--log-file", "-l", help="Path for a session log file.")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-V", help="Enable verbose output.")


def version_callback(value: bool) -> None:
    """Display version information and exit."""
    if value:
        console.print(f"yamlgrid v{__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route library logging through Rich; DEBUG when verbose, else WARNING."""
    package_logger = logging.getLogger("yamlgrid")
    package_logger.handlers.clear()
    package_logger.addHandler(RichHandler(console=console, show_path=False, markup=False))
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@contextmanager
def open_session(
    files: List[Path],
    dry_run: bool,
    raw: bool,
    indent: int,
    workers: int,
    log_file: Optional[Path],
    verbose: bool,
) -> Iterator[Tuple[EditorSession, LoadResult]]:
    """
    Create a session, load the files and display any load failures.

    Writes the session log header and summary when a log file is requested.

    Raises:
        typer.Exit: If the log file cannot be created.
    """
    configure_logging(verbose)
    start_time = time.time()

    session_logger: Optional[SessionLogger] = None
    if log_file:
        try:
            session_logger = SessionLogger(log_file, dry_run=dry_run)
        except OSError as e:
            console.print(f"[red]Error:[/red] Failed to create log file: {escape(str(e))}")
            raise typer.Exit(1)

    if dry_run:
        console.print("[yellow][DRY RUN MODE][/yellow] No files will be modified.\n")

    with ExitStack() as stack:
        if session_logger is not None:
            stack.enter_context(session_logger)
            session_logger.log_header()
            stack.callback(lambda: session_logger.log_summary(time.time() - start_time))

        session = EditorSession(
            codec_config=CodecConfig(indent=indent),
            reparse=not raw,
            dry_run=dry_run,
            max_workers=workers,
            logger_instance=session_logger,
        )
        load_result = session.on_files_selected(files)
        if verbose or load_result.failures:
            GridTUI(console=console).display_load_result(load_result)

        yield session, load_result

    if verbose and session_logger is not None:
        console.print(f"[dim]Log written to: {session_logger.get_log_path()}[/dim]")


def finish_save(result: SaveResult, tui: GridTUI) -> None:
    """Display a save result and exit 1 if any file failed."""
    tui.display_save_result(result)
    if result.failures:
        console.print(f"\n[yellow]Completed with {len(result.failures)} error(s).[/yellow]")
        raise typer.Exit(1)


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Edit several YAML files side by side as one key-per-row table."""
    pass


@app.command()
def show(
    files: List[Path] = FILES_ARGUMENT,
    indent: int = INDENT_OPTION,
    workers: int = WORKERS_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """
    Print the merged table of the given files.

    Files that fail to load are reported; the others are still shown.
    """
    with open_session(files, False, False, indent, workers, None, verbose) as (session, load_result):
        GridTUI(console=console).display_table(session.get_table_snapshot())
        if load_result.failures:
            raise typer.Exit(1)


@app.command("set")
def set_value(
    files: List[Path] = FILES_ARGUMENT,
    key: str = typer.Option(..., "--key", "-k", help="Row key to edit."),
    file: str = typer.Option(..., "--file", "-f", help="File whose cell is edited (path or file name)."),
    value: str = typer.Option(..., "--value", help="New cell text. An empty string removes the key from the file."),
    dry_run: bool = DRY_RUN_OPTION,
    raw: bool = RAW_OPTION,
    indent: int = INDENT_OPTION,
    workers: int = WORKERS_OPTION,
    log_file: Optional[Path] = LOG_FILE_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """
    Set one cell and rewrite every file.

    Nothing is written if any file fails to load.
    """
    with open_session(files, dry_run, raw, indent, workers, log_file, verbose) as (session, load_result):
        if load_result.failures:
            console.print("[red]Error:[/red] Not saving because some files failed to load.")
            raise typer.Exit(1)

        try:
            file_id = session.resolve_file_id(file)
            session.on_cell_edited(key, file_id, value)
        except (KeyError, ValueError) as e:
            console.print(f"[red]Error:[/red] {escape(str(e.args[0] if e.args else e))}")
            raise typer.Exit(1)

        finish_save(session.on_save_requested(), GridTUI(console=console))


@app.command()
def rename(
    files: List[Path] = FILES_ARGUMENT,
    old_key: str = typer.Option(..., "--from", help="Existing row key."),
    new_key: str = typer.Option(..., "--to", help="New row key."),
    dry_run: bool = DRY_RUN_OPTION,
    raw: bool = RAW_OPTION,
    indent: int = INDENT_OPTION,
    workers: int = WORKERS_OPTION,
    log_file: Optional[Path] = LOG_FILE_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """
    Rename a row key in every file and rewrite every file.

    Fails if the new key already exists in the table.
    """
    with open_session(files, dry_run, raw, indent, workers, log_file, verbose) as (session, load_result):
        if load_result.failures:
            console.print("[red]Error:[/red] Not saving because some files failed to load.")
            raise typer.Exit(1)

        try:
            session.on_key_edited(old_key, new_key)
        except DuplicateKeyError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1)
        except (KeyError, ValueError) as e:
            console.print(f"[red]Error:[/red] {escape(str(e.args[0] if e.args else e))}")
            raise typer.Exit(1)

        finish_save(session.on_save_requested(), GridTUI(console=console))


@app.command()
def edit(
    files: List[Path] = FILES_ARGUMENT,
    dry_run: bool = DRY_RUN_OPTION,
    raw: bool = RAW_OPTION,
    indent: int = INDENT_OPTION,
    workers: int = WORKERS_OPTION,
    log_file: Optional[Path] = LOG_FILE_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """
    Interactive editor for the merged table.

    Files that fail to load are reported and left out of the session.
    """
    try:
        with open_session(files, dry_run, raw, indent, workers, log_file, verbose) as (session, _):
            if not session.table.columns():
                console.print("[red]Error:[/red] No file could be loaded.")
                raise typer.Exit(1)

            result = GridTUI(console=console).run_editor(session)

            if result is not None and result.failures:
                raise typer.Exit(1)

    except KeyboardInterrupt:
        console.print("\n[yellow]Editing interrupted by user.[/yellow]")
        raise typer.Exit(130)


if __name__ == "__main__":
    app()
