"""Terminal User Interface for yamlgrid.

This module provides the GridTUI class, a Rich-based interactive TUI that
renders the merge table and drives an EditorSession from prompts.

Example:
    from yamlgrid.orchestration import EditorSession
    from yamlgrid.ui import GridTUI

    session = EditorSession()
    tui = GridTUI()
    tui.display_load_result(session.on_files_selected(paths))
    tui.run_editor(session)
"""

from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table
from rich.text import Text

from yamlgrid.exceptions import DuplicateKeyError
from yamlgrid.models import FileStatus, LoadResult, SaveResult, TableSnapshot
from yamlgrid.orchestration import EditorSession

_STATUS_STYLES = {
    FileStatus.LOADED: "green",
    FileStatus.RELOADED: "green",
    FileStatus.SAVED: "green",
    FileStatus.SKIPPED: "yellow",
    FileStatus.PARSE_ERROR: "red",
    FileStatus.IO_ERROR: "red",
    FileStatus.SERIALIZATION_ERROR: "red",
}


class GridTUI:
    """Rich-based Terminal User Interface for the merge table.

    Provides display methods for load/save results and the table, plus an
    interactive editing loop:
    - (e)dit a cell
    - (r)ename a row key
    - (w)rite every file
    - (v)iew the table
    - (q)uit

    Args:
        console: Optional Rich Console instance for output. Pass a Console
            writing to a StringIO to capture output in tests.
        max_cell_width: Cells longer than this are truncated in the table view.

    Attributes:
        console: The Rich Console instance used for all output.
    """

    def __init__(self, console: Optional[Console] = None, max_cell_width: int = 60) -> None:
        self.console = console or Console()
        self.max_cell_width = max_cell_width

    def display_load_result(self, result: LoadResult) -> None:
        """Show the status of every file of a load batch."""
        table = Table(title="Loaded Files")
        table.add_column("File", style="white")
        table.add_column("Status", justify="center")
        table.add_column("Details", style="dim")

        for outcome in result.outcomes:
            table.add_row(
                Text(outcome.file_id),
                Text(outcome.status.value, style=_STATUS_STYLES[outcome.status]),
                Text(outcome.message),
            )

        self.console.print(table)

        if result.failures:
            self.display_errors(result.errors)

    def display_table(self, snapshot: TableSnapshot) -> None:
        """Render the merge table: a Key column plus one column per file.

        Cells for keys absent from a file are shown as a dimmed dash.
        """
        if not snapshot.columns:
            self.console.print("[yellow]No files open.[/yellow]")
            return

        table = Table(title=f"Merged Keys ({len(snapshot.rows)})", show_lines=True)
        table.add_column("Key", style="cyan", no_wrap=True)
        for file_id in snapshot.columns:
            table.add_column(Text(snapshot.label(file_id)), overflow="fold")

        for row in snapshot.rows:
            cells = [Text(row.key)]
            for file_id in snapshot.columns:
                value = row.get(file_id)
                if value == "":
                    cells.append(Text("-", style="dim"))
                else:
                    cells.append(Text(self._truncate(value)))
            table.add_row(*cells)

        self.console.print(table)

    def display_save_result(self, result: SaveResult) -> None:
        """Show the status of every file of a save request."""
        title = "Save Results"
        if result.dry_run:
            title += " [DRY RUN]"

        table = Table(title=title)
        table.add_column("File", style="white")
        table.add_column("Status", justify="center")
        table.add_column("Details", style="dim")

        for outcome in result.outcomes:
            table.add_row(
                Text(outcome.file_id),
                Text(outcome.status.value, style=_STATUS_STYLES[outcome.status]),
                Text(outcome.message),
            )

        self.console.print(table)

        if result.failures:
            self.display_errors(result.errors)

    def display_errors(self, errors: List[str]) -> None:
        """Display error messages in a separate panel, at most 10 of them."""
        max_display = 10
        displayed_errors = errors[:max_display]
        remaining = len(errors) - max_display

        error_text = "\n".join(f"- {e}" for e in displayed_errors)
        if remaining > 0:
            error_text += f"\n\n... and {remaining} more errors"

        error_panel = Panel(
            Text(error_text),
            title=f"Errors ({len(errors)})",
            border_style="red",
        )
        self.console.print(error_panel)

    def run_editor(self, session: EditorSession) -> Optional[SaveResult]:
        """Interactive edit loop over a session.

        Returns:
            The result of the last save, or None if nothing was saved.
            Ctrl+C is treated as quit.
        """
        last_result: Optional[SaveResult] = None
        self.display_table(session.get_table_snapshot())

        while True:
            try:
                action = self._prompt_action()

                if action == "e":
                    self._edit_cell(session)
                elif action == "r":
                    self._rename_key(session)
                elif action == "w":
                    last_result = session.on_save_requested()
                    self.display_save_result(last_result)
                elif action == "v":
                    self.display_table(session.get_table_snapshot())
                elif action == "q":
                    if session.has_unsaved_changes() and not Confirm.ask(
                        "Discard unsaved changes?", default=False
                    ):
                        continue
                    return last_result

            except KeyboardInterrupt:
                self.console.print("\n[yellow]Editing cancelled by user.[/yellow]")
                return last_result

    def _prompt_action(self) -> str:
        """Return one of 'e', 'r', 'w', 'v', 'q'."""
        return Prompt.ask(
            "(e)dit cell, (r)ename key, (w)rite files, (v)iew, (q)uit",
            choices=["e", "r", "w", "v", "q"],
            default="v",
        )

    def _edit_cell(self, session: EditorSession) -> None:
        snapshot = session.get_table_snapshot()
        if not snapshot.rows:
            self.console.print("[yellow]The table has no rows.[/yellow]")
            return

        row_key = self._prompt_row_key(snapshot)
        file_id = self._select_file(snapshot)
        current = next(r for r in snapshot.rows if r.key == row_key).get(file_id)

        self.console.print(
            Panel(
                Text(current) if current else Text("(absent)", style="dim"),
                title=escape(f"{row_key} @ {snapshot.label(file_id)}"),
            )
        )
        new_value = Prompt.ask("New value (JSON for lists and mappings)", default="", show_default=False)

        if new_value == "":
            if current == "" or not Confirm.ask(
                escape(f"Remove {row_key!r} from {snapshot.label(file_id)}?"), default=False
            ):
                return

        session.on_cell_edited(row_key, file_id, new_value)

    def _rename_key(self, session: EditorSession) -> None:
        snapshot = session.get_table_snapshot()
        if not snapshot.rows:
            self.console.print("[yellow]The table has no rows.[/yellow]")
            return

        old_key = self._prompt_row_key(snapshot)
        new_key = Prompt.ask("New key")

        try:
            session.on_key_edited(old_key, new_key)
        except DuplicateKeyError:
            self.console.print(f"[red]Key {escape(repr(new_key))} already exists. Rename not applied.[/red]")
        except ValueError as e:
            self.console.print(f"[red]{escape(str(e))}[/red]")

    def _prompt_row_key(self, snapshot: TableSnapshot) -> str:
        keys = [row.key for row in snapshot.rows]
        while True:
            key = Prompt.ask("Row key")
            if key in keys:
                return key
            self.console.print(f"[red]Unknown key {escape(repr(key))}.[/red]")

    def _select_file(self, snapshot: TableSnapshot) -> str:
        if len(snapshot.columns) == 1:
            return snapshot.columns[0]

        for idx, file_id in enumerate(snapshot.columns, start=1):
            self.console.print(f"  {idx}. {escape(snapshot.label(file_id))}")

        choices = [str(i) for i in range(1, len(snapshot.columns) + 1)]
        selection = Prompt.ask("File", choices=choices, default="1")
        return snapshot.columns[int(selection) - 1]

    def _truncate(self, value: str) -> str:
        if len(value) > self.max_cell_width:
            return value[: self.max_cell_width - 3] + "..."
        return value
