"""Rich terminal renderer — coloured hunks, status table."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from hunkstage.diff.models import Chunk, Diff, FileDiff, FileStatus, LineKind
from hunkstage.git.status import RepositoryStatus

_LINE_STYLE = {
    LineKind.ADDED: "green",
    LineKind.REMOVED: "red",
    LineKind.HEADER: "cyan",
    LineKind.CONFLICT_START: "bold magenta",
    LineKind.CONFLICT_MIDDLE: "bold magenta",
    LineKind.CONFLICT_END: "bold magenta",
    LineKind.CONFLICT_OURS: "blue",
    LineKind.CONFLICT_THEIRS: "bright_green",
}

_STATUS_STYLE = {
    FileStatus.ADDED: "bold green",
    FileStatus.MODIFIED: "bold blue",
    FileStatus.REMOVED: "bold red",
    FileStatus.DELETED: "bold red",
    FileStatus.RENAMED: "bold dark_orange",
    FileStatus.COPIED: "bold yellow",
    FileStatus.UNTRACKED: "dim",
    FileStatus.IGNORED: "dim",
    FileStatus.CONFLICT: "bold magenta",
    FileStatus.UNKNOWN: "magenta",
}


def _status_pill(status: FileStatus) -> Text:
    return Text(f" {status.value.upper()} ", style=_STATUS_STYLE.get(status, ""))


def _render_chunk(console: Console, chunk: Chunk, index: int, show_line_numbers: bool) -> None:
    title = Text(f"[{index}] ", style="bold")
    title.append(chunk.header, style="cyan")
    title.append(f"  id={chunk.id}", style="dim")
    if chunk.has_conflict:
        title.append("  CONFLICT", style="bold magenta")
    console.print(title)
    for line in chunk.lines[1:]:
        text = Text()
        if show_line_numbers:
            number = "" if line.to_file_line_number is None else str(line.to_file_line_number)
            text.append(f"{number:>5} ", style="dim")
        text.append(line.raw, style=_LINE_STYLE.get(line.kind, ""))
        console.print(text, soft_wrap=True)


def render_file_diff(console: Console, fd: FileDiff, *, show_line_numbers: bool = True) -> None:
    stats = fd.line_stats
    heading = _status_pill(fd.status)
    heading.append(f" {fd.file_path_display}", style="bold")
    heading.append(f"  +{stats.added} -{stats.removed}", style="dim")
    console.print(heading)
    if fd.is_binary:
        console.print("[dim]  binary file, no hunks[/dim]")
    for i, chunk in enumerate(fd.chunks, start=1):
        _render_chunk(console, chunk, i, show_line_numbers)
    console.print()


def render(diff: Diff, *, show_line_numbers: bool = True) -> None:
    """Print every file diff to the terminal using Rich."""
    console = Console()
    if not diff.file_diffs:
        console.print("[dim]No changes.[/dim]")
    for fd in diff.file_diffs:
        render_file_diff(console, fd, show_line_numbers=show_line_numbers)
    if diff.warnings:
        err = Console(stderr=True)
        for w in diff.warnings:
            err.print(f"[yellow]⚠[/yellow]  {escape(w)}")


def render_status(status: RepositoryStatus) -> None:
    console = Console()
    if not status.entries:
        console.print("[bold green]Working tree clean.[/bold green]")
        return

    table = Table(show_lines=False, border_style="dim")
    table.add_column("Status", justify="center", width=12)
    table.add_column("Code", style="dim", justify="center")
    table.add_column("Path", style="magenta")
    for entry in status.entries:
        path = entry.path
        if entry.original_path:
            path = f"{entry.original_path} => {entry.path}"
        table.add_row(_status_pill(entry.status), escape(entry.code), escape(path))
    console.print(table)

    for summary in (status.untracked_short_stat, status.conflicted_short_stat):
        if summary:
            console.print(f"[dim]{summary}[/dim]")
