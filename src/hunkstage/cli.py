"""hunkstage CLI — Typer application for viewing diffs and staging single hunks."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from hunkstage import __version__

app = typer.Typer(
    name="hunkstage",
    help="Stage, unstage or discard single hunks and resolve merge conflicts.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)


def _resolve_repo_root() -> Path:
    """Find the git repo root, exit 2 on failure."""
    from hunkstage.git.adapter import get_repo_root
    from hunkstage.git.process import GitError

    try:
        return get_repo_root()
    except GitError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc


def _load(repo_root: Path, config: Optional[str], format: Optional[str] = None):
    """Load config, apply CLI overrides and configure logging. Exit 2 on bad input."""
    from hunkstage.config.loader import ConfigError, load_config
    from hunkstage.logging import configure_logging

    try:
        cfg = load_config(repo_root, config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc

    if format:
        if format not in ("terminal", "json"):
            console.print(f"[bold red]Invalid format:[/bold red] {escape(format)}")
            raise typer.Exit(code=2)
        cfg.output.format = format  # type: ignore[assignment]

    configure_logging(cfg.logging)
    return cfg


def _runner(cfg):
    from hunkstage.git.process import GitRunner

    return GitRunner(cfg.git.executable, cfg.git.timeout)


def _select_chunk(file_diff, ref: str):
    """Pick a chunk by 1-based index or by (a unique prefix of) its id."""
    chunks = file_diff.chunks
    if ref.isdigit():
        index = int(ref)
        if 1 <= index <= len(chunks):
            return chunks[index - 1]
    else:
        matches = [c for c in chunks if c.id.startswith(ref)]
        if len(matches) == 1:
            return matches[0]
    console.print(
        f"[bold red]No such hunk:[/bold red] {escape(ref)} "
        f"({escape(file_diff.file_path_display)} has {len(chunks)} hunk(s))"
    )
    raise typer.Exit(code=1)


def _apply_chunk(action_name: str, path: str, chunk_ref: str, config: Optional[str], mode: Optional[str]) -> None:
    from hunkstage.diff.parser import parse_diff
    from hunkstage.git.adapter import get_staged_diff, get_unstaged_diff
    from hunkstage.git.process import GitError, ProcessError
    from hunkstage.staging.engine import StagingEngine
    from hunkstage.staging.prompts import PatchAction, StagingError

    action = PatchAction(action_name)
    repo_root = _resolve_repo_root()
    cfg = _load(repo_root, config)
    if mode:
        if mode not in ("interactive", "scripted"):
            console.print(f"[bold red]Invalid staging mode:[/bold red] {escape(mode)}")
            raise typer.Exit(code=2)
        cfg.staging.mode = mode  # type: ignore[assignment]

    # unstage works on index-vs-HEAD hunks; stage and reset on worktree-vs-index
    fetch = get_staged_diff if action is PatchAction.UNSTAGE else get_unstaged_diff
    try:
        diff_text = fetch(
            repo_root, [path],
            runner=_runner(cfg),
            find_renames=cfg.diff.find_renames, context=cfg.diff.context,
        )
    except GitError as exc:
        console.print(f"[bold red]Git error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc

    file_diff = parse_diff(diff_text).find(path)
    if file_diff is None or not file_diff.chunks:
        where = "staged" if action is PatchAction.UNSTAGE else "unstaged"
        console.print(f"[yellow]⚠[/yellow]  No {where} hunks in {escape(path)}")
        raise typer.Exit(code=1)

    chunk = _select_chunk(file_diff, chunk_ref)
    engine = StagingEngine.from_config(repo_root, cfg)
    try:
        outcome = engine.apply(chunk, file_diff, action)
    except ProcessError as exc:
        console.print(f"[bold red]git failed:[/bold red]\n{escape(exc.output)}")
        raise typer.Exit(code=1) from exc
    except (StagingError, GitError) as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    verb = {"stage": "Staged", "unstage": "Unstaged", "reset": "Discarded"}[action_name]
    console.print(f"[green]✓[/green] {verb} {escape(chunk.header)} in {escape(outcome.path)}")


# ── diff ──────────────────────────────────────────────────────────────────────


@app.command()
def diff(
    paths: Optional[List[str]] = typer.Argument(None, help="Limit the diff to these paths"),
    cached: bool = typer.Option(False, "--cached", help="Show staged hunks (index vs HEAD)"),
    commit: Optional[str] = typer.Option(None, "--commit", help="Show the diff of a commit"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .hunkstage.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
) -> None:
    """Show the parsed diff with numbered hunks."""
    from hunkstage.diff.parser import parse_diff
    from hunkstage.git.adapter import get_commit_diff, get_staged_diff, get_unstaged_diff
    from hunkstage.git.process import GitError
    from hunkstage.output import json_report, terminal

    repo_root = _resolve_repo_root()
    cfg = _load(repo_root, config, format)

    try:
        if commit:
            diff_text = get_commit_diff(repo_root, commit, runner=_runner(cfg), context=cfg.diff.context)
        elif cached:
            diff_text = get_staged_diff(
                repo_root, paths or [],
                runner=_runner(cfg),
                find_renames=cfg.diff.find_renames, context=cfg.diff.context,
            )
        else:
            diff_text = get_unstaged_diff(
                repo_root, paths or [],
                runner=_runner(cfg),
                find_renames=cfg.diff.find_renames, context=cfg.diff.context,
            )
    except GitError as exc:
        console.print(f"[bold red]Git error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc

    parsed = parse_diff(diff_text)
    if cfg.output.format == "json":
        print(json_report.render(parsed))
    else:
        terminal.render(parsed, show_line_numbers=cfg.output.show_line_numbers)


# ── status ────────────────────────────────────────────────────────────────────


@app.command()
def status(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .hunkstage.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
) -> None:
    """Show working tree status."""
    from hunkstage.git.adapter import get_status
    from hunkstage.git.process import GitError
    from hunkstage.output import json_report, terminal

    repo_root = _resolve_repo_root()
    cfg = _load(repo_root, config, format)
    try:
        repo_status = get_status(repo_root, runner=_runner(cfg))
    except GitError as exc:
        console.print(f"[bold red]Git error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc

    if cfg.output.format == "json":
        print(json_report.render_status(repo_status))
    else:
        terminal.render_status(repo_status)


# ── stage / unstage / reset ───────────────────────────────────────────────────


_CHUNK_HELP = "Hunk number (1-based, as shown by `hunkstage diff`) or hunk id"


@app.command()
def stage(
    path: str = typer.Argument(..., help="File path relative to the repo root"),
    chunk: str = typer.Argument(..., help=_CHUNK_HELP),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .hunkstage.toml"),
    mode: Optional[str] = typer.Option(None, "--mode", help="Staging mode: interactive | scripted"),
) -> None:
    """Stage one hunk of PATH."""
    _apply_chunk("stage", path, chunk, config, mode)


@app.command()
def unstage(
    path: str = typer.Argument(..., help="File path relative to the repo root"),
    chunk: str = typer.Argument(..., help="Hunk number or id, as shown by `hunkstage diff --cached`"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .hunkstage.toml"),
    mode: Optional[str] = typer.Option(None, "--mode", help="Staging mode: interactive | scripted"),
) -> None:
    """Remove one staged hunk of PATH from the index."""
    _apply_chunk("unstage", path, chunk, config, mode)


@app.command()
def reset(
    path: str = typer.Argument(..., help="File path relative to the repo root"),
    chunk: str = typer.Argument(..., help=_CHUNK_HELP),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .hunkstage.toml"),
    mode: Optional[str] = typer.Option(None, "--mode", help="Staging mode: interactive | scripted"),
) -> None:
    """Discard one unstaged hunk of PATH from the working tree."""
    _apply_chunk("reset", path, chunk, config, mode)


# ── conflicts ─────────────────────────────────────────────────────────────────


def _resolver(config: Optional[str]):
    from hunkstage.conflicts.resolver import ConflictResolver

    repo_root = _resolve_repo_root()
    cfg = _load(repo_root, config)
    return ConflictResolver.from_config(repo_root, cfg)


@app.command()
def resolve(
    path: str = typer.Argument(..., help="Conflicted file path"),
    ours: bool = typer.Option(False, "--ours", help="Keep our side"),
    theirs: bool = typer.Option(False, "--theirs", help="Keep their side"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .hunkstage.toml"),
) -> None:
    """Replace a conflicted file with one side. The file stays unmerged."""
    from hunkstage.conflicts.resolver import ConflictError
    from hunkstage.git.process import GitError

    if ours == theirs:
        console.print("[bold red]Error:[/bold red] pass exactly one of --ours / --theirs")
        raise typer.Exit(code=2)

    resolver = _resolver(config)
    try:
        state = resolver.resolve_ours(path) if ours else resolver.resolve_theirs(path)
    except (ConflictError, GitError) as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    console.print(f"[green]✓[/green] {escape(path)}: {state.value}")


@app.command("mark-resolved")
def mark_resolved(
    path: str = typer.Argument(..., help="Conflicted file path"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .hunkstage.toml"),
) -> None:
    """Mark a conflicted file as resolved (git add)."""
    from hunkstage.conflicts.resolver import ConflictError
    from hunkstage.git.process import GitError

    resolver = _resolver(config)
    try:
        resolver.mark_resolved(path)
    except (ConflictError, GitError) as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    console.print(f"[green]✓[/green] {escape(path)} marked resolved")


@app.command()
def conflicts(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .hunkstage.toml"),
) -> None:
    """List conflicted files and their resolution state."""
    from hunkstage.git.process import GitError

    resolver = _resolver(config)
    try:
        paths = resolver.conflicted_paths()
        if not paths:
            console.print("[green]No conflicts.[/green]")
            raise typer.Exit(code=0)
        for p in paths:
            print(f"{resolver.state(p).value}\t{p}")
    except GitError as exc:
        console.print(f"[bold red]Git error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init() -> None:
    """Generate a starter .hunkstage.toml in the repo root."""
    from hunkstage.config.defaults import DEFAULT_TOML
    from hunkstage.config.loader import CONFIG_FILENAME

    repo_root = _resolve_repo_root()
    config_path = repo_root / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {escape(str(config_path))}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {escape(str(config_path))}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"hunkstage {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """hunkstage — hunk-level staging for git."""
