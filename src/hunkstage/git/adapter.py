"""Git read-side wrapper — diffs, status, index stages."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

from hunkstage.git.process import GitRunner, ProcessRunner, ensure_success
from hunkstage.git.status import RepositoryStatus, parse_porcelain


def _run_git(
    args: List[str],
    cwd: Path,
    runner: Optional[ProcessRunner] = None,
) -> str:
    """Run a git command and return stdout. Raises ProcessError on failure."""
    runner = runner or GitRunner()
    return ensure_success(runner.run(args, cwd=cwd), args).stdout


def _diff_args(find_renames: bool, context: int) -> List[str]:
    args = ["diff", "--no-color", "--no-ext-diff", f"--unified={context}"]
    if not find_renames:
        args.append("--no-renames")
    return args


def _with_paths(args: List[str], paths: Sequence[str]) -> List[str]:
    return args + ["--", *paths] if paths else args


def get_repo_root(cwd: Optional[Path] = None, runner: Optional[ProcessRunner] = None) -> Path:
    """Return the root of the current git repository."""
    cwd = cwd or Path.cwd()
    out = _run_git(["rev-parse", "--show-toplevel"], cwd=cwd, runner=runner)
    return Path(out.strip())


def get_unstaged_diff(
    repo_root: Path,
    paths: Sequence[str] = (),
    *,
    runner: Optional[ProcessRunner] = None,
    find_renames: bool = False,
    context: int = 3,
) -> str:
    """Working tree vs index — the hunks ``add -p`` and ``checkout -p`` offer."""
    args = _with_paths(_diff_args(find_renames, context), paths)
    return _run_git(args, cwd=repo_root, runner=runner)


def get_staged_diff(
    repo_root: Path,
    paths: Sequence[str] = (),
    *,
    runner: Optional[ProcessRunner] = None,
    find_renames: bool = False,
    context: int = 3,
) -> str:
    """Index vs HEAD — the hunks ``restore --staged -p`` offers."""
    args = _diff_args(find_renames, context)
    args.insert(1, "--cached")
    return _run_git(_with_paths(args, paths), cwd=repo_root, runner=runner)


def get_commit_diff(
    repo_root: Path,
    rev: str,
    *,
    runner: Optional[ProcessRunner] = None,
    context: int = 3,
) -> str:
    """``git show`` output for *rev*, commit preamble included."""
    args = ["show", "--no-color", "--no-ext-diff", f"--unified={context}", rev]
    return _run_git(args, cwd=repo_root, runner=runner)


def get_status(repo_root: Path, *, runner: Optional[ProcessRunner] = None) -> RepositoryStatus:
    return parse_porcelain(_run_git(["status", "--porcelain"], cwd=repo_root, runner=runner))


def get_index_stage(
    repo_root: Path,
    path: str,
    stage: int,
    *,
    runner: Optional[ProcessRunner] = None,
) -> Optional[str]:
    """Content of *path* at index stage 1 (base), 2 (ours) or 3 (theirs).

    Returns None when the stage does not exist (e.g. added on one side only).
    """
    runner = runner or GitRunner()
    result = runner.run(["show", f":{stage}:{path}"], cwd=repo_root)
    if not result.ok:
        return None
    return result.stdout
