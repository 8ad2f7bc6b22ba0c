"""Conflict resolver — keep ours / keep theirs / mark resolved.

Per-file states: UNRESOLVED -> (OURS_APPLIED | THEIRS_APPLIED) -> MARKED_RESOLVED.
Nothing is remembered between calls: :meth:`ConflictResolver.state`
re-derives the state from git's index and the working tree every time.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List, Optional

import structlog

from hunkstage.config.schema import HunkstageConfig
from hunkstage.git.adapter import get_index_stage, get_status
from hunkstage.git.locks import repository_lock
from hunkstage.git.process import GitRunner, ProcessRunner, ensure_success

logger = structlog.get_logger("hunkstage.conflicts.resolver")

_OURS_STAGE = 2
_THEIRS_STAGE = 3


class ConflictState(str, Enum):
    UNRESOLVED = "unresolved"
    OURS_APPLIED = "ours_applied"
    THEIRS_APPLIED = "theirs_applied"
    MARKED_RESOLVED = "marked_resolved"


class ConflictError(Exception):
    """Raised when a resolution is requested for a path that is not unmerged."""


class ConflictResolver:
    def __init__(
        self,
        repo_root: Path,
        runner: Optional[ProcessRunner] = None,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        self.repo_root = repo_root
        self.runner = runner or GitRunner()
        self.timeout = timeout

    @classmethod
    def from_config(
        cls,
        repo_root: Path,
        config: HunkstageConfig,
        runner: Optional[ProcessRunner] = None,
    ) -> "ConflictResolver":
        runner = runner or GitRunner(config.git.executable, config.git.timeout)
        return cls(repo_root, runner, timeout=config.git.timeout)

    def conflicted_paths(self) -> List[str]:
        return get_status(self.repo_root, runner=self.runner).conflicted

    def _require_unmerged(self, path: str) -> None:
        if path not in self.conflicted_paths():
            raise ConflictError(f"{path} has no unresolved conflict")

    def _run(self, args: List[str]) -> None:
        result = self.runner.run(args, cwd=self.repo_root, timeout=self.timeout)
        ensure_success(result, args)

    def resolve_ours(self, path: str) -> ConflictState:
        """Replace the working-tree file with our side. The path stays unmerged."""
        with repository_lock(self.repo_root):
            self._require_unmerged(path)
            self._run(["checkout", "--ours", "--", path])
        logger.info("conflict_resolved", path=path, side="ours")
        return ConflictState.OURS_APPLIED

    def resolve_theirs(self, path: str) -> ConflictState:
        with repository_lock(self.repo_root):
            self._require_unmerged(path)
            self._run(["checkout", "--theirs", "--", path])
        logger.info("conflict_resolved", path=path, side="theirs")
        return ConflictState.THEIRS_APPLIED

    def mark_resolved(self, path: str) -> ConflictState:
        """``git add`` the path, dropping it from the unmerged set."""
        with repository_lock(self.repo_root):
            self._require_unmerged(path)
            self._run(["add", "--", path])
        logger.info("conflict_marked_resolved", path=path)
        return ConflictState.MARKED_RESOLVED

    def state(self, path: str) -> ConflictState:
        """Derive *path*'s state from the index and working tree."""
        with repository_lock(self.repo_root):
            if path not in self.conflicted_paths():
                return ConflictState.MARKED_RESOLVED
            file_path = self.repo_root / path
            if not file_path.is_file():
                return ConflictState.UNRESOLVED
            content = file_path.read_text(encoding="utf-8", errors="replace")
            ours = get_index_stage(self.repo_root, path, _OURS_STAGE, runner=self.runner)
            if ours is not None and content == ours:
                return ConflictState.OURS_APPLIED
            theirs = get_index_stage(self.repo_root, path, _THEIRS_STAGE, runner=self.runner)
            if theirs is not None and content == theirs:
                return ConflictState.THEIRS_APPLIED
        return ConflictState.UNRESOLVED
