"""``git status --porcelain`` parsing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from hunkstage.diff.models import FileDiff, FileStatus
from hunkstage.diff.parser import unquote_path


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """One porcelain line: two status columns plus path(s)."""

    index_code: str
    worktree_code: str
    path: str
    original_path: Optional[str] = None  # set on renames/copies

    @property
    def code(self) -> str:
        return self.index_code + self.worktree_code

    @property
    def is_conflict(self) -> bool:
        return "U" in self.code or self.code in ("AA", "DD")

    @property
    def status(self) -> FileStatus:
        if self.is_conflict:
            return FileStatus.CONFLICT
        primary = self.index_code if self.index_code.strip() else self.worktree_code
        return FileStatus.from_git_status(primary)

    @property
    def is_staged(self) -> bool:
        return self.index_code not in (" ", "?", "!") and not self.is_conflict

    @property
    def has_unstaged_changes(self) -> bool:
        return self.worktree_code not in (" ", "!") and not self.is_conflict


@dataclass
class RepositoryStatus:
    entries: List[StatusEntry] = field(default_factory=list)

    @property
    def untracked_files(self) -> List[str]:
        return [e.path for e in self.entries if e.code == "??"]

    @property
    def conflicted(self) -> List[str]:
        return [e.path for e in self.entries if e.is_conflict]

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicted)

    @property
    def untracked_short_stat(self) -> str:
        return _plural(len(self.untracked_files), "untracked file", "untracked files")

    @property
    def conflicted_short_stat(self) -> str:
        return _plural(len(self.conflicted), "file with conflicts", "files with conflicts")

    def entry(self, path: str) -> Optional[StatusEntry]:
        for e in self.entries:
            if e.path == path:
                return e
        return None

    def untracked_file_diffs(self) -> List[FileDiff]:
        """Placeholder diffs for files git has no diff text for yet."""
        return [FileDiff.untracked_file(p) for p in self.untracked_files]


def _plural(count: int, one: str, many: str) -> str:
    if count == 0:
        return ""
    if count == 1:
        return f"1 {one}"
    return f"{count} {many}"


def parse_porcelain(output: str) -> RepositoryStatus:
    """Parse ``git status --porcelain`` (v1) output."""
    status = RepositoryStatus()
    for line in output.splitlines():
        if len(line) < 4:
            continue
        index_code, worktree_code = line[0], line[1]
        rest = line[3:]
        original: Optional[str] = None
        if index_code in ("R", "C") and " -> " in rest:
            original, rest = rest.split(" -> ", 1)
            original = unquote_path(original)
        status.entries.append(
            StatusEntry(
                index_code=index_code,
                worktree_code=worktree_code,
                path=unquote_path(rest.strip()),
                original_path=original,
            )
        )
    return status
