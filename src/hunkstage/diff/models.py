"""Data models for parsed diffs — lines, chunks, file diffs."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class LineKind(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    UNCHANGED = "unchanged"
    HEADER = "header"
    CONFLICT_START = "conflict_start"
    CONFLICT_OURS = "conflict_ours"
    CONFLICT_MIDDLE = "conflict_middle"
    CONFLICT_THEIRS = "conflict_theirs"
    CONFLICT_END = "conflict_end"

    @property
    def is_conflict(self) -> bool:
        return self in _CONFLICT_KINDS

    @property
    def is_marker(self) -> bool:
        return self in _MARKER_KINDS


_MARKER_KINDS = frozenset({
    LineKind.CONFLICT_START,
    LineKind.CONFLICT_MIDDLE,
    LineKind.CONFLICT_END,
})
_CONFLICT_KINDS = _MARKER_KINDS | {LineKind.CONFLICT_OURS, LineKind.CONFLICT_THEIRS}


class FileStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"
    RENAMED = "renamed"
    COPIED = "copied"
    UNTRACKED = "untracked"
    IGNORED = "ignored"
    DELETED = "deleted"
    CONFLICT = "conflict"
    UNKNOWN = "unknown"

    @classmethod
    def from_git_status(cls, code: str) -> "FileStatus":
        """Map one porcelain status letter to a FileStatus."""
        return _PORCELAIN_CODES.get(code, cls.UNKNOWN)


_PORCELAIN_CODES = {
    "M": FileStatus.MODIFIED,
    "A": FileStatus.ADDED,
    "D": FileStatus.DELETED,
    "R": FileStatus.RENAMED,
    "C": FileStatus.COPIED,
    "?": FileStatus.UNTRACKED,
    "!": FileStatus.IGNORED,
    "U": FileStatus.CONFLICT,
}


@dataclass(frozen=True, slots=True)
class Line:
    """A single row of diff output."""

    raw: str
    kind: LineKind
    to_file_line_number: Optional[int] = None
    prefix_width: int = 1  # 2+ for combined (diff --cc) output

    @property
    def content(self) -> str:
        """Text without the leading diff marker column(s)."""
        if self.kind is LineKind.HEADER or not self.raw:
            return self.raw
        prefix = self.raw[: self.prefix_width]
        if prefix and all(ch in "+- " for ch in prefix):
            return self.raw[self.prefix_width:]
        return self.raw

    @property
    def diff_prefix(self) -> str:
        """The diff marker column(s), or '' for header and bare lines."""
        prefix = self.raw[: self.prefix_width]
        if len(prefix) == self.prefix_width and all(ch in "+- " for ch in prefix):
            return prefix
        return ""

    @property
    def is_removal(self) -> bool:
        return "-" in self.diff_prefix

    @property
    def is_addition(self) -> bool:
        prefix = self.diff_prefix
        return "+" in prefix and "-" not in prefix


@dataclass(frozen=True)
class LineStats:
    added: int = 0
    removed: int = 0


@dataclass(frozen=True)
class Chunk:
    """One ``@@``-delimited hunk.

    ``id`` is derived from the header text and the hunk's ordinal position
    in its file, so re-parsing the same diff yields the same ids.
    """

    id: str
    header: str
    lines: Tuple[Line, ...]
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    ordinal: int = 0
    section: str = ""
    warnings: Tuple[str, ...] = ()

    @property
    def has_conflict(self) -> bool:
        return any(line.kind.is_conflict for line in self.lines)

    @property
    def stage_string(self) -> str:
        return "y"

    @property
    def unstage_string(self) -> str:
        return "y"

    @property
    def range_key(self) -> Tuple[int, int, int, int]:
        return (self.old_start, self.old_count, self.new_start, self.new_count)

    @property
    def added_count(self) -> int:
        return sum(1 for line in self.lines if line.is_addition)

    @property
    def removed_count(self) -> int:
        return sum(1 for line in self.lines if line.is_removal)

    @property
    def line_numbers(self) -> List[str]:
        """Post-image line numbers as display strings ('' where absent)."""
        return [
            "" if line.to_file_line_number is None else str(line.to_file_line_number)
            for line in self.lines
        ]

    @property
    def raw(self) -> str:
        return "\n".join(line.raw for line in self.lines)


@dataclass(frozen=True)
class FileDiff:
    """All changes to one file: header, extended headers, ordered chunks."""

    header: str
    extended_header_lines: Tuple[str, ...] = ()
    from_file_to_file_lines: Tuple[str, ...] = ()
    chunks: Tuple[Chunk, ...] = ()
    from_file_path: str = ""
    to_file_path: str = ""
    status: FileStatus = FileStatus.MODIFIED
    raw: str = ""
    warnings: Tuple[str, ...] = ()

    # --- derived ---

    @property
    def id(self) -> str:
        return self.raw or self.header

    @property
    def path(self) -> str:
        """Path git commands should be pointed at."""
        return self.from_file_path or self.to_file_path

    @property
    def line_stats(self) -> LineStats:
        return LineStats(
            added=sum(c.added_count for c in self.chunks),
            removed=sum(c.removed_count for c in self.chunks),
        )

    @property
    def has_conflict(self) -> bool:
        return self.status is FileStatus.CONFLICT or any(c.has_conflict for c in self.chunks)

    @property
    def is_binary(self) -> bool:
        return any(
            line.startswith("Binary files") or line == "GIT binary patch"
            for line in self.extended_header_lines
        )

    @property
    def display_file_name(self) -> str:
        return posixpath.basename(self.to_file_path or self.from_file_path)

    @property
    def file_path_display(self) -> str:
        if self.from_file_path == self.to_file_path:
            return self.from_file_path
        if self.from_file_path and self.to_file_path:
            return f"{self.from_file_path} => {self.to_file_path}"
        return self.to_file_path or self.from_file_path

    def chunk_by_id(self, chunk_id: str) -> Optional[Chunk]:
        for chunk in self.chunks:
            if chunk.id == chunk_id:
                return chunk
        return None

    def stage_strings(self) -> List[str]:
        """One 'y' per chunk; a chunkless file still answers one prompt."""
        if not self.chunks:
            return ["y"]
        return [c.stage_string for c in self.chunks]

    def unstage_strings(self) -> List[str]:
        if not self.chunks:
            return ["y"]
        return [c.unstage_string for c in self.chunks]

    # --- synthesis for states git emits no diff body for ---

    @classmethod
    def untracked_file(cls, path: str) -> "FileDiff":
        header = f"diff --git a/{path} b/{path}"
        return cls(
            header=header,
            extended_header_lines=("new file mode 100644",),
            to_file_path=path,
            status=FileStatus.UNTRACKED,
            raw=f"{header}\nnew file mode 100644",
        )

    @classmethod
    def added(cls, path: str) -> "FileDiff":
        header = f"diff --git a/{path} b/{path}"
        file_lines = ("--- /dev/null", f"+++ b/{path}")
        return cls(
            header=header,
            extended_header_lines=("new file mode 100644",),
            from_file_to_file_lines=file_lines,
            to_file_path=path,
            status=FileStatus.ADDED,
            raw="\n".join((header, "new file mode 100644", *file_lines)),
        )

    @classmethod
    def removed(cls, path: str) -> "FileDiff":
        header = f"diff --git a/{path} b/{path}"
        file_lines = (f"--- a/{path}", "+++ /dev/null")
        return cls(
            header=header,
            extended_header_lines=("deleted file mode 100644",),
            from_file_to_file_lines=file_lines,
            from_file_path=path,
            status=FileStatus.REMOVED,
            raw="\n".join((header, "deleted file mode 100644", *file_lines)),
        )

    @classmethod
    def binary(cls, path: str, status: FileStatus = FileStatus.MODIFIED) -> "FileDiff":
        header = f"diff --git a/{path} b/{path}"
        return cls(
            header=header,
            extended_header_lines=("Binary files differ",),
            from_file_path=path,
            to_file_path=path,
            status=status,
            raw=f"{header}\nBinary files differ",
        )


@dataclass(frozen=True)
class Diff:
    """A multi-file diff as produced by ``git diff`` or ``git show``."""

    file_diffs: Tuple[FileDiff, ...] = ()
    raw: str = ""
    preamble: str = ""
    warnings: Tuple[str, ...] = field(default=())

    def __iter__(self):
        return iter(self.file_diffs)

    def __len__(self) -> int:
        return len(self.file_diffs)

    def find(self, path: str) -> Optional[FileDiff]:
        """Return the FileDiff touching *path* on either side."""
        for fd in self.file_diffs:
            if path in (fd.from_file_path, fd.to_file_path):
                return fd
        return None

    def stage_strings(self) -> List[str]:
        return [s for fd in self.file_diffs for s in fd.stage_strings()]

    def unstage_strings(self) -> List[str]:
        return [s for fd in self.file_diffs for s in fd.unstage_strings()]
