"""Unified diff parser — raw ``git diff`` / ``git show`` text into FileDiffs.

Parsing is a pure function of the text. After any git operation that could
change content or stage state, callers re-run git and parse again; parsed
models are never patched in place.
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence, Tuple

import structlog

from hunkstage.diff.chunks import parse_chunk, split_lines
from hunkstage.diff.errors import ParseError, ParseErrorKind
from hunkstage.diff.models import Chunk, Diff, FileDiff, FileStatus

logger = structlog.get_logger("hunkstage.diff.parser")

_FILE_HEADER_RE = re.compile(r"^diff --(?:git|cc|combined) ")
_COMBINED_PREFIXES = ("diff --cc ", "diff --combined ")
_DEV_NULL = "/dev/null"

_OCTAL_ESCAPE_RE = re.compile(r"\\([0-7]{3}|.)")
_SIMPLE_ESCAPES = {"n": b"\n", "t": b"\t", '"': b'"', "\\": b"\\", "a": b"\a", "b": b"\b",
                   "f": b"\f", "r": b"\r", "v": b"\v"}


def unquote_path(path: str) -> str:
    """Undo git's C-style quoting of paths with special characters."""
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path
    inner = path[1:-1]
    out = bytearray()
    pos = 0
    for m in _OCTAL_ESCAPE_RE.finditer(inner):
        out += inner[pos:m.start()].encode("utf-8")
        esc = m.group(1)
        if len(esc) == 3:
            out.append(int(esc, 8))
        else:
            out += _SIMPLE_ESCAPES.get(esc, esc.encode("utf-8"))
        pos = m.end()
    out += inner[pos:].encode("utf-8")
    return out.decode("utf-8", errors="replace")


def _strip_side_prefix(path: str, prefix: str) -> str:
    return path[len(prefix):] if path.startswith(prefix) else path


def _split_quoted(rest: str) -> Tuple[str, str]:
    """Split ``"a/x y" b/z``-style header remainders into two tokens."""
    if rest.startswith('"'):
        end = 1
        while end < len(rest):
            if rest[end] == "\\":
                end += 2
                continue
            if rest[end] == '"':
                break
            end += 1
        return rest[: end + 1], rest[end + 1:].strip()
    idx = rest.find(' "')
    return rest[:idx], rest[idx + 1:]


def header_paths(header: str) -> Tuple[str, str]:
    """Return (from, to) paths named by a ``diff --git`` / ``diff --cc`` line."""
    for prefix in _COMBINED_PREFIXES:
        if header.startswith(prefix):
            path = unquote_path(header[len(prefix):].strip())
            return path, path

    rest = header[len("diff --git "):].rstrip("\r")
    if rest.startswith('"') or ' "' in rest:
        first, second = _split_quoted(rest)
    else:
        # unquoted paths may contain spaces; prefer the symmetric split
        half = (len(rest) - 1) // 2
        if len(rest) % 2 == 1 and rest[half] == " " and rest[2:half] == rest[half + 3:]:
            first, second = rest[:half], rest[half + 1:]
        else:
            idx = rest.find(" b/")
            if idx < 0:
                idx = rest.rfind(" ")
            first, second = rest[:idx], rest[idx + 1:]
    return (
        _strip_side_prefix(unquote_path(first), "a/"),
        _strip_side_prefix(unquote_path(second), "b/"),
    )


def _file_line_path(line: str, side_prefix: str) -> str:
    """Path from a ``---``/``+++`` line; '' for /dev/null."""
    path = line[4:].rstrip("\r").rstrip("\t")
    if path == _DEV_NULL:
        return ""
    return _strip_side_prefix(unquote_path(path), side_prefix)


def _derive_status(
    header: str,
    extended: Sequence[str],
    file_lines: Sequence[str],
) -> FileStatus:
    if header.startswith(_COMBINED_PREFIXES):
        return FileStatus.CONFLICT
    for line in extended:
        if line.startswith("rename from "):
            return FileStatus.RENAMED
        if line.startswith("copy from "):
            return FileStatus.COPIED
        if line.startswith("new file mode"):
            return FileStatus.ADDED
        if line.startswith("deleted file mode"):
            return FileStatus.REMOVED
    if file_lines:
        if file_lines[0].rstrip() == f"--- {_DEV_NULL}":
            return FileStatus.ADDED
        if len(file_lines) > 1 and file_lines[1].rstrip() == f"+++ {_DEV_NULL}":
            return FileStatus.REMOVED
    return FileStatus.MODIFIED


def _resolve_paths(
    header: str,
    extended: Sequence[str],
    file_lines: Sequence[str],
    status: FileStatus,
) -> Tuple[str, str]:
    from_path, to_path = header_paths(header)

    for line in extended:
        if line.startswith(("rename from ", "copy from ")):
            from_path = unquote_path(line.split(" ", 2)[2])
        elif line.startswith(("rename to ", "copy to ")):
            to_path = unquote_path(line.split(" ", 2)[2])

    for line in file_lines:
        if line.startswith("--- "):
            from_path = _file_line_path(line, "a/")
        elif line.startswith("+++ "):
            to_path = _file_line_path(line, "b/")

    if status is FileStatus.ADDED:
        from_path = ""
    elif status is FileStatus.REMOVED:
        to_path = ""
    return from_path, to_path


def _split_chunks(lines: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Group lines at each ``@@`` boundary. Returns (chunk texts, stray lines)."""
    chunks: List[List[str]] = []
    stray: List[str] = []
    for line in lines:
        if line.startswith("@@"):
            chunks.append([line])
        elif chunks:
            chunks[-1].append(line)
        else:
            stray.append(line)
    return ["\n".join(c) for c in chunks], stray


def _parse_chunks(chunk_texts: Sequence[str], path: str) -> Tuple[List[Chunk], List[str]]:
    chunks: List[Chunk] = []
    warnings: List[str] = []
    for ordinal, text in enumerate(chunk_texts):
        try:
            chunk = parse_chunk(text, ordinal=ordinal)
        except ParseError as exc:
            warnings.append(f"{path}: skipped hunk {ordinal + 1}: {exc}")
            logger.warning("hunk_skipped", path=path, ordinal=ordinal, error=str(exc))
            continue
        for w in chunk.warnings:
            warnings.append(f"{path}: hunk {ordinal + 1}: {w}")
            logger.warning("conflict_marker_warning", path=path, ordinal=ordinal, detail=w)
        chunks.append(chunk)
    return chunks, warnings


def parse_file_diff(raw: str) -> FileDiff:
    """Parse one file's diff. Raises ParseError if the header is missing."""
    lines = split_lines(raw)
    if not lines or not _FILE_HEADER_RE.match(lines[0]):
        first = lines[0] if lines else ""
        raise ParseError(
            ParseErrorKind.MISSING_HEADER,
            f"expected a 'diff --git' line, got {first!r}",
        )

    header = lines[0].rstrip("\r")
    idx = 1
    total = len(lines)

    extended: List[str] = []
    while idx < total and not lines[idx].startswith(("--- ", "@@")):
        extended.append(lines[idx])
        idx += 1

    file_lines: List[str] = []
    if idx < total and lines[idx].startswith("--- "):
        file_lines.append(lines[idx])
        idx += 1
        if idx >= total or not lines[idx].startswith("+++ "):
            raise ParseError(
                ParseErrorKind.MISSING_FILE_HEADER,
                f"'---' line without a following '+++' line in {header!r}",
            )
        file_lines.append(lines[idx])
        idx += 1

    status = _derive_status(header, extended, file_lines)
    from_path, to_path = _resolve_paths(header, extended, file_lines, status)

    chunk_texts, stray = _split_chunks(lines[idx:])
    chunks, warnings = _parse_chunks(chunk_texts, to_path or from_path)
    if stray:
        warnings.insert(0, f"{to_path or from_path}: ignored {len(stray)} line(s) before first hunk")

    return FileDiff(
        header=header,
        extended_header_lines=tuple(extended),
        from_file_to_file_lines=tuple(file_lines),
        chunks=tuple(chunks),
        from_file_path=from_path,
        to_file_path=to_path,
        status=status,
        raw=raw,
        warnings=tuple(warnings),
    )


def parse_diff(raw: str) -> Diff:
    """Parse multi-file diff output; unparseable files are skipped with a warning.

    Text before the first file header (the commit preamble of ``git show``)
    is kept in ``Diff.preamble``.
    """
    if not raw:
        return Diff()

    preamble: List[str] = []
    blocks: List[List[str]] = []
    for line in split_lines(raw):
        if _FILE_HEADER_RE.match(line):
            blocks.append([line])
        elif blocks:
            blocks[-1].append(line)
        else:
            preamble.append(line)

    file_diffs: List[FileDiff] = []
    warnings: List[str] = []
    for block in blocks:
        try:
            fd = parse_file_diff("\n".join(block) + "\n")
        except ParseError as exc:
            warnings.append(f"skipped file: {exc}")
            logger.warning("file_skipped", header=block[0], error=str(exc))
            continue
        file_diffs.append(fd)
        warnings.extend(fd.warnings)

    return Diff(
        file_diffs=tuple(file_diffs),
        raw=raw,
        preamble="\n".join(preamble),
        warnings=tuple(warnings),
    )


def parse_patch(
    patch: str,
    path: str,
    previous_path: Optional[str] = None,
    status: FileStatus = FileStatus.MODIFIED,
) -> FileDiff:
    """Build a FileDiff from a hunk-only patch body (hosting provider payload)."""
    from_path = previous_path or path
    header = f"diff --git a/{from_path} b/{path}"
    chunk_texts, _ = _split_chunks(split_lines(patch or ""))
    chunks, warnings = _parse_chunks(chunk_texts, path)

    if status is FileStatus.ADDED:
        from_path = ""
    to_path = "" if status in (FileStatus.REMOVED, FileStatus.DELETED) else path

    return FileDiff(
        header=header,
        chunks=tuple(chunks),
        from_file_path=from_path,
        to_file_path=to_path,
        status=status,
        raw=f"{header}\n{patch}" if patch else header,
        warnings=tuple(warnings),
    )
