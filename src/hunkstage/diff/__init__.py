"""Diff model and parsers — lines, chunks, file diffs."""

from hunkstage.diff.chunks import parse_chunk
from hunkstage.diff.classifier import ConflictSpanState, classify
from hunkstage.diff.errors import ParseError, ParseErrorKind
from hunkstage.diff.models import (
    Chunk,
    Diff,
    FileDiff,
    FileStatus,
    Line,
    LineKind,
    LineStats,
)
from hunkstage.diff.parser import parse_diff, parse_file_diff, parse_patch

__all__ = [
    "Chunk",
    "ConflictSpanState",
    "Diff",
    "FileDiff",
    "FileStatus",
    "Line",
    "LineKind",
    "LineStats",
    "ParseError",
    "ParseErrorKind",
    "classify",
    "parse_chunk",
    "parse_diff",
    "parse_file_diff",
    "parse_patch",
]
