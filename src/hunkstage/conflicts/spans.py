"""Conflict spans inside a parsed chunk."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from hunkstage.diff.classifier import marker_of
from hunkstage.diff.models import Chunk, Line, LineKind


@dataclass(frozen=True)
class ConflictSpan:
    """``<<<<<<<`` … ``=======`` … ``>>>>>>>`` within one chunk.

    Indexes point into ``Chunk.lines``.
    """

    start: int
    middle: int
    end: int
    ours: Tuple[Line, ...]
    base: Tuple[Line, ...]
    theirs: Tuple[Line, ...]
    ours_label: str = ""
    theirs_label: str = ""


def _label(line: Line) -> str:
    marker = marker_of(line.raw, line.prefix_width)
    text = line.content.rstrip("\r")
    if marker and marker in text:
        return text[text.index(marker) + len(marker):].strip()
    return ""


def conflict_spans(chunk: Chunk) -> List[ConflictSpan]:
    """Return every well-formed conflict span in *chunk*, in order."""
    spans: List[ConflictSpan] = []
    lines = chunk.lines
    start = middle = -1
    ours: List[Line] = []
    base: List[Line] = []
    theirs: List[Line] = []
    seen_separator = False

    for i, line in enumerate(lines):
        kind = line.kind
        if kind is LineKind.CONFLICT_START:
            start, middle = i, -1
            ours, base, theirs = [], [], []
            seen_separator = False
        elif start < 0:
            continue
        elif kind is LineKind.CONFLICT_MIDDLE:
            if middle < 0:
                middle = i
            if marker_of(line.raw, line.prefix_width) is None:
                base.append(line)
            else:
                seen_separator = True
        elif kind is LineKind.CONFLICT_END:
            if seen_separator:
                spans.append(
                    ConflictSpan(
                        start=start,
                        middle=middle,
                        end=i,
                        ours=tuple(ours),
                        base=tuple(base),
                        theirs=tuple(theirs),
                        ours_label=_label(lines[start]),
                        theirs_label=_label(line),
                    )
                )
            start = -1
        elif middle < 0:
            ours.append(line)
        else:
            theirs.append(line)
    return spans


def is_well_formed(kinds: Sequence[LineKind]) -> bool:
    """Check ``Start, (Ours|Unchanged)*, Middle+, (Theirs|Unchanged)*, End`` nesting."""
    phase = 0  # 0 outside, 1 ours, 2 middle, 3 theirs
    for kind in kinds:
        if kind is LineKind.CONFLICT_START:
            if phase != 0:
                return False
            phase = 1
        elif kind is LineKind.CONFLICT_MIDDLE:
            if phase not in (1, 2):
                return False
            phase = 2
        elif kind is LineKind.CONFLICT_END:
            if phase not in (2, 3):
                return False
            phase = 0
        elif kind is LineKind.CONFLICT_OURS:
            if phase != 1:
                return False
        elif kind is LineKind.CONFLICT_THEIRS:
            if phase not in (2, 3):
                return False
            phase = 3
        elif kind is not LineKind.UNCHANGED and phase != 0:
            return False
    return phase == 0
