"""Line classifier — assigns a LineKind to one raw diff line.

Conflict markers (``<<<<<<<``, ``|||||||``, ``=======``, ``>>>>>>>``) are
recognised either at the very start of the line or right after the diff
prefix column(s), so both working-tree content and ``git diff`` output of
a conflicted file classify the same way. State carried across the lines of
one chunk lives in :class:`ConflictSpanState`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from hunkstage.diff.models import LineKind

START_MARKER = "<<<<<<<"
BASE_MARKER = "|||||||"
MIDDLE_MARKER = "======="
END_MARKER = ">>>>>>>"

_MARKERS = (START_MARKER, BASE_MARKER, MIDDLE_MARKER, END_MARKER)
_PREFIX_CHARS = frozenset("+- ")


class ConflictSide(Enum):
    NONE = "none"
    OURS = "ours"
    BASE = "base"  # diff3 common-ancestor section
    THEIRS = "theirs"


_SIDE_KIND = {
    ConflictSide.OURS: LineKind.CONFLICT_OURS,
    ConflictSide.BASE: LineKind.CONFLICT_MIDDLE,
    ConflictSide.THEIRS: LineKind.CONFLICT_THEIRS,
}


@dataclass
class ConflictSpanState:
    """Mutable span-tracking state for one chunk."""

    prefix_width: int = 1
    side: ConflictSide = ConflictSide.NONE
    position: int = 0
    span_start: Optional[int] = None
    malformed: List[Tuple[int, int]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def in_span(self) -> bool:
        return self.side is not ConflictSide.NONE

    def finish(self) -> None:
        """Close the chunk; an open span becomes malformed."""
        if self.in_span and self.span_start is not None:
            self.malformed.append((self.span_start, self.position - 1))
            self.warnings.append(
                f"unterminated conflict span starting at line {self.span_start + 1}"
            )
        self.side = ConflictSide.NONE
        self.span_start = None


def _has_diff_prefix(raw: str, width: int) -> bool:
    prefix = raw[:width]
    return len(prefix) == width and all(ch in _PREFIX_CHARS for ch in prefix)


def _is_marker(text: str, marker: str) -> bool:
    text = text.rstrip("\r")
    if marker == MIDDLE_MARKER:
        return text.rstrip() == marker
    return text == marker or text.startswith(marker + " ")


def marker_of(raw: str, prefix_width: int = 1) -> Optional[str]:
    """Return the conflict marker *raw* carries, if any.

    Removed lines are not in the post-image, so a marker behind a ``-``
    prefix is plain content being deleted.
    """
    candidates = [raw]
    if _has_diff_prefix(raw, prefix_width):
        if "-" in raw[:prefix_width]:
            return None
        candidates.append(raw[prefix_width:])
    for text in candidates:
        for marker in _MARKERS:
            if _is_marker(text, marker):
                return marker
    return None


def classify_plain(raw: str, prefix_width: int = 1) -> LineKind:
    """Classify by diff prefix alone, ignoring conflict spans."""
    if raw.startswith("@@"):
        return LineKind.HEADER
    if not raw or not _has_diff_prefix(raw, prefix_width):
        return LineKind.UNCHANGED
    prefix = raw[:prefix_width]
    if "-" in prefix:
        return LineKind.REMOVED
    if "+" in prefix:
        return LineKind.ADDED
    return LineKind.UNCHANGED


def occupies_post_image(raw: str, prefix_width: int = 1) -> bool:
    """True if the line exists in the post-image (new file)."""
    if raw.startswith("\\"):
        return False
    if _has_diff_prefix(raw, prefix_width):
        return "-" not in raw[:prefix_width]
    return True


def classify(raw: str, state: ConflictSpanState) -> LineKind:
    """Classify *raw*, advancing *state* by one line."""
    index = state.position
    state.position += 1
    width = state.prefix_width

    # "\ No newline at end of file"
    if raw.startswith("\\"):
        return LineKind.UNCHANGED

    marker = marker_of(raw, width)
    side = state.side

    if marker == START_MARKER:
        if side is ConflictSide.NONE:
            state.side = ConflictSide.OURS
            state.span_start = index
            return LineKind.CONFLICT_START
        state.warnings.append(f"nested conflict start marker at line {index + 1}")
        return _SIDE_KIND[side]

    if marker in (BASE_MARKER, MIDDLE_MARKER):
        if side is ConflictSide.OURS:
            state.side = ConflictSide.BASE if marker == BASE_MARKER else ConflictSide.THEIRS
            return LineKind.CONFLICT_MIDDLE
        if side is ConflictSide.BASE and marker == MIDDLE_MARKER:
            state.side = ConflictSide.THEIRS
            return LineKind.CONFLICT_MIDDLE
        if side is ConflictSide.NONE:
            state.warnings.append(f"unmatched conflict separator at line {index + 1}")
            return classify_plain(raw, width)
        state.warnings.append(f"repeated conflict separator at line {index + 1}")
        return _SIDE_KIND[side]

    if marker == END_MARKER:
        if side is ConflictSide.THEIRS:
            state.side = ConflictSide.NONE
            state.span_start = None
            return LineKind.CONFLICT_END
        if side is ConflictSide.NONE:
            state.warnings.append(f"unmatched conflict end marker at line {index + 1}")
            return classify_plain(raw, width)
        # end before the separator: the whole span is malformed
        assert state.span_start is not None
        state.malformed.append((state.span_start, index))
        state.warnings.append(
            f"conflict span at line {state.span_start + 1} has no separator"
        )
        state.side = ConflictSide.NONE
        state.span_start = None
        return classify_plain(raw, width)

    if side is not ConflictSide.NONE:
        return _SIDE_KIND[side]
    return classify_plain(raw, width)
