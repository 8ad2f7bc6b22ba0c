"""Chunk parser — one ``@@`` hunk of text into a :class:`Chunk`."""

from __future__ import annotations

import hashlib
import re
from typing import List, Optional

from hunkstage.diff.classifier import (
    ConflictSpanState,
    classify,
    classify_plain,
    occupies_post_image,
)
from hunkstage.diff.errors import ParseError, ParseErrorKind
from hunkstage.diff.models import Chunk, Line, LineKind

# @@ -a[,b] +c[,d] @@ heading   (combined diffs: @@@ -a,b -c,d +e,f @@@)
HUNK_HEADER_RE = re.compile(
    r"^(?P<at>@{2,}) "
    r"-(?P<old_start>\d+)(?:,(?P<old_count>\d+))? "
    r"(?:-\d+(?:,\d+)? )*"
    r"\+(?P<new_start>\d+)(?:,(?P<new_count>\d+))? "
    r"(?P=at)(?P<section>.*)$"
)


def split_lines(text: str) -> List[str]:
    """Split on ``\\n`` only, dropping the empty tail of a final newline."""
    if not text:
        return []
    parts = text.split("\n")
    if parts[-1] == "":
        parts.pop()
    return parts


def chunk_id(header: str, ordinal: int) -> str:
    """Stable id from the header text and its position in the file."""
    digest = hashlib.sha1(f"{ordinal}\0{header}".encode("utf-8")).hexdigest()
    return digest[:16]


def parse_hunk_header(header: str) -> Optional[re.Match[str]]:
    return HUNK_HEADER_RE.match(header.rstrip("\r"))


def parse_chunk(raw_chunk_text: str, ordinal: int = 0) -> Chunk:
    """Parse one hunk. Raises ParseError on a malformed header."""
    raw_lines = split_lines(raw_chunk_text)
    if not raw_lines:
        raise ParseError(ParseErrorKind.MALFORMED_HUNK_HEADER, "empty hunk")

    header = raw_lines[0]
    m = parse_hunk_header(header)
    if m is None:
        raise ParseError(
            ParseErrorKind.MALFORMED_HUNK_HEADER,
            f"malformed hunk header: {header!r}",
        )

    width = len(m.group("at")) - 1
    body = raw_lines[1:]

    state = ConflictSpanState(prefix_width=width)
    kinds = [classify(raw, state) for raw in body]
    state.finish()
    for first, last in state.malformed:
        for i in range(first, last + 1):
            kinds[i] = classify_plain(body[i], width)

    new_start = int(m.group("new_start"))
    current = new_start
    lines = [Line(raw=header, kind=LineKind.HEADER, prefix_width=width)]
    for raw, kind in zip(body, kinds):
        number: Optional[int] = None
        if kind is not LineKind.REMOVED and occupies_post_image(raw, width):
            # markers occupy a post-image row but carry no number
            if not kind.is_marker:
                number = current
            current += 1
        lines.append(Line(raw=raw, kind=kind, to_file_line_number=number, prefix_width=width))

    return Chunk(
        id=chunk_id(header, ordinal),
        header=header,
        lines=tuple(lines),
        old_start=int(m.group("old_start")),
        old_count=int(m.group("old_count") or 1),
        new_start=new_start,
        new_count=int(m.group("new_count") or 1),
        ordinal=ordinal,
        section=m.group("section").strip(),
        warnings=tuple(state.warnings),
    )
