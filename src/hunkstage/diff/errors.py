"""Parse errors raised by the diff parsers."""

from __future__ import annotations

from enum import Enum


class ParseErrorKind(str, Enum):
    MISSING_HEADER = "missing_header"
    MALFORMED_HUNK_HEADER = "malformed_hunk_header"
    MISSING_FILE_HEADER = "missing_file_header"


class ParseError(Exception):
    """Raised when diff text cannot be parsed.

    Recoverable: the multi-file parser skips the offending chunk or file and
    records the message as a warning.
    """

    def __init__(self, kind: ParseErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
