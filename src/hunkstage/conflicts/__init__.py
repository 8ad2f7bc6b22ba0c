"""Conflict spans and the ours/theirs/mark-resolved resolver."""

from hunkstage.conflicts.resolver import ConflictError, ConflictResolver, ConflictState
from hunkstage.conflicts.spans import ConflictSpan, conflict_spans, is_well_formed

__all__ = [
    "ConflictError",
    "ConflictResolver",
    "ConflictSpan",
    "ConflictState",
    "conflict_spans",
    "is_well_formed",
]
