"""JSON renderer for parsed diffs and repository status."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from hunkstage.diff.models import Chunk, Diff, FileDiff
from hunkstage.git.status import RepositoryStatus


def chunk_to_dict(chunk: Chunk, index: int) -> Dict[str, Any]:
    return {
        "index": index,
        "id": chunk.id,
        "header": chunk.header,
        "old_start": chunk.old_start,
        "old_count": chunk.old_count,
        "new_start": chunk.new_start,
        "new_count": chunk.new_count,
        "has_conflict": chunk.has_conflict,
        "added": chunk.added_count,
        "removed": chunk.removed_count,
        "lines": [
            {
                "kind": line.kind.value,
                "raw": line.raw,
                **({"line": line.to_file_line_number} if line.to_file_line_number is not None else {}),
            }
            for line in chunk.lines
        ],
    }


def file_diff_to_dict(fd: FileDiff) -> Dict[str, Any]:
    stats = fd.line_stats
    return {
        "path": fd.file_path_display,
        "from_path": fd.from_file_path,
        "to_path": fd.to_file_path,
        "status": fd.status.value,
        "binary": fd.is_binary,
        "added": stats.added,
        "removed": stats.removed,
        "chunks": [chunk_to_dict(c, i) for i, c in enumerate(fd.chunks, start=1)],
        **({"warnings": list(fd.warnings)} if fd.warnings else {}),
    }


def diff_to_dict(diff: Diff) -> Dict[str, Any]:
    files: List[Dict[str, Any]] = [file_diff_to_dict(fd) for fd in diff.file_diffs]
    return {
        "version": "1.0",
        "files": files,
        "warnings": list(diff.warnings),
    }


def status_to_dict(status: RepositoryStatus) -> Dict[str, Any]:
    return {
        "entries": [
            {
                "path": e.path,
                "code": e.code,
                "status": e.status.value,
                **({"original_path": e.original_path} if e.original_path else {}),
            }
            for e in status.entries
        ],
        "untracked": status.untracked_files,
        "conflicted": status.conflicted,
    }


def render(diff: Diff) -> str:
    """Return formatted JSON string."""
    return json.dumps(diff_to_dict(diff), indent=2)


def render_status(status: RepositoryStatus) -> str:
    return json.dumps(status_to_dict(status), indent=2)
