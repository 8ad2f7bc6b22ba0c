"""Per-working-directory serialization of git operations.

git's index is a single mutable file; two interactive patch sessions
against the same repository race. Different repositories are independent.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional, Union

from hunkstage.git.process import GitError

_registry_guard = threading.Lock()
_locks: Dict[str, threading.Lock] = {}


class RepositoryBusyError(GitError):
    """Another operation is still running against the same working directory."""


def _lock_for(path: Union[str, Path]) -> threading.Lock:
    key = str(Path(path).resolve())
    with _registry_guard:
        return _locks.setdefault(key, threading.Lock())


@contextmanager
def repository_lock(path: Union[str, Path], timeout: Optional[float] = None) -> Iterator[None]:
    """Hold the lock for *path*. ``timeout=None`` waits indefinitely."""
    lock = _lock_for(path)
    if not lock.acquire(timeout=-1 if timeout is None else timeout):
        raise RepositoryBusyError(f"another git operation is in progress in {path}")
    try:
        yield
    finally:
        lock.release()


def is_locked(path: Union[str, Path]) -> bool:
    return _lock_for(path).locked()
