"""Git interface layer — process collaborator, read-side adapter, status."""

from hunkstage.git.adapter import (
    get_commit_diff,
    get_index_stage,
    get_repo_root,
    get_staged_diff,
    get_status,
    get_unstaged_diff,
)
from hunkstage.git.locks import RepositoryBusyError, repository_lock
from hunkstage.git.process import (
    GitError,
    GitRunner,
    ProcessError,
    ProcessResult,
    ProcessRunner,
    ProcessTimeoutError,
)
from hunkstage.git.status import RepositoryStatus, StatusEntry, parse_porcelain

__all__ = [
    "GitError",
    "GitRunner",
    "ProcessError",
    "ProcessResult",
    "ProcessRunner",
    "ProcessTimeoutError",
    "RepositoryBusyError",
    "RepositoryStatus",
    "StatusEntry",
    "get_commit_diff",
    "get_index_stage",
    "get_repo_root",
    "get_staged_diff",
    "get_status",
    "get_unstaged_diff",
    "parse_porcelain",
    "repository_lock",
]
