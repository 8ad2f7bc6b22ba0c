"""Staging engine — stage, unstage or discard one hunk through git's patch mode.

The engine never re-parses: after a successful call the caller re-fetches
the diff and parses it again.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import structlog

from hunkstage.config.schema import HunkstageConfig
from hunkstage.diff.models import Chunk, FileDiff
from hunkstage.git.locks import repository_lock
from hunkstage.git.process import GitRunner, ProcessResult, ProcessRunner, ensure_success
from hunkstage.staging.prompts import (
    DEFAULT_PROMPT_PADDING,
    ChunkNotFoundError,
    PatchAction,
    PatchPromptResponder,
    StagingError,
    encode_answers,
)

logger = structlog.get_logger("hunkstage.staging.engine")

_PATCH_SUBCOMMANDS: Dict[PatchAction, List[str]] = {
    PatchAction.STAGE: ["add", "--patch"],
    PatchAction.UNSTAGE: ["restore", "--staged", "--patch"],
    PatchAction.RESET: ["checkout", "--patch"],
}


class HunkNotOfferedError(StagingError):
    """git finished its prompt loop without ever showing the target hunk.

    Usually the diff was stale; re-fetch and parse it again.
    """

    def __init__(self, message: str, output: str = "") -> None:
        super().__init__(message)
        self.output = output


@dataclass(frozen=True)
class StagingOutcome:
    action: PatchAction
    path: str
    chunk_id: str
    answers: Tuple[str, ...]
    output: str


def patch_command(action: PatchAction, path: str) -> List[str]:
    """git arguments (without the executable) for *action* on *path*."""
    return [*_PATCH_SUBCOMMANDS[action], "--", path]


class StagingEngine:
    """Apply per-hunk actions in one repository's working directory."""

    def __init__(
        self,
        repo_root: Path,
        runner: Optional[ProcessRunner] = None,
        *,
        mode: str = "interactive",
        prompt_padding: int = DEFAULT_PROMPT_PADDING,
        timeout: Optional[float] = None,
    ) -> None:
        if mode not in ("interactive", "scripted"):
            raise ValueError(f"unknown staging mode: {mode}")
        self.repo_root = repo_root
        self.runner = runner or GitRunner()
        self.mode = mode
        self.prompt_padding = prompt_padding
        self.timeout = timeout

    @classmethod
    def from_config(
        cls,
        repo_root: Path,
        config: HunkstageConfig,
        runner: Optional[ProcessRunner] = None,
    ) -> "StagingEngine":
        runner = runner or GitRunner(config.git.executable, config.git.timeout)
        return cls(
            repo_root,
            runner,
            mode=config.staging.mode,
            prompt_padding=config.staging.prompt_padding,
            timeout=config.git.timeout,
        )

    def apply(self, chunk: Chunk, file_diff: FileDiff, action: PatchAction) -> StagingOutcome:
        """Stage / unstage / discard *chunk* of *file_diff*.

        Raises ProcessError with git's output on a non-zero exit, and
        HunkNotOfferedError if git never presented the chunk.
        """
        if file_diff.chunk_by_id(chunk.id) is None:
            raise ChunkNotFoundError(
                f"chunk {chunk.id} is not part of {file_diff.file_path_display or file_diff.header}"
            )
        path = file_diff.path
        if not path:
            raise StagingError(f"cannot determine a path for {file_diff.header!r}")

        args = patch_command(action, path)
        with repository_lock(self.repo_root):
            if self.mode == "scripted":
                answers = encode_answers(chunk, file_diff.chunks, action, self.prompt_padding)
                result = self.runner.run(
                    args, cwd=self.repo_root, stdin="\n".join(answers) + "\n", timeout=self.timeout
                )
                ensure_success(result, args)
            else:
                responder = PatchPromptResponder(chunk, file_diff.chunks, action)
                result = self.runner.interact(
                    args, cwd=self.repo_root, respond=responder, timeout=self.timeout
                )
                ensure_success(result, args)
                if not responder.accepted:
                    logger.warning(
                        "hunk_not_offered", action=action.value, path=path,
                        chunk=chunk.id, offered=responder.offered,
                    )
                    raise HunkNotOfferedError(
                        f"git did not offer hunk {chunk.header!r} for {path}; "
                        "the diff is probably out of date",
                        output=result.output,
                    )
                answers = responder.answers

        logger.info("chunk_applied", action=action.value, path=path, chunk=chunk.id)
        return StagingOutcome(
            action=action,
            path=path,
            chunk_id=chunk.id,
            answers=tuple(answers),
            output=result.output,
        )

    def stage(self, chunk: Chunk, file_diff: FileDiff) -> StagingOutcome:
        return self.apply(chunk, file_diff, PatchAction.STAGE)

    def unstage(self, chunk: Chunk, file_diff: FileDiff) -> StagingOutcome:
        return self.apply(chunk, file_diff, PatchAction.UNSTAGE)

    def reset(self, chunk: Chunk, file_diff: FileDiff) -> StagingOutcome:
        return self.apply(chunk, file_diff, PatchAction.RESET)

    # --- whole-file operations ---

    def _run(self, args: List[str]) -> ProcessResult:
        with repository_lock(self.repo_root):
            result = self.runner.run(args, cwd=self.repo_root, timeout=self.timeout)
        return ensure_success(result, args)

    def stage_file(self, path: str) -> ProcessResult:
        result = self._run(["add", "--", path])
        logger.info("file_staged", path=path)
        return result

    def unstage_file(self, path: str) -> ProcessResult:
        result = self._run(["restore", "--staged", "--", path])
        logger.info("file_unstaged", path=path)
        return result
