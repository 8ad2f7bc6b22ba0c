"""External process collaborator — run git, optionally answering its prompts."""

from __future__ import annotations

import os
import re
import selectors
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence

import structlog

logger = structlog.get_logger("hunkstage.git.process")

# "(1/3) Stage this hunk [y,n,q,a,d,j,J,g,/,e,?]? "
PROMPT_RE = re.compile(r"\[[A-Za-z/?,]+\]\? $")

Responder = Callable[[str], Optional[str]]


class GitError(Exception):
    """Raised when git is unavailable or returns an unexpected error."""


class ProcessError(GitError):
    """Non-zero exit from git. ``output`` is git's own stdout+stderr, verbatim."""

    def __init__(self, args: Sequence[str], exit_code: int, output: str) -> None:
        self.args_list = list(args)
        self.exit_code = exit_code
        self.output = output
        super().__init__(
            f'An error occurred while executing "git {" ".join(args)}"\n\n{output}'
        )


class ProcessTimeoutError(ProcessError):
    """The process did not finish within the caller-supplied timeout."""

    def __init__(self, args: Sequence[str], timeout: float) -> None:
        self.timeout = timeout
        super().__init__(args, -1, f"git command timed out after {timeout}s")


@dataclass(frozen=True)
class ProcessResult:
    stdout: str
    stderr: str = ""
    exit_code: int = 0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        """Combined stdout + stderr."""
        if self.stdout and self.stderr:
            return f"{self.stdout}\n{self.stderr}"
        return self.stdout or self.stderr


class ProcessRunner(Protocol):
    """What the core needs from whoever actually runs git."""

    def run(
        self,
        args: Sequence[str],
        cwd: Path,
        stdin: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> ProcessResult: ...

    def interact(
        self,
        args: Sequence[str],
        cwd: Path,
        respond: Responder,
        timeout: Optional[float] = None,
    ) -> ProcessResult: ...


def ensure_success(result: ProcessResult, args: Sequence[str]) -> ProcessResult:
    """Raise ProcessError carrying git's diagnostics unless exit code is 0."""
    if not result.ok:
        logger.error("process_failed", args=list(args), exit_code=result.exit_code)
        raise ProcessError(args, result.exit_code, result.output)
    return result


class GitRunner:
    """subprocess-backed :class:`ProcessRunner`.

    Interactive runs merge stderr into stdout and watch the stream for
    ``[y,n,...]? `` prompts, handing everything printed since the previous
    prompt to a responder and writing back its one-line answer.
    POSIX only: the prompt loop relies on ``selectors`` over pipes.
    """

    def __init__(self, executable: str = "git", timeout: Optional[float] = 30.0) -> None:
        self.executable = executable
        self.timeout = timeout

    def _command(self, args: Sequence[str], *, interactive: bool = False) -> List[str]:
        cmd = [self.executable, "-c", "color.ui=never"]
        if interactive:
            cmd += ["-c", "interactive.singleKey=false", "-c", "core.pager=cat"]
        return cmd + list(args)

    @staticmethod
    def _env() -> dict:
        env = os.environ.copy()
        env["LC_ALL"] = "C"
        env["LANG"] = "C"
        env["GIT_TERMINAL_PROMPT"] = "0"
        env.setdefault("GIT_PAGER", "cat")
        return env

    def run(
        self,
        args: Sequence[str],
        cwd: Path,
        stdin: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> ProcessResult:
        timeout = self.timeout if timeout is None else timeout
        logger.debug("process_run", args=list(args), cwd=str(cwd), stdin=stdin)
        try:
            result = subprocess.run(
                self._command(args),
                cwd=cwd,
                input=stdin,
                capture_output=True,
                text=True,
                timeout=timeout,
                encoding="utf-8",
                errors="replace",
                env=self._env(),
            )
        except FileNotFoundError:
            raise GitError(f"{self.executable} is not installed or not on PATH")
        except subprocess.TimeoutExpired:
            raise ProcessTimeoutError(args, timeout or 0)
        return ProcessResult(result.stdout, result.stderr, result.returncode)

    def interact(
        self,
        args: Sequence[str],
        cwd: Path,
        respond: Responder,
        timeout: Optional[float] = None,
    ) -> ProcessResult:
        timeout = self.timeout if timeout is None else timeout
        logger.debug("process_interact", args=list(args), cwd=str(cwd))
        try:
            proc = subprocess.Popen(
                self._command(args, interactive=True),
                cwd=cwd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                env=self._env(),
            )
        except FileNotFoundError:
            raise GitError(f"{self.executable} is not installed or not on PATH")

        assert proc.stdin is not None and proc.stdout is not None
        deadline = time.monotonic() + timeout if timeout else None
        transcript = bytearray()
        pending = bytearray()
        stdin_open = True

        try:
            with selectors.DefaultSelector() as sel:
                sel.register(proc.stdout, selectors.EVENT_READ)
                while True:
                    wait = None if deadline is None else deadline - time.monotonic()
                    if wait is not None and wait <= 0:
                        raise ProcessTimeoutError(args, timeout or 0)
                    if not sel.select(wait):
                        continue
                    data = os.read(proc.stdout.fileno(), 65536)
                    if not data:
                        break
                    transcript += data
                    pending += data
                    text = pending.decode("utf-8", errors="replace")
                    if not stdin_open or not PROMPT_RE.search(text):
                        continue
                    pending.clear()
                    answer = respond(text)
                    logger.debug("prompt_answered", answer=answer)
                    if answer is None:
                        proc.stdin.close()
                        stdin_open = False
                    else:
                        stdin_open = self._write_answer(proc, answer)
            if stdin_open:
                proc.stdin.close()
            wait = None if deadline is None else max(deadline - time.monotonic(), 0.1)
            try:
                exit_code = proc.wait(timeout=wait)
            except subprocess.TimeoutExpired:
                raise ProcessTimeoutError(args, timeout or 0)
        except BaseException:
            proc.kill()
            proc.wait()
            raise
        finally:
            proc.stdout.close()

        output = transcript.decode("utf-8", errors="replace")
        return ProcessResult(stdout=output, exit_code=exit_code)

    @staticmethod
    def _write_answer(proc: subprocess.Popen, answer: str) -> bool:
        """Send one answer line. Returns False once the child stopped reading."""
        assert proc.stdin is not None
        try:
            proc.stdin.write(f"{answer}\n".encode("utf-8"))
            proc.stdin.flush()
        except BrokenPipeError:
            logger.debug("stdin_closed_by_child", answer=answer)
            return False
        return True
