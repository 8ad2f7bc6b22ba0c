"""Answers for git's interactive patch mode.

``git add -p``, ``git restore --staged -p`` and ``git checkout -p`` show
hunks one at a time in file order and read one stdin line per hunk.

Two ways to answer are provided:

* :func:`encode_answers` precomputes the whole answer list: ``"y"`` for the
  target hunk, ``"n"`` for every other hunk, then ``padding`` extra ``"n"``
  answers in case git shows more prompts than there are known hunks.
* :class:`PatchPromptResponder` answers prompt by prompt. It reads the hunk
  header git printed before each prompt, accepts the target hunk when it
  comes up, declines the others and quits (``"q"``) once the target has
  been accepted. Nothing is guessed up front, so extra prompts cannot
  exhaust the answer supply.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from hunkstage.diff.chunks import parse_hunk_header
from hunkstage.diff.models import Chunk

DEFAULT_PROMPT_PADDING = 10

_PROMPT_HEADER_RE = re.compile(r"^@@.*$", re.MULTILINE)


class PatchAction(str, Enum):
    STAGE = "stage"
    UNSTAGE = "unstage"
    RESET = "reset"


class StagingError(Exception):
    """Raised when a hunk operation cannot be carried out."""


class ChunkNotFoundError(StagingError):
    """The target chunk is not one of the file's chunks."""


def _target_answer(target: Chunk, action: PatchAction) -> str:
    if action is PatchAction.UNSTAGE:
        return target.unstage_string
    return target.stage_string


def encode_answers(
    target: Chunk,
    chunks: Sequence[Chunk],
    action: PatchAction,
    padding: int = DEFAULT_PROMPT_PADDING,
) -> List[str]:
    """One answer per known hunk, in file order, followed by padding."""
    if not any(c.id == target.id for c in chunks):
        raise ChunkNotFoundError(f"chunk {target.id} is not part of this file")
    answer = _target_answer(target, action)
    answers = [answer if c.id == target.id else "n" for c in chunks]
    return answers + ["n"] * padding


class PatchPromptResponder:
    """Prompt-loop state machine for one interactive patch session.

    Call it with the text git printed since the previous prompt; it returns
    the line to send back.
    """

    def __init__(self, target: Chunk, chunks: Sequence[Chunk], action: PatchAction = PatchAction.STAGE) -> None:
        ids = [c.id for c in chunks]
        if target.id not in ids:
            raise ChunkNotFoundError(f"chunk {target.id} is not part of this file")
        self.target = target
        self.action = action
        # identical ranges can only repeat across files; count them anyway
        before = chunks[: ids.index(target.id)]
        self._target_occurrence = sum(1 for c in before if c.range_key == target.range_key)
        self._seen: Dict[Tuple[int, int, int, int], int] = {}
        self.answers: List[str] = []
        self.offered = 0
        self.accepted = False

    def _offered_key(self, prompt_text: str) -> Optional[Tuple[int, int, int, int]]:
        headers = _PROMPT_HEADER_RE.findall(prompt_text)
        if not headers:
            return None
        m = parse_hunk_header(headers[-1])
        if m is None:
            return None
        return (
            int(m.group("old_start")),
            int(m.group("old_count") or 1),
            int(m.group("new_start")),
            int(m.group("new_count") or 1),
        )

    def __call__(self, prompt_text: str) -> Optional[str]:
        if self.accepted:
            answer = "q"
        else:
            key = self._offered_key(prompt_text)
            if key is None:
                # mode change or other hunk-less prompt
                answer = "n"
            else:
                self.offered += 1
                occurrence = self._seen.get(key, 0)
                self._seen[key] = occurrence + 1
                if key == self.target.range_key and occurrence == self._target_occurrence:
                    answer = _target_answer(self.target, self.action)
                    self.accepted = True
                else:
                    answer = "n"
        self.answers.append(answer)
        return answer
