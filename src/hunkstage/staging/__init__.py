"""Interactive-patch staging — answer encoding and the staging engine."""

from hunkstage.staging.engine import (
    HunkNotOfferedError,
    StagingEngine,
    StagingOutcome,
    patch_command,
)
from hunkstage.staging.prompts import (
    DEFAULT_PROMPT_PADDING,
    ChunkNotFoundError,
    PatchAction,
    PatchPromptResponder,
    StagingError,
    encode_answers,
)

__all__ = [
    "DEFAULT_PROMPT_PADDING",
    "ChunkNotFoundError",
    "HunkNotOfferedError",
    "PatchAction",
    "PatchPromptResponder",
    "StagingEngine",
    "StagingError",
    "StagingOutcome",
    "encode_answers",
    "patch_command",
]
