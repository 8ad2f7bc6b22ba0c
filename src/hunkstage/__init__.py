"""hunkstage — parse git diffs and stage, unstage or discard single hunks."""

from hunkstage.logging import configure_library_default

__version__ = "0.1.0"

configure_library_default()
