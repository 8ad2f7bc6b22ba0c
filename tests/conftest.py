"""Shared test fixtures — sample diffs, a fake git runner, temp git repos."""

from __future__ import annotations

import shutil
import subprocess
import textwrap
from pathlib import Path
from typing import List, Optional, Sequence

import pytest

from hunkstage.git.process import ProcessResult


@pytest.fixture
def sample_diff_modified() -> str:
    """One hunk, two lines replaced."""
    return textwrap.dedent("""\
        diff --git a/main.swift b/main.swift
        index 1234567..89abcde 100644
        --- a/main.swift
        +++ b/main.swift
        @@ -1,4 +1,4 @@ func run() {
         func run() {
        -    print("Old implementation")
        -    print("Old implementation")
        +    print("Better implementation")
        +    print("Better implementation")
         }
    """)


@pytest.fixture
def sample_diff_three_hunks() -> str:
    """Three hunks in one file."""
    return textwrap.dedent("""\
        diff --git a/app.py b/app.py
        index 1111111..2222222 100644
        --- a/app.py
        +++ b/app.py
        @@ -1,3 +1,3 @@
         import os
        -import sys
        +import re
         import json
        @@ -10,3 +10,4 @@ def main():
             x = 1
        +    y = 2
             z = 3
             return x
        @@ -20,2 +21,2 @@ def helper():
        -    return None
        +    return 42
             # end
    """)


@pytest.fixture
def sample_diff_conflict() -> str:
    """Conflict markers inside a single hunk."""
    return textwrap.dedent("""\
        diff --git a/conflict.txt b/conflict.txt
        index 1111111..2222222 100644
        --- a/conflict.txt
        +++ b/conflict.txt
        @@ -1,3 +1,7 @@
         line one
        -line two
        +<<<<<<< HEAD
        +line two ours
        +=======
        +line two theirs
        +>>>>>>> feature
         line three
    """)


@pytest.fixture
def sample_diff_combined() -> str:
    """``git diff`` of an unmerged path (combined format)."""
    return textwrap.dedent("""\
        diff --cc file.txt
        index 1111111,2222222..0000000
        --- a/file.txt
        +++ b/file.txt
        @@@ -1,3 -1,3 +1,7 @@@
          line one
        ++<<<<<<< HEAD
         +ours line
        ++=======
        + theirs line
        ++>>>>>>> feature
          line three
    """)


@pytest.fixture
def sample_diff_malformed_hunk() -> str:
    """A garbage hunk header between two good hunks."""
    return textwrap.dedent("""\
        diff --git a/f.txt b/f.txt
        index 1111111..2222222 100644
        --- a/f.txt
        +++ b/f.txt
        @@ -1,2 +1,2 @@
        -a
        +b
         c
        @@ garbage @@
        +junk
        @@ -10,2 +10,3 @@
         x
        +y
         z
    """)


@pytest.fixture
def sample_diff_added() -> str:
    return textwrap.dedent("""\
        diff --git a/hello.py b/hello.py
        new file mode 100644
        index 0000000..e69de29
        --- /dev/null
        +++ b/hello.py
        @@ -0,0 +1,3 @@
        +def greet(name):
        +    return f"Hello, {name}!"
        +# done
    """)


@pytest.fixture
def sample_diff_deleted() -> str:
    return textwrap.dedent("""\
        diff --git a/gone.txt b/gone.txt
        deleted file mode 100644
        index abc1234..0000000
        --- a/gone.txt
        +++ /dev/null
        @@ -1,2 +0,0 @@
        -one
        -two
    """)


@pytest.fixture
def sample_diff_binary() -> str:
    return textwrap.dedent("""\
        diff --git a/image.png b/image.png
        new file mode 100644
        index 0000000..abc1234
        Binary files /dev/null and b/image.png differ
    """)


@pytest.fixture
def sample_diff_rename() -> str:
    return textwrap.dedent("""\
        diff --git a/old_name.py b/new_name.py
        similarity index 97%
        rename from old_name.py
        rename to new_name.py
        index abc1234..def5678 100644
        --- a/old_name.py
        +++ b/new_name.py
        @@ -1,1 +1,2 @@
         print("hi")
        +# New line added after rename
    """)


@pytest.fixture
def sample_diff_mode_only() -> str:
    return textwrap.dedent("""\
        diff --git a/my script.sh b/my script.sh
        old mode 100644
        new mode 100755
    """)


@pytest.fixture
def sample_diff_no_newline() -> str:
    return textwrap.dedent("""\
        diff --git a/data.txt b/data.txt
        index 1111111..2222222 100644
        --- a/data.txt
        +++ b/data.txt
        @@ -1 +1 @@
        -old last line
        \\ No newline at end of file
        +new last line
        \\ No newline at end of file
    """)


@pytest.fixture
def sample_show_output(sample_diff_modified: str) -> str:
    """``git show`` output: commit preamble then the diff."""
    preamble = textwrap.dedent("""\
        commit 0123456789abcdef0123456789abcdef01234567
        Author: Test <test@test.com>
        Date:   Mon Jan 1 00:00:00 2024 +0000

            Improve the implementation

    """)
    return preamble + sample_diff_modified


class FakeRunner:
    """Stand-in for GitRunner returning canned results.

    ``results`` are popped by successive ``run`` calls (an empty ProcessResult
    once exhausted). ``prompts`` are fed to the responder of ``interact``
    until it answers ``q`` or closes stdin.
    """

    def __init__(self) -> None:
        self.results: List[ProcessResult] = []
        self.prompts: List[str] = []
        self.interact_exit_code = 0
        self.calls: List[tuple] = []
        self.responses: List[Optional[str]] = []

    def run(self, args: Sequence[str], cwd: Path, stdin: Optional[str] = None, timeout=None) -> ProcessResult:
        self.calls.append(("run", list(args), stdin))
        if self.results:
            return self.results.pop(0)
        return ProcessResult("")

    def interact(self, args: Sequence[str], cwd: Path, respond, timeout=None) -> ProcessResult:
        self.calls.append(("interact", list(args), None))
        transcript = []
        for prompt in self.prompts:
            transcript.append(prompt)
            answer = respond(prompt)
            self.responses.append(answer)
            if answer is None or answer == "q":
                break
        return ProcessResult("".join(transcript), exit_code=self.interact_exit_code)


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


def git(cwd: Path, *args: str) -> subprocess.CompletedProcess:
    return subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True)


@pytest.fixture
def run_git():
    """Run git in a directory; returns the CompletedProcess."""
    return git


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository for integration tests."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    subprocess.run(["git", "init", str(tmp_path)], capture_output=True, check=True)
    subprocess.run(
        ["git", "config", "user.email", "test@test.com"],
        cwd=tmp_path, capture_output=True, check=True,
    )
    subprocess.run(
        ["git", "config", "user.name", "Test"],
        cwd=tmp_path, capture_output=True, check=True,
    )
    subprocess.run(
        ["git", "config", "commit.gpgsign", "false"],
        cwd=tmp_path, capture_output=True, check=True,
    )
    # Initial commit
    readme = tmp_path / "README.md"
    readme.write_text("# Test\n")
    subprocess.run(["git", "add", "."], cwd=tmp_path, capture_output=True, check=True)
    subprocess.run(
        ["git", "commit", "-m", "init"],
        cwd=tmp_path, capture_output=True, check=True,
    )
    return tmp_path


NOTES_LINES = [f"line {i}" for i in range(1, 21)]


@pytest.fixture
def two_hunk_repo(tmp_git_repo: Path) -> Path:
    """notes.txt committed, then edited at lines 2 and 18 (two hunks)."""
    notes = tmp_git_repo / "notes.txt"
    notes.write_text("\n".join(NOTES_LINES) + "\n")
    subprocess.run(["git", "add", "notes.txt"], cwd=tmp_git_repo, capture_output=True, check=True)
    subprocess.run(
        ["git", "commit", "-m", "notes"],
        cwd=tmp_git_repo, capture_output=True, check=True,
    )
    edited = list(NOTES_LINES)
    edited[1] = "line 2 changed"
    edited[17] = "line 18 changed"
    notes.write_text("\n".join(edited) + "\n")
    return tmp_git_repo


@pytest.fixture
def conflicted_repo(tmp_git_repo: Path) -> Path:
    """A merge stopped on a conflict in c.txt."""
    path = tmp_git_repo / "c.txt"
    path.write_text("base\n")
    git(tmp_git_repo, "add", "c.txt")
    git(tmp_git_repo, "commit", "-m", "base")
    git(tmp_git_repo, "checkout", "-b", "feature")
    path.write_text("theirs\n")
    git(tmp_git_repo, "commit", "-am", "theirs")
    git(tmp_git_repo, "checkout", "-")
    path.write_text("ours\n")
    git(tmp_git_repo, "commit", "-am", "ours")
    git(tmp_git_repo, "merge", "feature")
    return tmp_git_repo
