"""Tests for the file-diff and multi-file parsers."""

import pytest

from hunkstage.conflicts.spans import conflict_spans, is_well_formed
from hunkstage.diff.errors import ParseError, ParseErrorKind
from hunkstage.diff.models import FileStatus, LineKind, LineStats
from hunkstage.diff.parser import header_paths, parse_diff, parse_file_diff, parse_patch, unquote_path


def _reserialize(fd) -> str:
    lines = [fd.header, *fd.extended_header_lines, *fd.from_file_to_file_lines]
    lines += [line.raw for chunk in fd.chunks for line in chunk.lines]
    return "\n".join(lines) + "\n"


ROUND_TRIP_FIXTURES = [
    "sample_diff_modified",
    "sample_diff_three_hunks",
    "sample_diff_conflict",
    "sample_diff_combined",
    "sample_diff_added",
    "sample_diff_deleted",
    "sample_diff_binary",
    "sample_diff_rename",
    "sample_diff_mode_only",
    "sample_diff_no_newline",
]


class TestProperties:
    @pytest.mark.parametrize("fixture", ROUND_TRIP_FIXTURES)
    def test_round_trip(self, fixture, request):
        raw = request.getfixturevalue(fixture)
        assert _reserialize(parse_file_diff(raw)) == raw

    @pytest.mark.parametrize("fixture", [
        "sample_diff_modified",
        "sample_diff_three_hunks",
        "sample_diff_added",
        "sample_diff_deleted",
        "sample_diff_rename",
        "sample_diff_no_newline",
    ])
    def test_line_count_matches_header(self, fixture, request):
        fd = parse_file_diff(request.getfixturevalue(fixture))
        for chunk in fd.chunks:
            numbered = [
                line for line in chunk.lines
                if line.kind in (LineKind.ADDED, LineKind.UNCHANGED, LineKind.CONFLICT_OURS)
                and line.to_file_line_number is not None
            ]
            assert len(numbered) == chunk.new_count

    @pytest.mark.parametrize("fixture", ["sample_diff_conflict", "sample_diff_combined"])
    def test_conflict_markers_take_unnumbered_rows(self, fixture, request):
        chunk = parse_file_diff(request.getfixturevalue(fixture)).chunks[0]
        numbered = [line for line in chunk.lines if line.to_file_line_number is not None]
        markers = [line for line in chunk.lines if line.kind.is_marker]
        assert len(markers) == 3
        assert len(numbered) + len(markers) == chunk.new_count
        assert [line.to_file_line_number for line in numbered] == [1, 3, 5, 7]

    def test_stable_ids(self, sample_diff_three_hunks):
        first = [c.id for c in parse_file_diff(sample_diff_three_hunks).chunks]
        second = [c.id for c in parse_file_diff(sample_diff_three_hunks).chunks]
        assert first == second
        assert len(set(first)) == 3

    def test_first_line_is_header(self, sample_diff_three_hunks):
        for chunk in parse_file_diff(sample_diff_three_hunks).chunks:
            assert chunk.lines[0].kind == LineKind.HEADER
            assert chunk.lines[0].raw == chunk.header


class TestScenarios:
    def test_modified_single_hunk(self, sample_diff_modified):
        fd = parse_file_diff(sample_diff_modified)
        assert len(fd.chunks) == 1
        assert fd.line_stats == LineStats(added=2, removed=2)
        assert fd.status == FileStatus.MODIFIED
        assert fd.from_file_path == fd.to_file_path == "main.swift"

    def test_conflict_span(self, sample_diff_conflict):
        fd = parse_file_diff(sample_diff_conflict)
        chunk = fd.chunks[0]
        assert chunk.has_conflict is True
        assert fd.has_conflict is True
        assert is_well_formed([line.kind for line in chunk.lines])
        spans = conflict_spans(chunk)
        assert len(spans) == 1
        span = spans[0]
        assert [line.content for line in span.ours] == ["line two ours"]
        assert [line.content for line in span.theirs] == ["line two theirs"]
        assert span.ours_label == "HEAD"
        assert span.theirs_label == "feature"
        assert fd.warnings == ()

    def test_conflict_line_stats(self, sample_diff_conflict):
        assert parse_file_diff(sample_diff_conflict).line_stats == LineStats(added=5, removed=1)

    def test_combined_line_stats(self, sample_diff_combined):
        assert parse_file_diff(sample_diff_combined).line_stats == LineStats(added=5, removed=0)

    def test_malformed_hunk_keeps_siblings(self, sample_diff_malformed_hunk):
        fd = parse_file_diff(sample_diff_malformed_hunk)
        assert [c.new_start for c in fd.chunks] == [1, 10]
        assert len(fd.warnings) == 1
        assert "skipped hunk 2" in fd.warnings[0]


class TestStatusAndPaths:
    def test_added(self, sample_diff_added):
        fd = parse_file_diff(sample_diff_added)
        assert fd.status == FileStatus.ADDED
        assert fd.from_file_path == ""
        assert fd.to_file_path == "hello.py"
        assert fd.path == "hello.py"
        assert [line.to_file_line_number for line in fd.chunks[0].lines[1:]] == [1, 2, 3]

    def test_deleted(self, sample_diff_deleted):
        fd = parse_file_diff(sample_diff_deleted)
        assert fd.status == FileStatus.REMOVED
        assert fd.from_file_path == "gone.txt"
        assert fd.to_file_path == ""
        assert fd.line_stats == LineStats(added=0, removed=2)

    def test_rename(self, sample_diff_rename):
        fd = parse_file_diff(sample_diff_rename)
        assert fd.status == FileStatus.RENAMED
        assert fd.from_file_path == "old_name.py"
        assert fd.to_file_path == "new_name.py"
        assert fd.file_path_display == "old_name.py => new_name.py"
        assert fd.display_file_name == "new_name.py"

    def test_pure_rename_without_hunks(self):
        fd = parse_file_diff(
            "diff --git a/old.py b/new.py\n"
            "similarity index 100%\n"
            "rename from old.py\n"
            "rename to new.py\n"
        )
        assert fd.status == FileStatus.RENAMED
        assert fd.chunks == ()
        assert fd.path == "old.py"

    def test_copy(self):
        fd = parse_file_diff(
            "diff --git a/a.py b/b.py\n"
            "similarity index 100%\n"
            "copy from a.py\n"
            "copy to b.py\n"
        )
        assert fd.status == FileStatus.COPIED
        assert (fd.from_file_path, fd.to_file_path) == ("a.py", "b.py")

    def test_binary(self, sample_diff_binary):
        fd = parse_file_diff(sample_diff_binary)
        assert fd.is_binary is True
        assert fd.chunks == ()
        assert fd.status == FileStatus.ADDED
        assert fd.to_file_path == "image.png"

    def test_mode_only_with_spaces(self, sample_diff_mode_only):
        fd = parse_file_diff(sample_diff_mode_only)
        assert fd.status == FileStatus.MODIFIED
        assert fd.path == "my script.sh"
        assert fd.chunks == ()

    def test_dev_null_fallback_without_mode_line(self):
        fd = parse_file_diff(
            "diff --git a/n.txt b/n.txt\n"
            "--- /dev/null\n"
            "+++ b/n.txt\n"
            "@@ -0,0 +1 @@\n"
            "+x\n"
        )
        assert fd.status == FileStatus.ADDED
        assert fd.from_file_path == ""

    def test_no_newline_marker(self, sample_diff_no_newline):
        chunk = parse_file_diff(sample_diff_no_newline).chunks[0]
        assert chunk.added_count == 1
        assert chunk.removed_count == 1
        markers = [line for line in chunk.lines if line.raw.startswith("\\")]
        assert all(line.kind == LineKind.UNCHANGED for line in markers)
        assert all(line.to_file_line_number is None for line in markers)

    def test_combined_diff_is_conflict(self, sample_diff_combined):
        fd = parse_file_diff(sample_diff_combined)
        assert fd.status == FileStatus.CONFLICT
        assert fd.path == "file.txt"
        chunk = fd.chunks[0]
        assert chunk.has_conflict is True
        assert [line.content for line in conflict_spans(chunk)[0].ours] == ["ours line"]
        assert chunk.lines[-1].to_file_line_number == 7


class TestQuotedPaths:
    def test_unquote_octal_utf8(self):
        assert unquote_path(r'"sp\303\251cial.txt"') == "spécial.txt"

    def test_unquote_simple_escapes(self):
        assert unquote_path(r'"tab\there"') == "tab\there"
        assert unquote_path("plain.txt") == "plain.txt"

    def test_quoted_header(self):
        raw = (
            r'diff --git "a/sp\303\251cial.txt" "b/sp\303\251cial.txt"' "\n"
            "index 1111111..2222222 100644\n"
            r'--- "a/sp\303\251cial.txt"' "\n"
            r'+++ "b/sp\303\251cial.txt"' "\n"
            "@@ -1 +1 @@\n"
            "-a\n"
            "+b\n"
        )
        fd = parse_file_diff(raw)
        assert fd.from_file_path == "spécial.txt"
        assert fd.to_file_path == "spécial.txt"

    def test_header_paths_with_spaces(self):
        assert header_paths("diff --git a/my file.txt b/my file.txt") == ("my file.txt", "my file.txt")


class TestErrors:
    def test_missing_header(self):
        with pytest.raises(ParseError) as exc_info:
            parse_file_diff("--- a/x\n+++ b/x\n@@ -1 +1 @@\n-a\n+b\n")
        assert exc_info.value.kind == ParseErrorKind.MISSING_HEADER

    def test_missing_plus_line(self):
        with pytest.raises(ParseError) as exc_info:
            parse_file_diff("diff --git a/x b/x\n--- a/x\n@@ -1 +1 @@\n")
        assert exc_info.value.kind == ParseErrorKind.MISSING_FILE_HEADER


class TestMultiFile:
    def test_files_in_order(self, sample_diff_modified, sample_diff_three_hunks, sample_diff_added):
        diff = parse_diff(sample_diff_modified + sample_diff_three_hunks + sample_diff_added)
        assert [fd.path for fd in diff] == ["main.swift", "app.py", "hello.py"]
        assert len(diff) == 3
        assert diff.find("app.py").line_stats == LineStats(added=3, removed=2)
        assert diff.find("missing.py") is None

    def test_bad_file_skipped(self, sample_diff_modified):
        broken = "diff --git a/x b/x\n--- a/x\n"
        diff = parse_diff(broken + sample_diff_modified)
        assert [fd.path for fd in diff] == ["main.swift"]
        assert any("skipped file" in w for w in diff.warnings)

    def test_show_preamble(self, sample_show_output):
        diff = parse_diff(sample_show_output)
        assert len(diff) == 1
        assert diff.preamble.startswith("commit 0123456")
        assert "Improve the implementation" in diff.preamble

    def test_empty(self):
        diff = parse_diff("")
        assert len(diff) == 0
        assert diff.warnings == ()

    def test_stage_strings(self, sample_diff_three_hunks, sample_diff_binary):
        diff = parse_diff(sample_diff_three_hunks + sample_diff_binary)
        assert diff.stage_strings() == ["y", "y", "y", "y"]
        assert diff.unstage_strings() == ["y", "y", "y", "y"]


class TestParsePatch:
    def test_provider_patch(self):
        fd = parse_patch("@@ -1,2 +1,2 @@\n-a\n+b\n c", "src/x.py")
        assert fd.path == "src/x.py"
        assert fd.status == FileStatus.MODIFIED
        assert len(fd.chunks) == 1
        assert fd.header == "diff --git a/src/x.py b/src/x.py"

    def test_renamed_patch(self):
        fd = parse_patch("@@ -1 +1 @@\n-a\n+b", "new.py", previous_path="old.py", status=FileStatus.RENAMED)
        assert fd.from_file_path == "old.py"
        assert fd.to_file_path == "new.py"

    def test_added_patch(self):
        fd = parse_patch("@@ -0,0 +1 @@\n+a", "new.py", status=FileStatus.ADDED)
        assert fd.from_file_path == ""
        assert fd.to_file_path == "new.py"

    def test_empty_patch(self):
        fd = parse_patch("", "big.bin")
        assert fd.chunks == ()
