"""Tests for the JSON and terminal renderers."""

import json

from hunkstage.diff.parser import parse_diff
from hunkstage.git.status import parse_porcelain
from hunkstage.output import json_report, terminal


class TestJsonReport:
    def test_diff(self, sample_diff_three_hunks, sample_diff_binary):
        data = json.loads(json_report.render(parse_diff(sample_diff_three_hunks + sample_diff_binary)))
        assert data["version"] == "1.0"
        app, image = data["files"]
        assert app["path"] == "app.py"
        assert app["added"] == 3
        assert [c["index"] for c in app["chunks"]] == [1, 2, 3]
        assert app["chunks"][1]["new_start"] == 10
        assert image["binary"] is True
        assert image["chunks"] == []

    def test_line_entries(self, sample_diff_modified):
        data = json_report.diff_to_dict(parse_diff(sample_diff_modified))
        lines = data["files"][0]["chunks"][0]["lines"]
        assert lines[0] == {"kind": "header", "raw": "@@ -1,4 +1,4 @@ func run() {"}
        assert lines[1]["line"] == 1
        assert "line" not in lines[2]

    def test_conflict_flag(self, sample_diff_conflict):
        data = json_report.diff_to_dict(parse_diff(sample_diff_conflict))
        assert data["files"][0]["chunks"][0]["has_conflict"] is True

    def test_warnings(self, sample_diff_malformed_hunk):
        data = json_report.diff_to_dict(parse_diff(sample_diff_malformed_hunk))
        assert len(data["warnings"]) == 1
        assert data["files"][0]["warnings"] == data["warnings"]

    def test_status(self):
        data = json.loads(json_report.render_status(parse_porcelain("R  a.py -> b.py\n?? c.py\n")))
        assert data["entries"][0] == {
            "path": "b.py", "code": "R ", "status": "renamed", "original_path": "a.py",
        }
        assert data["untracked"] == ["c.py"]
        assert data["conflicted"] == []


class TestTerminal:
    def test_renders_numbered_hunks(self, sample_diff_three_hunks, capsys):
        terminal.render(parse_diff(sample_diff_three_hunks))
        out = capsys.readouterr().out
        assert "app.py" in out
        assert "[1]" in out and "[3]" in out
        assert "+    y = 2" in out

    def test_empty_diff(self, capsys):
        terminal.render(parse_diff(""))
        assert "No changes." in capsys.readouterr().out

    def test_status_table(self, capsys):
        terminal.render_status(parse_porcelain("UU c.txt\n?? n.txt\n"))
        out = capsys.readouterr().out
        assert "c.txt" in out
        assert "1 untracked file" in out

    def test_markup_like_text_printed_literally(self, capsys):
        raw = (
            "diff --git a/[/x].txt b/[/x].txt\n"
            "--- a/[/x].txt\n"
            "+++ b/[/x].txt\n"
            "@@ [/bold] @@\n"
            "-a\n"
        )
        terminal.render(parse_diff(raw))
        out, err = capsys.readouterr()
        assert "[/x].txt" in out
        assert "@@ [/bold] @@" in err

    def test_markup_like_path_in_status(self, capsys):
        terminal.render_status(parse_porcelain(" M [/x].txt\n"))
        assert "[/x].txt" in capsys.readouterr().out

    def test_clean_status(self, capsys):
        terminal.render_status(parse_porcelain(""))
        assert "Working tree clean." in capsys.readouterr().out
