"""Tests for tiggh.diff: unified diff parsing and the diff navigator."""

from tiggh.diff import DiffFile, DiffLine, DiffLineKind, DiffNavigator, parse_diff

SINGLE_FILE = (
    "diff --git a/app.py b/app.py\n"
    "index 83db48f..bf269f4 100644\n"
    "--- a/app.py\n"
    "+++ b/app.py\n"
    "@@ -1,4 +1,5 @@\n"
    " import os\n"
    "-import sys\n"
    "+import sys  # noqa\n"
    "+import json\n"
    " \n"
    " def main():\n"
)

TWO_FILES = """\
diff --git a/README.md b/README.md
index 1111111..2222222 100644
--- a/README.md
+++ b/README.md
@@ -10,2 +10,2 @@ Intro
-old line
+new line
 trailing
diff --git a/src/util.py b/src/util.py
index 3333333..4444444 100644
--- a/src/util.py
+++ b/src/util.py
@@ -5 +5,2 @@ def helper():
     return 1
+    # done
"""


class TestParseDiffBasics:
    """Tests for parse_diff() on well-formed input."""

    def test_empty_input(self):
        """Empty text parses to an empty list."""
        assert parse_diff("") == []

    def test_no_file_header(self):
        """Text without a diff --git header yields no files."""
        assert parse_diff("@@ -1 +1 @@\n+orphan\n") == []

    def test_single_file_paths(self):
        files = parse_diff(SINGLE_FILE)
        assert len(files) == 1
        assert files[0].old_path == "app.py"
        assert files[0].new_path == "app.py"

    def test_single_file_line_numbers(self):
        """Context lines carry both numbers; added/deleted carry one."""
        lines = parse_diff(SINGLE_FILE)[0].lines
        assert lines == [
            DiffLine(DiffLineKind.CONTEXT, "import os", old_number=1, new_number=1),
            DiffLine(DiffLineKind.DELETED, "import sys", old_number=2),
            DiffLine(DiffLineKind.ADDED, "import sys  # noqa", new_number=2),
            DiffLine(DiffLineKind.ADDED, "import json", new_number=3),
            DiffLine(DiffLineKind.CONTEXT, "", old_number=3, new_number=4),
            DiffLine(DiffLineKind.CONTEXT, "def main():", old_number=4, new_number=5),
        ]

    def test_two_files_in_order(self):
        files = parse_diff(TWO_FILES)
        assert [f.new_path for f in files] == ["README.md", "src/util.py"]

    def test_counters_reseeded_per_hunk(self):
        """Each hunk header reseeds the counters from its own start values."""
        files = parse_diff(TWO_FILES)
        readme, util = files
        assert readme.lines[0].old_number == 10
        assert readme.lines[1].new_number == 10
        assert readme.lines[2].old_number == 11
        assert readme.lines[2].new_number == 11
        assert util.lines[0].old_number == 5
        assert util.lines[1].new_number == 6

    def test_additions_and_deletions(self):
        readme = parse_diff(TWO_FILES)[0]
        assert readme.additions == 1
        assert readme.deletions == 1

    def test_crlf_line_endings(self):
        """Carriage returns are stripped from line content."""
        text = SINGLE_FILE.replace("\n", "\r\n")
        lines = parse_diff(text)[0].lines
        assert lines[0].text == "import os"
        assert len(lines) == 6


class TestParseDiffEdgeCases:
    """Tests for malformed and unusual diffs."""

    def test_metadata_lines_ignored(self):
        """index, mode and similarity lines never become diff lines."""
        text = (
            "diff --git a/run.sh b/run.sh\n"
            "old mode 100644\n"
            "new mode 100755\n"
            "index 1234567..89abcde\n"
            "--- a/run.sh\n"
            "+++ b/run.sh\n"
            "@@ -1 +1 @@\n"
            "-echo hi\n"
            "+echo hello\n"
        )
        lines = parse_diff(text)[0].lines
        assert [line.kind for line in lines] == [DiffLineKind.DELETED, DiffLineKind.ADDED]

    def test_no_newline_marker_ignored(self):
        text = (
            "diff --git a/a.txt b/a.txt\n"
            "--- a/a.txt\n"
            "+++ b/a.txt\n"
            "@@ -1 +1 @@\n"
            "-a\n"
            "\\ No newline at end of file\n"
            "+b\n"
            "\\ No newline at end of file\n"
        )
        lines = parse_diff(text)[0].lines
        assert [line.text for line in lines] == ["a", "b"]

    def test_binary_file_has_no_lines(self):
        text = (
            "diff --git a/logo.png b/logo.png\n"
            "index 1111111..2222222 100644\n"
            "Binary files a/logo.png and b/logo.png differ\n"
        )
        files = parse_diff(text)
        assert len(files) == 1
        assert files[0].lines == []

    def test_lines_before_first_hunk_dropped(self):
        """Stray +/- lines before any hunk header are not recorded."""
        text = (
            "diff --git a/x b/x\n"
            "+stray\n"
            "--- a/x\n"
            "+++ b/x\n"
            "@@ -1 +1 @@\n"
            "+real\n"
        )
        lines = parse_diff(text)[0].lines
        assert [line.text for line in lines] == ["real"]

    def test_new_file_keeps_header_path(self):
        text = (
            "diff --git a/new.txt b/new.txt\n"
            "new file mode 100644\n"
            "--- /dev/null\n"
            "+++ b/new.txt\n"
            "@@ -0,0 +1,2 @@\n"
            "+one\n"
            "+two\n"
        )
        new = parse_diff(text)[0]
        assert new.old_path == "new.txt"
        assert new.new_path == "new.txt"
        assert new.display_path == "new.txt"
        assert [line.new_number for line in new.lines] == [1, 2]

    def test_deleted_file_keeps_header_path(self):
        text = (
            "diff --git a/gone.txt b/gone.txt\n"
            "deleted file mode 100644\n"
            "--- a/gone.txt\n"
            "+++ /dev/null\n"
            "@@ -1 +0,0 @@\n"
            "-bye\n"
        )
        gone = parse_diff(text)[0]
        assert gone.new_path == "gone.txt"
        assert gone.display_path == "gone.txt"
        assert gone.lines[0].old_number == 1

    def test_rename_paths(self):
        text = (
            "diff --git a/old/name.py b/new/name.py\n"
            "similarity index 90%\n"
            "rename from old/name.py\n"
            "rename to new/name.py\n"
        )
        moved = parse_diff(text)[0]
        assert moved.old_path == "old/name.py"
        assert moved.new_path == "new/name.py"
        assert moved.display_path == "old/name.py → new/name.py"

    def test_content_resembling_path_marker_inside_hunk(self):
        """A deleted '-- x' line inside a hunk body is content, not a path."""
        text = (
            "diff --git a/q.sql b/q.sql\n"
            "--- a/q.sql\n"
            "+++ b/q.sql\n"
            "@@ -1,2 +1,2 @@\n"
            "--- a/comment\n"
            "+++ b/comment\n"
            " select 1;\n"
        )
        f = parse_diff(text)[0]
        assert f.old_path == "q.sql"
        assert f.new_path == "q.sql"
        assert [line.kind for line in f.lines] == [
            DiffLineKind.DELETED,
            DiffLineKind.ADDED,
            DiffLineKind.CONTEXT,
        ]
        assert f.lines[0].text == "-- a/comment"

    def test_numbers_strictly_increase(self):
        """Old numbers increase over context/deleted lines, new over context/added."""
        for f in parse_diff(SINGLE_FILE + TWO_FILES):
            olds = [l.old_number for l in f.lines if l.kind is not DiffLineKind.ADDED]
            news = [l.new_number for l in f.lines if l.kind is not DiffLineKind.DELETED]
            assert olds == sorted(set(olds))
            assert news == sorted(set(news))

    def test_deterministic(self):
        assert parse_diff(TWO_FILES) == parse_diff(TWO_FILES)


def _file(n_lines, path="f.py"):
    lines = [DiffLine(DiffLineKind.CONTEXT, str(i), i + 1, i + 1) for i in range(n_lines)]
    return DiffFile(old_path=path, new_path=path, lines=lines)


class TestDiffNavigator:
    """Tests for DiffNavigator movement."""

    def test_empty(self):
        nav = DiffNavigator()
        assert nav.current_file is None
        assert nav.visible_lines() == (0, [])
        nav.move(3)
        assert nav.cursor == 0

    def test_next_file_resets_cursor(self):
        nav = DiffNavigator([_file(10), _file(5, "g.py")], rows=4)
        nav.move(6)
        nav.next_file()
        assert nav.file_index == 1
        assert nav.cursor == 0

    def test_next_file_stops_at_last(self):
        nav = DiffNavigator([_file(1), _file(1)])
        nav.next_file()
        nav.next_file()
        assert nav.file_index == 1

    def test_previous_file_stops_at_first(self):
        nav = DiffNavigator([_file(1), _file(1)])
        nav.previous_file()
        assert nav.file_index == 0

    def test_move_clamped(self):
        nav = DiffNavigator([_file(3)])
        nav.move(10)
        assert nav.cursor == 2
        nav.move(-10)
        assert nav.cursor == 0

    def test_top_bottom(self):
        nav = DiffNavigator([_file(7)])
        nav.bottom()
        assert nav.cursor == 6
        nav.top()
        assert nav.cursor == 0

    def test_page_moves_half_screen(self):
        nav = DiffNavigator([_file(50)], rows=10)
        nav.page_down()
        assert nav.cursor == 5
        nav.page_up()
        assert nav.cursor == 0

    def test_visible_lines_follow_cursor(self):
        nav = DiffNavigator([_file(20)], rows=4)
        nav.move(10)
        start, lines = nav.visible_lines()
        assert start == 8
        assert [line.text for line in lines] == ["8", "9", "10", "11"]

    def test_load_clamps_file_index(self):
        nav = DiffNavigator([_file(1), _file(1), _file(1)])
        nav.next_file()
        nav.next_file()
        nav.load([_file(2)])
        assert nav.file_index == 0
        assert nav.cursor == 0
