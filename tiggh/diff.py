"""Unified diff parser and a cursor model for browsing the parsed result.

``parse_diff`` turns the text returned by ``git diff`` (or the GitHub diff
media type) into an ordered list of ``DiffFile`` records. The parser never
fails: lines it does not recognise are dropped, so a partially malformed diff
still renders whatever could be understood.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from .viewport import visible_range

_FILE_HEADER_RE = re.compile(r"^diff --git a/(.+) b/(.+)$")
_OLD_PATH_RE = re.compile(r"^--- (?:a/(.+)|(/dev/null))$")
_NEW_PATH_RE = re.compile(r"^\+\+\+ (?:b/(.+)|(/dev/null))$")
_HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


class DiffLineKind(Enum):
    CONTEXT = "context"
    ADDED = "added"
    DELETED = "deleted"


@dataclass(frozen=True)
class DiffLine:
    """One line of a hunk.

    ``old_number`` is None for added lines and ``new_number`` is None for
    deleted lines; context lines carry both.
    """
    kind: DiffLineKind
    text: str
    old_number: int | None = None
    new_number: int | None = None


@dataclass
class DiffFile:
    old_path: str
    new_path: str
    lines: list[DiffLine] = field(default_factory=list)

    @property
    def display_path(self) -> str:
        if self.old_path and self.old_path != self.new_path:
            return f"{self.old_path} → {self.new_path}"
        return self.new_path

    @property
    def additions(self) -> int:
        return sum(1 for line in self.lines if line.kind is DiffLineKind.ADDED)

    @property
    def deletions(self) -> int:
        return sum(1 for line in self.lines if line.kind is DiffLineKind.DELETED)


def parse_diff(text: str) -> list[DiffFile]:
    """Parse unified diff text into a list of files.

    Counters are seeded by each ``@@ -a,n +b,m @@`` header. Content lines seen
    before the first hunk header of a file are ignored. Inside a hunk whose
    declared line counts are not yet used up, lines starting with ``---`` or
    ``+++`` are content, not path markers.
    """
    if not text:
        return []

    files: list[DiffFile] = []
    current: DiffFile | None = None
    in_hunk = False
    old_num = new_num = 0
    old_left = new_left = 0

    for raw in text.split("\n"):
        line = raw.rstrip("\r")

        m = _FILE_HEADER_RE.match(line)
        if m:
            if current is not None:
                files.append(current)
            current = DiffFile(old_path=m.group(1), new_path=m.group(2))
            in_hunk = False
            old_left = new_left = 0
            continue

        if current is None:
            continue

        hunk_body = in_hunk and (old_left > 0 or new_left > 0)

        if not hunk_body:
            # /dev/null marks a created or deleted file; the header path stays
            m = _OLD_PATH_RE.match(line)
            if m:
                if m.group(1):
                    current.old_path = m.group(1)
                continue
            m = _NEW_PATH_RE.match(line)
            if m:
                if m.group(1):
                    current.new_path = m.group(1)
                continue

        m = _HUNK_HEADER_RE.match(line)
        if m:
            old_num = int(m.group(1))
            new_num = int(m.group(3))
            old_left = int(m.group(2)) if m.group(2) is not None else 1
            new_left = int(m.group(4)) if m.group(4) is not None else 1
            in_hunk = True
            continue

        if not in_hunk or not line:
            continue

        marker, content = line[0], line[1:]
        if marker == "+":
            current.lines.append(DiffLine(DiffLineKind.ADDED, content, new_number=new_num))
            new_num += 1
            new_left -= 1
        elif marker == "-":
            current.lines.append(DiffLine(DiffLineKind.DELETED, content, old_number=old_num))
            old_num += 1
            old_left -= 1
        elif marker == " ":
            current.lines.append(
                DiffLine(DiffLineKind.CONTEXT, content, old_number=old_num, new_number=new_num)
            )
            old_num += 1
            new_num += 1
            old_left -= 1
            new_left -= 1
        # anything else ("\ No newline at end of file", stray metadata) is dropped

    if current is not None:
        files.append(current)
    return files


class DiffNavigator:
    """File index plus line cursor over a parsed diff."""

    def __init__(self, files: list[DiffFile] | None = None, rows: int = 20) -> None:
        self.files = files or []
        self.file_index = 0
        self.cursor = 0
        self.rows = rows

    @property
    def current_file(self) -> DiffFile | None:
        if 0 <= self.file_index < len(self.files):
            return self.files[self.file_index]
        return None

    @property
    def line_count(self) -> int:
        current = self.current_file
        return len(current.lines) if current else 0

    def load(self, files: list[DiffFile]) -> None:
        """Replace the diff, keeping the file index in range and the cursor at the top."""
        self.files = files
        if not files:
            self.file_index = 0
        elif self.file_index >= len(files):
            self.file_index = len(files) - 1
        self.cursor = 0

    def next_file(self) -> None:
        if self.file_index < len(self.files) - 1:
            self.file_index += 1
            self.cursor = 0

    def previous_file(self) -> None:
        if self.file_index > 0:
            self.file_index -= 1
            self.cursor = 0

    def move(self, delta: int) -> None:
        last = max(self.line_count - 1, 0)
        self.cursor = min(max(self.cursor + delta, 0), last)

    def top(self) -> None:
        self.cursor = 0

    def bottom(self) -> None:
        self.cursor = max(self.line_count - 1, 0)

    def page_down(self) -> None:
        self.move(max(self.rows // 2, 1))

    def page_up(self) -> None:
        self.move(-max(self.rows // 2, 1))

    def visible_lines(self) -> tuple[int, list[DiffLine]]:
        """Return (start index, lines) for the rows currently on screen."""
        current = self.current_file
        if current is None:
            return 0, []
        start, end = visible_range(len(current.lines), self.cursor, self.rows)
        return start, current.lines[start:end]
