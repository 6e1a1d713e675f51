"""Parsing and rendering of git unified diffs."""

import re

from diff_reviewer.models.diff_models import DiffFile, DiffHunk, DiffLine, DiffLineKind
from diff_reviewer.utils.exceptions import EmptyDiffError, MalformedHunkHeaderError

FILE_MARKER = "diff --git "
NEW_PATH_MARKER = "+++ "
NULL_PATH = "/dev/null"
NO_NEWLINE_MARKER = "\\ No newline at end of file"

_HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@.*$")

_LINE_MARKERS: dict[str, DiffLineKind] = {
    "+": DiffLineKind.ADD,
    "-": DiffLineKind.DEL,
    " ": DiffLineKind.CONTEXT,
}


class _FileBuilder:
    """Accumulates one file while the parser walks the diff."""

    def __init__(self) -> None:
        self.path = ""
        self.hunks: list[DiffHunk] = []
        self.header: str | None = None
        self.counts: tuple[int, int, int, int] = (0, 0, 0, 0)
        self.lines: list[DiffLine] = []
        self.old_line = 0
        self.new_line = 0

    @property
    def in_hunk(self) -> bool:
        return self.header is not None

    def open_hunk(self, header: str, counts: tuple[int, int, int, int]) -> None:
        self.close_hunk()
        self.header = header
        self.counts = counts
        self.lines = []
        self.old_line = counts[0]
        self.new_line = counts[2]

    def add_line(self, kind: DiffLineKind, text: str) -> None:
        if kind == DiffLineKind.ADD:
            self.lines.append(DiffLine(kind=kind, new_line=self.new_line, text=text))
            self.new_line += 1
        elif kind == DiffLineKind.DEL:
            self.lines.append(DiffLine(kind=kind, old_line=self.old_line, text=text))
            self.old_line += 1
        else:
            self.lines.append(
                DiffLine(kind=kind, old_line=self.old_line, new_line=self.new_line, text=text)
            )
            self.old_line += 1
            self.new_line += 1

    def close_hunk(self) -> None:
        if self.header is None:
            return
        old_start, old_lines, new_start, new_lines = self.counts
        self.hunks.append(DiffHunk(
            header=self.header,
            old_start=old_start,
            old_lines=old_lines,
            new_start=new_start,
            new_lines=new_lines,
            lines=tuple(self.lines),
        ))
        self.header = None
        self.lines = []

    def build(self) -> DiffFile:
        self.close_hunk()
        return DiffFile(path=self.path, hunks=tuple(self.hunks))


def parse_hunk_header(line: str) -> tuple[int, int, int, int]:
    """Parse "@@ -a[,b] +c[,d] @@" into (old_start, old_lines, new_start, new_lines).

    Omitted counts default to 1.

    Raises:
        MalformedHunkHeaderError: If the line does not have that shape.
    """
    match = _HUNK_HEADER_RE.match(line.rstrip())
    if match is None:
        raise MalformedHunkHeaderError(f"Invalid hunk header: {line!r}")
    old_start, old_lines, new_start, new_lines = match.groups()
    return (
        int(old_start),
        int(old_lines) if old_lines is not None else 1,
        int(new_start),
        int(new_lines) if new_lines is not None else 1,
    )


def parse_unified_diff(diff_text: str) -> list[DiffFile]:
    """Parse `git diff` output into files, hunks and lines.

    Lines inside a hunk that carry none of the +, - or space markers are
    skipped, as is anything that appears before the first file marker.

    Args:
        diff_text: Raw unified diff (three context lines expected).

    Returns:
        DiffFile objects in the order they appear in the diff.

    Raises:
        EmptyDiffError: If diff_text is blank.
        MalformedHunkHeaderError: If any hunk header is invalid. Nothing is
            returned for the other files in that case.
    """
    if not diff_text.strip():
        raise EmptyDiffError("diff is empty")

    files: list[DiffFile] = []
    current: _FileBuilder | None = None

    for raw_line in diff_text.split("\n"):
        line = raw_line.removesuffix("\r")
        if line.startswith(FILE_MARKER):
            if current is not None:
                files.append(current.build())
            current = _FileBuilder()
            continue

        if current is None:
            continue

        if line.startswith("@@"):
            current.open_hunk(line, parse_hunk_header(line))
            continue

        if not current.in_hunk:
            # Extended header section: only the new-side path matters
            if line.startswith(NEW_PATH_MARKER):
                path = line[len(NEW_PATH_MARKER):].strip()
                if path != NULL_PATH:
                    current.path = path.removeprefix("b/")
            continue

        if line == NO_NEWLINE_MARKER:
            continue

        kind = _LINE_MARKERS.get(line[:1])
        if kind is None:
            continue
        current.add_line(kind, line[1:])

    if current is not None:
        files.append(current.build())

    return files


def render_unified_diff_file(diff_file: DiffFile) -> str:
    """Render one parsed file back into minimal unified diff text.

    Produces a synthetic file header followed by the original hunk headers
    and their prefixed lines. No trailing newline.
    """
    path = diff_file.path
    out: list[str] = [
        f"diff --git a/{path} b/{path}",
        f"--- a/{path}",
        f"+++ b/{path}",
    ]
    prefixes = {kind: marker for marker, kind in _LINE_MARKERS.items()}
    for hunk in diff_file.hunks:
        out.append(hunk.header)
        for diff_line in hunk.lines:
            out.append(prefixes[diff_line.kind] + diff_line.text)
    return "\n".join(out)
