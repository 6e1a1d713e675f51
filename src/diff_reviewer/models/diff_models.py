"""Models for representing a parsed unified diff."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DiffLineKind(str, Enum):
    """Classification of a single line inside a hunk."""

    CONTEXT = "context"
    ADD = "add"
    DEL = "del"


class DiffLine(BaseModel):
    """A single line of a hunk with its position on each side."""

    model_config = ConfigDict(frozen=True)

    kind: DiffLineKind
    old_line: int = 0  # 0 for added lines
    new_line: int = 0  # 0 for deleted lines
    text: str  # Line content without the leading marker


class DiffHunk(BaseModel):
    """A contiguous block of a unified diff sharing one @@ header."""

    model_config = ConfigDict(frozen=True)

    header: str  # Full "@@ -a,b +c,d @@ ..." line as it appeared
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    lines: tuple[DiffLine, ...] = Field(default_factory=tuple)


class DiffFile(BaseModel):
    """All hunks of one file in the diff."""

    model_config = ConfigDict(frozen=True)

    path: str = ""  # Empty when the new side is /dev/null
    hunks: tuple[DiffHunk, ...] = Field(default_factory=tuple)

    @property
    def is_reviewable(self) -> bool:
        """True when the file has a usable path and at least one hunk."""
        return bool(self.path) and bool(self.hunks)
