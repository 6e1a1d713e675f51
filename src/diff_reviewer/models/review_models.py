"""Review models: comments, severity statistics, verdicts and run results."""

import hashlib
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    NIT = "NIT"
    SUGGESTION = "SUGGESTION"
    ISSUE = "ISSUE"
    BLOCKER = "BLOCKER"

    @classmethod
    def normalize(cls, value: str | None) -> "Severity":
        """Map a free-form wire value onto the scale. Unknown values become NIT."""
        cleaned = (value or "").strip().upper()
        try:
            return cls(cleaned)
        except ValueError:
            return cls.NIT


class Decision(str, Enum):
    GO = "GO"
    NO_GO = "NO_GO"

    @classmethod
    def normalize(cls, value: str | None) -> "Decision":
        cleaned = (value or "").strip().upper()
        if cleaned in {"NO_GO", "NO-GO", "NOGO"}:
            return cls.NO_GO
        return cls.GO


def stable_comment_id(
    file_path: str,
    start_line: int,
    end_line: int,
    severity: Severity,
    title: str,
    body: str,
) -> str:
    """Content hash over the dedup identity of a comment.

    Text parts are trimmed so whitespace-only differences collapse.
    """
    parts = [
        file_path.strip(),
        str(start_line),
        str(end_line),
        Severity(severity).value,
        title.strip(),
        body.strip(),
    ]
    hasher = hashlib.sha256()
    for part in parts:
        hasher.update(part.encode("utf-8"))
        hasher.update(b"\x00")
    return hasher.hexdigest()


class Comment(BaseModel):
    """A single review comment anchored to a line range of one file."""

    model_config = ConfigDict(frozen=True)

    id: str  # stable_comment_id() of the identity fields
    file_path: str
    start_line: int
    end_line: int
    severity: Severity
    title: str
    body: str
    suggestion: str | None = None
    evidence: str | None = None
    tags: frozenset[str] = Field(default_factory=frozenset)
    publish: bool = True  # Presentation-owned; see PublishSelection

    @classmethod
    def create(
        cls,
        *,
        file_path: str,
        start_line: int,
        end_line: int,
        severity: Severity,
        title: str,
        body: str,
        suggestion: str | None = None,
        evidence: str | None = None,
        tags: frozenset[str] | set[str] | None = None,
    ) -> "Comment":
        """Build a comment with its id derived from the identity fields."""
        return cls(
            id=stable_comment_id(file_path, start_line, end_line, severity, title, body),
            file_path=file_path,
            start_line=start_line,
            end_line=end_line,
            severity=severity,
            title=title,
            body=body,
            suggestion=suggestion,
            evidence=evidence,
            tags=frozenset(tags or ()),
        )


class Stats(BaseModel):
    model_config = ConfigDict(frozen=True)

    nit: int = 0
    suggestion: int = 0
    issue: int = 0
    blocker: int = 0

    @classmethod
    def from_comments(cls, comments: list[Comment]) -> "Stats":
        counts = {severity: 0 for severity in Severity}
        for comment in comments:
            counts[comment.severity] += 1
        return cls(
            nit=counts[Severity.NIT],
            suggestion=counts[Severity.SUGGESTION],
            issue=counts[Severity.ISSUE],
            blocker=counts[Severity.BLOCKER],
        )

    @property
    def total(self) -> int:
        return self.nit + self.suggestion + self.issue + self.blocker


class Verdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    decision: Decision
    summary: str
    rationale: list[str] = Field(default_factory=list)
    stats: Stats = Field(default_factory=Stats)


class FileProgress(BaseModel):
    """Progress notification emitted after each file resolves."""

    model_config = ConfigDict(frozen=True)

    completed: int
    total: int
    failed: int = 0
    file: str = ""
    last_error: str | None = None


class FileReviewOutcome(BaseModel):
    """What one worker hands back to the coordinator for one file."""

    model_config = ConfigDict(frozen=True)

    index: int  # Position of the file in the input sequence
    file_path: str
    comments: list[Comment] = Field(default_factory=list)
    dropped: int = 0  # Schema-invalid comment entries discarded
    error: str | None = None  # Set when the backend call or decoding failed

    @property
    def failed(self) -> bool:
        return self.error is not None


class ReviewResult(BaseModel):
    """Final output of one review run."""

    model_config = ConfigDict(frozen=True)

    comments: list[Comment] = Field(default_factory=list)
    verdict: Verdict
    model: str
    guideline_hash: str = ""
    dropped_count: int = 0
    file_errors: dict[str, str] = Field(default_factory=dict)
    generated_at: datetime = Field(default_factory=datetime.now)


class PublishSelection:
    """Tracks which comments the presentation layer chose not to publish.

    Kept outside ReviewResult so the core records stay immutable.
    """

    def __init__(self, excluded: set[str] | None = None) -> None:
        self._excluded: set[str] = set(excluded or ())

    def is_published(self, comment: Comment) -> bool:
        return comment.publish and comment.id not in self._excluded

    def toggle(self, comment_id: str) -> bool:
        """Flip publication for one comment id. Returns the new state."""
        if comment_id in self._excluded:
            self._excluded.discard(comment_id)
            return True
        self._excluded.add(comment_id)
        return False

    def published(self, result: ReviewResult) -> list[Comment]:
        return [comment for comment in result.comments if self.is_published(comment)]

    @property
    def excluded(self) -> frozenset[str]:
        return frozenset(self._excluded)
