"""Data models for the diff reviewer."""

from diff_reviewer.models.diff_models import DiffFile, DiffHunk, DiffLine, DiffLineKind
from diff_reviewer.models.review_models import (
    Comment,
    Decision,
    FileProgress,
    FileReviewOutcome,
    PublishSelection,
    ReviewResult,
    Severity,
    Stats,
    Verdict,
    stable_comment_id,
)
from diff_reviewer.models.run_models import (
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    ChatMessage,
    RunOptions,
)

__all__ = [
    "ChatMessage",
    "Comment",
    "DEFAULT_MAX_CONCURRENCY",
    "DEFAULT_MODEL",
    "DEFAULT_TEMPERATURE",
    "Decision",
    "DiffFile",
    "DiffHunk",
    "DiffLine",
    "DiffLineKind",
    "FileProgress",
    "FileReviewOutcome",
    "PublishSelection",
    "ReviewResult",
    "RunOptions",
    "Severity",
    "Stats",
    "Verdict",
    "stable_comment_id",
]
