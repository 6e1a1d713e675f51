"""Agent components for the diff reviewer."""

from diff_reviewer.agents.exceptions import (
    MalformedCommentError,
    PerFileReviewError,
    ResponseParseError,
    ReviewAgentError,
    VerdictGenerationError,
)
from diff_reviewer.agents.file_reviewer import FileReviewer
from diff_reviewer.agents.prompts import build_file_review_messages, build_verdict_messages
from diff_reviewer.agents.response_parser import (
    parse_file_comments,
    parse_verdict,
    strip_code_fence,
)
from diff_reviewer.agents.verdict_composer import (
    VerdictComposer,
    fallback_verdict,
    reconcile_decision,
    rule_decision,
)

__all__ = [
    "FileReviewer",
    "MalformedCommentError",
    "PerFileReviewError",
    "ResponseParseError",
    "ReviewAgentError",
    "VerdictComposer",
    "VerdictGenerationError",
    "build_file_review_messages",
    "build_verdict_messages",
    "fallback_verdict",
    "parse_file_comments",
    "parse_verdict",
    "reconcile_decision",
    "rule_decision",
    "strip_code_fence",
]
