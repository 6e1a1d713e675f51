"""Request message builders for the per-file review and the verdict summary."""

from diff_reviewer.models.review_models import Comment, Decision, Stats
from diff_reviewer.models.run_models import ChatMessage

REVIEWER_PERSONA = (
    "You are an expert senior software engineer tasked with reviewing code changes."
)
JSON_ONLY_INSTRUCTION = (
    "Return a single JSON object only. Do not include markdown fences or any prose "
    "before or after the JSON."
)

SEVERITY_SCALE = (
    "Severity scale: NIT (minor), SUGGESTION (improvement), "
    "ISSUE (bug/maintainability), BLOCKER (must-fix)."
)

FILE_REVIEW_SCHEMA = """{
  "comments": [
    {
      "filePath": "path",
      "startLine": 10,
      "endLine": 10,
      "severity": "BLOCKER",
      "title": "Short title",
      "body": "Detailed comment",
      "suggestion": "Optional suggestion",
      "evidence": "Optional snippet",
      "tags": ["optional", "tags"]
    }
  ]
}"""

VERDICT_SCHEMA = """{
  "verdict": {
    "decision": "GO",
    "summary": "Short summary",
    "rationale": ["..."]
  }
}"""


def build_file_review_messages(guidelines: str, diff: str) -> list[ChatMessage]:
    """Build the request that asks for comments on one file's diff."""
    system = " ".join([
        REVIEWER_PERSONA,
        "Follow the provided guidelines.",
        JSON_ONLY_INSTRUCTION,
    ])
    user = "\n".join([
        "Guidelines:",
        guidelines,
        "",
        SEVERITY_SCALE,
        "Review the diff and return comments in the schema below.",
        "Line numbers refer to the new version of the file.",
        'If there are no comments, return {"comments": []}.',
        "Schema:",
        FILE_REVIEW_SCHEMA,
        "",
        "Diff:",
        diff,
    ])
    return [
        ChatMessage(role="system", content=system),
        ChatMessage(role="user", content=user),
    ]


def format_comment_digest(comments: list[Comment]) -> str:
    lines = [
        f"- [{comment.severity.value}] {comment.file_path}:{comment.start_line} {comment.title}"
        for comment in comments
    ]
    return "\n".join(lines) if lines else "- No comments."


def build_verdict_messages(
    guidelines: str,
    comments: list[Comment],
    stats: Stats,
    rule_decision: Decision,
) -> list[ChatMessage]:
    """Build the request that asks for the overall GO / NO_GO summary."""
    system = " ".join([REVIEWER_PERSONA, JSON_ONLY_INSTRUCTION])
    user = "\n".join([
        "Guidelines:",
        guidelines,
        "",
        "Comment summary:",
        format_comment_digest(comments),
        "",
        (
            f"Stats: NIT={stats.nit}, SUGGESTION={stats.suggestion}, "
            f"ISSUE={stats.issue}, BLOCKER={stats.blocker}."
        ),
        (
            "The rule-based decision is NO_GO if any BLOCKER exists, otherwise GO. "
            f"For this change it is {rule_decision.value}."
        ),
        "Provide a verdict JSON matching this schema:",
        VERDICT_SCHEMA,
    ])
    return [
        ChatMessage(role="system", content=system),
        ChatMessage(role="user", content=user),
    ]
