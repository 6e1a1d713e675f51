"""Decoding and validation of backend JSON responses."""

import json
import logging
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from diff_reviewer.agents.exceptions import MalformedCommentError, ResponseParseError
from diff_reviewer.models.review_models import Comment, Decision, Severity

logger = logging.getLogger(__name__)

FENCE = "```"


class CommentPayload(BaseModel):
    """One entry of the per-file `comments` array as sent by the backend."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    file_path: str = Field(alias="filePath")
    start_line: int = Field(alias="startLine")
    end_line: int = Field(alias="endLine")
    severity: str | None = None
    title: str
    body: str
    suggestion: str | None = None
    evidence: str | None = None
    tags: list[str] | None = None

    @field_validator("file_path", "title", "body")
    @classmethod
    def _required_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("suggestion", "evidence")
    @classmethod
    def _optional_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @model_validator(mode="after")
    def _line_range(self) -> "CommentPayload":
        if self.start_line <= 0 or self.end_line <= 0:
            raise ValueError("line numbers must be positive")
        if self.end_line < self.start_line:
            raise ValueError("endLine must not precede startLine")
        return self


class VerdictBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    decision: str | None = None
    summary: str | None = None
    rationale: list[str] | None = None


class VerdictPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    verdict: VerdictBody


def _is_fence_tag(line: str) -> bool:
    tag = line.strip()
    return not tag or not tag.startswith(("{", "["))


def strip_code_fence(content: str) -> str:
    """Remove a surrounding ``` fence (with optional language tag) if present."""
    trimmed = content.strip()
    if trimmed.startswith(FENCE):
        trimmed = trimmed[len(FENCE):]
        newline = trimmed.find("\n")
        # The opening line holds nothing or a language tag, never payload.
        if newline != -1 and _is_fence_tag(trimmed[:newline]):
            trimmed = trimmed[newline + 1:]
        end = trimmed.rfind(FENCE)
        if end != -1:
            trimmed = trimmed[:end]
    return trimmed.strip()


def decode_json_object(content: str) -> dict[str, Any]:
    """Strip fences and decode a JSON object.

    Raises:
        ResponseParseError: If the payload is not valid JSON or not an object.
    """
    payload = strip_code_fence(content)
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ResponseParseError(f"expected a JSON object, got {type(data).__name__}")
    return data


def to_comment(item: Any) -> Comment:
    """Validate one raw comment entry and build a Comment.

    Raises:
        MalformedCommentError: If the entry violates the wire schema.
    """
    try:
        payload = CommentPayload.model_validate(item)
    except ValidationError as e:
        raise MalformedCommentError(str(e)) from e
    return Comment.create(
        file_path=payload.file_path,
        start_line=payload.start_line,
        end_line=payload.end_line,
        severity=Severity.normalize(payload.severity),
        title=payload.title,
        body=payload.body,
        suggestion=payload.suggestion,
        evidence=payload.evidence,
        tags={tag.strip() for tag in payload.tags or [] if tag.strip()},
    )


def parse_file_comments(content: str) -> tuple[list[Comment], int]:
    """Parse a per-file response into comments plus the count of dropped entries.

    Valid entries keep the order the backend returned them in.

    Raises:
        ResponseParseError: If the response as a whole cannot be decoded.
    """
    data = decode_json_object(content)
    raw_comments = data.get("comments")
    if raw_comments is None:
        raw_comments = []
    if not isinstance(raw_comments, list):
        raise ResponseParseError("'comments' must be a JSON array")

    comments: list[Comment] = []
    dropped = 0
    for item in raw_comments:
        try:
            comments.append(to_comment(item))
        except MalformedCommentError as e:
            dropped += 1
            logger.debug("Dropping malformed comment entry: %s", e)
    return comments, dropped


def parse_verdict(content: str) -> tuple[Decision, str, list[str]]:
    """Parse the summary response into (decision, summary, rationale).

    Raises:
        ResponseParseError: If the response is not a verdict object.
    """
    data = decode_json_object(content)
    try:
        payload = VerdictPayload.model_validate(data)
    except ValidationError as e:
        raise ResponseParseError(f"verdict does not match schema: {e}") from e
    body = payload.verdict
    rationale = [item.strip() for item in body.rationale or [] if item.strip()]
    return Decision.normalize(body.decision), (body.summary or "").strip(), rationale
