"""File reviewer agent: one backend call per changed file."""

import logging

from diff_reviewer.agents.exceptions import PerFileReviewError, ResponseParseError
from diff_reviewer.agents.prompts import build_file_review_messages
from diff_reviewer.agents.response_parser import parse_file_comments
from diff_reviewer.llm.client import ChatClient
from diff_reviewer.llm.exceptions import BackendError
from diff_reviewer.models.diff_models import DiffFile
from diff_reviewer.models.review_models import Comment, FileReviewOutcome
from diff_reviewer.models.run_models import DEFAULT_TEMPERATURE
from diff_reviewer.utils.diff_parser import render_unified_diff_file

logger = logging.getLogger(__name__)


class FileReviewer:
    """Reviews a single DiffFile and reports the outcome without raising."""

    def __init__(
        self,
        client: ChatClient,
        model: str,
        guidelines: str,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> None:
        self.client = client
        self.model = model
        self.guidelines = guidelines
        self.temperature = temperature

    def review(self, index: int, diff_file: DiffFile) -> FileReviewOutcome:
        """Render, prompt, call the backend and parse the comments for one file.

        Files without a usable path or without hunks resolve immediately with
        no comments and no backend call. Failures are captured in
        FileReviewOutcome.error so one file never stops the others.
        """
        if not diff_file.is_reviewable:
            logger.debug("Skipping file %r: nothing to review", diff_file.path)
            return FileReviewOutcome(index=index, file_path=diff_file.path)

        try:
            comments, dropped = self._review(diff_file)
        except PerFileReviewError as e:
            logger.warning("%s", e)
            return FileReviewOutcome(index=index, file_path=diff_file.path, error=str(e))

        if dropped:
            logger.info("Dropped %d malformed comments for %s", dropped, diff_file.path)
        return FileReviewOutcome(
            index=index,
            file_path=diff_file.path,
            comments=comments,
            dropped=dropped,
        )

    def _review(self, diff_file: DiffFile) -> tuple[list[Comment], int]:
        diff_text = render_unified_diff_file(diff_file)
        messages = build_file_review_messages(self.guidelines, diff_text)
        try:
            content = self.client.complete(self.model, messages, self.temperature)
        except BackendError as e:
            raise PerFileReviewError(diff_file.path, str(e)) from e
        except Exception as e:
            # Third-party client implementations may raise anything
            raise PerFileReviewError(diff_file.path, f"{type(e).__name__}: {e}") from e

        try:
            return parse_file_comments(content)
        except ResponseParseError as e:
            raise PerFileReviewError(diff_file.path, str(e)) from e
