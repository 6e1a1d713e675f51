"""Exceptions for review agent operations."""


class ReviewAgentError(Exception):
    """Base exception for all review agent operations."""


class PerFileReviewError(ReviewAgentError):
    """Raised when reviewing a single file fails (backend or decoding).

    Recorded against the file; never aborts the run.
    """

    def __init__(self, file_path: str, message: str) -> None:
        super().__init__(f"review failed for {file_path}: {message}")
        self.file_path = file_path


class ResponseParseError(ReviewAgentError):
    """Raised when a backend response is not the expected JSON object."""


class MalformedCommentError(ReviewAgentError):
    """Raised for a single comment entry that violates the wire schema.

    Caught by the response parser and counted as dropped.
    """


class VerdictGenerationError(ReviewAgentError):
    """Raised when the summary verdict call fails or cannot be decoded."""
