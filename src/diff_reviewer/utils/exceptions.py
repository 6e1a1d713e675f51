"""Exceptions for review inputs: diff text, guideline files and git."""


class ReviewInputError(Exception):
    """Base exception for problems with the material handed to a review."""


class DiffParseError(ReviewInputError):
    """Base exception for unified diff parsing failures."""


class EmptyDiffError(DiffParseError):
    """Raised when the diff text is empty or whitespace only."""


class MalformedHunkHeaderError(DiffParseError):
    """Raised when an @@ hunk header cannot be parsed."""


class GuidelineReadError(ReviewInputError):
    """Raised when a guideline file cannot be read."""


class VcsError(ReviewInputError):
    """Raised when a git invocation fails or times out."""
