"""Tests for the exception hierarchies."""

import pytest

from diff_reviewer.agents.exceptions import (
    MalformedCommentError,
    PerFileReviewError,
    ResponseParseError,
    ReviewAgentError,
    VerdictGenerationError,
)
from diff_reviewer.llm.exceptions import BackendConfigError, BackendError
from diff_reviewer.orchestrator.exceptions import (
    GraphBuildError,
    NoFilesToReviewError,
    OrchestratorError,
    RunCancelledError,
)
from diff_reviewer.utils.exceptions import (
    DiffParseError,
    EmptyDiffError,
    GuidelineReadError,
    MalformedHunkHeaderError,
    ReviewInputError,
    VcsError,
)


@pytest.mark.parametrize(
    "exc_class, base",
    [
        (DiffParseError, ReviewInputError),
        (EmptyDiffError, DiffParseError),
        (MalformedHunkHeaderError, DiffParseError),
        (GuidelineReadError, ReviewInputError),
        (VcsError, ReviewInputError),
        (ResponseParseError, ReviewAgentError),
        (MalformedCommentError, ReviewAgentError),
        (VerdictGenerationError, ReviewAgentError),
        (BackendConfigError, BackendError),
        (NoFilesToReviewError, OrchestratorError),
        (RunCancelledError, OrchestratorError),
        (GraphBuildError, OrchestratorError),
    ],
)
def test_hierarchy(exc_class, base):
    """Each exception inherits from its package base."""
    exc = exc_class("message")
    assert isinstance(exc, base)
    assert isinstance(exc, Exception)
    assert str(exc) == "message"


def test_per_file_review_error_names_file():
    exc = PerFileReviewError("src/a.py", "timeout")
    assert isinstance(exc, ReviewAgentError)
    assert exc.file_path == "src/a.py"
    assert str(exc) == "review failed for src/a.py: timeout"


def test_backend_error_retryable_flag():
    assert BackendError("x").retryable is False
    assert BackendError("x", retryable=True).retryable is True


def test_package_bases_are_independent():
    """Catching one package's base never swallows another package's errors."""
    assert not issubclass(OrchestratorError, ReviewAgentError)
    assert not issubclass(ReviewAgentError, ReviewInputError)
    assert not issubclass(BackendError, ReviewAgentError)
