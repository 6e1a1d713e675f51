"""Exceptions for orchestrator operations."""


class OrchestratorError(Exception):
    """Base exception for all orchestrator operations."""


class NoFilesToReviewError(OrchestratorError):
    """Raised before dispatch when the run has zero files."""


class RunCancelledError(OrchestratorError):
    """Raised when a run is cancelled before every file resolved.

    No ReviewResult exists for a cancelled run.
    """


class GraphBuildError(OrchestratorError):
    """Raised when graph construction fails."""
