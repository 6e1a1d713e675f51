"""LangGraph orchestrator package for review runs."""

from diff_reviewer.orchestrator.aggregation import dedupe_comments
from diff_reviewer.orchestrator.exceptions import (
    GraphBuildError,
    NoFilesToReviewError,
    OrchestratorError,
    RunCancelledError,
)
from diff_reviewer.orchestrator.graph import build_graph
from diff_reviewer.orchestrator.runner import ReviewOrchestrator
from diff_reviewer.orchestrator.state import ReviewState, RunPhase, make_initial_state
from diff_reviewer.orchestrator.worker_pool import (
    CancellationToken,
    ProgressChannel,
    ReviewWorkerPool,
)

__all__ = [
    "CancellationToken",
    "GraphBuildError",
    "NoFilesToReviewError",
    "OrchestratorError",
    "ProgressChannel",
    "ReviewOrchestrator",
    "ReviewState",
    "ReviewWorkerPool",
    "RunCancelledError",
    "RunPhase",
    "build_graph",
    "dedupe_comments",
    "make_initial_state",
]
