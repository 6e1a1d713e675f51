"""Public entry point for a review run."""

import logging
from typing import Iterable

from diff_reviewer.agents.file_reviewer import FileReviewer
from diff_reviewer.agents.verdict_composer import VerdictComposer
from diff_reviewer.llm.client import ChatClient
from diff_reviewer.models import DiffFile, ReviewResult, RunOptions
from diff_reviewer.orchestrator.exceptions import NoFilesToReviewError, RunCancelledError
from diff_reviewer.orchestrator.graph import build_graph
from diff_reviewer.orchestrator.state import RunPhase, make_initial_state
from diff_reviewer.orchestrator.worker_pool import (
    CancellationToken,
    ProgressChannel,
    ReviewWorkerPool,
)

logger = logging.getLogger(__name__)


class ReviewOrchestrator:
    """Turns parsed diff files into a ReviewResult.

    One backend call per reviewable file, fanned out over a bounded pool,
    followed by a single serial verdict call.
    """

    def __init__(
        self,
        client: ChatClient,
        options: RunOptions | None = None,
        progress: ProgressChannel | None = None,
    ) -> None:
        self.client = client
        self.options = options or RunOptions()
        self.progress = progress
        self.phases: list[RunPhase] = []

    def run(
        self,
        files: Iterable[DiffFile],
        token: CancellationToken | None = None,
    ) -> ReviewResult:
        """Review every file and compose the verdict.

        The progress channel, when given, is closed once the run ends
        whatever the outcome.

        Raises:
            NoFilesToReviewError: If `files` is empty. Nothing is dispatched.
            RunCancelledError: If `token` fired before every file resolved.
            GraphBuildError: If the run graph cannot be built.
        """
        files = list(files)
        if not files:
            if self.progress is not None:
                self.progress.close()
            raise NoFilesToReviewError("no files to review")

        token = token or CancellationToken()
        options = self.options
        reviewer = FileReviewer(self.client, options.model, options.guidelines, options.temperature)
        composer = VerdictComposer(
            self.client, options.model, options.guidelines, options.temperature
        )
        pool = ReviewWorkerPool(reviewer, options.max_concurrency)

        logger.info(
            "Reviewing %d files with model=%s concurrency=%d",
            len(files),
            options.model,
            pool.width_for(len(files)),
        )
        try:
            graph = build_graph(pool, composer, token, self.progress)
            final_state = graph.invoke(make_initial_state(files, options))
        finally:
            if self.progress is not None:
                self.progress.close()

        self.phases = list(final_state["phases"])
        if final_state["cancelled"]:
            raise RunCancelledError("review run was cancelled")

        result = ReviewResult(
            comments=final_state["comments"],
            verdict=final_state["verdict"],
            model=options.model,
            guideline_hash=options.guideline_hash,
            dropped_count=final_state["dropped_count"],
            file_errors=final_state["file_errors"],
        )
        logger.info(
            "Review finished: %d comments, %d file errors, %d dropped, decision=%s",
            len(result.comments),
            len(result.file_errors),
            result.dropped_count,
            result.verdict.decision.value,
        )
        return result
