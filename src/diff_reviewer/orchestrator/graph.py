"""LangGraph graph for a review run.

Wires the worker pool and the VerdictComposer into a StateGraph whose nodes
follow the run phases: dispatch, await results, compose verdict, with a
cancellation exit after either of the first two.
"""

import logging
from typing import Callable

from langgraph.graph import END, START, StateGraph

from diff_reviewer.agents.verdict_composer import VerdictComposer
from diff_reviewer.orchestrator.aggregation import (
    collect_comments,
    collect_file_errors,
    count_dropped,
    dedupe_comments,
)
from diff_reviewer.orchestrator.exceptions import GraphBuildError, RunCancelledError
from diff_reviewer.orchestrator.state import ReviewState, RunPhase
from diff_reviewer.orchestrator.worker_pool import (
    CancellationToken,
    ProgressChannel,
    ReviewWorkerPool,
)

logger = logging.getLogger(__name__)


def make_dispatch_node(
    pool: ReviewWorkerPool,
    token: CancellationToken,
) -> Callable[[ReviewState], dict]:
    """Factory: returns a node closure that starts the workers.

    A token that fired before dispatch marks the run cancelled and starts
    nothing.
    """

    def dispatch_node(state: ReviewState) -> dict:
        if token.cancelled:
            return {"phases": [RunPhase.DISPATCHING], "cancelled": True}
        batch = pool.start(state["files"], token)
        return {"phases": [RunPhase.DISPATCHING], "batch": batch}

    return dispatch_node


def make_await_results_node(
    progress: ProgressChannel | None = None,
) -> Callable[[ReviewState], dict]:
    """Factory: returns a node closure that drains the running batch.

    The closure:
    1. Collects every outcome, emitting progress per resolved file
    2. Concatenates comments in input order and dedupes them
    3. Returns comments, dropped_count and file_errors

    On cancellation: returns {"cancelled": True} after the workers joined.
    """

    def await_results_node(state: ReviewState) -> dict:
        batch = state["batch"]
        try:
            outcomes = batch.collect(progress)
        except RunCancelledError as exc:
            logger.info("%s", exc)
            return {
                "phases": [RunPhase.AWAITING_RESULTS],
                "batch": None,
                "cancelled": True,
            }

        return {
            "phases": [RunPhase.AWAITING_RESULTS],
            "batch": None,
            "outcomes": outcomes,
            "comments": dedupe_comments(collect_comments(outcomes)),
            "dropped_count": count_dropped(outcomes),
            "file_errors": collect_file_errors(outcomes),
        }

    return await_results_node


def make_compose_verdict_node(composer: VerdictComposer) -> Callable[[ReviewState], dict]:
    def compose_verdict_node(state: ReviewState) -> dict:
        verdict = composer.compose(state["comments"])
        return {
            "phases": [RunPhase.COMPOSING_VERDICT, RunPhase.DONE],
            "verdict": verdict,
        }

    return compose_verdict_node


def cancel_node(state: ReviewState) -> dict:
    return {"phases": [RunPhase.CANCELLED], "cancelled": True}


def route_after_dispatch(state: ReviewState) -> str:
    return "cancelled" if state["cancelled"] else "await"


def route_after_results(state: ReviewState) -> str:
    return "cancelled" if state["cancelled"] else "compose"


def build_graph(
    pool: ReviewWorkerPool,
    composer: VerdictComposer,
    token: CancellationToken,
    progress: ProgressChannel | None = None,
):
    """Build and compile the review StateGraph.

    Edge topology:
      START -> dispatch_node -> conditional -> {await_results_node, cancel_node}
      await_results_node -> conditional -> {compose_verdict_node, cancel_node}
      compose_verdict_node -> END
      cancel_node -> END

    Returns:
        CompiledStateGraph ready to invoke.

    Raises:
        GraphBuildError: If graph construction fails.
    """
    try:
        graph = StateGraph(ReviewState)

        graph.add_node("dispatch_node", make_dispatch_node(pool, token))
        graph.add_node("await_results_node", make_await_results_node(progress))
        graph.add_node("compose_verdict_node", make_compose_verdict_node(composer))
        graph.add_node("cancel_node", cancel_node)

        graph.add_edge(START, "dispatch_node")
        graph.add_conditional_edges(
            "dispatch_node",
            route_after_dispatch,
            {
                "await": "await_results_node",
                "cancelled": "cancel_node",
            },
        )
        graph.add_conditional_edges(
            "await_results_node",
            route_after_results,
            {
                "compose": "compose_verdict_node",
                "cancelled": "cancel_node",
            },
        )
        graph.add_edge("compose_verdict_node", END)
        graph.add_edge("cancel_node", END)

        return graph.compile()

    except Exception as exc:
        raise GraphBuildError(f"Failed to build review graph: {exc}") from exc
