"""State definition for the LangGraph review run."""

import operator
from enum import Enum
from typing import Annotated, Any, TypedDict

from diff_reviewer.models import Comment, DiffFile, FileReviewOutcome, RunOptions, Verdict


class RunPhase(str, Enum):
    DISPATCHING = "dispatching"
    AWAITING_RESULTS = "awaiting_results"
    COMPOSING_VERDICT = "composing_verdict"
    DONE = "done"
    CANCELLED = "cancelled"


class ReviewState(TypedDict):
    """State for one review run.

    Fields with Annotated[list, operator.add] reducers accumulate across nodes.
    All other fields use default overwrite semantics.
    """

    # Input
    files: list[DiffFile]
    options: RunOptions

    # Dispatch
    batch: Any  # ReviewBatch while workers are running, else None

    # Collected results
    outcomes: list[FileReviewOutcome]
    comments: list[Comment]
    dropped_count: int
    file_errors: dict[str, str]

    # Verdict
    verdict: Verdict | None

    cancelled: bool

    # Phases traversed, in order
    phases: Annotated[list[RunPhase], operator.add]


def make_initial_state(files: list[DiffFile], options: RunOptions) -> ReviewState:
    """Create the initial state for a review run.

    Args:
        files: Parsed diff files in input order.
        options: Model, guidelines and pool width for the run.

    Returns:
        ReviewState dict with all fields initialised to defaults.
    """
    return {
        "files": list(files),
        "options": options,
        "batch": None,
        "outcomes": [],
        "comments": [],
        "dropped_count": 0,
        "file_errors": {},
        "verdict": None,
        "cancelled": False,
        "phases": [],
    }
