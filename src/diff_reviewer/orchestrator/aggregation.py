"""Pure helpers that fold per-file outcomes into run-level results."""

from diff_reviewer.models import Comment, FileReviewOutcome


def collect_comments(outcomes: list[FileReviewOutcome]) -> list[Comment]:
    """Concatenate comments in input-file order, whatever order files finished in."""
    comments: list[Comment] = []
    for outcome in sorted(outcomes, key=lambda o: o.index):
        comments.extend(outcome.comments)
    return comments


def dedupe_comments(comments: list[Comment]) -> list[Comment]:
    """Drop comments whose identity was already seen, then sort by location.

    First occurrence wins. The sort is stable, so comments on the same line
    keep their relative order.
    """
    seen: set[str] = set()
    unique: list[Comment] = []
    for comment in comments:
        if comment.id in seen:
            continue
        seen.add(comment.id)
        unique.append(comment)
    return sorted(unique, key=lambda c: (c.file_path, c.start_line))


def collect_file_errors(outcomes: list[FileReviewOutcome]) -> dict[str, str]:
    return {
        outcome.file_path: outcome.error
        for outcome in sorted(outcomes, key=lambda o: o.index)
        if outcome.error is not None
    }


def count_dropped(outcomes: list[FileReviewOutcome]) -> int:
    return sum(outcome.dropped for outcome in outcomes)
