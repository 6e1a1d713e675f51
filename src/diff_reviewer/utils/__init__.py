"""Utilities for the diff reviewer."""

from diff_reviewer.utils.diff_parser import (
    parse_hunk_header,
    parse_unified_diff,
    render_unified_diff_file,
)
from diff_reviewer.utils.exceptions import (
    DiffParseError,
    EmptyDiffError,
    GuidelineReadError,
    MalformedHunkHeaderError,
    ReviewInputError,
    VcsError,
)
from diff_reviewer.utils.git_diff import detect_repo_root, generate_diff
from diff_reviewer.utils.guidelines import (
    hash_guidelines,
    load_guidelines,
    resolve_guideline_path,
)

__all__ = [
    "DiffParseError",
    "EmptyDiffError",
    "GuidelineReadError",
    "MalformedHunkHeaderError",
    "ReviewInputError",
    "VcsError",
    "detect_repo_root",
    "generate_diff",
    "hash_guidelines",
    "load_guidelines",
    "parse_hunk_header",
    "parse_unified_diff",
    "render_unified_diff_file",
    "resolve_guideline_path",
]
