"""Tests for git diff generation (subprocess is mocked)."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from diff_reviewer.utils.exceptions import VcsError
from diff_reviewer.utils.git_diff import detect_repo_root, generate_diff, run_git


def _completed(returncode=0, stdout=b"", stderr=b""):
    result = MagicMock()
    result.returncode = returncode
    result.stdout = stdout
    result.stderr = stderr
    return result


@patch("diff_reviewer.utils.git_diff.subprocess.run")
def test_generate_diff_command(mock_run):
    """The diff uses three-dot range, three context lines and no color."""
    mock_run.return_value = _completed(stdout=b"diff --git a/x b/x\n")

    assert generate_diff("/repo", "main", "feature") == "diff --git a/x b/x\n"

    command = mock_run.call_args.args[0]
    assert command == [
        "git", "-C", "/repo", "diff", "--no-color", "--unified=3", "main...feature",
    ]
    assert mock_run.call_args.kwargs["timeout"] == 30


@patch("diff_reviewer.utils.git_diff.subprocess.run")
def test_detect_repo_root_strips_output(mock_run):
    """rev-parse output is trimmed."""
    mock_run.return_value = _completed(stdout=b"/home/me/project\n")
    assert detect_repo_root("/home/me/project/src") == "/home/me/project"
    assert mock_run.call_args.args[0][-2:] == ["rev-parse", "--show-toplevel"]


@patch("diff_reviewer.utils.git_diff.subprocess.run")
def test_non_zero_exit_raises_with_stderr(mock_run):
    """git's stderr becomes the error message."""
    mock_run.return_value = _completed(returncode=128, stderr=b"fatal: bad revision\n")
    with pytest.raises(VcsError, match="bad revision"):
        run_git("/repo", "diff")


@patch("diff_reviewer.utils.git_diff.subprocess.run")
def test_timeout_raises(mock_run):
    """A hung git process is reported as a VcsError."""
    mock_run.side_effect = subprocess.TimeoutExpired(cmd="git", timeout=5)
    with pytest.raises(VcsError, match="timed out"):
        run_git("/repo", "status")


@patch("diff_reviewer.utils.git_diff.subprocess.run")
def test_missing_git_binary_raises(mock_run):
    mock_run.side_effect = FileNotFoundError("git")
    with pytest.raises(VcsError):
        run_git("/repo", "status")


@pytest.mark.parametrize(
    "args",
    [("", "main", "feature"), ("/repo", " ", "feature"), ("/repo", "main", "")],
)
def test_generate_diff_requires_arguments(args):
    """Blank arguments fail before git is invoked."""
    with patch("diff_reviewer.utils.git_diff.subprocess.run") as mock_run:
        with pytest.raises(VcsError):
            generate_diff(*args)
        mock_run.assert_not_called()
