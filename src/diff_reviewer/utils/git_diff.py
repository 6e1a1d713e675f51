"""Git invocations that produce the raw diff handed to the reviewer."""

import subprocess

from diff_reviewer.utils.exceptions import VcsError

DEFAULT_GIT_TIMEOUT = 5
DEFAULT_DIFF_TIMEOUT = 30


def run_git(repo_root: str, *args: str, timeout: float = DEFAULT_GIT_TIMEOUT) -> str:
    """Run `git -C repo_root <args>` and return stdout.

    Raises:
        VcsError: On non-zero exit, timeout, or a missing git binary.
    """
    command = ["git", "-C", repo_root, *args]
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise VcsError(f"git {' '.join(args)}: timed out after {timeout}s") from e
    except OSError as e:
        raise VcsError(f"git {' '.join(args)}: {e}") from e

    if result.returncode != 0:
        message = result.stderr.decode("utf-8", errors="replace").strip()
        if not message:
            message = f"exit status {result.returncode}"
        raise VcsError(f"git {' '.join(args)}: {message}")

    return result.stdout.decode("utf-8", errors="replace")


def detect_repo_root(path: str) -> str:
    """Return the top-level directory of the repository containing path."""
    if not path.strip():
        raise VcsError("path is required")
    return run_git(path, "rev-parse", "--show-toplevel").strip()


def generate_diff(
    repo_root: str,
    base_branch: str,
    branch: str,
    timeout: float = DEFAULT_DIFF_TIMEOUT,
) -> str:
    """Return the three-context-line diff of base_branch...branch.

    Raises:
        VcsError: If an argument is blank or either ref is missing.
    """
    if not repo_root.strip():
        raise VcsError("repo root is required")
    if not base_branch.strip():
        raise VcsError("base branch is required")
    if not branch.strip():
        raise VcsError("branch is required")

    return run_git(
        repo_root,
        "diff",
        "--no-color",
        "--unified=3",
        f"{base_branch}...{branch}",
        timeout=timeout,
    )
