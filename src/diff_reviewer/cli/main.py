"""CLI entry point for the diff reviewer."""
import argparse
from dotenv import load_dotenv
import json
import os
import sys
import threading
import traceback
from pathlib import Path

from diff_reviewer.agents.exceptions import ReviewAgentError
from diff_reviewer.llm.exceptions import BackendError
from diff_reviewer.models import (
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_MODEL,
    Decision,
    ReviewResult,
)
from diff_reviewer.orchestrator.exceptions import (
    NoFilesToReviewError,
    OrchestratorError,
    RunCancelledError,
)
from diff_reviewer.utils.exceptions import ReviewInputError

load_dotenv()

VERSION = "0.1.0"

# Exit codes
EXIT_SUCCESS = 0
EXIT_INVALID_INPUT = 1
EXIT_AGENT_ERROR = 2
EXIT_ORCHESTRATOR_ERROR = 3
EXIT_NO_GO = 4
EXIT_UNEXPECTED = 5
EXIT_FILE_ERRORS = 6
EXIT_KEYBOARD_INTERRUPT = 130

# Defaults
DEFAULT_BASE_BRANCH = "main"
DEFAULT_TIMEOUT = 90
DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-5-20250929"

# Safe keys allowed in config output (no secrets)
_SAFE_CONFIG_KEYS = frozenset({
    "branch", "base", "repo", "diff_file", "model", "guidelines",
    "guideline_text", "guideline_hash", "max_concurrency", "llm_provider",
    "timeout", "request_log", "verbose", "dry_run", "output_json",
})


def _positive_int(raw: str) -> int:
    value = int(raw)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="diff-reviewer",
        description="Review a branch diff and produce comments plus a GO / NO_GO verdict",
    )
    parser.add_argument(
        "branch",
        type=str,
        nargs="?",
        default="",
        help="Branch to review (compared against --base). Not needed with --diff-file",
    )
    parser.add_argument(
        "--base",
        type=str,
        default=DEFAULT_BASE_BRANCH,
        help=f"Base branch (default: {DEFAULT_BASE_BRANCH})",
    )
    parser.add_argument(
        "--repo", type=str, default=".", help="Path inside the repository (default: .)"
    )
    parser.add_argument(
        "--diff-file",
        type=str,
        default="",
        help="Read the unified diff from this file instead of git ('-' for stdin)",
    )
    parser.add_argument(
        "--model",
        type=str,
        default="",
        help=f"Model ID to use (default: $DIFF_REVIEWER_MODEL or {DEFAULT_MODEL})",
    )
    parser.add_argument(
        "--guideline",
        dest="guidelines",
        action="append",
        default=[],
        help="Guideline file, relative to the repository root (repeatable)",
    )
    parser.add_argument(
        "--guideline-text", type=str, default="", help="Free-text guidance for the reviewer"
    )
    parser.add_argument(
        "--max-concurrency",
        type=_positive_int,
        default=DEFAULT_MAX_CONCURRENCY,
        help=f"Files reviewed in parallel (default: {DEFAULT_MAX_CONCURRENCY})",
    )
    parser.add_argument(
        "--llm-provider",
        type=str,
        default="auto",
        choices=("auto", "openrouter", "openai", "anthropic"),
        help="Backend provider: auto (default), openrouter, openai, or anthropic",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=DEFAULT_TIMEOUT,
        help=f"Per-request timeout in seconds (default: {DEFAULT_TIMEOUT})",
    )
    parser.add_argument(
        "--request-log",
        type=str,
        default="",
        help="Append backend request payloads as JSON lines to this file",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--dry-run", action="store_true", help="Print config and exit without running"
    )
    parser.add_argument(
        "--output-json", action="store_true", help="Output results as JSON"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def resolve_model(args: argparse.Namespace) -> str:
    """CLI flag, then $DIFF_REVIEWER_MODEL, then the provider default."""
    if args.model:
        return args.model
    env_model = os.getenv("DIFF_REVIEWER_MODEL", "").strip()
    if env_model:
        return env_model
    if args.llm_provider == "anthropic":
        return DEFAULT_ANTHROPIC_MODEL
    return DEFAULT_MODEL


def read_diff_text(args: argparse.Namespace, repo_root: str) -> str:
    """Load the diff from --diff-file, stdin, or git.

    Raises:
        ReviewInputError: If no source was given or the file cannot be read.
        VcsError: If git fails.
    """
    from diff_reviewer.utils.git_diff import generate_diff

    if args.diff_file == "-":
        return sys.stdin.read()
    if args.diff_file:
        try:
            return Path(args.diff_file).read_text(encoding="utf-8")
        except OSError as exc:
            raise ReviewInputError(f"cannot read diff file {args.diff_file}: {exc}") from exc
    if not args.branch:
        raise ReviewInputError("a branch to review or --diff-file is required")
    return generate_diff(repo_root, args.base, args.branch)


def resolve_repo_root(args: argparse.Namespace) -> str:
    """Repository top level, or the --repo directory when reading a diff file."""
    from diff_reviewer.utils.git_diff import detect_repo_root

    if args.diff_file:
        resolved = Path(args.repo).resolve()
        if not resolved.is_dir():
            raise ReviewInputError(f"'{args.repo}' is not a valid directory.")
        return str(resolved)
    return detect_repo_root(args.repo)


def format_result_json(result: ReviewResult) -> str:
    return json.dumps(result.model_dump(mode="json"), indent=2, default=str)


def print_result_human(result: ReviewResult) -> None:
    """Print results in human-readable format."""
    verdict = result.verdict
    stats = verdict.stats

    print(f"\n{'='*60}")
    print("Diff Review Results")
    print(f"{'='*60}")
    print(f"\nDecision: {verdict.decision.value}")
    print(f"Summary: {verdict.summary}")
    for reason in verdict.rationale:
        print(f"  - {reason}")
    print(
        f"\nComments ({stats.total}): BLOCKER={stats.blocker} ISSUE={stats.issue} "
        f"SUGGESTION={stats.suggestion} NIT={stats.nit}"
    )

    for comment in result.comments:
        location = f"{comment.file_path}:{comment.start_line}"
        if comment.end_line != comment.start_line:
            location += f"-{comment.end_line}"
        print(f"\n[{comment.severity.value}] {location} {comment.title}")
        print(f"    {comment.body}")
        if comment.suggestion:
            print(f"    Suggestion: {comment.suggestion}")

    if result.file_errors:
        print(f"\nFile errors ({len(result.file_errors)}):")
        for path, error in result.file_errors.items():
            print(f"  - {path}: {error}")

    if result.dropped_count:
        print(f"\nDropped malformed comments: {result.dropped_count}")

    print(f"\n{'='*60}")


def determine_exit_code(result: ReviewResult) -> int:
    """NO_GO first, then a GO that left files unreviewed."""
    if result.verdict.decision == Decision.NO_GO:
        return EXIT_NO_GO
    if result.file_errors:
        return EXIT_FILE_ERRORS
    return EXIT_SUCCESS


def print_config_human(config: dict) -> None:
    """Print configuration in human-readable format.

    Only prints keys in the safe allowlist to prevent secret leakage.
    """
    print("\nConfiguration:")
    print(f"{'='*40}")
    for key, value in config.items():
        if key in _SAFE_CONFIG_KEYS:
            print(f"  {key}: {value}")
    print(f"{'='*40}")


def start_progress_printer(channel) -> threading.Thread:
    """Consume the progress channel on a background thread, one line per file."""

    def _print_progress() -> None:
        for update in channel:
            status = " (failed)" if update.last_error else ""
            print(f"[{update.completed}/{update.total}] {update.file}{status}", file=sys.stderr)

    thread = threading.Thread(target=_print_progress, name="progress-printer", daemon=True)
    thread.start()
    return thread


def _handle_error(label: str, exc: BaseException, verbose: bool, exit_code: int) -> int:
    """Print error message to stderr and return the exit code."""
    print(f"{label}: {exc}", file=sys.stderr)
    if verbose:
        traceback.print_exc(file=sys.stderr)
    return exit_code


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code integer.
    """
    from diff_reviewer.utils.logging_setup import configure_logging

    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging("DEBUG" if args.verbose else "WARNING")

    model = resolve_model(args)
    request_log_path = args.request_log or os.getenv("DIFF_REVIEWER_REQUEST_LOG", "")

    config = {
        "branch": args.branch,
        "base": args.base,
        "repo": args.repo,
        "diff_file": args.diff_file,
        "model": model,
        "guidelines": args.guidelines,
        "guideline_text": args.guideline_text,
        "max_concurrency": args.max_concurrency,
        "llm_provider": args.llm_provider,
        "timeout": args.timeout,
        "request_log": request_log_path,
        "verbose": args.verbose,
        "dry_run": args.dry_run,
        "output_json": args.output_json,
    }

    if args.dry_run:
        if args.output_json:
            print(json.dumps(config, indent=2))
        else:
            print_config_human(config)
        return EXIT_SUCCESS

    from diff_reviewer.llm.client import create_chat_client
    from diff_reviewer.llm.request_log import JsonlRequestLog
    from diff_reviewer.models import RunOptions
    from diff_reviewer.orchestrator.runner import ReviewOrchestrator
    from diff_reviewer.orchestrator.worker_pool import CancellationToken, ProgressChannel
    from diff_reviewer.utils.diff_parser import parse_unified_diff
    from diff_reviewer.utils.guidelines import (
        hash_guidelines,
        load_guidelines,
        resolve_guideline_path,
    )

    token = CancellationToken()
    try:
        repo_root = resolve_repo_root(args)
        diff_text = read_diff_text(args, repo_root)
        files = parse_unified_diff(diff_text)

        guideline_paths = [resolve_guideline_path(repo_root, p) for p in args.guidelines]
        options = RunOptions(
            model=model,
            guidelines=load_guidelines(guideline_paths, args.guideline_text),
            guideline_hash=hash_guidelines(guideline_paths, args.guideline_text),
            max_concurrency=args.max_concurrency,
        )

        request_log = JsonlRequestLog(request_log_path) if request_log_path else None
        client = create_chat_client(
            args.llm_provider, timeout=float(args.timeout), request_log=request_log
        )

        progress = ProgressChannel()
        printer = start_progress_printer(progress)
        try:
            result = ReviewOrchestrator(client, options, progress).run(files, token)
        finally:
            progress.close()
            printer.join(timeout=1)

        if args.output_json:
            print(format_result_json(result))
        else:
            print_result_human(result)

        return determine_exit_code(result)

    except ReviewInputError as exc:
        return _handle_error("Invalid input", exc, args.verbose, EXIT_INVALID_INPUT)

    except NoFilesToReviewError as exc:
        return _handle_error("Invalid input", exc, args.verbose, EXIT_INVALID_INPUT)

    except (BackendError, ReviewAgentError) as exc:
        return _handle_error("Agent error", exc, args.verbose, EXIT_AGENT_ERROR)

    except RunCancelledError:
        print("\nCancelled.", file=sys.stderr)
        return EXIT_KEYBOARD_INTERRUPT

    except OrchestratorError as exc:
        return _handle_error("Orchestrator error", exc, args.verbose, EXIT_ORCHESTRATOR_ERROR)

    except KeyboardInterrupt:
        token.cancel()
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_KEYBOARD_INTERRUPT

    except Exception as exc:
        return _handle_error("Unexpected error", exc, args.verbose, EXIT_UNEXPECTED)


if __name__ == "__main__":
    sys.exit(main())
