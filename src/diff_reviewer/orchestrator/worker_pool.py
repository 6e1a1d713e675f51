"""Bounded worker pool for per-file reviews.

Workers are plain threads pulling `(index, file)` jobs from a pre-filled
queue. Each finished file goes onto a single results queue that the
coordinating thread drains. The coordinator is the only producer of progress
updates, and it never blocks on a slow consumer.
"""

import logging
import queue
import threading
from typing import Iterator, Protocol

from diff_reviewer.models import (
    DEFAULT_MAX_CONCURRENCY,
    DiffFile,
    FileProgress,
    FileReviewOutcome,
)
from diff_reviewer.orchestrator.exceptions import RunCancelledError

logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_CAPACITY = 64
RESULT_POLL_INTERVAL = 0.05
WORKER_NAME_PREFIX = "review-worker"

_CLOSED = object()


class FileReviewerLike(Protocol):
    def review(self, index: int, diff_file: DiffFile) -> FileReviewOutcome: ...


class CancellationToken:
    """Cooperative cancellation flag shared by the coordinator and its workers."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or until `timeout` elapses. Returns the flag."""
        return self._event.wait(timeout)


class ProgressChannel:
    """Bounded, lossy channel of FileProgress updates.

    `offer` never blocks: when the buffer is full the oldest update is
    discarded to make room. After `close`, iteration drains what is left and
    then stops.
    """

    def __init__(self, capacity: int = DEFAULT_PROGRESS_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        # One extra slot is reserved for the end-of-stream marker
        self._queue: queue.Queue = queue.Queue(maxsize=capacity + 1)
        self._lock = threading.Lock()
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def offer(self, update: FileProgress, token: CancellationToken | None = None) -> bool:
        """Hand off one update without blocking.

        Returns False when the run is cancelled or the channel is closed.
        """
        if token is not None and token.cancelled:
            return False
        with self._lock:
            if self._closed:
                return False
            while self._queue.qsize() >= self.capacity:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    break
                self.dropped += 1
            self._queue.put_nowait(update)
        return True

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    def poll(self, timeout: float | None = None) -> FileProgress | None:
        """Next update, or None on timeout or once the channel is drained and closed."""
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is _CLOSED:
            self._requeue_sentinel()
            return None
        return item

    def __iter__(self) -> Iterator[FileProgress]:
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                self._requeue_sentinel()
                return
            yield item

    def _requeue_sentinel(self) -> None:
        # Let every other consumer observe the close too
        self._queue.put_nowait(_CLOSED)


class ReviewBatch:
    """Handle on one dispatched set of files while its workers run."""

    def __init__(
        self,
        reviewer: FileReviewerLike,
        files: list[DiffFile],
        width: int,
        token: CancellationToken,
        poll_interval: float = RESULT_POLL_INTERVAL,
    ) -> None:
        self.reviewer = reviewer
        self.total = len(files)
        self.token = token
        self.poll_interval = poll_interval
        self._jobs: queue.Queue = queue.Queue(maxsize=max(1, self.total))
        self._results: queue.Queue = queue.Queue()
        for job in enumerate(files):
            self._jobs.put_nowait(job)
        self.threads = [
            threading.Thread(
                target=self._work,
                name=f"{WORKER_NAME_PREFIX}-{n}",
                daemon=True,
            )
            for n in range(width)
        ]

    def start(self) -> "ReviewBatch":
        for thread in self.threads:
            thread.start()
        logger.debug("Started %d workers for %d files", len(self.threads), self.total)
        return self

    def collect(self, progress: ProgressChannel | None = None) -> list[FileReviewOutcome]:
        """Wait for every file to resolve and return outcomes in input order.

        Raises:
            RunCancelledError: If the token fires before every file resolved.
                Workers are joined before this is raised.
        """
        outcomes: list[FileReviewOutcome] = []
        failed = 0
        try:
            while len(outcomes) < self.total and not self.token.cancelled:
                try:
                    outcome = self._results.get(timeout=self.poll_interval)
                except queue.Empty:
                    continue
                outcomes.append(outcome)
                if outcome.failed:
                    failed += 1
                if progress is not None:
                    progress.offer(
                        FileProgress(
                            completed=len(outcomes),
                            total=self.total,
                            failed=failed,
                            file=outcome.file_path,
                            last_error=outcome.error,
                        ),
                        self.token,
                    )
        except BaseException:
            # An interrupted coordinator must not leave workers dispatching
            self.token.cancel()
            raise
        finally:
            self.join()

        if len(outcomes) < self.total:
            raise RunCancelledError(
                f"run cancelled after {len(outcomes)} of {self.total} files resolved"
            )
        return sorted(outcomes, key=lambda o: o.index)

    def join(self) -> None:
        for thread in self.threads:
            thread.join()

    def _work(self) -> None:
        while not self.token.cancelled:
            try:
                index, diff_file = self._jobs.get_nowait()
            except queue.Empty:
                return
            try:
                outcome = self.reviewer.review(index, diff_file)
            except Exception as e:
                logger.exception("Unexpected failure reviewing %s", diff_file.path)
                outcome = FileReviewOutcome(
                    index=index,
                    file_path=diff_file.path,
                    error=f"review failed for {diff_file.path}: {e}",
                )
            if self.token.cancelled:
                return
            self._results.put(outcome)


class ReviewWorkerPool:
    """Bounded pool: at most `max_concurrency` files are reviewed at once."""

    def __init__(
        self,
        reviewer: FileReviewerLike,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        poll_interval: float = RESULT_POLL_INTERVAL,
    ) -> None:
        self.reviewer = reviewer
        self.max_concurrency = max(1, max_concurrency)
        self.poll_interval = poll_interval

    def width_for(self, total: int) -> int:
        return max(1, min(self.max_concurrency, total))

    def start(self, files: list[DiffFile], token: CancellationToken) -> ReviewBatch:
        return ReviewBatch(
            self.reviewer,
            files,
            self.width_for(len(files)),
            token,
            self.poll_interval,
        ).start()

    def run(
        self,
        files: list[DiffFile],
        token: CancellationToken,
        progress: ProgressChannel | None = None,
    ) -> list[FileReviewOutcome]:
        """Dispatch and collect in one call."""
        return self.start(files, token).collect(progress)
