"""Injectable sinks for recording outgoing backend requests."""

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class RequestLogSink(Protocol):
    def record(self, endpoint: str, payload: dict[str, Any]) -> None: ...


class NullRequestLog:
    """Discards every request."""

    def record(self, endpoint: str, payload: dict[str, Any]) -> None:
        return None


class JsonlRequestLog:
    """Appends one JSON object per request to a file.

    Safe to share between worker threads. Write failures are logged and do
    not affect the request itself.
    """

    def __init__(self, path: str) -> None:
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

    def record(self, endpoint: str, payload: dict[str, Any]) -> None:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "endpoint": endpoint,
            "payload": payload,
        }
        line = json.dumps(entry, ensure_ascii=False, default=str)
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with self.path.open("a", encoding="utf-8") as handle:
                    handle.write(line + "\n")
            except OSError as e:
                logger.warning("Could not write request log %s: %s", self.path, e)
