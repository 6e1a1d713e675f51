import json
import re
import threading
from typing import Callable

import pytest

from diff_reviewer.models import Comment, DiffFile, DiffHunk, DiffLine, DiffLineKind, Severity

VERDICT_MARKER = "Provide a verdict JSON"
_DIFF_PATH_RE = re.compile(r"^diff --git a/(\S+) b/", re.MULTILINE)


SAMPLE_DIFF = """diff --git a/src/app.py b/src/app.py
index 3b18e51..a1c2d3f 100644
--- a/src/app.py
+++ b/src/app.py
@@ -1,3 +1,4 @@
 import os
+import sys
 import re
 def main():
@@ -10,2 +11,2 @@ def main():
-    return 0
+    return run(sys.argv)
     # end
diff --git a/README.md b/README.md
new file mode 100644
--- /dev/null
+++ b/README.md
@@ -0,0 +1 @@
+# Project
"""


class FakeChatClient:
    """Thread-safe stand-in for a ChatClient.

    `responder(model, messages, temperature)` returns the response text or
    raises. Every call is recorded.
    """

    def __init__(self, responder: Callable[..., str]) -> None:
        self.responder = responder
        self.calls: list[dict] = []
        self._lock = threading.Lock()

    def complete(self, model, messages, temperature):
        with self._lock:
            self.calls.append(
                {"model": model, "messages": list(messages), "temperature": temperature}
            )
        return self.responder(model, messages, temperature)

    @property
    def file_calls(self) -> list[dict]:
        return [c for c in self.calls if not is_verdict_request(c["messages"])]

    @property
    def verdict_calls(self) -> list[dict]:
        return [c for c in self.calls if is_verdict_request(c["messages"])]


def is_verdict_request(messages) -> bool:
    return VERDICT_MARKER in messages[-1].content


def reviewed_path(messages) -> str:
    """Path of the file a per-file review request is about."""
    match = _DIFF_PATH_RE.search(messages[-1].content)
    return match.group(1) if match else ""


def comments_payload(*comments: dict) -> str:
    return json.dumps({"comments": list(comments)})


def verdict_payload(decision: str = "GO", summary: str = "Looks fine.", rationale=None) -> str:
    return json.dumps({
        "verdict": {
            "decision": decision,
            "summary": summary,
            "rationale": rationale if rationale is not None else ["No blockers."],
        }
    })


def wire_comment(
    path: str,
    line: int = 1,
    severity: str = "ISSUE",
    title: str = "Title",
    body: str = "Body",
    **extra,
) -> dict:
    return {
        "filePath": path,
        "startLine": line,
        "endLine": extra.pop("end_line", line),
        "severity": severity,
        "title": title,
        "body": body,
        **extra,
    }


def make_diff_file(path: str, added: str = "x = 1") -> DiffFile:
    return DiffFile(
        path=path,
        hunks=(
            DiffHunk(
                header="@@ -0,0 +1 @@",
                old_start=0,
                old_lines=0,
                new_start=1,
                new_lines=1,
                lines=(DiffLine(kind=DiffLineKind.ADD, new_line=1, text=added),),
            ),
        ),
    )


def make_comment(
    path: str = "src/app.py",
    line: int = 1,
    severity: Severity = Severity.ISSUE,
    title: str = "Title",
    body: str = "Body",
    **kwargs,
) -> Comment:
    return Comment.create(
        file_path=path,
        start_line=line,
        end_line=kwargs.pop("end_line", line),
        severity=severity,
        title=title,
        body=body,
        **kwargs,
    )


@pytest.fixture
def sample_diff_text():
    return SAMPLE_DIFF


@pytest.fixture
def fake_client_factory():
    return FakeChatClient


@pytest.fixture
def guideline_files(tmp_path):
    style = tmp_path / "style.md"
    style.write_text("Prefer explicit names.\n", encoding="utf-8")
    security = tmp_path / "security.md"
    security.write_text("Never log secrets.\n", encoding="utf-8")
    return [str(style), str(security)]
