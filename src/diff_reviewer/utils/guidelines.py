"""Guideline profile loading and content hashing."""

import hashlib
from pathlib import Path

from diff_reviewer.utils.exceptions import GuidelineReadError

NO_GUIDELINES_TEXT = "No additional guidelines provided."
FREE_TEXT_HEADING = "Additional guidance"


def resolve_guideline_path(repo_root: str, raw_path: str) -> str:
    """Resolve a guideline path relative to the repository root.

    Raises:
        GuidelineReadError: If raw_path is blank.
    """
    if not raw_path.strip():
        raise GuidelineReadError("guideline path is empty")
    path = Path(raw_path).expanduser()
    if not path.is_absolute():
        path = Path(repo_root) / path
    return str(path.resolve())


def _read_bytes(path: str) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise GuidelineReadError(f"Failed to read guideline '{path}': {e}") from e


def hash_guidelines(paths: list[str], free_text: str = "") -> str:
    """Compute a canonical content hash of the selected guidelines.

    Paths are sorted first, so the order in which they are supplied never
    matters. Each file contributes its path and its bytes, separated by NUL;
    non-blank free text is appended last.

    Args:
        paths: Guideline file paths.
        free_text: Optional free-form guidance.

    Returns:
        Hex sha256 digest, or "" when there are no paths and no free text.

    Raises:
        GuidelineReadError: If any file cannot be read.
    """
    ordered = sorted(paths)
    if not ordered and not free_text.strip():
        return ""

    hasher = hashlib.sha256()
    for path in ordered:
        data = _read_bytes(path)
        hasher.update(path.encode("utf-8"))
        hasher.update(b"\x00")
        hasher.update(data)
        hasher.update(b"\x00")

    if free_text.strip():
        hasher.update(b"free")
        hasher.update(b"\x00")
        hasher.update(free_text.encode("utf-8"))

    return hasher.hexdigest()


def load_guidelines(paths: list[str], free_text: str = "") -> str:
    """Render guideline files and free text into the prompt guideline block."""
    sections: list[str] = []
    for path in sorted(paths):
        content = _read_bytes(path).decode("utf-8", errors="replace").strip()
        sections.append(f"### {Path(path).name}\n{content}")

    if free_text.strip():
        sections.append(f"### {FREE_TEXT_HEADING}\n{free_text.strip()}")

    if not sections:
        return NO_GUIDELINES_TEXT
    return "\n\n".join(sections)
