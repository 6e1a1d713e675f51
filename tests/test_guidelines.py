"""Tests for guideline loading and hashing."""

import hashlib
from pathlib import Path

import pytest

from diff_reviewer.utils.exceptions import GuidelineReadError, ReviewInputError
from diff_reviewer.utils.guidelines import (
    NO_GUIDELINES_TEXT,
    hash_guidelines,
    load_guidelines,
    resolve_guideline_path,
)


class TestHashGuidelines:
    """Tests for the canonical guideline hash."""

    def test_no_inputs_hash_to_empty_string(self):
        """Nothing selected means no hash at all."""
        assert hash_guidelines([]) == ""
        assert hash_guidelines([], "   ") == ""

    def test_order_independent(self, guideline_files):
        """The same set of files hashes identically in any order."""
        forward = hash_guidelines(guideline_files)
        backward = hash_guidelines(list(reversed(guideline_files)))
        assert forward == backward
        assert len(forward) == 64

    def test_content_change_changes_hash(self, guideline_files):
        """A single byte change in one file changes the hash."""
        before = hash_guidelines(guideline_files)
        Path(guideline_files[0]).write_text("Prefer explicit names!\n", encoding="utf-8")
        assert hash_guidelines(guideline_files) != before

    def test_free_text_changes_hash(self, guideline_files):
        """Free text is part of the identity."""
        assert hash_guidelines(guideline_files, "be strict") != hash_guidelines(guideline_files)

    def test_free_text_only_layout(self):
        """Free text alone hashes as `free`, NUL, text."""
        expected = hashlib.sha256(b"free\x00be strict").hexdigest()
        assert hash_guidelines([], "be strict") == expected

    def test_file_layout(self, tmp_path):
        """Each file contributes path, NUL, bytes, NUL."""
        path = tmp_path / "g.md"
        path.write_bytes(b"rule")
        expected = hashlib.sha256(f"{path}".encode() + b"\x00rule\x00").hexdigest()
        assert hash_guidelines([str(path)]) == expected

    def test_unreadable_file_raises(self, tmp_path):
        """A missing file is an input error."""
        with pytest.raises(GuidelineReadError) as exc_info:
            hash_guidelines([str(tmp_path / "missing.md")])
        assert isinstance(exc_info.value, ReviewInputError)


class TestLoadGuidelines:
    """Tests for the prompt guideline block."""

    def test_no_guidelines_placeholder(self):
        """An empty selection renders the placeholder text."""
        assert load_guidelines([]) == NO_GUIDELINES_TEXT

    def test_sections_sorted_by_path(self, guideline_files):
        """Files render as headed sections, sorted by path, then free text."""
        text = load_guidelines(guideline_files, "Keep functions short.")
        assert text == (
            "### security.md\nNever log secrets.\n\n"
            "### style.md\nPrefer explicit names.\n\n"
            "### Additional guidance\nKeep functions short."
        )


class TestResolveGuidelinePath:
    """Tests for guideline path resolution."""

    def test_relative_path_joins_repo_root(self, tmp_path):
        resolved = resolve_guideline_path(str(tmp_path), "docs/rules.md")
        assert resolved == str((tmp_path / "docs" / "rules.md").resolve())

    def test_absolute_path_kept(self, tmp_path):
        target = tmp_path / "abs.md"
        assert resolve_guideline_path("/elsewhere", str(target)) == str(target.resolve())

    def test_blank_path_rejected(self):
        with pytest.raises(GuidelineReadError):
            resolve_guideline_path("/repo", "  ")
