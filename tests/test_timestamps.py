"""Tests for the last_updated rewriting tool."""

from __future__ import annotations

import os
import time
from datetime import date
from pathlib import Path

import pytest

from docaudit.config import AppConfig
from docaudit.index.indexer import Indexer
from docaudit.maintenance import timestamps
from docaudit.maintenance.timestamps import (
    Decision,
    TimestampUpdateError,
    TimestampUpdater,
    backup_path,
    read_last_updated,
    rewrite_timestamp,
)

TODAY = date(2024, 3, 1)


def _document(value: str) -> str:
    return f"# Doc\n\n```yaml\ndomain: x\nlast_updated: {value}\n```\n\nBody.\n"


def _run(root: Path, **kwargs):
    corpus = Indexer(AppConfig(root=root)).index()
    return TimestampUpdater(today=TODAY, **kwargs).run(corpus)


def _age(path: Path, days: int) -> None:
    stamp = time.time() - days * 86400
    os.utime(path, (stamp, stamp))


class TestRewriteTimestamp:
    """Test in-place line rewriting."""

    def test_keeps_surrounding_text(self) -> None:
        text = _document("2024-01-01")

        assert rewrite_timestamp(text, "2024-03-01") == _document("2024-03-01")

    def test_preserves_quotes(self) -> None:
        assert 'last_updated: "2024-03-01"' in rewrite_timestamp(
            _document('"2024-01-01"'), "2024-03-01"
        )
        assert "last_updated: '2024-03-01'" in rewrite_timestamp(
            _document("'2024-01-01'"), "2024-03-01"
        )

    def test_preserves_crlf(self) -> None:
        text = _document("2024-01-01").replace("\n", "\r\n")

        assert "last_updated: 2024-03-01\r\n" in rewrite_timestamp(text, "2024-03-01")

    def test_only_first_block(self) -> None:
        text = "```yaml\ndomain: x\n```\n```yaml\nlast_updated: 2020-01-01\n```\n"

        with pytest.raises(TimestampUpdateError):
            rewrite_timestamp(text, "2024-03-01")

    def test_ignores_field_outside_block(self) -> None:
        text = "last_updated: 2020-01-01\n" + _document("2024-01-01")

        result = rewrite_timestamp(text, "2024-03-01")

        assert result.startswith("last_updated: 2020-01-01\n")
        assert "last_updated: 2024-03-01" in result


class TestTimestampUpdater:
    """Test the update policy end to end."""

    def test_dry_run_already_current_untouched(self, write_docs) -> None:
        root = write_docs({"a.md": _document("2024-03-01")})
        before = (root / "a.md").read_bytes()

        stats = _run(root, dry_run=True)

        assert stats.results[0].decision is Decision.ALREADY_CURRENT
        assert stats.updated == 0
        assert (root / "a.md").read_bytes() == before

    def test_dry_run_would_update(self, write_docs) -> None:
        root = write_docs({"a.md": _document("2024-02-29")})
        before = (root / "a.md").read_bytes()

        stats = _run(root, dry_run=True)

        result = stats.results[0]
        assert result.decision is Decision.WOULD_UPDATE
        assert (result.previous, result.current) == ("2024-02-29", "2024-03-01")
        assert stats.updated == 1
        assert (root / "a.md").read_bytes() == before

    def test_updates_recent_file(self, write_docs) -> None:
        root = write_docs({"a.md": _document("2024-01-01")})

        stats = _run(root)

        assert stats.results[0].decision is Decision.UPDATED
        assert read_last_updated(root / "a.md") == "2024-03-01"
        assert not backup_path(root / "a.md").exists()
        assert (root / "a.md").read_text(encoding="utf-8") == _document("2024-03-01")

    def test_old_file_skipped(self, write_docs) -> None:
        root = write_docs({"a.md": _document("2024-01-01")})
        _age(root / "a.md", 10)

        stats = _run(root)

        assert stats.results[0].decision is Decision.NOT_RECENT
        assert stats.skipped == 1
        assert read_last_updated(root / "a.md") == "2024-01-01"

    def test_force_ignores_recency(self, write_docs) -> None:
        root = write_docs({"a.md": _document("2024-01-01")})
        _age(root / "a.md", 10)

        stats = _run(root, force=True)

        assert stats.results[0].decision is Decision.UPDATED

    def test_max_age_window(self, write_docs) -> None:
        root = write_docs({"a.md": _document("2024-01-01")})
        _age(root / "a.md", 10)

        stats = _run(root, dry_run=True, max_age_days=10)

        assert stats.results[0].decision is Decision.WOULD_UPDATE

    def test_injected_clock(self, write_docs) -> None:
        root = write_docs({"a.md": _document("2024-01-01")})
        later = (root / "a.md").stat().st_mtime + 3 * 86400

        stats = _run(root, dry_run=True, now=later)

        assert stats.results[0].decision is Decision.NOT_RECENT

    def test_not_applicable(self, write_docs) -> None:
        root = write_docs({"a.md": "# Plain\n", "b.md": "```yaml\ndomain: x\n```\n"})

        stats = _run(root)

        assert [r.decision for r in stats.results] == [Decision.NOT_APPLICABLE] * 2
        assert [r.reason for r in stats.results] == ["no metadata", "no timestamp field"]
        assert stats.skipped == 2

    def test_verification_failure_restores(self, write_docs, monkeypatch) -> None:
        root = write_docs({"a.md": _document("2024-01-01")})
        before = (root / "a.md").read_bytes()
        monkeypatch.setattr(timestamps, "read_last_updated", lambda path: "garbage")

        stats = _run(root)

        result = stats.results[0]
        assert result.decision is Decision.FAILED
        assert "garbage" in result.reason
        assert stats.failed == 1
        assert (root / "a.md").read_bytes() == before
        assert not backup_path(root / "a.md").exists()

    def test_unreadable_document_fails(self, write_docs) -> None:
        root = write_docs({"a.md": _document("2024-01-01")})
        (root / "b.md").write_bytes(b"\xff\xfe")

        stats = _run(root)

        assert [r.decision for r in stats.results] == [Decision.UPDATED, Decision.FAILED]
        assert stats.processed == 2
