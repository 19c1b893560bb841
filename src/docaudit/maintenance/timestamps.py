"""Controlled rewriting of the ``last_updated`` metadata field."""

from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
import time
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path
from typing import List, Optional

from docaudit.config import AppConfig
from docaudit.index.indexer import Corpus
from docaudit.ingestion.markdown_loader import (
    METADATA_CLOSER,
    METADATA_OPENERS,
    extract_metadata_lines,
)
from docaudit.models import Document, MetadataRecord
from docaudit.utils.files import read_text

LOGGER = logging.getLogger(__name__)

FIELD = "last_updated"
SECONDS_PER_DAY = 86400
_FIELD_LINE = re.compile(rf"^{FIELD}:[ \t]*(?P<value>.*?)[ \t]*(?P<eol>\r?\n)?$")


class TimestampUpdateError(Exception):
    """Raised when a document's timestamp could not be rewritten."""


class VerificationError(TimestampUpdateError):
    """Raised when the value read back differs from the value written."""


class Decision(str, Enum):
    NOT_APPLICABLE = "NOT APPLICABLE"
    ALREADY_CURRENT = "ALREADY CURRENT"
    NOT_RECENT = "NOT RECENTLY MODIFIED"
    WOULD_UPDATE = "WOULD UPDATE"
    UPDATED = "UPDATED"
    FAILED = "UPDATE FAILED"


@dataclass(slots=True)
class UpdateResult:
    path: str
    decision: Decision
    previous: Optional[str] = None
    current: Optional[str] = None
    reason: str = ""


@dataclass(slots=True)
class UpdateStats:
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    results: List[UpdateResult] = field(default_factory=list)

    def increment(self, result: UpdateResult) -> None:
        if result.decision in (Decision.UPDATED, Decision.WOULD_UPDATE):
            self.updated += 1
        elif result.decision is Decision.FAILED:
            self.failed += 1
        else:
            self.skipped += 1
        self.results.append(result)

    @property
    def processed(self) -> int:
        return len(self.results)


def read_last_updated(path: Path) -> Optional[str]:
    """Read ``last_updated`` back from the first metadata block on disk."""
    lines = extract_metadata_lines(read_text(path))
    if lines is None:
        return None
    return MetadataRecord(lines=lines).raw_value(FIELD)


def rewrite_timestamp(text: str, value: str) -> str:
    """Replace the ``last_updated`` line of the first metadata block.

    The existing quote character and line ending are kept.
    """
    lines = text.splitlines(keepends=True)
    in_block = False
    for index, line in enumerate(lines):
        stripped = line.rstrip()
        if not in_block:
            in_block = stripped.lower() in METADATA_OPENERS
            continue
        if stripped == METADATA_CLOSER:
            break
        match = _FIELD_LINE.match(line)
        if match:
            current = match.group("value")
            quote = ""
            if len(current) > 1 and current[0] in "\"'" and current.endswith(current[0]):
                quote = current[0]
            lines[index] = f"{FIELD}: {quote}{value}{quote}{match.group('eol') or ''}"
            return "".join(lines)
    raise TimestampUpdateError(f"No {FIELD} field in metadata block")


def backup_path(path: Path) -> Path:
    return path.with_name(path.name + ".backup")


def _atomic_write(path: Path, text: str) -> None:
    handle = tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", newline="", dir=path.parent, prefix=f".{path.name}.", delete=False
    )
    try:
        with handle:
            handle.write(text)
        shutil.copymode(path, handle.name)
        os.replace(handle.name, path)
    except OSError:
        Path(handle.name).unlink(missing_ok=True)
        raise


class TimestampUpdater:
    """Applies the update policy to every document of a corpus."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        *,
        dry_run: bool = False,
        force: bool = False,
        max_age_days: Optional[int] = None,
        today: Optional[date] = None,
        now: Optional[float] = None,
    ) -> None:
        self.config = config or AppConfig()
        self.dry_run = dry_run
        self.force = force
        self.max_age_days = self.config.max_age_days if max_age_days is None else max_age_days
        self.today = today or date.today()
        self.now = now

    @property
    def current_value(self) -> str:
        return self.today.isoformat()

    def run(self, corpus: Corpus) -> UpdateStats:
        stats = UpdateStats()
        for document in corpus:
            stats.increment(self.process(document, corpus.root / document.path))
        return stats

    def process(self, document: Document, path: Path) -> UpdateResult:
        if document.read_error is not None:
            return UpdateResult(document.path, Decision.FAILED, reason=document.read_error)
        try:
            result = self.decide(document, path)
        except OSError as exc:
            LOGGER.error("Failed to stat %s: %s", path, exc)
            return UpdateResult(document.path, Decision.FAILED, reason=str(exc))
        if result.decision is not Decision.WOULD_UPDATE or self.dry_run:
            return result

        try:
            self.apply(path, self.current_value)
        except (OSError, TimestampUpdateError) as exc:
            LOGGER.error("Failed to update %s: %s", path, exc)
            result.decision = Decision.FAILED
            result.reason = str(exc)
            return result
        result.decision = Decision.UPDATED
        return result

    def decide(self, document: Document, path: Path) -> UpdateResult:
        """Evaluate the policy without touching the file."""
        metadata = document.metadata
        if metadata is None:
            return UpdateResult(document.path, Decision.NOT_APPLICABLE, reason="no metadata")
        previous = metadata.raw_value(FIELD)
        if previous is None:
            return UpdateResult(document.path, Decision.NOT_APPLICABLE, reason="no timestamp field")
        if previous == self.current_value:
            return UpdateResult(document.path, Decision.ALREADY_CURRENT, previous, previous)

        if not self.force and not self.is_recently_modified(path):
            return UpdateResult(document.path, Decision.NOT_RECENT, previous, previous)
        return UpdateResult(document.path, Decision.WOULD_UPDATE, previous, self.current_value)

    def is_recently_modified(self, path: Path) -> bool:
        now = time.time() if self.now is None else self.now
        age_days = int((now - path.stat().st_mtime) // SECONDS_PER_DAY)
        return age_days <= self.max_age_days

    def apply(self, path: Path, value: str) -> None:
        """Rewrite the field, verify it and restore the backup on any failure."""
        backup = backup_path(path)
        shutil.copy2(path, backup)
        try:
            text = read_text(path, newline="")
            _atomic_write(path, rewrite_timestamp(text, value))
            actual = read_last_updated(path)
            if actual != value:
                raise VerificationError(f"expected '{value}', got '{actual}'")
        except (OSError, TimestampUpdateError):
            LOGGER.warning("Restoring %s from %s", path, backup)
            os.replace(backup, path)
            raise
        backup.unlink()
