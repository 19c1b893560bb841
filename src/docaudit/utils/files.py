"""Utility helpers for working with files."""

from __future__ import annotations

import fnmatch
from pathlib import Path
from typing import Iterator, Sequence


def is_excluded(relative: Path, exclude: Sequence[str]) -> bool:
    """Return True when any directory component of ``relative`` matches a glob."""
    for part in relative.parts[:-1]:
        if any(fnmatch.fnmatchcase(part, pattern) for pattern in exclude):
            return True
    return False


def iter_markdown_paths(
    root: Path, *, extension: str = ".md", exclude: Sequence[str] = ()
) -> Iterator[Path]:
    """Yield documents under ``root`` in lexical order of their relative path.

    Raises ``NotADirectoryError`` when ``root`` is missing or not a directory.
    """
    root = Path(root)
    if not root.is_dir():
        raise NotADirectoryError(f"Corpus root is not a directory: {root}")

    suffix = extension.lower()
    candidates = []
    for item in root.rglob(f"*{extension}"):
        relative = item.relative_to(root)
        if item.suffix.lower() != suffix or not item.is_file():
            continue
        if is_excluded(relative, exclude):
            continue
        candidates.append(relative)

    for relative in sorted(candidates, key=lambda path: path.as_posix()):
        yield root / relative


def relative_key(path: Path, root: Path) -> str:
    """Document key: POSIX path of ``path`` relative to ``root``."""
    return Path(path).relative_to(root).as_posix()


def read_text(path: Path, *, newline: str | None = None) -> str:
    with Path(path).open("r", encoding="utf-8", newline=newline) as handle:
        return handle.read()
