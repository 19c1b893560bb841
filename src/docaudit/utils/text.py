"""Text helpers for heading anchors."""

from __future__ import annotations

import re
from typing import Callable, Iterable, Iterator

SlugStrategy = Callable[[str], str]

_INVALID_SLUG_CHARS = re.compile(r"[^a-z0-9-]")
_DASH_RUNS = re.compile(r"-{2,}")


def github_slug(text: str) -> str:
    """Convert heading text to the anchor a reader's link would target.

    Lowercases, replaces every character outside ``[a-z0-9-]`` with ``-``,
    collapses runs of ``-`` and trims them from both ends.
    """
    slug = _INVALID_SLUG_CHARS.sub("-", text.lower())
    slug = _DASH_RUNS.sub("-", slug)
    return slug.strip("-")


def slugify(text: str, strategy: SlugStrategy = github_slug) -> str:
    return strategy(text)


def unique_slugs(slugs: Iterable[str]) -> Iterator[str]:
    """Yield slugs with ``-1``, ``-2`` ... suffixes for repeated headings."""
    seen: dict[str, int] = {}
    for slug in slugs:
        count = seen.get(slug, 0)
        seen[slug] = count + 1
        yield slug if count == 0 else f"{slug}-{count}"

