"""Markdown loading and extraction utilities.

Extraction is line/regex based rather than a structural Markdown parse, so it
can over-match (a link inside a fenced code example is still reported). The
``MarkdownExtractor`` class is the seam where a real parser could be swapped in.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, List, Optional

import yaml

from docaudit.index.resolver import resolve_link
from docaudit.models import Document, Heading, LinkOccurrence, MetadataRecord
from docaudit.utils.files import read_text, relative_key
from docaudit.utils.text import SlugStrategy, github_slug, slugify

LOGGER = logging.getLogger(__name__)

LINK_PATTERN = re.compile(
    r"\[(?P<text>(?:[^\[\]]|\[[^\]]*\])*)\]"
    r"\(\s*(?P<target><[^>]*>|[^)\s]*)(?:\s+(?:\"[^\"]*\"|'[^']*'))?\s*\)"
)
HEADING_PATTERN = re.compile(r"^(?P<marks>#{1,6})\s+(?P<text>.*?)\s*#*\s*$")
EXPLICIT_ID_PATTERN = re.compile(r"\s*\{#(?P<id>[^}\s]+)\}\s*$")
HTML_ANCHOR_PATTERN = re.compile(r"""(?<![\w-])(?:id|name)\s*=\s*["'](?P<id>[^"']+)["']""")
FENCE_PATTERN = re.compile(r"^\s*(```|~~~)")
METADATA_OPENERS = ("```yaml", "```yml")
METADATA_CLOSER = "```"


def _line_links(line: str) -> Iterator[tuple[str, str]]:
    # Display text may itself hold a link, e.g. a badge image wrapped in a link.
    for match in LINK_PATTERN.finditer(line):
        target = match.group("target")
        if target.startswith("<") and target.endswith(">"):
            target = target[1:-1]
        yield match.group("text"), target
        yield from _line_links(match.group("text"))


def iter_links(text: str) -> Iterator[tuple[int, str, str]]:
    """Yield ``(line, display_text, target)`` for each inline link, in order."""
    for number, line in enumerate(text.splitlines(), start=1):
        for display, target in _line_links(line):
            yield number, display, target


def extract_metadata_lines(text: str) -> Optional[List[str]]:
    """Return the interior lines of the first fenced YAML block, or None.

    An unclosed block runs to the end of the document.
    """
    lines: Optional[List[str]] = None
    for line in text.splitlines():
        if lines is None:
            if line.rstrip().lower() in METADATA_OPENERS:
                lines = []
            continue
        if line.rstrip() == METADATA_CLOSER:
            break
        lines.append(line)
    return lines


def parse_metadata(lines: List[str]) -> MetadataRecord:
    """Parse block lines with PyYAML, recording rather than raising failures."""
    try:
        data = yaml.safe_load("\n".join(lines))
    except yaml.YAMLError as exc:
        return MetadataRecord(lines=lines, error=f"invalid YAML: {exc}".splitlines()[0])
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return MetadataRecord(
            lines=lines, error=f"expected a mapping, got {type(data).__name__}"
        )
    return MetadataRecord(lines=lines, data={str(key): value for key, value in data.items()})


def extract_headings(text: str, strategy: SlugStrategy = github_slug) -> List[Heading]:
    """Collect ATX headings outside fenced code blocks."""
    headings: List[Heading] = []
    in_fence = False
    for line in text.splitlines():
        if FENCE_PATTERN.match(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        match = HEADING_PATTERN.match(line)
        if not match:
            continue
        heading_text = match.group("text")
        anchor_id = None
        explicit = EXPLICIT_ID_PATTERN.search(heading_text)
        if explicit:
            anchor_id = explicit.group("id")
            heading_text = heading_text[: explicit.start()]
        headings.append(
            Heading(
                text=heading_text,
                slug=slugify(heading_text, strategy),
                level=len(match.group("marks")),
                anchor_id=anchor_id,
            )
        )
    return headings


def extract_html_anchors(text: str) -> List[str]:
    return [match.group("id") for match in HTML_ANCHOR_PATTERN.finditer(text)]


class MarkdownExtractor:
    """Turns raw document text into a ``Document``."""

    def __init__(self, *, slug_strategy: SlugStrategy = github_slug) -> None:
        self.slug_strategy = slug_strategy

    def extract(self, key: str, text: str) -> Document:
        links = []
        for line, display, target in iter_links(text):
            resolved = resolve_link(target, key)
            links.append(
                LinkOccurrence(
                    source=key,
                    text=display,
                    target=target,
                    line=line,
                    kind=resolved.kind,
                    resolved=resolved.path,
                    fragment=resolved.fragment,
                )
            )

        metadata_lines = extract_metadata_lines(text)
        metadata = parse_metadata(metadata_lines) if metadata_lines is not None else None

        return Document(
            path=key,
            text=text,
            headings=extract_headings(text, self.slug_strategy),
            metadata=metadata,
            links=links,
        )


def load_document(
    path: Path, root: Path, extractor: Optional[MarkdownExtractor] = None
) -> Document:
    """Read and extract one document; read failures are kept on the result."""
    extractor = extractor or MarkdownExtractor()
    key = relative_key(path, root)
    try:
        text = read_text(path)
    except (OSError, UnicodeDecodeError) as exc:
        LOGGER.error("Failed to read %s: %s", path, exc)
        return Document(path=key, read_error=str(exc))
    return extractor.extract(key, text)
