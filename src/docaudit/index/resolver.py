"""Resolution of raw link targets into corpus-relative paths.

Pure string algebra over POSIX paths: nothing here touches the filesystem, so
resolution is deterministic and case-preserving.
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote

from docaudit.models import LinkKind

_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")


@dataclass(slots=True, frozen=True)
class ResolvedLink:
    kind: LinkKind
    path: Optional[str] = None
    fragment: Optional[str] = None

    @property
    def is_internal(self) -> bool:
        return self.kind is LinkKind.INTERNAL


def split_fragment(target: str) -> tuple[str, Optional[str]]:
    """Split ``target`` at the first ``#``; the fragment is ``None`` if absent."""
    path, sep, fragment = target.partition("#")
    if not sep:
        return path, None
    return path, unquote(fragment)


def normalize(path: str) -> str:
    """Collapse ``.`` and ``..`` segments lexically."""
    normalized = posixpath.normpath(path)
    # normpath keeps a leading "//" per POSIX; corpus keys never carry one
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    return normalized


def resolve_link(target: str, source: str, root: str = "") -> ResolvedLink:
    """Classify and resolve ``target`` as written inside document ``source``.

    ``source`` is the containing document's corpus key (e.g. ``docs/a.md``);
    ``root`` is the prefix that absolute (``/``-leading) targets are resolved
    against, empty for root-relative keys.
    """
    raw = target.strip()
    if raw.lower().startswith("mailto:"):
        return ResolvedLink(LinkKind.MAILTO)
    if _SCHEME.match(raw):
        return ResolvedLink(LinkKind.EXTERNAL)

    path, fragment = split_fragment(raw)
    if not path:
        return ResolvedLink(LinkKind.ANCHOR, fragment=fragment)

    path = unquote(path)
    if path.startswith("/"):
        joined = posixpath.join(root, path.lstrip("/")) if root else path.lstrip("/")
    else:
        joined = posixpath.join(posixpath.dirname(source), path)
    return ResolvedLink(LinkKind.INTERNAL, normalize(joined), fragment)
