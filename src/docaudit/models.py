"""Core docaudit data models."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class LinkKind(str, Enum):
    """Classification of a link target."""

    EXTERNAL = "external"
    MAILTO = "mailto"
    ANCHOR = "anchor"
    INTERNAL = "internal"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(slots=True)
class Heading:
    """Markdown heading with its computed anchor slug."""

    text: str
    slug: str
    level: int
    anchor_id: Optional[str] = None


@dataclass(slots=True)
class LinkOccurrence:
    """A single ``[text](target)`` occurrence inside a document."""

    source: str
    text: str
    target: str
    line: int
    kind: LinkKind = LinkKind.INTERNAL
    resolved: Optional[str] = None
    fragment: Optional[str] = None


@dataclass(slots=True, frozen=True)
class ReferenceEdge:
    source: str
    target: str


@dataclass(slots=True)
class MetadataRecord:
    """Embedded YAML metadata block of a document.

    ``lines`` holds the block interior verbatim. ``data`` is the parsed
    mapping, or ``None`` when ``error`` describes why parsing failed.
    """

    lines: List[str]
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.error is None and self.data is not None

    def has_field(self, name: str) -> bool:
        if self.data is not None:
            return name in self.data
        return self.raw_value(name) is not None

    def raw_value(self, name: str) -> Optional[str]:
        """Return the unquoted scalar text of a top-level ``name:`` line."""
        pattern = re.compile(rf"^{re.escape(name)}:\s*(.*?)\s*$")
        for line in self.lines:
            match = pattern.match(line)
            if match:
                return _unquote(match.group(1))
        return None


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


@dataclass(slots=True)
class Document:
    """A corpus document, keyed by its root-relative POSIX path."""

    path: str
    text: str = ""
    headings: List[Heading] = field(default_factory=list)
    metadata: Optional[MetadataRecord] = None
    links: List[LinkOccurrence] = field(default_factory=list)
    read_error: Optional[str] = None

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]


@dataclass(slots=True)
class Finding:
    path: str
    severity: Severity
    check: str
    message: str


@dataclass(slots=True)
class ValidationReport:
    """Counters and itemized findings for one validation run."""

    documents_scanned: int = 0
    links_checked: int = 0
    broken_links: int = 0
    missing_anchors: int = 0
    orphaned_documents: int = 0
    metadata_errors: int = 0
    metadata_warnings: int = 0
    stale_documents: int = 0
    read_errors: int = 0
    findings: List[Finding] = field(default_factory=list)

    def add(self, finding: Finding) -> None:
        if finding.check == "broken-link":
            self.broken_links += 1
        elif finding.check == "missing-anchor":
            self.missing_anchors += 1
        elif finding.check == "orphan":
            self.orphaned_documents += 1
        elif finding.check == "stale":
            self.stale_documents += 1
            self.metadata_warnings += 1
        elif finding.check == "read-error":
            self.read_errors += 1
        elif finding.check == "metadata":
            if finding.severity is Severity.ERROR:
                self.metadata_errors += 1
            else:
                self.metadata_warnings += 1
        self.findings.append(finding)

    def merge(self, other: "ValidationReport") -> "ValidationReport":
        """Fold ``other`` into this report and return ``self``."""
        self.documents_scanned += other.documents_scanned
        self.links_checked += other.links_checked
        self.broken_links += other.broken_links
        self.missing_anchors += other.missing_anchors
        self.orphaned_documents += other.orphaned_documents
        self.metadata_errors += other.metadata_errors
        self.metadata_warnings += other.metadata_warnings
        self.stale_documents += other.stale_documents
        self.read_errors += other.read_errors
        self.findings.extend(other.findings)
        return self

    @property
    def errors(self) -> List[Finding]:
        return [item for item in self.findings if item.severity is Severity.ERROR]

    @property
    def warnings(self) -> List[Finding]:
        return [item for item in self.findings if item.severity is Severity.WARNING]

    def for_path(self, path: str) -> List[Finding]:
        return [item for item in self.findings if item.path == path]


def read_error_finding(document: Document) -> Finding:
    return Finding(
        path=document.path,
        severity=Severity.ERROR,
        check="read-error",
        message=f"Could not read document: {document.read_error}",
    )
