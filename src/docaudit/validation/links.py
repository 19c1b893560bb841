"""Broken link and missing anchor detection."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional, Set

from docaudit.index.graph import ReferenceGraph
from docaudit.index.indexer import Corpus, Indexer
from docaudit.index.resolver import resolve_link
from docaudit.ingestion.markdown_loader import extract_html_anchors
from docaudit.models import (
    Document,
    Finding,
    LinkKind,
    LinkOccurrence,
    Severity,
    ValidationReport,
    read_error_finding,
)
from docaudit.utils.text import unique_slugs

LOGGER = logging.getLogger(__name__)


def document_anchors(document: Document) -> Set[str]:
    """Every anchor a link may target in ``document``, lowercased."""
    anchors: Set[str] = set()
    for heading in document.headings:
        if heading.anchor_id:
            anchors.add(heading.anchor_id.lower())
    anchors.update(slug.lower() for slug in unique_slugs(h.slug for h in document.headings))
    anchors.update(anchor.lower() for anchor in extract_html_anchors(document.text))
    anchors.discard("")
    return anchors


class LinkChecker:
    """Validates internal link targets and their fragments."""

    def __init__(
        self,
        corpus: Corpus,
        graph: ReferenceGraph,
        *,
        indexer: Optional[Indexer] = None,
        check_local_anchors: bool = False,
    ) -> None:
        self.corpus = corpus
        self.graph = graph
        self.indexer = indexer
        self.check_local_anchors = check_local_anchors
        self._anchor_cache: Dict[str, Optional[Set[str]]] = {}

    def check(self) -> ValidationReport:
        report = ValidationReport()
        for document in self.corpus:
            report.merge(self.check_document(document))
        return report

    def check_document(self, document: Document) -> ValidationReport:
        report = ValidationReport(documents_scanned=1)
        if document.read_error is not None:
            report.add(read_error_finding(document))
            return report

        for link in document.links:
            report.links_checked += 1
            if link.kind is LinkKind.INTERNAL:
                self._check_internal(link, report)
            elif link.kind is LinkKind.ANCHOR and self.check_local_anchors:
                self._check_fragment(link, document.path, report)

        for finding in self._check_related_docs(document):
            report.add(finding)
        return report

    def _check_internal(self, link: LinkOccurrence, report: ValidationReport) -> None:
        target = link.resolved or ""
        if not self.graph.has_edge(link.source, target) and not self.corpus.exists(target):
            LOGGER.debug("Broken link in %s line %d: %s", link.source, link.line, link.target)
            report.add(
                Finding(
                    path=link.source,
                    severity=Severity.ERROR,
                    check="broken-link",
                    message=f"Broken link: {link.target} (line {link.line}, resolved to {target})",
                )
            )
            return
        self._check_fragment(link, target, report)

    def _check_fragment(
        self, link: LinkOccurrence, target: str, report: ValidationReport
    ) -> None:
        if not link.fragment:
            return
        anchors = self._anchors_for(target)
        if anchors is None or link.fragment.lower() in anchors:
            return
        report.add(
            Finding(
                path=link.source,
                severity=Severity.WARNING,
                check="missing-anchor",
                message=f"Potential missing anchor: #{link.fragment} in {target} (line {link.line})",
            )
        )

    def _anchors_for(self, key: str) -> Optional[Set[str]]:
        """Anchors of ``key``, or None when the target cannot carry headings."""
        if key in self._anchor_cache:
            return self._anchor_cache[key]

        document = self.corpus.get(key)
        if document is None and self.indexer is not None:
            document = self.indexer.load_extra(self.corpus, key)
        anchors = None
        if document is not None and document.read_error is None:
            anchors = document_anchors(document)
        self._anchor_cache[key] = anchors
        return anchors

    def _check_related_docs(self, document: Document) -> Iterable[Finding]:
        metadata = document.metadata
        if metadata is None or not metadata.is_valid:
            return
        related = metadata.data.get("related_docs")
        if related is None:
            return
        entries = related if isinstance(related, list) else [related]
        for entry in entries:
            if not isinstance(entry, str) or not entry.strip():
                continue
            resolved = resolve_link(entry, document.path)
            if not resolved.is_internal or self.corpus.exists(resolved.path or ""):
                continue
            yield Finding(
                path=document.path,
                severity=Severity.ERROR,
                check="broken-link",
                message=f"Broken metadata reference: {entry} (resolved to {resolved.path})",
            )
