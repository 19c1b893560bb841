"""Detection of documents no other document references."""

from __future__ import annotations

import logging
from typing import Sequence, Set

from docaudit.index.graph import ReferenceGraph
from docaudit.index.indexer import Corpus
from docaudit.models import Finding, Severity, ValidationReport

LOGGER = logging.getLogger(__name__)


def entry_point_paths(corpus: Corpus, entry_points: Sequence[str]) -> Set[str]:
    """Root entry documents plus every document sharing an entry-point name."""
    names = set(entry_points)
    reachable = {name for name in entry_points if name in corpus}
    reachable.update(document.path for document in corpus if document.name in names)
    return reachable


def reachable_paths(
    corpus: Corpus, graph: ReferenceGraph, entry_points: Sequence[str] = ("index.md",)
) -> Set[str]:
    return entry_point_paths(corpus, entry_points) | graph.targets()


def find_orphans(
    corpus: Corpus, graph: ReferenceGraph, entry_points: Sequence[str] = ("index.md",)
) -> ValidationReport:
    """Report every document that is neither an entry point nor a link target.

    These are warnings: entry points reached only through generated tables of
    contents show up here as false positives.
    """
    report = ValidationReport()
    reachable = reachable_paths(corpus, graph, entry_points)
    for document in corpus:
        if document.path in reachable:
            continue
        LOGGER.debug("Potentially orphaned: %s", document.path)
        report.add(
            Finding(
                path=document.path,
                severity=Severity.WARNING,
                check="orphan",
                message=f"Potentially orphaned file: {document.path}",
            )
        )
    return report
