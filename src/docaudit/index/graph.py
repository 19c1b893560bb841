"""Reference graph between corpus documents."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Set

from docaudit.index.indexer import Corpus
from docaudit.models import LinkKind, LinkOccurrence, ReferenceEdge


@dataclass(slots=True)
class ReferenceGraph:
    """Directed edge set plus every internal link attempt.

    ``edges`` only holds references whose target exists; ``attempts`` keeps
    every internal occurrence so missing targets can still be reported.
    """

    edges: Set[ReferenceEdge] = field(default_factory=set)
    attempts: List[LinkOccurrence] = field(default_factory=list)
    _incoming: Dict[str, Set[str]] = field(default_factory=lambda: defaultdict(set))
    _outgoing: Dict[str, Set[str]] = field(default_factory=lambda: defaultdict(set))

    def add_edge(self, source: str, target: str) -> None:
        edge = ReferenceEdge(source, target)
        if edge in self.edges:
            return
        self.edges.add(edge)
        self._incoming[target].add(source)
        self._outgoing[source].add(target)

    def incoming(self, path: str) -> Set[str]:
        return set(self._incoming.get(path, ()))

    def outgoing(self, path: str) -> Set[str]:
        return set(self._outgoing.get(path, ()))

    def targets(self) -> Set[str]:
        return {edge.target for edge in self.edges}

    def has_edge(self, source: str, target: str) -> bool:
        return ReferenceEdge(source, target) in self.edges


def build_graph(corpus: Corpus) -> ReferenceGraph:
    """Add an edge for every internal link whose resolved target exists."""
    graph = ReferenceGraph()
    for document in corpus:
        for link in document.links:
            if link.kind is not LinkKind.INTERNAL or link.resolved is None:
                continue
            graph.attempts.append(link)
            if corpus.exists(link.resolved):
                graph.add_edge(document.path, link.resolved)
    return graph
