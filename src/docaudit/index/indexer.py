"""Corpus loading pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, Optional

from docaudit.config import AppConfig
from docaudit.ingestion.markdown_loader import MarkdownExtractor, load_document
from docaudit.models import Document
from docaudit.utils.files import iter_markdown_paths

LOGGER = logging.getLogger(__name__)


def find_documents(config: AppConfig) -> list[Path]:
    """Find all eligible documents under the configured root."""
    return list(
        iter_markdown_paths(
            config.resolve_root(), extension=config.extension, exclude=config.exclude
        )
    )


@dataclass(slots=True)
class Corpus:
    """Documents of one run, keyed and ordered by corpus-relative path."""

    root: Path
    documents: Dict[str, Document] = field(default_factory=dict)

    def __iter__(self) -> Iterator[Document]:
        return iter(self.documents.values())

    def __len__(self) -> int:
        return len(self.documents)

    def __contains__(self, key: object) -> bool:
        return key in self.documents

    def get(self, key: str) -> Optional[Document]:
        return self.documents.get(key)

    def exists(self, key: str) -> bool:
        """True if ``key`` names a regular file on disk, scanned or not."""
        if key in self.documents:
            return True
        return (self.root / key).is_file()


class Indexer:
    """Coordinates scanning and per-document extraction."""

    def __init__(self, config: AppConfig, extractor: Optional[MarkdownExtractor] = None) -> None:
        self.config = config
        self.extractor = extractor or MarkdownExtractor()

    def index(self) -> Corpus:
        root = self.config.resolve_root()
        corpus = Corpus(root=root)
        paths = find_documents(self.config)
        if not paths:
            LOGGER.warning("No documents found under %s", root)
            return corpus

        for path in paths:
            LOGGER.debug("Loading: %s", path)
            document = load_document(path, root, self.extractor)
            corpus.documents[document.path] = document
        return corpus

    def load_extra(self, corpus: Corpus, key: str) -> Optional[Document]:
        """Load a document outside the scanned set (e.g. in an excluded directory)."""
        path = corpus.root / key
        if not path.is_file() or path.suffix.lower() != self.config.extension.lower():
            return None
        return load_document(path, corpus.root, self.extractor)
