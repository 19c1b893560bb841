"""Schema validation for embedded YAML metadata blocks."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional

from docaudit.config import AppConfig
from docaudit.index.indexer import Corpus
from docaudit.models import Document, Finding, Severity, ValidationReport, read_error_finding
from docaudit.validation.staleness import check_staleness

LOGGER = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")


class MetadataStatus(str, Enum):
    OK = "OK"
    WARNINGS = "WARNINGS"
    ERRORS = "ERRORS"
    NO_METADATA = "NO METADATA"
    INVALID = "INVALID YAML"
    UNREADABLE = "UNREADABLE"


@dataclass(slots=True)
class MetadataResult:
    path: str
    status: MetadataStatus
    findings: List[Finding] = field(default_factory=list)


class MetadataValidator:
    """Checks required fields, value formats and enumerations per document."""

    def __init__(self, config: Optional[AppConfig] = None, *, today: Optional[date] = None) -> None:
        self.config = config or AppConfig()
        self.today = today

    def validate(self, corpus: Corpus) -> tuple[ValidationReport, List[MetadataResult]]:
        report = ValidationReport()
        results: List[MetadataResult] = []
        for document in corpus:
            result = self.validate_document(document)
            report.documents_scanned += 1
            for finding in result.findings:
                report.add(finding)
            results.append(result)
        return report, results

    def validate_document(self, document: Document) -> MetadataResult:
        if document.read_error is not None:
            return MetadataResult(
                document.path, MetadataStatus.UNREADABLE, [read_error_finding(document)]
            )

        metadata = document.metadata
        if metadata is None:
            return MetadataResult(
                document.path,
                MetadataStatus.NO_METADATA,
                [self._finding(document, Severity.WARNING, "No metadata block")],
            )
        if not metadata.is_valid:
            LOGGER.debug("Invalid metadata in %s: %s", document.path, metadata.error)
            return MetadataResult(
                document.path,
                MetadataStatus.INVALID,
                [self._finding(document, Severity.ERROR, f"Malformed metadata: {metadata.error}")],
            )

        findings = list(self._schema_findings(document))
        if any(item.severity is Severity.ERROR for item in findings):
            status = MetadataStatus.ERRORS
        elif findings:
            status = MetadataStatus.WARNINGS
        else:
            status = MetadataStatus.OK

        stale = check_staleness(document, self.today, self.config.stale_after_days)
        if stale is not None:
            findings.append(stale)
        return MetadataResult(document.path, status, findings)

    def _schema_findings(self, document: Document) -> List[Finding]:
        metadata = document.metadata
        data = metadata.data
        findings: List[Finding] = []

        missing = [name for name in self.config.required_fields if not metadata.has_field(name)]
        if missing:
            findings.append(
                self._finding(document, Severity.ERROR, f"Missing fields: {' '.join(missing)}")
            )

        if "last_updated" in data:
            value = metadata.raw_value("last_updated")
            if value is None:
                value = str(data["last_updated"])
            if not DATE_PATTERN.match(value):
                findings.append(
                    self._finding(
                        document,
                        Severity.WARNING,
                        f"Invalid date format: {value} (expected YYYY-MM-DD)",
                    )
                )

        for name in self.config.list_fields:
            if name in data and not isinstance(data[name], list):
                findings.append(
                    self._finding(
                        document, Severity.WARNING, f"{name.capitalize()} should be in array format"
                    )
                )

        if "complexity" in data:
            value = data["complexity"]
            if value not in self.config.complexity_levels:
                levels = "|".join(self.config.complexity_levels)
                findings.append(
                    self._finding(
                        document,
                        Severity.WARNING,
                        f"Invalid complexity value: {value} (should be: {levels})",
                    )
                )
        return findings

    @staticmethod
    def _finding(document: Document, severity: Severity, message: str) -> Finding:
        return Finding(path=document.path, severity=severity, check="metadata", message=message)
