"""Staleness evaluation based on ``last_updated``."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from docaudit.models import Document, Finding, Severity

STALE_AFTER_DAYS = 90
DATE_FORMAT = "%Y-%m-%d"


def parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        return None


def document_age(document: Document, today: date) -> Optional[int]:
    """Days since ``last_updated``, or None when absent or unparseable."""
    if document.metadata is None:
        return None
    updated = parse_date(document.metadata.raw_value("last_updated"))
    if updated is None:
        return None
    return (today - updated).days


def check_staleness(
    document: Document, today: Optional[date] = None, threshold: int = STALE_AFTER_DAYS
) -> Optional[Finding]:
    age = document_age(document, today or date.today())
    if age is None or age <= threshold:
        return None
    return Finding(
        path=document.path,
        severity=Severity.WARNING,
        check="stale",
        message=f"Document potentially stale (last updated {age} days ago)",
    )
