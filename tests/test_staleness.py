"""Tests for staleness evaluation."""

from __future__ import annotations

from datetime import date

from docaudit.ingestion.markdown_loader import MarkdownExtractor
from docaudit.validation.staleness import check_staleness, document_age, parse_date


def _doc(last_updated: str):
    return MarkdownExtractor().extract("a.md", f"```yaml\nlast_updated: {last_updated}\n```\n")


class TestParseDate:
    def test_valid(self) -> None:
        assert parse_date("2024-01-31") == date(2024, 1, 31)

    def test_invalid(self) -> None:
        assert parse_date("2024-02-30") is None
        assert parse_date("soon") is None
        assert parse_date(None) is None


class TestCheckStaleness:
    """Test the staleness threshold."""

    def test_boundary_not_stale(self) -> None:
        """Exactly the threshold is still fresh."""
        assert check_staleness(_doc("2024-01-01"), date(2024, 3, 31), threshold=90) is None

    def test_past_threshold(self) -> None:
        finding = check_staleness(_doc("2024-01-01"), date(2024, 4, 1), threshold=90)

        assert finding is not None
        assert finding.check == "stale"
        assert "91 days ago" in finding.message

    def test_quoted_value(self) -> None:
        assert document_age(_doc('"2024-01-01"'), date(2024, 1, 11)) == 10

    def test_unparseable_ignored(self) -> None:
        assert check_staleness(_doc("yesterday"), date(2030, 1, 1)) is None

    def test_no_metadata(self) -> None:
        document = MarkdownExtractor().extract("a.md", "# T\n")

        assert check_staleness(document, date(2030, 1, 1)) is None
