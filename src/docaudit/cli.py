"""Command line interface for docaudit."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape

from docaudit.config import AppConfig
from docaudit.index.graph import build_graph
from docaudit.index.indexer import Corpus, Indexer
from docaudit.maintenance.timestamps import Decision, TimestampUpdater
from docaudit.models import Finding, Severity, ValidationReport
from docaudit.validation.links import LinkChecker
from docaudit.validation.metadata import MetadataStatus, MetadataValidator
from docaudit.validation.orphans import find_orphans

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

console = Console()
app = typer.Typer(
    help="docaudit - structural checks for Markdown documentation",
    context_settings=CONTEXT_SETTINGS,
)

STATUS_STYLES = {
    MetadataStatus.OK: "green",
    MetadataStatus.WARNINGS: "yellow",
    MetadataStatus.NO_METADATA: "yellow",
    MetadataStatus.ERRORS: "red",
    MetadataStatus.INVALID: "red",
    MetadataStatus.UNREADABLE: "red",
}

DECISION_STYLES = {
    Decision.UPDATED: "green",
    Decision.ALREADY_CURRENT: "green",
    Decision.WOULD_UPDATE: "blue",
    Decision.NOT_APPLICABLE: "yellow",
    Decision.NOT_RECENT: "yellow",
    Decision.FAILED: "red",
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _load_config(root: Optional[Path], **overrides: object) -> AppConfig:
    resolved = root if root is not None else Path.cwd()
    try:
        return AppConfig.load(resolved, **overrides)
    except (OSError, yaml.YAMLError) as exc:
        raise typer.BadParameter(f"Could not read configuration: {exc}") from exc


def _index(config: AppConfig) -> tuple[Indexer, Corpus]:
    indexer = Indexer(config)
    try:
        corpus = indexer.index()
    except OSError as exc:
        raise typer.BadParameter(f"Corpus root not found: {config.resolve_root()}") from exc
    return indexer, corpus


def _rule(title: str) -> None:
    console.print("=" * 50)
    console.print(f"[bold blue]{title}[/bold blue]")
    console.print("=" * 50)


def _finding_style(finding: Finding) -> str:
    return "red" if finding.severity is Severity.ERROR else "yellow"


@app.command()
def links(
    root: Path = typer.Option(None, "--root", help="Corpus root (default: current directory)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Check cross-references, anchors and orphaned documents."""
    _setup_logging(verbose)
    config = _load_config(root)
    indexer, corpus = _index(config)

    console.print(f"Checking links under [bold]{escape(str(config.root))}[/bold]...")
    graph = build_graph(corpus)
    checker = LinkChecker(
        corpus, graph, indexer=indexer, check_local_anchors=config.check_local_anchors
    )

    report = ValidationReport()
    for document in corpus:
        result = checker.check_document(document)
        report.merge(result)
        failures = result.broken_links + result.read_errors
        if failures:
            console.print(f"{escape(document.path)}: [red]Found {failures} broken link(s)[/red]")
        else:
            console.print(f"{escape(document.path)}: [green]All links valid[/green]")
        for finding in result.findings:
            style = _finding_style(finding)
            console.print(f"  [{style}]{escape(finding.message)}[/{style}]")

    orphans = find_orphans(corpus, graph, config.entry_points)
    if orphans.findings:
        console.print("\n[bold blue]Checking for orphaned files...[/bold blue]")
        for finding in orphans.findings:
            console.print(f"  [yellow]{escape(finding.message)}[/yellow]")
    report.merge(orphans)

    console.print()
    _rule("Cross-Reference Check Summary")
    console.print(f"Files processed: {report.documents_scanned}")
    console.print(f"Links checked: {report.links_checked}")
    console.print(f"Broken links: [red]{report.broken_links}[/red]")
    console.print(f"Missing anchors: [yellow]{report.missing_anchors}[/yellow]")
    console.print(f"Orphaned files: [yellow]{report.orphaned_documents}[/yellow]")

    if report.broken_links or report.read_errors:
        console.print("[red]Cross-reference check failed[/red]")
        raise typer.Exit(code=1)
    if report.orphaned_documents:
        console.print("[yellow]No broken links, but found orphaned files[/yellow]")
    else:
        console.print("[green]All cross-references are valid![/green]")


@app.command()
def metadata(
    root: Path = typer.Option(None, "--root", help="Corpus root (default: current directory)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Validate the YAML metadata block of every document."""
    _setup_logging(verbose)
    config = _load_config(root)
    _, corpus = _index(config)

    validator = MetadataValidator(config)
    report, results = validator.validate(corpus)
    for result in results:
        style = STATUS_STYLES[result.status]
        console.print(
            f"Checking {escape(result.path)}... [{style}]{result.status.value}[/{style}]"
        )
        for finding in result.findings:
            style = _finding_style(finding)
            console.print(f"    [{style}]{escape(finding.message)}[/{style}]")

    errors = report.metadata_errors + report.read_errors
    console.print()
    _rule("Validation Summary")
    console.print(f"Files processed: {report.documents_scanned}")
    console.print(f"Errors: [red]{errors}[/red]")
    console.print(f"Warnings: [yellow]{report.metadata_warnings}[/yellow]")

    if errors:
        console.print("[red]Validation failed with errors[/red]")
        raise typer.Exit(code=1)
    if report.metadata_warnings:
        console.print("[yellow]Validation completed with warnings[/yellow]")
    else:
        console.print("[green]All metadata is valid![/green]")


@app.command()
def timestamps(
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Show what would be updated without writing"
    ),
    force: bool = typer.Option(False, "--force", help="Update regardless of modification time"),
    max_age: Optional[int] = typer.Option(
        None, "--max-age", min=0, help="Update files modified in the last N days (default: 1)"
    ),
    root: Path = typer.Option(None, "--root", help="Corpus root (default: current directory)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Refresh last_updated for recently modified documents."""
    _setup_logging(verbose)
    config = _load_config(root, max_age_days=max_age)
    _, corpus = _index(config)

    updater = TimestampUpdater(config, dry_run=dry_run, force=force)
    if dry_run:
        console.print("[yellow]DRY RUN MODE - No changes will be made[/yellow]")
    if force:
        console.print("[yellow]FORCE MODE - Updating all files with metadata[/yellow]")
    console.print(f"Max age for auto-update: {updater.max_age_days} day(s)")
    console.print(f"Current date: {updater.current_value}\n")

    stats = updater.run(corpus)
    for result in stats.results:
        style = DECISION_STYLES[result.decision]
        line = f"Processing {escape(result.path)}... [{style}]{result.decision.value}[/{style}]"
        if result.decision in (Decision.UPDATED, Decision.WOULD_UPDATE):
            line += f" ({result.previous} -> {result.current})"
        elif result.decision is Decision.NOT_RECENT:
            line += f" (last updated: {result.previous})"
        elif result.reason:
            line += f" ({escape(result.reason)})"
        console.print(line)

    console.print()
    _rule("Timestamp Update Summary")
    console.print(f"Files processed: {stats.processed}")
    label = "Would update" if dry_run else "Updated"
    console.print(f"{label}: [blue]{stats.updated}[/blue]")
    console.print(f"Skipped: [yellow]{stats.skipped}[/yellow]")
    if stats.failed:
        console.print(f"Failed: [red]{stats.failed}[/red]")

    if stats.updated == 0:
        console.print("[green]All timestamps are current![/green]")
    elif not dry_run:
        console.print("[green]Timestamp update completed![/green]")
    if dry_run:
        console.print("[blue]Run without --dry-run to apply changes[/blue]")


def _single(command) -> typer.Typer:
    single = typer.Typer(context_settings=CONTEXT_SETTINGS, add_completion=False)
    single.command()(command)
    return single


links_app = _single(links)
metadata_app = _single(metadata)
timestamps_app = _single(timestamps)
