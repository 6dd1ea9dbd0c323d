"""
Console reporting for resource runs.

Writes human-readable progress to stderr with rich; stdout carries only
the JSON the CI system reads back.
"""

from datetime import datetime
from typing import Iterable, Mapping

from rich.console import Console
from rich.markup import escape

from cloudsmith_resource.lifecycle.retention import RetentionDecision
from cloudsmith_resource.lifecycle.sync import ArtifactSyncResult, SyncOutcome
from cloudsmith_resource.versions.catalog import VersionAggregate

INDENT = "  "


def format_upload_date(moment: datetime | None) -> str:
    """Render a date as `2021-03-19T12:58Z`."""
    if moment is None:
        return "-"
    text = moment.strftime("%Y-%m-%dT%H:%M%z")
    return text[:-5] + "Z" if text.endswith("+0000") else text


class Reporter:
    """
    Presenter for the decisions taken during a run.

    Usage:
        reporter = Reporter()
        reporter.section("Files:")
        reporter.item("erlang_23.2.7-1_amd64.deb")
    """

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True, highlight=False)

    def section(self, title: str) -> None:
        self.console.print(f"[green]{escape(title)}[/green]")

    def field(self, label: str, value: str) -> None:
        self.console.print(f"[green]{escape(label)}:[/green] {escape(value)}")

    def item(self, text: str, style: str | None = None) -> None:
        body = escape(text)
        if style:
            body = f"[{style}]{body}[/{style}]"
        self.console.print(f"{INDENT}{body}")

    def info(self, text: str) -> None:
        self.console.print(escape(text))

    def warning(self, text: str) -> None:
        self.console.print(f"[yellow]{escape(text)}[/yellow]")

    def error(self, text: str) -> None:
        self.console.print(f"[red]{escape(text)}[/red]")

    def blank(self) -> None:
        self.console.print()

    # Delete flow

    def retention(
        self,
        catalog: Mapping[str, VersionAggregate],
        decision: RetentionDecision,
    ) -> None:
        """Report detected versions and what the retention run decided for each."""

        def label(versions: Iterable[str]) -> str:
            return ", ".join(
                f"{v} [{format_upload_date(catalog[v].last_upload)}]"
                for v in versions
                if v in catalog
            )

        self.field("Version(s) detected", label(catalog))
        self.field("Version(s) to delete", label(decision.candidates))
        if decision.exceptions:
            self.field("Deletion exception(s) (last minor patches)", label(decision.exceptions))
        for warning in decision.warnings:
            self.warning(f"Warning: {warning}")
        self.blank()
        if decision.keep:
            self.field("Version(s) to keep", label(decision.keep))
        self.blank()

    # Upload flow

    def sync_result(self, result: ArtifactSyncResult) -> None:
        """Report how synchronization ended for one uploaded package."""
        name = escape(result.display_name)
        match result.outcome:
            case SyncOutcome.COMPLETED:
                self.console.print(f"{INDENT}[green]{name}:[/green] OK")
            case SyncOutcome.FAILED:
                reason = escape(result.status_reason or "no reason given")
                self.console.print(f"{INDENT}[green]{name}:[/green] [red]Error[/red] [italic]({reason})[/italic]")
                if result.cleaned_up:
                    self.console.print(f"{INDENT * 2}Deleting... [green]OK[/green]")
                else:
                    cleanup = escape(result.cleanup_error or "unknown error")
                    self.console.print(f"{INDENT * 2}Deleting... [red]Error: {cleanup}[/red]")
            case SyncOutcome.TIMED_OUT:
                self.console.print(
                    f"{INDENT}[green]{name}:[/green] "
                    f"[red]timed out after {result.waited_seconds:.0f} seconds[/red]"
                )
            case _:
                error = escape(result.error or result.outcome.value)
                self.console.print(f"{INDENT}[red]{name}: {error}[/red]")
