"""
Cloudsmith Resource CLI - Command-line interface.

Concourse calls `check`, `in`, and `out` with the input document on stdin;
the GitHub Action calls `action` with `INPUT_*` environment variables.
JSON results go to stdout, progress and errors to stderr.
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Callable, Optional

import httpx
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from cloudsmith_resource import __version__
from cloudsmith_resource.config import ResourceInput
from cloudsmith_resource.core.exceptions import (
    CloudsmithResourceError,
    ConfigurationError,
    format_exception,
)
from cloudsmith_resource.core.models import ResourceOutput
from cloudsmith_resource.resource import CloudsmithResource

app = typer.Typer(
    name="cloudsmith-resource",
    help="Cloudsmith Resource - publish, fetch, and prune packages from CI pipelines",
    no_args_is_help=True,
)
err_console = Console(stderr=True, highlight=False)

DEFAULT_SELF_TEST_URL = "https://www.wikipedia.org/"
GITHUB_ACTIONS = ("download", "upload", "delete")


def configure_logging(level: str) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def build_resource(resource_input: ResourceInput) -> CloudsmithResource:
    """Create the resource for one invocation."""
    return CloudsmithResource(resource_input)


def read_input() -> ResourceInput:
    """Parse the Concourse input document from stdin."""
    document = sys.stdin.read()
    if not document.strip():
        raise ConfigurationError("No input received on stdin")
    return ResourceInput.from_json(document)


def _run(operation: Callable[[], None]) -> None:
    """Run a command body, turning resource errors into exit code 1."""
    try:
        operation()
    except CloudsmithResourceError as e:
        err_console.print(f"[red]{escape(format_exception(e))}[/red]")
        raise typer.Exit(1)


def _emit(output: ResourceOutput) -> None:
    typer.echo(output.to_json())


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        envvar="CLOUDSMITH_RESOURCE_LOG_LEVEL",
        help="Logging level for diagnostics on stderr",
    ),
):
    """Cloudsmith Resource - publish, fetch, and prune packages from CI pipelines."""
    configure_logging(log_level)


@app.command()
def check():
    """Concourse check: list new versions, oldest first."""

    def body() -> None:
        resource = build_resource(read_input())
        try:
            versions = resource.check()
        finally:
            resource.close()
        typer.echo(json.dumps(versions, indent=2))

    _run(body)


@app.command("in")
def get(
    directory: Path = typer.Argument(..., help="Destination directory"),
):
    """Concourse in: download the packages of a version."""

    def body() -> None:
        resource = build_resource(read_input())
        try:
            output = resource.get(directory)
        finally:
            resource.close()
        _emit(output)

    _run(body)


@app.command("out")
def put(
    directory: Path = typer.Argument(..., help="Build sources directory"),
):
    """Concourse out: upload packages, or delete old versions with params.delete."""

    def body() -> None:
        resource = build_resource(read_input())
        try:
            output = resource.put(directory)
        finally:
            resource.close()
        _emit(output)

    _run(body)


@app.command()
def action():
    """GitHub Action entry point, driven by INPUT_* environment variables."""

    def body() -> None:
        name = os.environ.get("INPUT_ACTION", "")
        if name not in GITHUB_ACTIONS:
            raise ConfigurationError(f"Action not supported: {name}", field="action")

        resource_input = ResourceInput.from_github_env(os.environ)
        resource = build_resource(resource_input)
        try:
            if name == "download":
                output = resource.get(Path(resource_input.params.local_path or Path.cwd()))
            elif name == "upload":
                output = resource.upload(Path.cwd())
            else:
                output = resource.delete()
        finally:
            resource.close()
        _emit(output)

    _run(body)


@app.command("self-test")
def self_test(
    url: str = typer.Argument(DEFAULT_SELF_TEST_URL, help="URL to reach"),
):
    """Check that the worker can reach the network."""
    err_console.print(f"[yellow]Starting test sequence, trying to reach {escape(url)}[/yellow]")
    try:
        response = httpx.get(url, timeout=60)
    except httpx.HTTPError as e:
        err_console.print(f"[red]Error during test sequence: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    message = f"Response code is {response.status_code}"
    if not response.is_success:
        err_console.print(f"[red]{message}[/red]")
        raise typer.Exit(1)
    err_console.print(f"[green]{message}[/green]")


@app.command()
def version():
    """Show version information."""
    typer.echo(f"Cloudsmith Resource v{__version__}")


def main(argv: Optional[list[str]] = None):
    """Entry point for the CLI."""
    app(args=argv)


if __name__ == "__main__":
    main()
