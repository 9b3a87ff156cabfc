"""
Command line interface for validating AsyncAPI documents.

Commands:
    - validate: Validate one or more JSON/YAML documents
"""

from __future__ import annotations

import json
import logging
import sys
from typing import List

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import ValidatorOptions
from .errors import ConfigurationError
from .validation import DocumentValidator, ValidationResult

console = Console()


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _results_table(results: List[ValidationResult]) -> Table:
    table = Table(title="AsyncAPI validation")
    table.add_column("Document", style="cyan")
    table.add_column("Status")
    table.add_column("Errors", justify="right")
    table.add_column("Warnings", justify="right")
    table.add_column("Channels", justify="right")
    table.add_column("Operations", justify="right")
    for result in results:
        status = "[green]valid[/green]" if result.valid else "[red]invalid[/red]"
        table.add_row(
            escape(result.source or "<document>"),
            status,
            str(len(result.errors)),
            str(len(result.warnings)),
            str(result.metrics.channel_count),
            str(result.metrics.operation_count),
        )
    return table


@click.group(name="asyncapi-emitter")
@click.version_option(__version__, prog_name="asyncapi-emitter")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx, verbose):
    """AsyncAPI 3.0 emitter tools."""
    ctx.ensure_object(dict)
    _configure_logging(verbose)


@main.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(dir_okay=False))
@click.option("--strict", is_flag=True, help="Treat warnings as errors")
@click.option("--concurrency", default=4, show_default=True, type=int, help="Documents validated in parallel")
@click.option("--json-output", is_flag=True, help="Output results as JSON")
def validate(files, strict, concurrency, json_output):
    """Validate AsyncAPI documents."""
    try:
        options = ValidatorOptions(strict_mode=strict, batch_concurrency=concurrency)
    except ConfigurationError as exc:
        raise click.BadParameter(exc.message, param_hint="--concurrency") from exc

    results = DocumentValidator(options).validate_batch(list(files))

    if json_output:
        click.echo(json.dumps([{"file": r.source, **r.to_dict()} for r in results], indent=2))
    else:
        console.print(_results_table(results))
        for result in results:
            for issue in result.errors:
                location = issue.instance_path or "/"
                console.print(
                    f"[red]error[/red] {escape(str(result.source))}: {escape(location)} "
                    f"({issue.kind}) {escape(issue.message)}"
                )
            for issue in result.warnings:
                location = issue.instance_path or "/"
                console.print(
                    f"[yellow]warning[/yellow] {escape(str(result.source))}: {escape(location)} {escape(issue.message)}"
                )

    if not all(result.valid for result in results):
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
