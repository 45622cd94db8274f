"""Typer app root: registers all CLI subcommands."""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

app = typer.Typer(
    name="aws-cost-variations",
    help="Render AWS cost variation spreadsheets by account and usage type.",
    no_args_is_help=True,
)


def configure_logging(verbose: bool = False) -> None:
    """Route library logging through rich; DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


@app.callback()
def root(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show debug logging"
    ),
) -> None:
    configure_logging(verbose)


def main() -> None:
    # Import commands to register them
    from aws_cost_variations.cli import ingest as _ingest  # noqa: F401
    from aws_cost_variations.cli import report as _report  # noqa: F401

    app()


if __name__ == "__main__":
    main()
