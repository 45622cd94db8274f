"""Report command: render the cost variation workbook."""

from __future__ import annotations

import uuid
from datetime import date
from typing import List, Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from aws_cost_variations.cli.app import app
from aws_cost_variations.cli.formatting import print_report_summary
from aws_cost_variations.config.settings import (
    VALID_DAILY_BUCKET_POLICIES,
    VALID_SOURCES,
    ConfigError,
    Settings,
    load_settings,
)
from aws_cost_variations.render.xlsx import write_workbook
from aws_cost_variations.report.models import (
    Account,
    CostDiffSource,
    CostVariationError,
    DailyBucketPolicy,
    ReportContext,
)
from aws_cost_variations.report.pipeline import (
    ReportOptions,
    cost_variation_reports,
    generate_report,
)

console = Console()


def _parse_anchor(value: Optional[str]) -> Optional[date]:
    """Parse --date YYYY-MM-DD.

    Raises typer.BadParameter if the format is invalid.
    """
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(
            f"Invalid date '{value}'. Use YYYY-MM-DD (e.g., 2025-01-15)."
        )


def _parse_account(value: str) -> Account:
    """Parse ``ID`` or ``ID=LABEL``."""
    account_id, _, label = value.partition("=")
    account_id = account_id.strip()
    if not account_id:
        raise typer.BadParameter(
            f"Invalid account '{value}'. Use ID or ID=LABEL."
        )
    return Account(id=account_id, label=label.strip())


def _open_source(settings: Settings, source: str) -> CostDiffSource:
    if source == "cost-explorer":
        from aws_cost_variations.ingestion.cost_explorer import (
            CostExplorerDiffSource,
        )

        return CostExplorerDiffSource(
            region=settings.cost_explorer.region,
            profile=settings.aws_profile,
        )

    from aws_cost_variations.storage.cost_store import DuckDBCostDiffSource
    from aws_cost_variations.storage.database import get_connection
    from aws_cost_variations.storage.schema import (
        create_tables,
        has_cost_data,
    )

    conn = get_connection(settings.database.path)
    create_tables(conn)
    if not has_cost_data(conn):
        console.print(
            "[yellow]No cost data found.[/yellow] "
            "Run [bold]ingest[/bold] first to load Cost Explorer data."
        )
        raise typer.Exit(1)
    return DuckDBCostDiffSource(conn)


@app.command()
def report(
    config: Optional[str] = typer.Option(
        None, "--config", help="Path to config YAML file"
    ),
    anchor: Optional[str] = typer.Option(
        None,
        "--date",
        help="Anchor date YYYY-MM-DD (default: last full month)",
    ),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Workbook path (.xlsx)"
    ),
    source: Optional[str] = typer.Option(
        None,
        "--source",
        help="Cost data source: 'cost-explorer' (API) or 'local' (DuckDB)",
    ),
    accounts: Optional[List[str]] = typer.Option(
        None,
        "--account",
        help="Account ID or ID=LABEL; repeatable, overrides config",
    ),
    workers: Optional[int] = typer.Option(
        None, "--workers", help="Accounts fetched in parallel"
    ),
    daily_buckets: Optional[str] = typer.Option(
        None,
        "--daily-buckets",
        help="Daily bucket count: 'end-day' (day of month end) or 'range'",
    ),
) -> None:
    """Generate the last-month and last-6-months cost variation sheets."""
    try:
        settings = load_settings(config)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    anchor_date = _parse_anchor(anchor)
    source_name = source or settings.report.source
    if source_name not in VALID_SOURCES:
        console.print(
            "[red]Error:[/red] --source must be "
            f"one of: {', '.join(VALID_SOURCES)}"
        )
        raise typer.Exit(1)

    policy = daily_buckets or settings.report.daily_bucket_policy
    if policy not in VALID_DAILY_BUCKET_POLICIES:
        console.print(
            "[red]Error:[/red] --daily-buckets must be "
            f"one of: {', '.join(VALID_DAILY_BUCKET_POLICIES)}"
        )
        raise typer.Exit(1)

    max_workers = workers if workers is not None else settings.report.max_workers
    if max_workers < 1:
        console.print("[red]Error:[/red] --workers must be >= 1")
        raise typer.Exit(1)

    if accounts:
        selected = [_parse_account(a) for a in accounts]
    else:
        selected = [
            Account(id=a.id, label=a.label) for a in settings.accounts
        ]
    if not selected:
        console.print(
            "[red]Error:[/red] No accounts to report on. "
            "Add them under 'accounts' in config.yaml or pass --account."
        )
        raise typer.Exit(1)

    try:
        cost_source = _open_source(settings, source_name)
    except CostVariationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    options = ReportOptions(
        anchor=anchor_date,
        daily_bucket_policy=DailyBucketPolicy(policy),
        max_workers=max_workers,
        context=ReportContext(request_id=uuid.uuid4().hex),
    )

    spinner = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    )
    with spinner:
        spinner.add_task(
            f"Generating cost variations for "
            f"{len(selected)} account(s)...",
            total=None,
        )
        try:
            layouts = generate_report(
                cost_variation_reports(), selected, cost_source, options
            )
        except CostVariationError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

    path = write_workbook(layouts, output or settings.report.output_path)

    print_report_summary(layouts)
    console.print(f"\n[green]Workbook written to[/green] {path}")
