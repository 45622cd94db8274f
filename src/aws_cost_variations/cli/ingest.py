"""Ingest command: load Cost Explorer data into the local DuckDB store."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from aws_cost_variations.cli.app import app
from aws_cost_variations.config.settings import ConfigError, load_settings
from aws_cost_variations.ingestion.cost_explorer import (
    CostExplorerError,
    fetch_cost_explorer_data,
)
from aws_cost_variations.storage.database import get_connection
from aws_cost_variations.storage.schema import (
    create_tables,
    insert_cost_explorer_summary,
)

console = Console()


@app.command()
def ingest(
    config: Optional[str] = typer.Option(
        None, "--config", help="Path to config YAML file"
    ),
    days: Optional[int] = typer.Option(
        None,
        "--days",
        help="Lookback days (overrides cost_explorer.lookback_days)",
    ),
) -> None:
    """Fetch daily Cost Explorer data by service and account into DuckDB."""
    try:
        settings = load_settings(config)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    lookback = days if days is not None else settings.cost_explorer.lookback_days
    if lookback < 1 or lookback > 365:
        console.print(
            "[red]Error:[/red] --days must be between 1 and 365"
        )
        raise typer.Exit(1)

    end_date = date.today()
    start_date = end_date - timedelta(days=lookback)

    spinner = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    )

    def on_page(page_num: int, rows_so_far: int) -> None:
        spinner.update(
            task,
            description=(
                f"Fetching Cost Explorer data... "
                f"page {page_num}, {rows_so_far} rows"
            ),
        )

    with spinner:
        task = spinner.add_task(
            "Fetching Cost Explorer data...", total=None
        )
        try:
            rows = fetch_cost_explorer_data(
                start_date=start_date.isoformat(),
                end_date=end_date.isoformat(),
                region=settings.cost_explorer.region,
                on_page=on_page,
                profile=settings.aws_profile,
            )
        except CostExplorerError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

        spinner.update(
            task,
            description=f"Fetched {len(rows)} rows from Cost Explorer",
        )

    conn = get_connection(settings.database.path)
    try:
        create_tables(conn)
        inserted = insert_cost_explorer_summary(
            conn,
            [
                (
                    r.usage_date,
                    r.usage_account_id,
                    r.product_code,
                    r.total_unblended_cost,
                    r.total_blended_cost,
                )
                for r in rows
            ],
        )
    finally:
        conn.close()

    console.print(
        f"\n[green]Cost Explorer ingestion complete.[/green] "
        f"{inserted:,} rows loaded "
        f"({start_date} to {end_date})."
    )
