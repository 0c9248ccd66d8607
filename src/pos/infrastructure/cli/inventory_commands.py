"""CLI commands for inventory levels."""

from __future__ import annotations

import click

from pos.application.show_inventory import ShowInventoryHandler
from pos.domain.exceptions import DomainException
from pos.infrastructure.bootstrap import catalog_store


@click.command("show")
@click.option("--low", "low_stock_only", is_flag=True, default=False,
              help="Only products at or below their threshold.")
@click.pass_obj
def inventory_show(state, low_stock_only: bool) -> None:
    """Show current stock levels."""
    handler = ShowInventoryHandler(catalog=catalog_store(state.config))
    try:
        lines = handler.handle(low_stock_only=low_stock_only)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not lines:
        click.echo("No inventory records found.")
        return

    click.echo(
        f"{'ID':<6} {'Product':<20} {'Stock':>8} {'Threshold':>10} {'Unit margin':>14}  Status"
    )
    click.echo("-" * 72)
    for line in lines:
        if line.is_out_of_stock:
            status = "OUT"
        elif line.is_low_stock:
            status = "LOW"
        else:
            status = "ok"
        click.echo(
            f"{line.id:<6} {line.name:<20} {line.stock:>8} {line.low_stock_threshold:>10} "
            f"{line.margin:>14}  {status}"
        )
