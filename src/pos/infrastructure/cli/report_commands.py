"""CLI commands for sales analytics."""

from __future__ import annotations

import click

from pos.domain.exceptions import DomainException
from pos.domain.model.sales_window import SalesPeriod
from pos.domain.service.checkout_engine import utc_now
from pos.infrastructure.bootstrap import analytics

_PERIODS = click.Choice([p.value for p in SalesPeriod], case_sensitive=False)


@click.command("summary")
@click.option("--period", default="all", show_default=True, type=_PERIODS)
@click.pass_obj
def report_summary(state, period: str) -> None:
    """Revenue, profit and volume for a period."""
    aggregator = analytics(state.config)
    try:
        summary = aggregator.summary(SalesPeriod.parse(period).window(utc_now()))
        today = aggregator.today_revenue()
        categories = aggregator.category_distribution()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"{'Revenue':<18} {summary.total_revenue}")
    click.echo(f"{'Profit':<18} {summary.total_profit}")
    click.echo(f"{'Transactions':<18} {summary.transactions}")
    click.echo(f"{'Items sold':<18} {summary.items_sold}")
    click.echo(f"{'Average sale':<18} {summary.average_order_value}")
    click.echo(f"{'Today':<18} {today}")
    if categories:
        click.echo()
        click.echo("Products by category:")
        for category, count in categories.items():
            click.echo(f"  {category:<16} {count:>4}")


@click.command("low-stock")
@click.pass_obj
def report_low_stock(state) -> None:
    """Products at or below their low stock threshold."""
    try:
        products = analytics(state.config).low_stock()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not products:
        click.echo("All products are above their thresholds.")
        return

    click.echo(f"{'ID':<6} {'Name':<20} {'Stock':>6} {'Threshold':>10}")
    click.echo("-" * 45)
    for p in products:
        click.echo(f"{p.id:<6} {p.name:<20} {p.stock:>6} {p.low_stock_threshold:>10}")


@click.command("top-sellers")
@click.option("--period", default="all", show_default=True, type=_PERIODS)
@click.option("--limit", default=5, type=int, show_default=True)
@click.pass_obj
def report_top_sellers(state, period: str, limit: int) -> None:
    """Best selling products by units."""
    try:
        window = SalesPeriod.parse(period).window(utc_now())
        ranked = analytics(state.config).top_sellers(window, limit=limit)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not ranked:
        click.echo("No sales yet.")
        return

    click.echo(f"{'#':>3}  {'Product':<20} {'Units':>6} {'Revenue':>16}")
    click.echo("-" * 50)
    for rank, seller in enumerate(ranked, start=1):
        click.echo(
            f"{rank:>3}  {seller.product_name:<20} {seller.quantity:>6} {str(seller.revenue):>16}"
        )


@click.command("daily")
@click.option("--days", default=7, type=click.IntRange(min=1), show_default=True)
@click.pass_obj
def report_daily(state, days: int) -> None:
    """Revenue per day, oldest first."""
    try:
        rows = analytics(state.config).daily_revenue(days=days)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    for row in rows:
        click.echo(f"{row.day}  {str(row.revenue):>16}")
