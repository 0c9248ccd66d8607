"""CLI commands for ringing up and reviewing sales."""

from __future__ import annotations

import click

from pos.application.checkout import CheckoutHandler
from pos.application.dto import CartItemSpec
from pos.application.list_sales import DEFAULT_PAGE_SIZE, ListSalesHandler
from pos.application.record_manual_sale import RecordManualSaleHandler
from pos.domain.exceptions import CommitUncertainError, DomainException
from pos.infrastructure.bootstrap import (
    catalog_store,
    checkout_engine,
    event_bus,
    reconciliation_queue,
    sale_ledger,
)


def _parse_items(raw: str) -> list[CartItemSpec]:
    """Parse '1:3,4:5' (product ID : quantity) into CartItemSpec list."""
    specs: list[CartItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductID:Quantity'."
            )
        product_id, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product_id}'."
            )
        specs.append(CartItemSpec(product_id=product_id.strip(), quantity=qty))
    return specs


@click.command("checkout")
@click.option("--items", required=True, help="Items as 'ProductID:Qty,ProductID:Qty'.")
@click.option("--payment", required=True, help="Cash or M-Pesa.")
@click.option("--customer", default="", help="Customer name (default Walk-in).")
@click.option("--discount", default="0", show_default=True, help="Discount percentage.")
@click.pass_obj
def sale_checkout(state, items: str, payment: str, customer: str, discount: str) -> None:
    """Check out a cart of catalog products."""
    specs = _parse_items(items)

    handler = CheckoutHandler(
        catalog=catalog_store(state.config),
        engine=checkout_engine(state.config),
    )

    try:
        dto = handler.handle_items(
            state.context, specs, payment_method=payment, customer=customer, discount=discount
        )
    except CommitUncertainError as exc:
        click.secho(str(exc), fg="yellow", err=True)
        for warning in exc.warnings:
            click.secho(f"  ! {warning}", fg="yellow", err=True)
        raise click.ClickException("Sale status unknown.")
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Sale recorded  (id={dto.sale_id})")
    click.echo()
    click.echo(f"  {'Product':<20} {'Qty':>5} {'Price':>14} {'Total':>14}")
    click.echo(f"  {'-'*56}")
    for line in dto.lines:
        click.echo(
            f"  {line.product_name:<20} {line.quantity:>5} {line.unit_price:>14} {line.total:>14}"
        )
    click.echo(f"  {'-'*56}")
    click.echo(f"  {'Sale Total':<27} {dto.total:>29}")

    if dto.warnings:
        # Secondary notice: the sale stands, only stock needs a look
        click.echo()
        click.secho(
            f"Stock for {len(dto.warnings)} item(s) could not be updated and "
            f"was queued for reconciliation:",
            fg="yellow",
        )
        for warning in dto.warnings:
            click.secho(f"  ! {warning}", fg="yellow")


@click.command("record")
@click.option("--amount", required=True, help="Sale amount before discount.")
@click.option("--payment", required=True, help="Cash or M-Pesa.")
@click.option("--customer", default="Walk-in", show_default=True)
@click.option("--discount", default="0", show_default=True, help="Discount percentage.")
@click.pass_obj
def sale_record(state, amount: str, payment: str, customer: str, discount: str) -> None:
    """Record a sale by amount, without a catalog product."""
    handler = RecordManualSaleHandler(
        ledger=sale_ledger(state.config),
        events=event_bus(state.config),
        reconciliation=reconciliation_queue(state.config),
        checkout_roles=state.config.checkout_roles,
        margin=state.config.manual_sale_margin,
        currency=state.config.currency,
    )

    try:
        line = handler.handle(
            state.context, amount, payment_method=payment, customer=customer, discount=discount
        )
    except CommitUncertainError as exc:
        click.secho(str(exc), fg="yellow", err=True)
        for warning in exc.warnings:
            click.secho(f"  ! {warning}", fg="yellow", err=True)
        raise click.ClickException("Sale status unknown.")
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Manual sale #{line.id} recorded: {line.total} ({line.payment_method.value})")


@click.command("history")
@click.option("--period", default="all", show_default=True,
              type=click.Choice(["all", "today", "week", "month"], case_sensitive=False))
@click.option("--search", default="", help="Match product name or customer.")
@click.option("--page", default=1, type=int, show_default=True)
@click.option("--per-page", default=DEFAULT_PAGE_SIZE, type=int, show_default=True)
@click.pass_obj
def sale_history(state, period: str, search: str, page: int, per_page: int) -> None:
    """List recorded sales, newest first."""
    handler = ListSalesHandler(ledger=sale_ledger(state.config))

    try:
        dto = handler.handle(period=period, search=search, page=page, per_page=per_page)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not dto.rows:
        click.echo("No sales found.")
        return

    click.echo(
        f"{'ID':<6} {'When':<21} {'Product':<20} {'Qty':>4} {'Total':>14} "
        f"{'Payment':<8} Customer"
    )
    click.echo("-" * 90)
    for row in dto.rows:
        click.echo(
            f"{row.id or '-':<6} {row.timestamp:<21} {row.product_name:<20} {row.quantity:>4} "
            f"{row.total:>14} {row.payment_method:<8} {row.customer}"
        )
    click.echo("-" * 90)
    click.echo(
        f"Page {dto.page}: {dto.transactions} sale(s), {dto.items_sold} item(s), "
        f"revenue {dto.total_revenue}, profit {dto.total_profit}"
    )
    if dto.has_next:
        click.echo(f"More results: --page {dto.page + 1}")
