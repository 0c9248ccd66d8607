"""CLI commands for stock reconciliation warnings."""

from __future__ import annotations

import click

from pos.application.reconciliation import (
    ListReconciliationHandler,
    ResolveReconciliationHandler,
)
from pos.domain.exceptions import DomainException
from pos.infrastructure.bootstrap import reconciliation_queue


@click.command("list")
@click.option("--all", "include_resolved", is_flag=True, default=False,
              help="Include resolved warnings.")
@click.pass_obj
def reconcile_list(state, include_resolved: bool) -> None:
    """List sales whose stock still needs checking."""
    handler = ListReconciliationHandler(queue=reconciliation_queue(state.config))
    try:
        warnings = handler.handle(include_resolved=include_resolved)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not warnings:
        click.echo("Nothing to reconcile.")
        return

    click.echo(f"{'ID':<6} {'Sale':<34} {'Product':<20} {'Qty':>4}  {'Reason':<18} Status")
    click.echo("-" * 96)
    for w in warnings:
        status = "resolved" if w.resolved else "open"
        click.echo(
            f"{w.id or '-':<6} {w.sale_id:<34} {w.product_name:<20} {w.quantity:>4}  "
            f"{w.reason.value:<18} {status}"
        )


@click.command("resolve")
@click.option("--id", "warning_id", required=True, help="Warning ID.")
@click.pass_obj
def reconcile_resolve(state, warning_id: str) -> None:
    """Mark a warning as handled after checking the shelf."""
    handler = ResolveReconciliationHandler(
        queue=reconciliation_queue(state.config),
        catalog_roles=state.config.catalog_roles,
    )
    try:
        handler.handle(state.context, warning_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Warning #{warning_id} resolved.")
