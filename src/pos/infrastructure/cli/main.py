import logging
from dataclasses import dataclass

import click

from pos.domain.model.context import RequestContext
from pos.infrastructure.cli.inventory_commands import inventory_show
from pos.infrastructure.cli.product_commands import (
    product_add,
    product_deactivate,
    product_list,
    product_restock,
    product_update,
)
from pos.infrastructure.cli.reconcile_commands import reconcile_list, reconcile_resolve
from pos.infrastructure.cli.report_commands import (
    report_daily,
    report_low_stock,
    report_summary,
    report_top_sellers,
)
from pos.infrastructure.cli.sale_commands import sale_checkout, sale_history, sale_record
from pos.infrastructure.config import Config

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


@dataclass(frozen=True)
class CliState:
    config: Config
    context: RequestContext


def configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level, logging.WARNING), format=LOG_FORMAT)


@click.group()
@click.option("--user", envvar="POS_USER", default="cashier", show_default=True,
              help="User ID recorded on sales.")
@click.option("--role", envvar="POS_ROLE", default="admin", show_default=True,
              help="Role supplied by the auth provider.")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log at DEBUG level.")
@click.pass_context
def cli(ctx: click.Context, user: str, role: str, verbose: bool) -> None:
    """POS: retail point of sale"""
    try:
        config = Config.from_env()
    except ValueError as exc:
        raise click.ClickException(f"Invalid configuration: {exc}")
    configure_logging("DEBUG" if verbose else config.log_level)
    ctx.obj = CliState(config=config, context=RequestContext(user_id=user, role=role))


@cli.group()
def product() -> None:
    """Manage the product catalog."""


@cli.group()
def inventory() -> None:
    """Inspect stock levels."""


@cli.group()
def sale() -> None:
    """Ring up and review sales."""


@cli.group()
def report() -> None:
    """Sales analytics."""


@cli.group()
def reconcile() -> None:
    """Follow up on stock that could not be updated after a sale."""


# Register subcommands
product.add_command(product_add)
product.add_command(product_list)
product.add_command(product_update)
product.add_command(product_restock)
product.add_command(product_deactivate)
inventory.add_command(inventory_show)
sale.add_command(sale_checkout)
sale.add_command(sale_record)
sale.add_command(sale_history)
report.add_command(report_summary)
report.add_command(report_low_stock)
report.add_command(report_top_sellers)
report.add_command(report_daily)
reconcile.add_command(reconcile_list)
reconcile.add_command(reconcile_resolve)
