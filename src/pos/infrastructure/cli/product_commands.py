"""CLI commands for the Product aggregate."""

from __future__ import annotations

import click

from pos.application.add_product import AddProductHandler
from pos.application.deactivate_product import DeactivateProductHandler
from pos.application.restock_product import RestockProductHandler
from pos.application.show_inventory import ShowInventoryHandler
from pos.application.update_product import UpdateProductHandler
from pos.domain.exceptions import DomainException
from pos.infrastructure.bootstrap import catalog_store


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--cost", "cost_price", required=True, help="Cost price (e.g. 100.00).")
@click.option("--price", "selling_price", required=True, help="Selling price (e.g. 150.00).")
@click.option("--stock", default=0, type=int, show_default=True, help="Opening stock.")
@click.option("--threshold", default=5, type=int, show_default=True, help="Low stock threshold.")
@click.option("--category", default="General", show_default=True)
@click.option("--description", default="")
@click.option("--supplier", default="")
@click.option("--image", "images", multiple=True, help="Image URI (repeat up to 5 times).")
@click.pass_obj
def product_add(state, name, cost_price, selling_price, stock, threshold,
                category, description, supplier, images) -> None:
    """Add a new product to the catalog."""
    handler = AddProductHandler(
        catalog=catalog_store(state.config),
        catalog_roles=state.config.catalog_roles,
        currency=state.config.currency,
    )

    try:
        product = handler.handle(
            state.context,
            name=name,
            cost_price=cost_price,
            selling_price=selling_price,
            stock=stock,
            low_stock_threshold=threshold,
            category=category,
            description=description,
            supplier=supplier,
            images=list(images),
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Product #{product.id} '{product.name}' added at {product.selling_price} "
        f"({product.stock} in stock)"
    )


@click.command("list")
@click.option("--all", "include_inactive", is_flag=True, default=False,
              help="Include deactivated products.")
@click.pass_obj
def product_list(state, include_inactive: bool) -> None:
    """List products in the catalog."""
    handler = ShowInventoryHandler(catalog=catalog_store(state.config))
    try:
        products = handler.handle(include_inactive=include_inactive)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Name':<20} {'Category':<12} {'Price':>14} {'Stock':>6}")
    click.echo("-" * 62)
    for p in products:
        flag = "" if p.active else "  (inactive)"
        click.echo(
            f"{p.id:<6} {p.name:<20} {p.category:<12} {p.selling_price:>14} {p.stock:>6}{flag}"
        )


@click.command("update")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--name", default=None)
@click.option("--cost", "cost_price", default=None, help="New cost price.")
@click.option("--price", "selling_price", default=None, help="New selling price.")
@click.option("--threshold", "low_stock_threshold", default=None, type=int)
@click.option("--category", default=None)
@click.option("--description", default=None)
@click.option("--supplier", default=None)
@click.option("--image", "images", multiple=True, help="Replace images (repeatable).")
@click.pass_obj
def product_update(state, product_id, images, **changes) -> None:
    """Edit a product. Stock changes go through 'restock'."""
    handler = UpdateProductHandler(
        catalog=catalog_store(state.config),
        catalog_roles=state.config.catalog_roles,
    )
    if images:
        changes["images"] = list(images)

    try:
        product = handler.handle(state.context, product_id, **changes)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product #{product.id} '{product.name}' updated")


@click.command("restock")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int, help="Units received.")
@click.pass_obj
def product_restock(state, product_id: str, quantity: int) -> None:
    """Add received units to a product's stock."""
    handler = RestockProductHandler(
        catalog=catalog_store(state.config),
        catalog_roles=state.config.catalog_roles,
    )

    try:
        product = handler.handle(state.context, product_id, quantity)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product #{product.id} '{product.name}' now has {product.stock} in stock")


@click.command("deactivate")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.pass_obj
def product_deactivate(state, product_id: str) -> None:
    """Retire a product. Its sales history is kept."""
    handler = DeactivateProductHandler(
        catalog=catalog_store(state.config),
        catalog_roles=state.config.catalog_roles,
    )

    try:
        handler.handle(state.context, product_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product #{product_id} deactivated.")
