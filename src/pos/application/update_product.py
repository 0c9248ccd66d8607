"""Application service: Update Product use case."""

from __future__ import annotations

import logging

from pos.domain.exceptions import EntityNotFoundError, ValidationError
from pos.domain.model.context import RequestContext
from pos.domain.model.product import Product
from pos.domain.model.value_objects import Money
from pos.domain.repository.catalog_store import CatalogStore

logger = logging.getLogger(__name__)

_PRICE_FIELDS = ("cost_price", "selling_price")


class UpdateProductHandler:

    def __init__(
        self,
        catalog: CatalogStore,
        catalog_roles: frozenset[str] = frozenset({"admin"}),
    ) -> None:
        self._catalog = catalog
        self._catalog_roles = catalog_roles

    def handle(self, context: RequestContext, product_id: str, **changes) -> Product:
        """Edit a product's descriptive fields, prices or threshold.

        Stock is not editable here. This does NOT affect any recorded
        sales; they captured a price snapshot at checkout time.
        """
        context.require_role(self._catalog_roles, "manage the catalog")

        product = self._catalog.get_product(product_id)
        if product is None or not product.active:
            raise EntityNotFoundError(f"Product with ID '{product_id}' not found")

        changes = {k: v for k, v in changes.items() if v is not None}
        if not changes:
            raise ValidationError("Nothing to update")

        currency = product.selling_price.currency
        for name in _PRICE_FIELDS:
            if name in changes and not isinstance(changes[name], Money):
                changes[name] = Money.of(changes[name], currency)

        if "name" in changes:
            other = self._catalog.get_by_name(changes["name"])
            if other is not None and other.id != product.id:
                raise ValidationError(f"Product '{changes['name'].strip()}' already exists")

        # Validates against a snapshot; the store is only written if it passes.
        product.apply_changes(changes)
        fields = {name: getattr(product, name) for name in changes}
        if not self._catalog.update_product(product.id, fields):
            raise EntityNotFoundError(f"Product with ID '{product_id}' not found")

        logger.info(
            "Product %s updated by %s: %s",
            product.id, context.user_id, ", ".join(sorted(fields)),
        )
        return product
