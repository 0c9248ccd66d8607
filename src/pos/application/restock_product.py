"""Application service: Restock Product use case."""

from __future__ import annotations

import logging

from pos.domain.exceptions import EntityNotFoundError
from pos.domain.model.context import RequestContext
from pos.domain.model.product import Product
from pos.domain.repository.catalog_store import CatalogStore

logger = logging.getLogger(__name__)


class RestockProductHandler:

    def __init__(
        self,
        catalog: CatalogStore,
        catalog_roles: frozenset[str] = frozenset({"admin"}),
    ) -> None:
        self._catalog = catalog
        self._catalog_roles = catalog_roles

    def handle(self, context: RequestContext, product_id: str, quantity: int) -> Product:
        """Add received units to a product's stock."""
        context.require_role(self._catalog_roles, "manage the catalog")

        product = self._catalog.get_product(product_id)
        if product is None or not product.active:
            raise EntityNotFoundError(f"Product with ID '{product_id}' not found")
        product.restock(quantity)

        if not self._catalog.increment_stock(product_id, quantity):
            raise EntityNotFoundError(f"Product with ID '{product_id}' not found")

        logger.info("Product %s restocked by %d (%s)", product_id, quantity, context.user_id)
        return self._catalog.get_product(product_id)
