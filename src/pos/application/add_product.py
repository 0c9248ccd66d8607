"""Application service: Add Product use case."""

from __future__ import annotations

import logging

from pos.domain.exceptions import ValidationError
from pos.domain.model.context import RequestContext
from pos.domain.model.product import DEFAULT_CATEGORY, DEFAULT_LOW_STOCK_THRESHOLD, Product
from pos.domain.model.value_objects import DEFAULT_CURRENCY, Money
from pos.domain.repository.catalog_store import CatalogStore

logger = logging.getLogger(__name__)


class AddProductHandler:

    def __init__(
        self,
        catalog: CatalogStore,
        catalog_roles: frozenset[str] = frozenset({"admin"}),
        currency: str = DEFAULT_CURRENCY,
    ) -> None:
        self._catalog = catalog
        self._catalog_roles = catalog_roles
        self._currency = currency

    def handle(
        self,
        context: RequestContext,
        name: str,
        cost_price: str,
        selling_price: str,
        stock: int = 0,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
        category: str = DEFAULT_CATEGORY,
        description: str = "",
        supplier: str = "",
        images: list[str] | None = None,
    ) -> Product:
        """Add a new product to the catalog."""
        context.require_role(self._catalog_roles, "manage the catalog")

        if not name or not name.strip():
            raise ValidationError("Product name is required")
        if self._catalog.get_by_name(name) is not None:
            raise ValidationError(f"Product '{name.strip()}' already exists")

        product = Product.create(
            product_id=self._catalog.next_id(),
            name=name,
            cost_price=Money.of(cost_price, self._currency),
            selling_price=Money.of(selling_price, self._currency),
            stock=stock,
            low_stock_threshold=low_stock_threshold,
            category=category,
            description=description,
            supplier=supplier,
            images=images,
        )
        self._catalog.add_product(product)
        logger.info("Product %s '%s' added by %s", product.id, product.name, context.user_id)
        return product
