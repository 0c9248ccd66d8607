"""Application service: Show Inventory use case (query)."""

from __future__ import annotations

from pos.application.dto import ProductDTO
from pos.domain.repository.catalog_store import CatalogStore


class ShowInventoryHandler:

    def __init__(self, catalog: CatalogStore) -> None:
        self._catalog = catalog

    def handle(self, include_inactive: bool = False, low_stock_only: bool = False) -> list[ProductDTO]:
        products = self._catalog.list_products(include_inactive=include_inactive)
        if low_stock_only:
            products = [p for p in products if p.active and p.is_low_stock]
        return [ProductDTO.from_domain(p) for p in products]
