"""Abstract Catalog Store: the system of record for products.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (in-memory, JSON, SQL) live in
the infrastructure layer.

Implementations hand out snapshots: mutating a returned Product never
changes the stored record. Stock moves only through the conditional
``decrement_stock`` and ``increment_stock`` calls.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pos.domain.model.product import Product


class CatalogStore(ABC):

    @abstractmethod
    def next_id(self) -> str:
        """Generate the next unique product ID."""

    @abstractmethod
    def get_product(self, product_id: str) -> Product | None:
        """Return a snapshot of a product, or None if not found."""

    @abstractmethod
    def get_by_name(self, name: str) -> Product | None:
        """Return an active product by name (case-insensitive), or None."""

    @abstractmethod
    def list_products(self, include_inactive: bool = False) -> list[Product]:
        """Return products in ID order."""

    @abstractmethod
    def add_product(self, product: Product) -> None:
        """Persist a new product. Its ID must not already exist."""

    @abstractmethod
    def update_product(self, product_id: str, fields: dict) -> bool:
        """Overwrite descriptive/price fields. False if the ID is unknown."""

    @abstractmethod
    def decrement_stock(self, product_id: str, quantity: int) -> bool:
        """Atomically subtract ``quantity`` if at least that much is in stock.

        Returns False, leaving stock untouched, when the guard fails or
        the product does not exist. Never a read-then-write pair.
        """

    @abstractmethod
    def increment_stock(self, product_id: str, quantity: int) -> bool:
        """Atomically add ``quantity``. False if the ID is unknown."""
