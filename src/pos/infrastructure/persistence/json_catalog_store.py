"""JSON-file-backed implementation of CatalogStore."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from pos.domain.exceptions import ValidationError
from pos.domain.model.product import DEFAULT_CATEGORY, DEFAULT_LOW_STOCK_THRESHOLD, Product
from pos.domain.model.value_objects import DEFAULT_CURRENCY, Money
from pos.domain.repository.catalog_store import CatalogStore
from pos.infrastructure.persistence.json_file import JsonFile
from pos.infrastructure.persistence.memory_stores import DEFAULT_LOCK_TIMEOUT, id_sort_key


class JsonCatalogStore(CatalogStore):

    def __init__(self, file_path: Path, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
        self._file = JsonFile(file_path, lock_timeout)

    # --- CatalogStore interface -----------------------------------------------

    def next_id(self) -> str:
        with self._file.locked():
            numeric = [int(raw["id"]) for raw in self._file.load() if raw["id"].isdigit()]
        return str(max(numeric) + 1) if numeric else "1"

    def get_product(self, product_id: str) -> Product | None:
        with self._file.locked():
            for raw in self._file.load():
                if raw["id"] == product_id:
                    return self._to_domain(raw)
        return None

    def get_by_name(self, name: str) -> Product | None:
        wanted = name.strip().lower()
        for product in self.list_products():
            if product.name.lower() == wanted:
                return product
        return None

    def list_products(self, include_inactive: bool = False) -> list[Product]:
        with self._file.locked():
            products = [self._to_domain(raw) for raw in self._file.load()]
        products.sort(key=lambda p: id_sort_key(p.id))
        if include_inactive:
            return products
        return [p for p in products if p.active]

    def add_product(self, product: Product) -> None:
        with self._file.locked():
            records = self._file.load()
            if any(raw["id"] == product.id for raw in records):
                raise ValidationError(f"Product ID '{product.id}' already exists")
            records.append(self._to_raw(product))
            self._file.persist(records)

    def update_product(self, product_id: str, fields: dict) -> bool:
        def apply(product: Product) -> bool:
            for name, value in fields.items():
                setattr(product, name, value)
            return True

        return self._modify(product_id, apply)

    def decrement_stock(self, product_id: str, quantity: int) -> bool:
        def apply(product: Product) -> bool:
            if product.stock < quantity:
                return False
            product.stock -= quantity
            return True

        return self._modify(product_id, apply)

    def increment_stock(self, product_id: str, quantity: int) -> bool:
        def apply(product: Product) -> bool:
            product.stock += quantity
            return True

        return self._modify(product_id, apply)

    # --- Internal helpers -----------------------------------------------------

    def _modify(self, product_id: str, apply) -> bool:
        """Load, change and persist one record under the file lock."""
        with self._file.locked():
            records = self._file.load()
            for i, raw in enumerate(records):
                if raw["id"] == product_id:
                    product = self._to_domain(raw)
                    if not apply(product):
                        return False
                    records[i] = self._to_raw(product)
                    self._file.persist(records)
                    return True
        return False

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(product: Product) -> dict:
        return {
            "id": product.id,
            "name": product.name,
            "cost_price": str(product.cost_price.amount),
            "selling_price": str(product.selling_price.amount),
            "currency": product.selling_price.currency,
            "stock": product.stock,
            "low_stock_threshold": product.low_stock_threshold,
            "category": product.category,
            "description": product.description,
            "supplier": product.supplier,
            "images": list(product.images),
            "created_at": product.created_at.isoformat(),
            "active": product.active,
        }

    @staticmethod
    def _to_domain(raw: dict) -> Product:
        currency = raw.get("currency", DEFAULT_CURRENCY)
        return Product(
            id=raw["id"],
            name=raw["name"],
            cost_price=Money(Decimal(raw["cost_price"]), currency),
            selling_price=Money(Decimal(raw["selling_price"]), currency),
            stock=raw["stock"],
            low_stock_threshold=raw.get("low_stock_threshold", DEFAULT_LOW_STOCK_THRESHOLD),
            category=raw.get("category", DEFAULT_CATEGORY),
            description=raw.get("description", ""),
            supplier=raw.get("supplier", ""),
            images=list(raw.get("images", [])),
            created_at=datetime.fromisoformat(raw["created_at"]),
            active=raw.get("active", True),
        )
