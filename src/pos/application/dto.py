"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass

from pos.domain.model.product import Product
from pos.domain.model.sale import SaleLineItem


@dataclass(frozen=True)
class CartItemSpec:
    """Input: what the cashier scanned (product ID + quantity)."""

    product_id: str
    quantity: int


@dataclass(frozen=True)
class ProductDTO:
    id: str
    name: str
    category: str
    cost_price: str  # formatted, e.g. "KES 100.00"
    selling_price: str
    margin: str
    stock: int
    low_stock_threshold: int
    is_low_stock: bool
    is_out_of_stock: bool
    active: bool

    @staticmethod
    def from_domain(product: Product) -> ProductDTO:
        return ProductDTO(
            id=product.id,
            name=product.name,
            category=product.category,
            cost_price=str(product.cost_price),
            selling_price=str(product.selling_price),
            margin=str(product.unit_margin),
            stock=product.stock,
            low_stock_threshold=product.low_stock_threshold,
            is_low_stock=product.is_low_stock,
            is_out_of_stock=product.is_out_of_stock,
            active=product.active,
        )


@dataclass(frozen=True)
class SaleLineDTO:
    id: str | None
    sale_id: str
    product_name: str
    quantity: int
    unit_price: str
    total: str
    profit: str
    payment_method: str
    customer: str
    discount: str
    timestamp: str

    @staticmethod
    def from_domain(line: SaleLineItem) -> SaleLineDTO:
        return SaleLineDTO(
            id=line.id,
            sale_id=line.sale_id,
            product_name=line.product_name,
            quantity=line.quantity,
            unit_price=str(line.unit_price),
            total=str(line.total),
            profit=str(line.profit),
            payment_method=line.payment_method.value,
            customer=line.customer,
            discount=str(line.discount),
            timestamp=line.timestamp.strftime("%Y-%m-%d %H:%M UTC"),
        )


@dataclass(frozen=True)
class CheckoutDTO:
    """Output: a committed sale, with any stock follow-ups."""

    sale_id: str
    lines: list[SaleLineDTO]
    total: str
    profit: str
    item_count: int
    warnings: list[str]
