"""Checkout boundary types: the request going in, the result coming out,
and the warnings raised when a committed sale could not be fully applied
to stock.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from pos.domain.model.sale import SaleLineItem
from pos.domain.model.value_objects import Money, sum_money

if TYPE_CHECKING:
    from pos.domain.model.cart import CartLine


@dataclass(frozen=True)
class CheckoutRequest:
    """What the cashier proposes to sell.

    ``payment_method`` and ``discount`` are kept raw; the engine
    validates them so every entry point shares the same rules.
    """

    lines: tuple[CartLine, ...]
    payment_method: str
    customer: str = ""
    discount: Decimal | int | str = 0


class WarningReason(Enum):
    INSUFFICIENT_STOCK = "insufficient_stock"
    STORE_FAULT = "store_fault"
    COMMIT_UNCERTAIN = "commit_uncertain"


@dataclass
class StockReconciliationWarning:
    """A committed sale whose stock effect needs manual follow-up.

    Mutable only via ``resolve()`` once someone has checked the shelf.
    """

    sale_id: str
    product_id: str | None
    product_name: str
    quantity: int
    reason: WarningReason
    detail: str = ""
    id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    resolved: bool = False

    def resolve(self) -> None:
        self.resolved = True

    def __str__(self) -> str:
        return (
            f"{self.product_name} x{self.quantity} "
            f"({self.reason.value}): {self.detail}"
        )


@dataclass(frozen=True)
class CheckoutResult:
    committed: bool
    sale_id: str
    lines: tuple[SaleLineItem, ...]
    warnings: tuple[StockReconciliationWarning, ...] = ()

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def total(self) -> Money:
        return sum_money(line.total for line in self.lines)

    @property
    def profit(self) -> Money:
        return sum_money(line.profit for line in self.lines)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

