"""SaleLineItem: one immutable entry in the sale ledger.

Totals and profit are computed once, when the sale is committed, from
the catalog prices read at that moment. The ledger is a log of facts;
nothing here is ever recomputed from the current catalog.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from pos.domain.exceptions import ValidationError
from pos.domain.model.value_objects import Discount, Money, PaymentMethod, Quantity

DEFAULT_CUSTOMER = "Walk-in"
MANUAL_SALE_NAME = "Manual sale"


@dataclass(frozen=True)
class SaleLineItem:
    id: str | None
    sale_id: str
    product_id: str | None
    product_name: str
    quantity: int
    unit_price: Money
    total: Money
    profit: Money
    payment_method: PaymentMethod
    customer: str
    discount: Discount
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # --- Factory (used for NEW ledger entries only) ---------------------------

    @staticmethod
    def price(
        sale_id: str,
        product_id: str | None,
        product_name: str,
        quantity: int,
        unit_price: Money,
        unit_cost: Money,
        payment_method: PaymentMethod,
        customer: str,
        discount: Discount,
        timestamp: datetime,
    ) -> SaleLineItem:
        """Build a line with ``total`` and ``profit`` derived from prices.

        ``total = unit_price * quantity * (1 - discount/100)`` rounded to
        cents; ``profit = (unit_price - unit_cost) * quantity``.
        """
        qty = Quantity(quantity).value
        if unit_price < unit_cost:
            raise ValidationError(
                f"Unit price {unit_price} is below unit cost {unit_cost}"
            )
        gross = unit_price * qty
        return SaleLineItem(
            id=None,
            sale_id=sale_id,
            product_id=product_id,
            product_name=product_name,
            quantity=qty,
            unit_price=unit_price,
            total=gross.discounted(discount),
            profit=(unit_price - unit_cost) * qty,
            payment_method=payment_method,
            customer=normalize_customer(customer),
            discount=discount,
            timestamp=timestamp,
        )

    def with_id(self, line_id: str) -> SaleLineItem:
        return replace(self, id=line_id)

    @property
    def is_manual(self) -> bool:
        return self.product_id is None


def normalize_customer(customer: str | None) -> str:
    name = (customer or "").strip()
    return name or DEFAULT_CUSTOMER
