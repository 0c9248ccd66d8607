"""Cart: the client-held working set of a sale in progress.

The cart does no I/O. Stock figures on each line are snapshots taken
when the product was added and may be stale by the time of checkout;
the checkout engine re-reads authoritative stock before committing.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from pos.domain.exceptions import EntityNotFoundError, ValidationError
from pos.domain.model.checkout import CheckoutRequest
from pos.domain.model.product import Product
from pos.domain.model.value_objects import Money

# A line is flagged when the sale would leave this many units or fewer.
LOW_STOCK_AFTER_SALE = 3


class CartUpdate(Enum):
    ADDED = "ADDED"
    CAPPED = "CAPPED"
    STOCK_LIMIT_REACHED = "STOCK_LIMIT_REACHED"


@dataclass
class CartLine:
    """One product in the cart with the prices seen when it was added."""

    product_id: str
    product_name: str
    quantity: int
    unit_cost: Money
    unit_selling_price: Money
    stock: int

    @property
    def line_total(self) -> Money:
        return self.unit_selling_price * self.quantity

    @property
    def remaining_stock_after(self) -> int:
        return self.stock - self.quantity

    @property
    def is_low_after_sale(self) -> bool:
        return self.remaining_stock_after <= LOW_STOCK_AFTER_SALE


class Cart:
    """Mutable pre-commit set of lines, at most one per product."""

    def __init__(self) -> None:
        self._lines: dict[str, CartLine] = {}

    # --- Mutations ------------------------------------------------------------

    def add(self, product: Product, qty: int = 1) -> CartUpdate:
        """Add ``qty`` units, merging with an existing line.

        The line never exceeds ``product.stock``. If it is already at the
        cap, nothing changes and ``STOCK_LIMIT_REACHED`` is returned.
        """
        if not isinstance(qty, int) or qty <= 0:
            raise ValidationError("Quantity to add must be positive")

        line = self._lines.get(product.id)
        current = line.quantity if line else 0
        if current >= product.stock:
            return CartUpdate.STOCK_LIMIT_REACHED

        wanted = current + qty
        new_qty = min(wanted, product.stock)

        if line is None:
            self._lines[product.id] = CartLine(
                product_id=product.id,
                product_name=product.name,
                quantity=new_qty,
                unit_cost=product.cost_price,
                unit_selling_price=product.selling_price,
                stock=product.stock,
            )
        else:
            line.quantity = new_qty
            line.stock = product.stock

        return CartUpdate.CAPPED if new_qty < wanted else CartUpdate.ADDED

    def set_quantity(self, product_id: str, qty: int) -> None:
        """Set a line's quantity, clamped to ``[1, stock]``.

        A quantity of zero or less removes the line.
        """
        line = self._lines.get(product_id)
        if line is None:
            raise EntityNotFoundError(f"Product '{product_id}' is not in the cart")
        if qty <= 0:
            del self._lines[product_id]
            return
        line.quantity = max(1, min(qty, line.stock))

    def remove(self, product_id: str) -> None:
        self._lines.pop(product_id, None)

    def clear(self) -> None:
        self._lines.clear()

    # --- Queries --------------------------------------------------------------

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    @property
    def subtotal(self) -> Money:
        lines = list(self._lines.values())
        result = Money.zero(lines[0].unit_selling_price.currency) if lines else Money.zero()
        for line in lines:
            result = result + line.line_total
        return result

    @property
    def low_stock_lines(self) -> list[CartLine]:
        return [line for line in self._lines.values() if line.is_low_after_sale]

    def get(self, product_id: str) -> CartLine | None:
        return self._lines.get(product_id)

    def to_request(
        self,
        payment_method: str,
        customer: str = "",
        discount: Decimal | int | str = 0,
    ) -> CheckoutRequest:
        """Snapshot the cart into a checkout request.

        Validation is left to the checkout engine so the same rules apply
        to every caller.
        """
        return CheckoutRequest(
            lines=tuple(
                CartLine(
                    product_id=line.product_id,
                    product_name=line.product_name,
                    quantity=line.quantity,
                    unit_cost=line.unit_cost,
                    unit_selling_price=line.unit_selling_price,
                    stock=line.stock,
                )
                for line in self._lines.values()
            ),
            payment_method=payment_method,
            customer=customer,
            discount=discount,
        )
