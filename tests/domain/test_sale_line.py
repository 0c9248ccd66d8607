"""Unit tests for SaleLineItem pricing."""

from decimal import Decimal

import pytest

from pos.domain.exceptions import ValidationError
from pos.domain.model.sale import SaleLineItem, normalize_customer
from pos.domain.model.value_objects import Discount, Money, PaymentMethod
from tests.fakes import NOW


def _price(quantity=3, price="150", cost="100", discount="10", customer="") -> SaleLineItem:
    return SaleLineItem.price(
        sale_id="s1",
        product_id="1",
        product_name="Widget",
        quantity=quantity,
        unit_price=Money.of(price),
        unit_cost=Money.of(cost),
        payment_method=PaymentMethod.CASH,
        customer=customer,
        discount=Discount.of(discount),
        timestamp=NOW,
    )


class TestSaleLinePricing:

    def test_total_applies_discount(self):
        assert _price().total == Money(Decimal("405.00"))

    def test_profit_ignores_discount(self):
        assert _price().profit == Money(Decimal("150"))

    @pytest.mark.parametrize("quantity,price,cost,discount,total,profit", [
        (1, "99.99", "50.00", "0", "99.99", "49.99"),
        (7, "12.35", "10.00", "15", "73.48", "16.45"),
        (2, "1000", "1000", "100", "0.00", "0"),
    ])
    def test_formulas(self, quantity, price, cost, discount, total, profit):
        line = _price(quantity, price, cost, discount)
        assert line.total.amount == Decimal(total)
        assert line.profit.amount == Decimal(profit)

    def test_price_below_cost_rejected(self):
        with pytest.raises(ValidationError, match="below unit cost"):
            _price(price="90")

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError, match="positive"):
            _price(quantity=0)

    def test_blank_customer_is_walk_in(self):
        assert _price(customer="  ").customer == "Walk-in"
        assert normalize_customer(" Amina ") == "Amina"

    def test_with_id_returns_copy(self):
        line = _price()
        assert line.with_id("7").id == "7"
        assert line.id is None
        assert not line.is_manual
