"""Integration tests for the Analytics Aggregator."""

from datetime import timedelta
from decimal import Decimal

from pos.application.analytics import AnalyticsAggregator
from pos.domain.model.sale import SaleLineItem
from pos.domain.model.sales_window import SalesWindow
from pos.domain.model.value_objects import Discount, Money, PaymentMethod
from pos.domain.service.sale_events import SaleEventBus, SalesRecorded
from pos.infrastructure.persistence.memory_stores import (
    InMemoryCatalogStore,
    InMemorySaleLedger,
)
from tests.fakes import NOW, FixedClock, make_product


def _line(name, quantity, price="100", cost="60", discount="0", days_ago=0) -> SaleLineItem:
    return SaleLineItem.price(
        sale_id=f"{name}-{days_ago}",
        product_id=None,
        product_name=name,
        quantity=quantity,
        unit_price=Money.of(price),
        unit_cost=Money.of(cost),
        payment_method=PaymentMethod.CASH,
        customer="",
        discount=Discount.of(discount),
        timestamp=NOW - timedelta(days=days_ago),
    )


class CountingLedger(InMemorySaleLedger):

    def __init__(self) -> None:
        super().__init__()
        self.queries = 0

    def query_in_range(self, start=None, end=None):
        self.queries += 1
        return super().query_in_range(start, end)


def _setup(lines=(), products=None):
    ledger = CountingLedger()
    if lines:
        ledger.append_sales(list(lines))
    catalog = InMemoryCatalogStore(products or [])
    events = SaleEventBus()
    aggregator = AnalyticsAggregator(ledger, catalog, events=events, clock=FixedClock())
    return aggregator, ledger, events


def _record(ledger, events, line):
    ledger.append_sales([line])
    events.publish(SalesRecorded(sale_id=line.sale_id, lines=(line,)))


class TestSummary:

    def test_totals(self):
        aggregator, _, _ = _setup([_line("Tea", 2), _line("Milk", 1, discount="50")])
        summary = aggregator.summary()
        assert summary.total_revenue == Money(Decimal("250.00"))
        assert summary.total_profit == Money(Decimal("120.00"))
        assert summary.transactions == 2
        assert summary.items_sold == 3
        assert summary.average_order_value == Money(Decimal("125.00"))

    def test_empty(self):
        aggregator, _, _ = _setup()
        summary = aggregator.summary()
        assert summary.total_revenue.is_zero
        assert summary.average_order_value.is_zero

    def test_window(self):
        aggregator, _, _ = _setup([_line("Tea", 1), _line("Tea", 5, days_ago=3)])
        assert aggregator.summary(SalesWindow.day_of(NOW)).items_sold == 1

    def test_today_revenue(self):
        aggregator, _, _ = _setup([_line("Tea", 1), _line("Tea", 5, days_ago=1)])
        assert aggregator.today_revenue() == Money.of("100.00")


class TestSummaryCache:

    def test_repeat_query_served_from_cache(self):
        aggregator, ledger, _ = _setup([_line("Tea", 1)])
        aggregator.summary()
        aggregator.summary()
        assert ledger.queries == 1

    def test_new_sale_in_window_evicts(self):
        aggregator, ledger, events = _setup([_line("Tea", 1)])
        assert aggregator.summary().transactions == 1

        _record(ledger, events, _line("Milk", 1))

        assert aggregator.summary().transactions == 2
        assert ledger.queries == 2

    def test_sale_outside_window_keeps_entry(self):
        aggregator, ledger, events = _setup([_line("Tea", 1, days_ago=3)])
        old_day = SalesWindow.day_of(NOW - timedelta(days=3))
        aggregator.summary(old_day)

        _record(ledger, events, _line("Milk", 1))

        assert aggregator.summary(old_day).transactions == 1
        assert ledger.queries == 1

    def test_closed_aggregator_stops_listening(self):
        aggregator, ledger, events = _setup()
        aggregator.close()
        aggregator.summary()
        _record(ledger, events, _line("Milk", 1))
        assert aggregator.summary().transactions == 0


class TestRankings:

    def test_top_sellers_by_quantity_then_name(self):
        aggregator, _, _ = _setup([
            _line("Tea", 2),
            _line("Bread", 3),
            _line("Tea", 1, days_ago=1),
            _line("Apples", 3),
            _line("Milk", 1),
        ])
        ranked = aggregator.top_sellers()
        assert [(s.product_name, s.quantity) for s in ranked] == [
            ("Apples", 3), ("Bread", 3), ("Tea", 3), ("Milk", 1),
        ]
        assert ranked[2].revenue == Money.of("300.00")

    def test_top_sellers_limit_and_window(self):
        aggregator, _, _ = _setup([_line("Tea", 5, days_ago=10), _line("Milk", 1)])
        ranked = aggregator.top_sellers(SalesWindow.day_of(NOW), limit=1)
        assert [s.product_name for s in ranked] == ["Milk"]

    def test_daily_revenue_zero_filled_oldest_first(self):
        aggregator, _, _ = _setup([_line("Tea", 1), _line("Tea", 2, days_ago=2)])
        rows = aggregator.daily_revenue(days=3)
        assert [r.day for r in rows] == ["2024-05-13", "2024-05-14", "2024-05-15"]
        assert [r.revenue.amount for r in rows] == [
            Decimal("200.00"), Decimal("0.00"), Decimal("100.00"),
        ]


class TestCatalogFigures:

    def test_low_stock_and_categories(self):
        aggregator, _, _ = _setup(products=[
            make_product("1", "Tea", stock=2, category="Drinks"),
            make_product("2", "Milk", stock=30, category="Drinks"),
            make_product("3", "Bread", stock=5, category="Bakery"),
            make_product("4", "Old", stock=0, category="Bakery", active=False),
        ])
        assert [p.name for p in aggregator.low_stock()] == ["Tea", "Bread"]
        assert aggregator.category_distribution() == {"Bakery": 1, "Drinks": 2}
