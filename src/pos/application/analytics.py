"""Application service: sales analytics (queries only).

Every figure is derived from raw ledger entries and a catalog snapshot.
Ledger entries never change once written, so a window's summary stays
valid until a new sale lands inside that window. Summaries are cached
per window and evicted when ``SalesRecorded`` reports such a sale.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable

from pos.domain.model.product import Product
from pos.domain.model.sale import SaleLineItem
from pos.domain.model.sales_window import SalesWindow
from pos.domain.model.value_objects import DEFAULT_CURRENCY, CENTS, Money, sum_money
from pos.domain.repository.catalog_store import CatalogStore
from pos.domain.repository.sale_ledger import SaleLedger
from pos.domain.service.checkout_engine import utc_now
from pos.domain.service.sale_events import SaleEventBus, SalesRecorded

logger = logging.getLogger(__name__)

MAX_CACHED_WINDOWS = 64


@dataclass(frozen=True)
class SalesSummary:
    total_revenue: Money
    total_profit: Money
    transactions: int
    items_sold: int

    @property
    def average_order_value(self) -> Money:
        if self.transactions == 0:
            return Money.zero(self.total_revenue.currency)
        return Money(
            (self.total_revenue.amount / self.transactions).quantize(CENTS),
            self.total_revenue.currency,
        )


@dataclass(frozen=True)
class TopSeller:
    product_name: str
    quantity: int
    revenue: Money


@dataclass(frozen=True)
class DailyRevenue:
    day: str  # ISO date, e.g. "2024-05-01"
    revenue: Money


class AnalyticsAggregator:

    def __init__(
        self,
        ledger: SaleLedger,
        catalog: CatalogStore,
        events: SaleEventBus | None = None,
        clock: Callable[[], datetime] = utc_now,
        currency: str = DEFAULT_CURRENCY,
    ) -> None:
        self._ledger = ledger
        self._catalog = catalog
        self._clock = clock
        self._currency = currency
        self._cache: dict[SalesWindow, SalesSummary] = {}
        self._generation = 0
        self._lock = threading.Lock()
        self._unsubscribe = events.subscribe(self._on_sales_recorded) if events else None

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # --- Ledger figures -------------------------------------------------------

    def summary(self, window: SalesWindow | None = None) -> SalesSummary:
        window = window or SalesWindow.all_time()
        with self._lock:
            cached = self._cache.get(window)
            generation = self._generation
        if cached is not None:
            return cached

        lines = self._lines(window)
        result = SalesSummary(
            total_revenue=sum_money((line.total for line in lines), self._currency),
            total_profit=sum_money((line.profit for line in lines), self._currency),
            transactions=len(lines),
            items_sold=sum(line.quantity for line in lines),
        )
        with self._lock:
            # A sale recorded while we were reading may be missing from result.
            if generation == self._generation:
                if len(self._cache) >= MAX_CACHED_WINDOWS:
                    del self._cache[next(iter(self._cache))]
                self._cache[window] = result
        return result

    def today_revenue(self) -> Money:
        return self.summary(SalesWindow.day_of(self._clock())).total_revenue

    def top_sellers(self, window: SalesWindow | None = None, limit: int | None = None) -> list[TopSeller]:
        """Products by units sold, most first; ties broken by name."""
        quantities: Counter[str] = Counter()
        revenue: dict[str, list[Money]] = {}
        for line in self._lines(window or SalesWindow.all_time()):
            quantities[line.product_name] += line.quantity
            revenue.setdefault(line.product_name, []).append(line.total)

        ranked = sorted(quantities.items(), key=lambda item: (-item[1], item[0]))
        if limit is not None:
            ranked = ranked[:limit]
        return [
            TopSeller(
                product_name=name,
                quantity=qty,
                revenue=sum_money(revenue[name], self._currency),
            )
            for name, qty in ranked
        ]

    def daily_revenue(self, days: int = 30) -> list[DailyRevenue]:
        """Revenue per calendar day for the last ``days`` days, oldest first."""
        today = SalesWindow.day_of(self._clock())
        first_day = today.start - timedelta(days=days - 1)
        buckets: dict[str, Decimal] = {
            (first_day + timedelta(days=i)).date().isoformat(): Decimal("0.00")
            for i in range(days)
        }
        for line in self._lines(SalesWindow(first_day, today.end)):
            key = line.timestamp.date().isoformat()
            if key in buckets:
                buckets[key] += line.total.amount
        return [
            DailyRevenue(day=day, revenue=Money(amount, self._currency))
            for day, amount in buckets.items()
        ]

    # --- Catalog figures ------------------------------------------------------

    def low_stock(self) -> list[Product]:
        return [p for p in self._catalog.list_products() if p.is_low_stock]

    def category_distribution(self) -> dict[str, int]:
        counts = Counter(p.category for p in self._catalog.list_products())
        return dict(sorted(counts.items()))

    # --- Cache maintenance ----------------------------------------------------

    def _on_sales_recorded(self, event: SalesRecorded) -> None:
        with self._lock:
            self._generation += 1
            stale = [
                window for window in self._cache
                if any(window.contains(line.timestamp) for line in event.lines)
            ]
            for window in stale:
                del self._cache[window]
        if stale:
            logger.debug("Evicted %d cached window(s) after sale %s", len(stale), event.sale_id)

    def _lines(self, window: SalesWindow) -> list[SaleLineItem]:
        return self._ledger.query_in_range(window.start, window.end)
