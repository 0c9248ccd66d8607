"""Application service: Sales History use case (query)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from pos.application.dto import SaleLineDTO
from pos.domain.exceptions import ValidationError
from pos.domain.model.value_objects import sum_money
from pos.domain.model.sales_window import SalesPeriod
from pos.domain.repository.sale_ledger import SaleLedger
from pos.domain.service.checkout_engine import utc_now

DEFAULT_PAGE_SIZE = 10


@dataclass(frozen=True)
class SalesPageDTO:
    rows: list[SaleLineDTO]
    page: int
    per_page: int
    matching: int  # rows across all pages after filtering
    total_revenue: str
    total_profit: str
    transactions: int
    items_sold: int

    @property
    def has_next(self) -> bool:
        return self.page * self.per_page < self.matching


class ListSalesHandler:

    def __init__(self, ledger: SaleLedger, clock: Callable[[], datetime] = utc_now) -> None:
        self._ledger = ledger
        self._clock = clock

    def handle(
        self,
        period: str | SalesPeriod = SalesPeriod.ALL,
        search: str = "",
        page: int = 1,
        per_page: int = DEFAULT_PAGE_SIZE,
    ) -> SalesPageDTO:
        """Return one page of sales, newest first.

        The search term matches product name or customer and is applied
        before paging. Page totals cover only the rows on the page.
        """
        if page < 1 or per_page < 1:
            raise ValidationError("Page and page size must be positive")

        window = SalesPeriod.parse(period).window(self._clock())
        lines = self._ledger.query_in_range(window.start, window.end)

        term = (search or "").strip().lower()
        if term:
            lines = [
                line for line in lines
                if term in line.product_name.lower() or term in line.customer.lower()
            ]

        offset = (page - 1) * per_page
        rows = lines[offset:offset + per_page]
        return SalesPageDTO(
            rows=[SaleLineDTO.from_domain(line) for line in rows],
            page=page,
            per_page=per_page,
            matching=len(lines),
            total_revenue=str(sum_money(line.total for line in rows)),
            total_profit=str(sum_money(line.profit for line in rows)),
            transactions=len(rows),
            items_sold=sum(line.quantity for line in rows),
        )
