"""Abstract Sale Ledger: append-only log of sale line items."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from pos.domain.model.sale import SaleLineItem


class SaleLedger(ABC):

    @abstractmethod
    def append_sales(self, lines: list[SaleLineItem]) -> list[str]:
        """Append every line as one batch and return their new IDs in order.

        Either all lines are written or none are.
        """

    @abstractmethod
    def query_in_range(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[SaleLineItem]:
        """Return lines with ``start <= timestamp < end``, newest first.

        A missing bound leaves that side open.
        """
