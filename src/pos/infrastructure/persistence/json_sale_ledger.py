"""JSON-file-backed implementation of SaleLedger."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from pos.domain.model.sale import SaleLineItem
from pos.domain.model.value_objects import DEFAULT_CURRENCY, Discount, Money, PaymentMethod
from pos.domain.repository.sale_ledger import SaleLedger
from pos.infrastructure.persistence.json_file import JsonFile
from pos.infrastructure.persistence.memory_stores import DEFAULT_LOCK_TIMEOUT


class JsonSaleLedger(SaleLedger):

    def __init__(self, file_path: Path, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
        self._file = JsonFile(file_path, lock_timeout)

    # --- SaleLedger interface -------------------------------------------------

    def append_sales(self, lines: list[SaleLineItem]) -> list[str]:
        with self._file.locked():
            records = self._file.load()
            next_id = max((int(raw["id"]) for raw in records), default=0) + 1
            ids = [str(next_id + offset) for offset in range(len(lines))]
            records.extend(
                self._to_raw(line.with_id(line_id)) for line, line_id in zip(lines, ids)
            )
            self._file.persist(records)
        return ids

    def query_in_range(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[SaleLineItem]:
        with self._file.locked():
            lines = [self._to_domain(raw) for raw in self._file.load()]
        selected = [
            line for line in reversed(lines)
            if (start is None or line.timestamp >= start)
            and (end is None or line.timestamp < end)
        ]
        return sorted(selected, key=lambda line: line.timestamp, reverse=True)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(line: SaleLineItem) -> dict:
        return {
            "id": line.id,
            "sale_id": line.sale_id,
            "product_id": line.product_id,
            "product_name": line.product_name,
            "quantity": line.quantity,
            "unit_price": str(line.unit_price.amount),
            "total": str(line.total.amount),
            "profit": str(line.profit.amount),
            "currency": line.total.currency,
            "payment_method": line.payment_method.value,
            "customer": line.customer,
            "discount": str(line.discount.percent),
            "timestamp": line.timestamp.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> SaleLineItem:
        currency = raw.get("currency", DEFAULT_CURRENCY)
        return SaleLineItem(
            id=raw["id"],
            sale_id=raw["sale_id"],
            product_id=raw.get("product_id"),
            product_name=raw["product_name"],
            quantity=raw["quantity"],
            unit_price=Money(Decimal(raw["unit_price"]), currency),
            total=Money(Decimal(raw["total"]), currency),
            profit=Money(Decimal(raw["profit"]), currency),
            payment_method=PaymentMethod(raw["payment_method"]),
            customer=raw["customer"],
            discount=Discount(Decimal(raw.get("discount", "0"))),
            timestamp=datetime.fromisoformat(raw["timestamp"]),
        )
