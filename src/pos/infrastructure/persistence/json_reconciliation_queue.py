"""JSON-file-backed implementation of ReconciliationQueue."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from pos.domain.model.checkout import StockReconciliationWarning, WarningReason
from pos.domain.repository.reconciliation_queue import ReconciliationQueue
from pos.infrastructure.persistence.json_file import JsonFile
from pos.infrastructure.persistence.memory_stores import DEFAULT_LOCK_TIMEOUT


class JsonReconciliationQueue(ReconciliationQueue):

    def __init__(self, file_path: Path, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
        self._file = JsonFile(file_path, lock_timeout)

    def push(self, warning: StockReconciliationWarning) -> str:
        with self._file.locked():
            records = self._file.load()
            warning_id = str(max((int(raw["id"]) for raw in records), default=0) + 1)
            raw = self._to_raw(warning)
            raw["id"] = warning_id
            records.append(raw)
            self._file.persist(records)
        return warning_id

    def list_all(self) -> list[StockReconciliationWarning]:
        with self._file.locked():
            return [self._to_domain(raw) for raw in self._file.load()]

    def resolve(self, warning_id: str) -> bool:
        with self._file.locked():
            records = self._file.load()
            for raw in records:
                if raw["id"] == warning_id:
                    raw["resolved"] = True
                    self._file.persist(records)
                    return True
        return False

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(warning: StockReconciliationWarning) -> dict:
        return {
            "id": warning.id,
            "sale_id": warning.sale_id,
            "product_id": warning.product_id,
            "product_name": warning.product_name,
            "quantity": warning.quantity,
            "reason": warning.reason.value,
            "detail": warning.detail,
            "created_at": warning.created_at.isoformat(),
            "resolved": warning.resolved,
        }

    @staticmethod
    def _to_domain(raw: dict) -> StockReconciliationWarning:
        return StockReconciliationWarning(
            id=raw["id"],
            sale_id=raw["sale_id"],
            product_id=raw.get("product_id"),
            product_name=raw["product_name"],
            quantity=raw["quantity"],
            reason=WarningReason(raw["reason"]),
            detail=raw.get("detail", ""),
            created_at=datetime.fromisoformat(raw["created_at"]),
            resolved=raw.get("resolved", False),
        )
