"""In-memory implementations of the catalog, ledger and reconciliation queue.

Thread-safe. Each product has its own lock so checkouts of unrelated
products never wait on each other; every lock is acquired with a timeout
and a stalled acquisition surfaces as ``StoreTimeoutError``.
"""

from __future__ import annotations

import copy
import itertools
import threading
from contextlib import contextmanager
from datetime import datetime

from pos.domain.exceptions import StoreTimeoutError, ValidationError
from pos.domain.model.checkout import StockReconciliationWarning
from pos.domain.model.product import Product
from pos.domain.model.sale import SaleLineItem
from pos.domain.repository.catalog_store import CatalogStore
from pos.domain.repository.reconciliation_queue import ReconciliationQueue
from pos.domain.repository.sale_ledger import SaleLedger

DEFAULT_LOCK_TIMEOUT = 5.0


def id_sort_key(value: str) -> tuple:
    """Order numeric IDs numerically and anything else after them."""
    return (0, int(value), "") if value.isdigit() else (1, 0, value)


@contextmanager
def _acquire(lock: threading.Lock, timeout: float, what: str):
    if not lock.acquire(timeout=timeout):
        raise StoreTimeoutError(f"Timed out after {timeout}s waiting for {what}")
    try:
        yield
    finally:
        lock.release()


class InMemoryCatalogStore(CatalogStore):

    def __init__(
        self,
        products: list[Product] | None = None,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT,
    ) -> None:
        self._lock_timeout = lock_timeout
        self._registry = threading.Lock()
        self._store: dict[str, Product] = {}
        self._row_locks: dict[str, threading.Lock] = {}
        for p in products or []:
            self._store[p.id] = copy.deepcopy(p)
            self._row_locks[p.id] = threading.Lock()

    # --- CatalogStore interface -----------------------------------------------

    def next_id(self) -> str:
        with _acquire(self._registry, self._lock_timeout, "catalog"):
            numeric = [int(pid) for pid in self._store if pid.isdigit()]
        return str(max(numeric) + 1) if numeric else "1"

    def get_product(self, product_id: str) -> Product | None:
        lock = self._row_lock(product_id)
        if lock is None:
            return None
        with _acquire(lock, self._lock_timeout, f"product {product_id}"):
            return copy.deepcopy(self._store[product_id])

    def get_by_name(self, name: str) -> Product | None:
        wanted = name.strip().lower()
        for product in self.list_products():
            if product.name.lower() == wanted:
                return product
        return None

    def list_products(self, include_inactive: bool = False) -> list[Product]:
        with _acquire(self._registry, self._lock_timeout, "catalog"):
            ids = sorted(self._store, key=id_sort_key)
        products = [p for p in (self.get_product(pid) for pid in ids) if p is not None]
        if include_inactive:
            return products
        return [p for p in products if p.active]

    def add_product(self, product: Product) -> None:
        with _acquire(self._registry, self._lock_timeout, "catalog"):
            if product.id in self._store:
                raise ValidationError(f"Product ID '{product.id}' already exists")
            self._store[product.id] = copy.deepcopy(product)
            self._row_locks[product.id] = threading.Lock()

    def update_product(self, product_id: str, fields: dict) -> bool:
        lock = self._row_lock(product_id)
        if lock is None:
            return False
        with _acquire(lock, self._lock_timeout, f"product {product_id}"):
            stored = self._store[product_id]
            for name, value in fields.items():
                setattr(stored, name, copy.deepcopy(value))
        return True

    def decrement_stock(self, product_id: str, quantity: int) -> bool:
        lock = self._row_lock(product_id)
        if lock is None:
            return False
        with _acquire(lock, self._lock_timeout, f"product {product_id}"):
            stored = self._store[product_id]
            if stored.stock < quantity:
                return False
            stored.stock -= quantity
        return True

    def increment_stock(self, product_id: str, quantity: int) -> bool:
        lock = self._row_lock(product_id)
        if lock is None:
            return False
        with _acquire(lock, self._lock_timeout, f"product {product_id}"):
            self._store[product_id].stock += quantity
        return True

    # --- Internal helpers -----------------------------------------------------

    def _row_lock(self, product_id: str) -> threading.Lock | None:
        with _acquire(self._registry, self._lock_timeout, "catalog"):
            return self._row_locks.get(product_id)


class InMemorySaleLedger(SaleLedger):

    def __init__(self, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
        self._lock_timeout = lock_timeout
        self._lock = threading.Lock()
        self._lines: list[SaleLineItem] = []
        self._ids = itertools.count(1)

    def append_sales(self, lines: list[SaleLineItem]) -> list[str]:
        with _acquire(self._lock, self._lock_timeout, "sale ledger"):
            written = [line.with_id(str(next(self._ids))) for line in lines]
            self._lines.extend(written)
        return [line.id for line in written]

    def query_in_range(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[SaleLineItem]:
        with _acquire(self._lock, self._lock_timeout, "sale ledger"):
            lines = list(self._lines)
        selected = [
            line for line in lines
            if (start is None or line.timestamp >= start)
            and (end is None or line.timestamp < end)
        ]
        # Stable sort keeps append order among equal timestamps; reverse it.
        return sorted(reversed(selected), key=lambda line: line.timestamp, reverse=True)


class InMemoryReconciliationQueue(ReconciliationQueue):

    def __init__(self, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
        self._lock_timeout = lock_timeout
        self._lock = threading.Lock()
        self._warnings: dict[str, StockReconciliationWarning] = {}
        self._ids = itertools.count(1)

    def push(self, warning: StockReconciliationWarning) -> str:
        with _acquire(self._lock, self._lock_timeout, "reconciliation queue"):
            warning_id = str(next(self._ids))
            stored = copy.deepcopy(warning)
            stored.id = warning_id
            self._warnings[warning_id] = stored
        return warning_id

    def list_all(self) -> list[StockReconciliationWarning]:
        with _acquire(self._lock, self._lock_timeout, "reconciliation queue"):
            return [copy.deepcopy(w) for w in self._warnings.values()]

    def resolve(self, warning_id: str) -> bool:
        with _acquire(self._lock, self._lock_timeout, "reconciliation queue"):
            warning = self._warnings.get(warning_id)
            if warning is None:
                return False
            warning.resolve()
        return True
