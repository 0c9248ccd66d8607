"""Concurrency properties of checkout against the in-memory stores.

Every attempt either fails validation cleanly or commits. A commit that
loses the race for the last units is reported as an insufficient-stock
warning and never drives stock below zero.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from pos.domain.exceptions import InsufficientStockError, StoreTimeoutError
from pos.domain.model.cart import Cart
from pos.domain.model.checkout import WarningReason
from pos.domain.model.context import RequestContext
from pos.domain.service.checkout_engine import CheckoutEngine
from pos.infrastructure.persistence.memory_stores import (
    InMemoryCatalogStore,
    InMemoryReconciliationQueue,
    InMemorySaleLedger,
)
from tests.fakes import make_product


def _engine(products):
    catalog = InMemoryCatalogStore(products)
    ledger = InMemorySaleLedger()
    queue = InMemoryReconciliationQueue()
    return CheckoutEngine(catalog, ledger, queue), catalog, ledger, queue


def _run_concurrently(engine, catalog, attempts):
    """Fire ``attempts`` (user, product_id, qty) checkouts at once."""
    barrier = threading.Barrier(len(attempts))

    def attempt(user, product_id, qty):
        cart = Cart()
        cart.add(catalog.get_product(product_id), qty)
        request = cart.to_request("Cash")
        barrier.wait()
        try:
            return engine.checkout(request, RequestContext(user_id=user, role="admin"))
        except InsufficientStockError as exc:
            return exc

    with ThreadPoolExecutor(max_workers=len(attempts)) as pool:
        futures = [pool.submit(attempt, *a) for a in attempts]
        return [f.result(timeout=30) for f in futures]


def _clean(outcomes):
    return [o for o in outcomes if not isinstance(o, Exception) and not o.has_warnings]


def _lost_race(outcome) -> bool:
    if isinstance(outcome, InsufficientStockError):
        return True
    return [w.reason for w in outcome.warnings] == [WarningReason.INSUFFICIENT_STOCK]


class TestConcurrentCheckout:

    @pytest.mark.parametrize("workers", [2, 8, 16])
    def test_last_unit_sold_exactly_once(self, workers):
        engine, catalog, _, _ = _engine([make_product("1", stock=1)])
        outcomes = _run_concurrently(
            engine, catalog, [(f"u{i}", "1", 1) for i in range(workers)]
        )

        assert len(_clean(outcomes)) == 1
        assert all(_lost_race(o) for o in outcomes if o not in _clean(outcomes))
        assert catalog.get_product("1").stock == 0

    def test_two_large_orders_against_limited_stock(self):
        engine, catalog, _, queue = _engine([make_product("1", stock=10)])
        outcomes = _run_concurrently(engine, catalog, [("a", "1", 6), ("b", "1", 6)])

        assert len(_clean(outcomes)) == 1
        assert catalog.get_product("1").stock == 4
        loser = next(o for o in outcomes if o not in _clean(outcomes))
        if isinstance(loser, InsufficientStockError):
            assert (loser.requested, loser.available) == (6, 4)
        else:
            assert _lost_race(loser)
            assert len(queue.list_open()) == 1

    def test_stock_never_negative_under_mixed_load(self):
        engine, catalog, _, _ = _engine([make_product("1", stock=25)])
        attempts = [(f"u{i}", "1", 1 + i % 4) for i in range(20)]
        _run_concurrently(engine, catalog, attempts)
        assert catalog.get_product("1").stock >= 0

    def test_applied_decrements_match_clean_sales(self):
        engine, catalog, _, _ = _engine([make_product("1", stock=12)])
        attempts = [(f"u{i}", "1", 2) for i in range(10)]
        outcomes = _run_concurrently(engine, catalog, attempts)

        sold = sum(o.item_count for o in _clean(outcomes))
        assert sold == 12
        assert catalog.get_product("1").stock == 0

    def test_different_products_do_not_contend(self):
        products = [make_product(str(i), f"Item {i}", stock=5) for i in range(1, 9)]
        engine, catalog, ledger, _ = _engine(products)
        attempts = [(f"u{i}", str(i), 5) for i in range(1, 9)]
        outcomes = _run_concurrently(engine, catalog, attempts)

        assert len(_clean(outcomes)) == 8
        assert all(p.stock == 0 for p in catalog.list_products())
        assert len(ledger.query_in_range()) == 8


class TestPerProductLocks:

    def test_held_row_lock_times_out_only_that_product(self):
        catalog = InMemoryCatalogStore(
            [make_product("1", "Widget"), make_product("2", "Gadget")], lock_timeout=0.05
        )
        row_lock = catalog._row_locks["1"]
        row_lock.acquire()
        try:
            with pytest.raises(StoreTimeoutError, match="product 1"):
                catalog.decrement_stock("1", 1)
            assert catalog.decrement_stock("2", 1) is True
        finally:
            row_lock.release()
        assert catalog.get_product("1").stock == 10
