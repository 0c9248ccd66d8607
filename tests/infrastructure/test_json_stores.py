"""Tests for the JSON-file stores, against a temporary directory."""

import json
import multiprocessing
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from pos.domain.exceptions import StoreTimeoutError, UnavailableError, ValidationError
from pos.domain.model.checkout import StockReconciliationWarning, WarningReason
from pos.domain.model.sale import SaleLineItem
from pos.domain.model.value_objects import Discount, Money, PaymentMethod
from pos.infrastructure.persistence.json_catalog_store import JsonCatalogStore
from pos.infrastructure.persistence.json_reconciliation_queue import JsonReconciliationQueue
from pos.infrastructure.persistence.json_sale_ledger import JsonSaleLedger
from tests.fakes import NOW, make_product

fork_only = pytest.mark.skipif(
    "fork" not in multiprocessing.get_all_start_methods(),
    reason="needs the fork start method",
)


def _line(name="Tea", minutes_ago=0) -> SaleLineItem:
    return SaleLineItem.price(
        sale_id="s1",
        product_id="1",
        product_name=name,
        quantity=2,
        unit_price=Money.of("150"),
        unit_cost=Money.of("100"),
        payment_method=PaymentMethod.MPESA,
        customer="Amina",
        discount=Discount.of("12.5"),
        timestamp=NOW - timedelta(minutes=minutes_ago),
    )


def _sell_units(path, count):
    store = JsonCatalogStore(path)
    for _ in range(count):
        assert store.decrement_stock("1", 1)


def _record_sales(path, count):
    ledger = JsonSaleLedger(path)
    for _ in range(count):
        ledger.append_sales([_line(), _line()])


def _run_in_processes(target, path, count, processes=2):
    ctx = multiprocessing.get_context("fork")
    workers = [ctx.Process(target=target, args=(path, count)) for _ in range(processes)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join(60)
    return [worker.exitcode for worker in workers]

class TestJsonCatalogStore:

    def test_creates_empty_file(self, tmp_path):
        JsonCatalogStore(tmp_path / "nested" / "products.json")
        assert json.loads((tmp_path / "nested" / "products.json").read_text()) == []

    def test_product_survives_reload(self, tmp_path):
        path = tmp_path / "products.json"
        product = make_product(images=["a.png"], supplier="Acme", category="Tools")
        JsonCatalogStore(path).add_product(product)

        loaded = JsonCatalogStore(path).get_product("1")
        assert loaded == product

    def test_duplicate_id_rejected(self, tmp_path):
        store = JsonCatalogStore(tmp_path / "products.json")
        store.add_product(make_product())
        with pytest.raises(ValidationError, match="already exists"):
            store.add_product(make_product())

    def test_next_id_and_ordering(self, tmp_path):
        store = JsonCatalogStore(tmp_path / "products.json")
        assert store.next_id() == "1"
        for pid in ("10", "2", "1"):
            store.add_product(make_product(pid, f"Item {pid}"))
        assert store.next_id() == "11"
        assert [p.id for p in store.list_products()] == ["1", "2", "10"]

    def test_conditional_decrement(self, tmp_path):
        store = JsonCatalogStore(tmp_path / "products.json")
        store.add_product(make_product(stock=3))
        assert store.decrement_stock("1", 2) is True
        assert store.decrement_stock("1", 2) is False
        assert store.decrement_stock("missing", 1) is False
        assert store.get_product("1").stock == 1

    def test_update_and_soft_delete(self, tmp_path):
        store = JsonCatalogStore(tmp_path / "products.json")
        store.add_product(make_product())
        assert store.update_product("1", {"name": "Renamed", "active": False}) is True
        assert store.update_product("9", {"name": "x"}) is False
        assert store.list_products() == []
        assert store.get_product("1").name == "Renamed"
        assert store.get_by_name("renamed") is None

    def test_concurrent_decrements_never_oversell(self, tmp_path):
        store = JsonCatalogStore(tmp_path / "products.json")
        store.add_product(make_product(stock=5))
        barrier = threading.Barrier(10)

        def attempt(_):
            barrier.wait()
            return store.decrement_stock("1", 1)

        with ThreadPoolExecutor(max_workers=10) as pool:
            results = list(pool.map(attempt, range(10)))

        assert results.count(True) == 5
        assert store.get_product("1").stock == 0

    def test_corrupt_file_is_unavailable(self, tmp_path):
        path = tmp_path / "products.json"
        path.write_text("{not json")
        with pytest.raises(UnavailableError, match="Cannot read"):
            JsonCatalogStore(path).list_products()

    def test_lock_timeout(self, tmp_path):
        store = JsonCatalogStore(tmp_path / "products.json", lock_timeout=0.05)
        store.add_product(make_product())
        held = threading.Event()
        release = threading.Event()

        def hold():
            with store._file.locked():
                held.set()
                release.wait(5)

        holder = threading.Thread(target=hold)
        holder.start()
        try:
            held.wait(5)
            with pytest.raises(StoreTimeoutError):
                store.decrement_stock("1", 1)
        finally:
            release.set()
            holder.join()

    @fork_only
    def test_decrements_from_separate_processes_are_not_lost(self, tmp_path):
        path = tmp_path / "products.json"
        JsonCatalogStore(path).add_product(make_product(stock=400))

        assert _run_in_processes(_sell_units, path, 200) == [0, 0]

        assert JsonCatalogStore(path).get_product("1").stock == 0

    def test_writes_leave_no_temp_files(self, tmp_path):
        store = JsonCatalogStore(tmp_path / "products.json")
        store.add_product(make_product())
        store.decrement_stock("1", 1)
        assert list(tmp_path.glob("*.tmp")) == []
        assert store.get_product("1").stock == 9


class TestJsonSaleLedger:

    def test_append_assigns_sequential_ids(self, tmp_path):
        ledger = JsonSaleLedger(tmp_path / "sales.json")
        assert ledger.append_sales([_line(), _line()]) == ["1", "2"]
        assert ledger.append_sales([_line()]) == ["3"]

    def test_round_trip(self, tmp_path):
        path = tmp_path / "sales.json"
        JsonSaleLedger(path).append_sales([_line()])
        (loaded,) = JsonSaleLedger(path).query_in_range()
        assert loaded == _line().with_id("1")

    def test_query_range_newest_first(self, tmp_path):
        ledger = JsonSaleLedger(tmp_path / "sales.json")
        ledger.append_sales([_line("Old", 90), _line("New", 0), _line("Mid", 30)])
        assert [l.product_name for l in ledger.query_in_range()] == ["New", "Mid", "Old"]
        window = ledger.query_in_range(NOW - timedelta(minutes=60), NOW)
        assert [l.product_name for l in window] == ["Mid"]

    @fork_only
    def test_appends_from_separate_processes_all_land(self, tmp_path):
        path = tmp_path / "sales.json"
        JsonSaleLedger(path)

        assert _run_in_processes(_record_sales, path, 100) == [0, 0]

        lines = JsonSaleLedger(path).query_in_range()
        assert len(lines) == 400
        assert sorted(int(line.id) for line in lines) == list(range(1, 401))


class TestJsonReconciliationQueue:

    def test_push_list_resolve(self, tmp_path):
        path = tmp_path / "reconciliation.json"
        queue = JsonReconciliationQueue(path)
        warning_id = queue.push(StockReconciliationWarning(
            sale_id="s1", product_id="1", product_name="Tea", quantity=2,
            reason=WarningReason.COMMIT_UNCERTAIN, detail="timed out",
        ))
        assert warning_id == "1"

        reopened = JsonReconciliationQueue(path)
        (stored,) = reopened.list_open()
        assert stored.reason is WarningReason.COMMIT_UNCERTAIN
        assert stored.detail == "timed out"

        assert reopened.resolve("1") is True
        assert reopened.resolve("2") is False
        assert reopened.list_open() == []
        assert reopened.list_all()[0].resolved is True
