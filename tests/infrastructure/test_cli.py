"""End-to-end tests for the click CLI on the JSON backend."""

import pytest
from click.testing import CliRunner

from pos.infrastructure.cli.main import cli
from pos.infrastructure.persistence.json_sale_ledger import JsonSaleLedger
from tests.fakes import ledger_timeout


@pytest.fixture
def run(tmp_path):
    runner = CliRunner()
    env = {"POS_DATA_DIR": str(tmp_path), "POS_BACKEND": "json", "POS_ROLE": "admin"}

    def invoke(*args):
        return runner.invoke(cli, list(args), env=env)

    return invoke


def _add_widget(run, stock="10"):
    result = run(
        "product", "add", "--name", "Widget", "--cost", "100", "--price", "150",
        "--stock", stock, "--category", "Tools",
    )
    assert result.exit_code == 0, result.output
    return result


class TestProductCommands:

    def test_add_and_list(self, run):
        result = _add_widget(run)
        assert "Product #1 'Widget' added at KES 150.00 (10 in stock)" in result.output

        listing = run("product", "list")
        assert listing.exit_code == 0
        assert "Widget" in listing.output
        assert "KES 150.00" in listing.output

    def test_duplicate_name_is_an_error(self, run):
        _add_widget(run)
        result = run("product", "add", "--name", "widget", "--cost", "1", "--price", "2")
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_update_restock_deactivate(self, run):
        _add_widget(run)
        assert run("product", "update", "--id", "1", "--price", "175").exit_code == 0
        restock = run("product", "restock", "--id", "1", "--quantity", "5")
        assert "now has 15 in stock" in restock.output
        assert run("product", "deactivate", "--id", "1").exit_code == 0
        assert "No products found." in run("product", "list").output
        assert "(inactive)" in run("product", "list", "--all").output

    @pytest.mark.parametrize("name, raw", [
        ("POS_IO_TIMEOUT_SECONDS", "soon"),
        ("POS_MANUAL_SALE_MARGIN", "x"),
        ("POS_BACKEND", "mongo"),
    ])
    def test_bad_configuration_is_a_clean_error(self, tmp_path, name, raw):
        env = {"POS_DATA_DIR": str(tmp_path), name: raw}
        result = CliRunner().invoke(cli, ["product", "list"], env=env)
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        assert "Traceback" not in result.output

    def test_role_is_enforced(self, run):
        result = run("--role", "cashier", "product", "add", "--name", "Salt",
                     "--cost", "1", "--price", "2")
        assert result.exit_code == 1
        assert "Role 'cashier' is not allowed" in result.output


class TestSaleCommands:

    def test_checkout_updates_stock_and_history(self, run):
        _add_widget(run)
        result = run("sale", "checkout", "--items", "1:3", "--payment", "Cash",
                     "--discount", "10", "--customer", "Amina")
        assert result.exit_code == 0, result.output
        assert "Sale recorded" in result.output
        assert "KES 405.00" in result.output
        assert "reconciliation" not in result.output

        inventory = run("inventory", "show")
        assert "7" in inventory.output

        history = run("sale", "history", "--search", "amina")
        assert "Widget" in history.output
        assert "revenue KES 405.00" in history.output

    def test_invalid_payment_method(self, run):
        _add_widget(run)
        result = run("sale", "checkout", "--items", "1:1", "--payment", "Bitcoin")
        assert result.exit_code == 1
        assert "Unsupported payment method" in result.output
        assert "No sales found." in run("sale", "history").output

    def test_bad_items_format(self, run):
        result = run("sale", "checkout", "--items", "1-3", "--payment", "Cash")
        assert result.exit_code == 2
        assert "Expected 'ProductID:Quantity'" in result.output

    def test_insufficient_stock(self, run):
        _add_widget(run, stock="2")
        result = run("sale", "checkout", "--items", "1:3", "--payment", "Cash")
        assert result.exit_code == 1
        assert "Insufficient stock for Widget" in result.output

    def test_manual_sale(self, run):
        result = run("sale", "record", "--amount", "1000", "--payment", "M-Pesa")
        assert result.exit_code == 0, result.output
        assert "KES 1,000.00 (M-Pesa)" in result.output
        assert "Manual sale" in run("sale", "history").output

    def test_manual_sale_ledger_timeout_is_reported_as_unknown(self, run, monkeypatch):
        def time_out(self, lines):
            raise ledger_timeout()

        monkeypatch.setattr(JsonSaleLedger, "append_sales", time_out)
        result = run("sale", "record", "--amount", "100", "--payment", "Cash")

        assert result.exit_code == 1
        assert "Sale status unknown." in result.output
        assert "commit_uncertain" in result.output
        assert "Manual sale" in run("reconcile", "list").output


class TestReportCommands:

    def test_summary_and_rankings(self, run):
        _add_widget(run)
        run("sale", "checkout", "--items", "1:2", "--payment", "Cash")

        summary = run("report", "summary")
        assert summary.exit_code == 0, summary.output
        assert "KES 300.00" in summary.output
        assert "Tools" in summary.output

        top = run("report", "top-sellers")
        assert "Widget" in top.output

        daily = run("report", "daily", "--days", "2")
        assert len(daily.output.strip().splitlines()) == 2

    def test_low_stock(self, run):
        _add_widget(run, stock="3")
        assert "Widget" in run("report", "low-stock").output

    def test_inventory_flags_sold_out_products(self, run):
        _add_widget(run, stock="2")
        assert run("sale", "checkout", "--items", "1:2", "--payment", "Cash").exit_code == 0
        inventory = run("inventory", "show")
        assert "KES 50.00" in inventory.output
        assert inventory.output.rstrip().endswith("OUT")


class TestReconcileCommands:

    def test_empty_queue(self, run):
        assert "Nothing to reconcile." in run("reconcile", "list").output

    def test_resolve_unknown(self, run):
        result = run("reconcile", "resolve", "--id", "4")
        assert result.exit_code == 1
        assert "#4 not found" in result.output
