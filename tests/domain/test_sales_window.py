"""Unit tests for sales windows and reporting periods."""

from datetime import datetime, timedelta, timezone

import pytest

from pos.domain.exceptions import ValidationError
from pos.domain.model.sales_window import SalesPeriod, SalesWindow

NOW = datetime(2024, 5, 15, 14, 30, tzinfo=timezone.utc)
MIDNIGHT = datetime(2024, 5, 15, tzinfo=timezone.utc)


class TestSalesWindow:

    def test_half_open(self):
        window = SalesWindow(MIDNIGHT, MIDNIGHT + timedelta(days=1))
        assert window.contains(MIDNIGHT)
        assert not window.contains(MIDNIGHT + timedelta(days=1))
        assert not window.contains(MIDNIGHT - timedelta(microseconds=1))

    def test_all_time_contains_everything(self):
        assert SalesWindow.all_time().contains(datetime(1999, 1, 1, tzinfo=timezone.utc))

    def test_day_of(self):
        assert SalesWindow.day_of(NOW) == SalesWindow(MIDNIGHT, MIDNIGHT + timedelta(days=1))

    def test_inverted_bounds_rejected(self):
        with pytest.raises(ValidationError, match="ends before it starts"):
            SalesWindow(NOW, MIDNIGHT)

    def test_windows_are_hashable_keys(self):
        assert {SalesWindow.day_of(NOW): 1}[SalesWindow(MIDNIGHT, MIDNIGHT + timedelta(days=1))] == 1


class TestSalesPeriod:

    @pytest.mark.parametrize("period,start", [
        (SalesPeriod.TODAY, MIDNIGHT),
        (SalesPeriod.WEEK, NOW - timedelta(days=7)),
        (SalesPeriod.MONTH, NOW - timedelta(days=30)),
        (SalesPeriod.ALL, None),
    ])
    def test_window_start(self, period, start):
        window = period.window(NOW)
        assert window.start == start
        assert window.end is None

    def test_parse(self):
        assert SalesPeriod.parse(" Week ") is SalesPeriod.WEEK
        assert SalesPeriod.parse("") is SalesPeriod.ALL

    def test_parse_rejects_unknown(self):
        with pytest.raises(ValidationError, match="Unknown period"):
            SalesPeriod.parse("fortnight")
