"""Time windows over the sale ledger."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from pos.domain.exceptions import ValidationError


@dataclass(frozen=True)
class SalesWindow:
    """Half-open interval ``[start, end)``; a None bound is unbounded."""

    start: datetime | None = None
    end: datetime | None = None

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and self.end < self.start:
            raise ValidationError("Sales window ends before it starts")

    def contains(self, moment: datetime) -> bool:
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment >= self.end:
            return False
        return True

    @staticmethod
    def all_time() -> SalesWindow:
        return SalesWindow()

    @staticmethod
    def day_of(moment: datetime) -> SalesWindow:
        start = moment.replace(hour=0, minute=0, second=0, microsecond=0)
        return SalesWindow(start, start + timedelta(days=1))


class SalesPeriod(Enum):
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"

    def window(self, now: datetime) -> SalesWindow:
        if self is SalesPeriod.TODAY:
            return SalesWindow(start=now.replace(hour=0, minute=0, second=0, microsecond=0))
        if self is SalesPeriod.WEEK:
            return SalesWindow(start=now - timedelta(days=7))
        if self is SalesPeriod.MONTH:
            return SalesWindow(start=now - timedelta(days=30))
        return SalesWindow.all_time()

    @staticmethod
    def parse(value: str | SalesPeriod) -> SalesPeriod:
        if isinstance(value, SalesPeriod):
            return value
        try:
            return SalesPeriod((value or "all").strip().lower())
        except ValueError as exc:
            accepted = ", ".join(p.value for p in SalesPeriod)
            raise ValidationError(
                f"Unknown period {value!r} (accepted: {accepted})"
            ) from exc
