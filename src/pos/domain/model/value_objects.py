"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum

from pos.domain.exceptions import (
    InvalidDiscountError,
    InvalidPaymentMethodError,
    ValidationError,
)

DEFAULT_CURRENCY = "KES"
CENTS = Decimal("0.01")


@dataclass(frozen=True)
class Money:
    """Monetary amount with currency.

    Uses Decimal to avoid floating-point rounding errors that would be
    unacceptable in financial calculations.
    """

    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError(
                f"Money amount must be a Decimal, got {type(self.amount).__name__}"
            )
        if self.amount < Decimal("0"):
            raise ValidationError(
                f"Money amount cannot be negative, got {self.amount}"
            )

    # --- Arithmetic helpers ---------------------------------------------------

    def __add__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        result = self.amount - other.amount
        if result < Decimal("0"):
            raise ValidationError("Money subtraction would result in a negative amount")
        return Money(result, self.currency)

    def __mul__(self, factor: int) -> Money:
        if not isinstance(factor, int) or isinstance(factor, bool):
            raise TypeError(f"Can only multiply Money by int, got {type(factor).__name__}")
        return Money(self.amount * factor, self.currency)

    def __lt__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount >= other.amount

    def scaled(self, rate: Decimal) -> Money:
        """Multiply by a non-negative decimal rate, rounded to cents."""
        value = (self.amount * rate).quantize(CENTS, rounding=ROUND_HALF_UP)
        return Money(value, self.currency)

    def discounted(self, discount: Discount) -> Money:
        return self.scaled(discount.factor)

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    # --- Display --------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.currency} {self.amount:,.2f}"

    # --- Internal helpers -----------------------------------------------------

    def _assert_same_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise ValidationError(
                f"Cannot combine {self.currency} with {other.currency}"
            )

    # --- Factories ------------------------------------------------------------

    @staticmethod
    def of(amount: str | float | int | Decimal, currency: str = DEFAULT_CURRENCY) -> Money:
        """Convenient factory that coerces to Decimal safely."""
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc
        if not value.is_finite():
            raise ValidationError(f"Invalid money amount: {amount!r}")
        return Money(value, currency)

    @staticmethod
    def zero(currency: str = DEFAULT_CURRENCY) -> Money:
        return Money(Decimal("0.00"), currency)


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity.

    Enforces the invariant that you cannot sell zero or negative items.
    """

    value: int

    def __post_init__(self) -> None:
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Discount:
    """A sale-wide discount percentage between 0 and 100 inclusive."""

    percent: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.percent, Decimal):
            raise InvalidDiscountError(
                f"Discount must be a Decimal, got {type(self.percent).__name__}"
            )
        if not self.percent.is_finite() or not (0 <= self.percent <= 100):
            raise InvalidDiscountError(
                f"Discount must be between 0 and 100, got {self.percent}"
            )

    @property
    def factor(self) -> Decimal:
        """Multiplier applied to a gross amount, e.g. 0.9 for 10%."""
        return (Decimal("100") - self.percent) / Decimal("100")

    def __str__(self) -> str:
        return f"{self.percent.normalize():f}%"

    @staticmethod
    def of(value: str | float | int | Decimal | None) -> Discount:
        if value is None or value == "":
            return Discount(Decimal("0"))
        try:
            return Discount(Decimal(str(value)))
        except (InvalidOperation, ValueError) as exc:
            raise InvalidDiscountError(f"Invalid discount: {value!r}") from exc

    @staticmethod
    def none() -> Discount:
        return Discount(Decimal("0"))


class PaymentMethod(Enum):
    CASH = "Cash"
    MPESA = "M-Pesa"

    @staticmethod
    def parse(value: str | PaymentMethod) -> PaymentMethod:
        """Resolve a raw payment method string, case-insensitively."""
        if isinstance(value, PaymentMethod):
            return value
        raw = (value or "").strip()
        for method in PaymentMethod:
            if method.value.lower() == raw.lower():
                return method
        accepted = ", ".join(m.value for m in PaymentMethod)
        raise InvalidPaymentMethodError(
            f"Unsupported payment method {value!r} (accepted: {accepted})"
        )


def sum_money(amounts, currency: str = DEFAULT_CURRENCY) -> Money:
    """Add up Money values; an empty sequence is zero in ``currency``."""
    result: Money | None = None
    for amount in amounts:
        result = amount if result is None else result + amount
    return result if result is not None else Money.zero(currency)
