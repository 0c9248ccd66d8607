"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.

Checkout failures fall into three families:

- ``ValidationError`` subclasses are raised before anything is written.
  The caller may adjust the cart and retry.
- ``CheckoutCommitError`` subclasses are raised while writing the sale.
  ``LedgerWriteError`` is safe to retry; ``CommitUncertainError`` is not.
- ``UnavailableError`` signals a collaborator (catalog, ledger, queue)
  that could not be reached.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class PermissionDeniedError(DomainException):
    """The caller's role is not allowed to perform the operation."""


# --- Checkout validation ------------------------------------------------------


class EmptyCartError(ValidationError):
    """A checkout was attempted with no lines."""


class InvalidPaymentMethodError(ValidationError):
    """The payment method is not one of the accepted values."""


class InvalidDiscountError(ValidationError):
    """The discount percentage is outside 0..100."""


class InsufficientStockError(ValidationError):
    """A line asks for more units than the catalog currently holds."""

    def __init__(self, product_id: str, requested: int, available: int,
                 product_name: str | None = None) -> None:
        self.product_id = product_id
        self.requested = requested
        self.available = available
        self.product_name = product_name
        label = product_name or f"product '{product_id}'"
        super().__init__(
            f"Insufficient stock for {label} "
            f"(requested {requested}, only {available} in stock)"
        )


class CatalogIntegrityError(ValidationError):
    """A product's selling price is below its cost price."""


# --- Checkout commit ------------------------------------------------------------


class CheckoutCommitError(DomainException):
    """The sale could not be written cleanly."""


class LedgerWriteError(CheckoutCommitError):
    """The ledger rejected the sale. Nothing was written; retry is safe."""


class CommitUncertainError(CheckoutCommitError):
    """The ledger append timed out; the sale may or may not be recorded.

    Carries the reconciliation warnings that were queued for follow-up.
    """

    def __init__(self, message: str, warnings: list | None = None) -> None:
        super().__init__(message)
        self.warnings = list(warnings or [])


# --- Collaborators ------------------------------------------------------------


class UnavailableError(DomainException):
    """A backing store could not be reached or failed mid-operation."""


class StoreTimeoutError(UnavailableError):
    """A backing store call exceeded its time budget."""
