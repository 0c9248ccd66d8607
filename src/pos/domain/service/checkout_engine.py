"""Domain service: Checkout Engine.

Turns a cashier's cart into durable ledger entries and a matching stock
decrement, or rejects it without side effects.

The catalog and the ledger are independent systems of record with no
shared transaction, so the commit is ordered:

  1. Validate the request shape, then every line against freshly read
     catalog records. Fails fast before any write.
  2. Append the whole sale to the ledger in one batch. Once this
     succeeds the sale is final and is never rolled back.
  3. Decrement stock per line with a conditional update. A line that
     cannot be applied becomes a reconciliation warning on a
     still-committed result.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable

from pos.domain.exceptions import (
    CommitUncertainError,
    EmptyCartError,
    EntityNotFoundError,
    InsufficientStockError,
    LedgerWriteError,
    StoreTimeoutError,
    UnavailableError,
    ValidationError,
)
from pos.domain.model.cart import CartLine
from pos.domain.model.checkout import (
    CheckoutRequest,
    CheckoutResult,
    StockReconciliationWarning,
    WarningReason,
)
from pos.domain.model.context import RequestContext
from pos.domain.model.product import Product
from pos.domain.model.sale import SaleLineItem
from pos.domain.model.value_objects import Discount, PaymentMethod, Quantity
from pos.domain.repository.catalog_store import CatalogStore
from pos.domain.repository.reconciliation_queue import ReconciliationQueue
from pos.domain.repository.sale_ledger import SaleLedger
from pos.domain.service.sale_events import SaleEventBus, SalesRecorded

logger = logging.getLogger(__name__)

DEFAULT_CHECKOUT_ROLES = frozenset({"admin"})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CheckoutEngine:

    def __init__(
        self,
        catalog: CatalogStore,
        ledger: SaleLedger,
        reconciliation: ReconciliationQueue,
        events: SaleEventBus | None = None,
        checkout_roles: frozenset[str] = DEFAULT_CHECKOUT_ROLES,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._catalog = catalog
        self._ledger = ledger
        self._reconciliation = reconciliation
        self._events = events
        self._checkout_roles = frozenset(checkout_roles)
        self._clock = clock

    def checkout(self, request: CheckoutRequest, context: RequestContext) -> CheckoutResult:
        """Validate and commit a sale.

        Raises a ``ValidationError`` subclass (no side effects),
        ``LedgerWriteError`` (nothing written, retry is safe) or
        ``CommitUncertainError`` (ledger outcome unknown, do not retry).
        Stock problems after the ledger write come back as warnings on a
        committed result.
        """
        context.require_role(self._checkout_roles, "check out sales")

        # Phase 1: validate
        payment_method, discount = self._validate_request(request)
        priced = self._load_and_validate(request.lines)

        sale_id = uuid.uuid4().hex
        timestamp = self._clock()
        items = [
            SaleLineItem.price(
                sale_id=sale_id,
                product_id=product.id,
                product_name=product.name,
                quantity=line.quantity,
                unit_price=product.selling_price,  # <-- authoritative price
                unit_cost=product.cost_price,
                payment_method=payment_method,
                customer=request.customer,
                discount=discount,
                timestamp=timestamp,
            )
            for line, product in priced
        ]

        # Phase 2: ledger append (point of no return)
        written = self._append(sale_id, items)

        # Phase 3: conditional stock decrements
        warnings = self._decrement_stock(sale_id, written)

        result = CheckoutResult(
            committed=True,
            sale_id=sale_id,
            lines=tuple(written),
            warnings=tuple(warnings),
        )
        logger.info(
            "Sale %s committed by %s: %d line(s), total %s, %d warning(s)",
            sale_id, context.user_id, len(written), result.total, len(warnings),
        )
        if self._events is not None:
            self._events.publish(SalesRecorded(sale_id=sale_id, lines=result.lines))
        return result

    # --- Phase 1 --------------------------------------------------------------

    @staticmethod
    def _validate_request(request: CheckoutRequest) -> tuple[PaymentMethod, Discount]:
        if not request.lines:
            raise EmptyCartError("Cart is empty")
        payment_method = PaymentMethod.parse(request.payment_method)
        discount = Discount.of(request.discount)

        seen: set[str] = set()
        for line in request.lines:
            Quantity(line.quantity)
            if line.product_id in seen:
                raise ValidationError(
                    f"Product '{line.product_name}' appears more than once"
                )
            seen.add(line.product_id)
        return payment_method, discount

    def _load_and_validate(self, lines: tuple[CartLine, ...]) -> list[tuple[CartLine, Product]]:
        """Re-read every product; the cart's stock snapshot may be stale."""
        priced: list[tuple[CartLine, Product]] = []
        for line in lines:
            product = self._catalog.get_product(line.product_id)
            if product is None or not product.active:
                raise EntityNotFoundError(
                    f"Product '{line.product_name}' is no longer available"
                )
            if line.quantity > product.stock:
                raise InsufficientStockError(
                    product_id=product.id,
                    requested=line.quantity,
                    available=product.stock,
                    product_name=product.name,
                )
            product.assert_sellable_pricing()
            priced.append((line, product))
        return priced

    # --- Phase 2 --------------------------------------------------------------

    def _append(self, sale_id: str, items: list[SaleLineItem]) -> list[SaleLineItem]:
        try:
            ids = self._ledger.append_sales(items)
        except StoreTimeoutError as exc:
            logger.error("Ledger append for sale %s timed out", sale_id, exc_info=True)
            warnings = [
                self._queue(StockReconciliationWarning(
                    sale_id=sale_id,
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    reason=WarningReason.COMMIT_UNCERTAIN,
                    detail="ledger append timed out; sale may or may not be recorded",
                ))
                for item in items
            ]
            raise CommitUncertainError(
                f"Sale {sale_id} could not be confirmed: the ledger did not "
                f"answer in time. Check the sales history before retrying.",
                warnings,
            ) from exc
        except UnavailableError as exc:
            logger.error("Ledger rejected sale %s", sale_id, exc_info=True)
            raise LedgerWriteError(f"Sale could not be recorded: {exc}") from exc

        written = [item.with_id(line_id) for item, line_id in zip(items, ids)]
        if len(written) < len(items):
            # The ledger accepted the batch, so the sale stands.
            logger.warning(
                "Ledger returned %d id(s) for %d line(s) of sale %s",
                len(ids), len(items), sale_id,
            )
            written.extend(items[len(written):])
        return written

    # --- Phase 3 --------------------------------------------------------------

    def _decrement_stock(
        self, sale_id: str, items: list[SaleLineItem]
    ) -> list[StockReconciliationWarning]:
        warnings: list[StockReconciliationWarning] = []
        for item in items:
            try:
                applied = self._catalog.decrement_stock(item.product_id, item.quantity)
            except StoreTimeoutError as exc:
                reason, detail = WarningReason.COMMIT_UNCERTAIN, f"stock update timed out: {exc}"
            except UnavailableError as exc:
                reason, detail = WarningReason.STORE_FAULT, f"stock update failed: {exc}"
            else:
                if applied:
                    continue
                reason = WarningReason.INSUFFICIENT_STOCK
                detail = "stock fell below the sold quantity after validation"

            warnings.append(self._queue(StockReconciliationWarning(
                sale_id=sale_id,
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity,
                reason=reason,
                detail=detail,
            )))
        return warnings

    def _queue(self, warning: StockReconciliationWarning) -> StockReconciliationWarning:
        logger.warning("Stock reconciliation needed for sale %s: %s", warning.sale_id, warning)
        try:
            warning.id = self._reconciliation.push(warning)
        except UnavailableError:
            # Still returned to the caller, so the warning is never lost.
            logger.error(
                "Could not queue reconciliation warning for sale %s",
                warning.sale_id, exc_info=True,
            )
        return warning
