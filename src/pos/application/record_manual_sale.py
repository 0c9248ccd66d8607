"""Application service: Record Manual Sale use case.

For sales rung up without scanning a product: the cashier types an
amount. The entry has no product and touches no stock. Profit is
estimated as a fixed share of the sale total.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Callable

from pos.domain.exceptions import (
    CommitUncertainError,
    LedgerWriteError,
    StoreTimeoutError,
    UnavailableError,
    ValidationError,
)
from pos.domain.model.checkout import StockReconciliationWarning, WarningReason
from pos.domain.model.context import RequestContext
from pos.domain.model.sale import MANUAL_SALE_NAME, SaleLineItem
from pos.domain.model.value_objects import DEFAULT_CURRENCY, Discount, Money, PaymentMethod
from pos.domain.repository.reconciliation_queue import ReconciliationQueue
from pos.domain.repository.sale_ledger import SaleLedger
from pos.domain.service.checkout_engine import DEFAULT_CHECKOUT_ROLES, utc_now
from pos.domain.service.sale_events import SaleEventBus, SalesRecorded

logger = logging.getLogger(__name__)

DEFAULT_MANUAL_MARGIN = Decimal("0.30")


class RecordManualSaleHandler:

    def __init__(
        self,
        ledger: SaleLedger,
        events: SaleEventBus | None = None,
        reconciliation: ReconciliationQueue | None = None,
        checkout_roles: frozenset[str] = DEFAULT_CHECKOUT_ROLES,
        margin: Decimal = DEFAULT_MANUAL_MARGIN,
        currency: str = DEFAULT_CURRENCY,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._ledger = ledger
        self._events = events
        self._reconciliation = reconciliation
        self._checkout_roles = checkout_roles
        self._margin = margin
        self._currency = currency
        self._clock = clock

    def handle(
        self,
        context: RequestContext,
        amount: str | Decimal,
        payment_method: str,
        customer: str = "Walk-in",
        discount: str | Decimal | int = 0,
    ) -> SaleLineItem:
        context.require_role(self._checkout_roles, "record sales")

        if not customer or not customer.strip():
            raise ValidationError("Customer name is required")
        method = PaymentMethod.parse(payment_method)
        pct = Discount.of(discount)
        gross = Money.of(amount, self._currency)
        total = gross.discounted(pct)
        if total.is_zero:
            raise ValidationError("Sale amount must be greater than zero")

        line = SaleLineItem(
            id=None,
            sale_id=uuid.uuid4().hex,
            product_id=None,
            product_name=MANUAL_SALE_NAME,
            quantity=1,
            unit_price=gross,
            total=total,
            profit=total.scaled(self._margin),
            payment_method=method,
            customer=customer.strip(),
            discount=pct,
            timestamp=self._clock(),
        )
        try:
            (line_id,) = self._ledger.append_sales([line])
        except StoreTimeoutError as exc:
            logger.error("Ledger append for manual sale %s timed out", line.sale_id, exc_info=True)
            warning = self._queue(StockReconciliationWarning(
                sale_id=line.sale_id,
                product_id=None,
                product_name=MANUAL_SALE_NAME,
                quantity=1,
                reason=WarningReason.COMMIT_UNCERTAIN,
                detail=f"ledger append timed out; manual sale of {total} may or may not be recorded",
            ))
            raise CommitUncertainError(
                f"Manual sale {line.sale_id} could not be confirmed: the ledger did not answer "
                "in time. Check the sales history before retrying.",
                [warning],
            ) from exc
        except UnavailableError as exc:
            logger.error("Ledger rejected manual sale", exc_info=True)
            raise LedgerWriteError(f"Sale could not be recorded: {exc}") from exc

        line = line.with_id(line_id)
        logger.info("Manual sale %s of %s recorded by %s", line.sale_id, total, context.user_id)
        if self._events is not None:
            self._events.publish(SalesRecorded(sale_id=line.sale_id, lines=(line,)))
        return line

    def _queue(self, warning: StockReconciliationWarning) -> StockReconciliationWarning:
        logger.warning("Reconciliation needed for manual sale %s: %s", warning.sale_id, warning)
        if self._reconciliation is None:
            return warning
        try:
            warning.id = self._reconciliation.push(warning)
        except UnavailableError:
            logger.error(
                "Could not queue reconciliation warning for sale %s",
                warning.sale_id, exc_info=True,
            )
        return warning
