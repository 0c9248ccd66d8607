"""Application services: follow-up on stock reconciliation warnings."""

from __future__ import annotations

import logging

from pos.domain.exceptions import EntityNotFoundError
from pos.domain.model.checkout import StockReconciliationWarning
from pos.domain.model.context import RequestContext
from pos.domain.repository.reconciliation_queue import ReconciliationQueue

logger = logging.getLogger(__name__)


class ListReconciliationHandler:

    def __init__(self, queue: ReconciliationQueue) -> None:
        self._queue = queue

    def handle(self, include_resolved: bool = False) -> list[StockReconciliationWarning]:
        if include_resolved:
            return self._queue.list_all()
        return self._queue.list_open()


class ResolveReconciliationHandler:

    def __init__(
        self,
        queue: ReconciliationQueue,
        catalog_roles: frozenset[str] = frozenset({"admin"}),
    ) -> None:
        self._queue = queue
        self._catalog_roles = catalog_roles

    def handle(self, context: RequestContext, warning_id: str) -> None:
        context.require_role(self._catalog_roles, "resolve stock warnings")
        if not self._queue.resolve(warning_id):
            raise EntityNotFoundError(f"Reconciliation warning #{warning_id} not found")
        logger.info("Reconciliation warning %s resolved by %s", warning_id, context.user_id)
