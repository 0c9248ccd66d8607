"""In-process notification channel for newly recorded sales.

Publishing happens only after the ledger append has succeeded. A failing
subscriber is logged and skipped; it never affects the sale or the other
subscribers.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable

from pos.domain.model.sale import SaleLineItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SalesRecorded:
    sale_id: str
    lines: tuple[SaleLineItem, ...]


Subscriber = Callable[[SalesRecorded], None]


class SaleEventBus:

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, handler: Subscriber) -> Callable[[], None]:
        """Register ``handler``; returns a callable that unsubscribes it."""
        with self._lock:
            self._subscribers.append(handler)

        def unsubscribe() -> None:
            with self._lock:
                if handler in self._subscribers:
                    self._subscribers.remove(handler)

        return unsubscribe

    def publish(self, event: SalesRecorded) -> int:
        """Deliver ``event`` to every subscriber; returns the failure count."""
        with self._lock:
            subscribers = list(self._subscribers)

        failures = 0
        for handler in subscribers:
            name = getattr(handler, "__qualname__", repr(handler))
            try:
                handler(event)
            except Exception:
                failures += 1
                logger.error(
                    "Sale event subscriber %s failed for sale %s",
                    name, event.sale_id, exc_info=True,
                )
        logger.debug(
            "Published sale %s to %d subscriber(s), %d failed",
            event.sale_id, len(subscribers), failures,
        )
        return failures
