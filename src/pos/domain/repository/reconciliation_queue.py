"""Abstract queue of stock reconciliation warnings awaiting follow-up."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pos.domain.model.checkout import StockReconciliationWarning


class ReconciliationQueue(ABC):

    @abstractmethod
    def push(self, warning: StockReconciliationWarning) -> str:
        """Persist a warning, assign and return its ID."""

    @abstractmethod
    def list_all(self) -> list[StockReconciliationWarning]:
        """Return every warning, oldest first."""

    @abstractmethod
    def resolve(self, warning_id: str) -> bool:
        """Mark a warning resolved. False if the ID is unknown."""

    def list_open(self) -> list[StockReconciliationWarning]:
        return [w for w in self.list_all() if not w.resolved]
