"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from pos.application.analytics import AnalyticsAggregator
from pos.domain.repository.catalog_store import CatalogStore
from pos.domain.repository.reconciliation_queue import ReconciliationQueue
from pos.domain.repository.sale_ledger import SaleLedger
from pos.domain.service.checkout_engine import CheckoutEngine
from pos.domain.service.sale_events import SaleEventBus
from pos.infrastructure.config import BACKENDS, Config
from pos.infrastructure.persistence.json_catalog_store import JsonCatalogStore
from pos.infrastructure.persistence.json_reconciliation_queue import JsonReconciliationQueue
from pos.infrastructure.persistence.json_sale_ledger import JsonSaleLedger
from pos.infrastructure.persistence.sql_database import Database
from pos.infrastructure.persistence.sql_stores import (
    SqlCatalogStore,
    SqlReconciliationQueue,
    SqlSaleLedger,
)

logger = logging.getLogger(__name__)


def _check_backend(config: Config) -> None:
    if config.backend not in BACKENDS:
        raise ValueError(
            f"Unknown POS_BACKEND {config.backend!r} (expected one of {', '.join(BACKENDS)})"
        )


@lru_cache(maxsize=None)
def database(url: str, timeout: float) -> Database:
    db = Database(url, timeout=timeout)
    db.create_all()
    logger.debug("SQL backend ready at %s", db.engine.url.render_as_string(hide_password=True))
    return db


def _sql(config: Config) -> Database:
    return database(config.database_url, config.io_timeout_seconds)


@lru_cache(maxsize=None)
def catalog_store(config: Config) -> CatalogStore:
    _check_backend(config)
    if config.backend == "sql":
        return SqlCatalogStore(_sql(config))
    return JsonCatalogStore(config.data_dir / "products.json", config.io_timeout_seconds)


@lru_cache(maxsize=None)
def sale_ledger(config: Config) -> SaleLedger:
    _check_backend(config)
    if config.backend == "sql":
        return SqlSaleLedger(_sql(config))
    return JsonSaleLedger(config.data_dir / "sales.json", config.io_timeout_seconds)


@lru_cache(maxsize=None)
def reconciliation_queue(config: Config) -> ReconciliationQueue:
    _check_backend(config)
    if config.backend == "sql":
        return SqlReconciliationQueue(_sql(config))
    return JsonReconciliationQueue(
        config.data_dir / "reconciliation.json", config.io_timeout_seconds
    )


@lru_cache(maxsize=None)
def event_bus(config: Config) -> SaleEventBus:
    return SaleEventBus()


def checkout_engine(config: Config) -> CheckoutEngine:
    return CheckoutEngine(
        catalog=catalog_store(config),
        ledger=sale_ledger(config),
        reconciliation=reconciliation_queue(config),
        events=event_bus(config),
        checkout_roles=config.checkout_roles,
    )


@lru_cache(maxsize=None)
def analytics(config: Config) -> AnalyticsAggregator:
    return AnalyticsAggregator(
        ledger=sale_ledger(config),
        catalog=catalog_store(config),
        events=event_bus(config),
        currency=config.currency,
    )
