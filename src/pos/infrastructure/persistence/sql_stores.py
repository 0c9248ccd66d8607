"""SQL implementations of the catalog, ledger and reconciliation queue.

The stock decrement is one guarded statement,

    UPDATE products SET stock = stock - :qty
    WHERE id = :id AND stock >= :qty

so concurrent checkouts from any number of processes serialize on the
row and none can push stock below zero.
"""

from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select, update

from pos.domain.exceptions import ValidationError
from pos.domain.model.checkout import StockReconciliationWarning, WarningReason
from pos.domain.model.product import Product
from pos.domain.model.sale import SaleLineItem
from pos.domain.model.value_objects import Discount, Money, PaymentMethod
from pos.domain.repository.catalog_store import CatalogStore
from pos.domain.repository.reconciliation_queue import ReconciliationQueue
from pos.domain.repository.sale_ledger import SaleLedger
from pos.infrastructure.persistence.memory_stores import id_sort_key
from pos.infrastructure.persistence.sql_database import (
    Database,
    ProductRow,
    ReconciliationRow,
    SaleRow,
    from_db_time,
    to_db_time,
)

_PRODUCT_COLUMNS = {
    "name", "low_stock_threshold", "category", "description", "supplier", "active",
}


class SqlCatalogStore(CatalogStore):

    def __init__(self, db: Database) -> None:
        self._db = db

    # --- CatalogStore interface -----------------------------------------------

    def next_id(self) -> str:
        with self._db.session() as session:
            ids = session.scalars(select(ProductRow.id)).all()
        numeric = [int(pid) for pid in ids if pid.isdigit()]
        return str(max(numeric) + 1) if numeric else "1"

    def get_product(self, product_id: str) -> Product | None:
        with self._db.session() as session:
            row = session.get(ProductRow, product_id)
            return self._to_domain(row) if row is not None else None

    def get_by_name(self, name: str) -> Product | None:
        with self._db.session() as session:
            row = session.scalars(
                select(ProductRow)
                .where(func.lower(ProductRow.name) == name.strip().lower())
                .where(ProductRow.active.is_(True))
            ).first()
            return self._to_domain(row) if row is not None else None

    def list_products(self, include_inactive: bool = False) -> list[Product]:
        stmt = select(ProductRow)
        if not include_inactive:
            stmt = stmt.where(ProductRow.active.is_(True))
        with self._db.session() as session:
            products = [self._to_domain(row) for row in session.scalars(stmt)]
        return sorted(products, key=lambda p: id_sort_key(p.id))

    def add_product(self, product: Product) -> None:
        with self._db.session() as session:
            if session.get(ProductRow, product.id) is not None:
                raise ValidationError(f"Product ID '{product.id}' already exists")
            session.add(self._to_row(product))

    def update_product(self, product_id: str, fields: dict) -> bool:
        values = {}
        for name, value in fields.items():
            if name in ("cost_price", "selling_price"):
                values[name] = str(value.amount)
                values["currency"] = value.currency
            elif name == "images":
                values["images"] = json.dumps(list(value))
            elif name in _PRODUCT_COLUMNS:
                values[name] = value
            else:
                raise ValidationError(f"Cannot update column '{name}'")
        with self._db.session() as session:
            result = session.execute(
                update(ProductRow)
                .where(ProductRow.id == product_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    def decrement_stock(self, product_id: str, quantity: int) -> bool:
        with self._db.session() as session:
            result = session.execute(
                update(ProductRow)
                .where(ProductRow.id == product_id, ProductRow.stock >= quantity)
                .values(stock=ProductRow.stock - quantity)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    def increment_stock(self, product_id: str, quantity: int) -> bool:
        with self._db.session() as session:
            result = session.execute(
                update(ProductRow)
                .where(ProductRow.id == product_id)
                .values(stock=ProductRow.stock + quantity)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    # --- Mapping --------------------------------------------------------------

    @staticmethod
    def _to_row(product: Product) -> ProductRow:
        return ProductRow(
            id=product.id,
            name=product.name,
            cost_price=str(product.cost_price.amount),
            selling_price=str(product.selling_price.amount),
            currency=product.selling_price.currency,
            stock=product.stock,
            low_stock_threshold=product.low_stock_threshold,
            category=product.category,
            description=product.description,
            supplier=product.supplier,
            images=json.dumps(list(product.images)),
            created_at=to_db_time(product.created_at),
            active=product.active,
        )

    @staticmethod
    def _to_domain(row: ProductRow) -> Product:
        return Product(
            id=row.id,
            name=row.name,
            cost_price=Money(Decimal(row.cost_price), row.currency),
            selling_price=Money(Decimal(row.selling_price), row.currency),
            stock=row.stock,
            low_stock_threshold=row.low_stock_threshold,
            category=row.category,
            description=row.description,
            supplier=row.supplier,
            images=json.loads(row.images),
            created_at=from_db_time(row.created_at),
            active=row.active,
        )


class SqlSaleLedger(SaleLedger):

    def __init__(self, db: Database) -> None:
        self._db = db

    def append_sales(self, lines: list[SaleLineItem]) -> list[str]:
        rows = [self._to_row(line) for line in lines]
        with self._db.session() as session:
            session.add_all(rows)
            session.flush()
            return [str(row.id) for row in rows]

    def query_in_range(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[SaleLineItem]:
        stmt = select(SaleRow)
        if start is not None:
            stmt = stmt.where(SaleRow.timestamp >= to_db_time(start))
        if end is not None:
            stmt = stmt.where(SaleRow.timestamp < to_db_time(end))
        stmt = stmt.order_by(SaleRow.timestamp.desc(), SaleRow.id.desc())
        with self._db.session() as session:
            return [self._to_domain(row) for row in session.scalars(stmt)]

    # --- Mapping --------------------------------------------------------------

    @staticmethod
    def _to_row(line: SaleLineItem) -> SaleRow:
        return SaleRow(
            sale_id=line.sale_id,
            product_id=line.product_id,
            product_name=line.product_name,
            quantity=line.quantity,
            unit_price=str(line.unit_price.amount),
            total=str(line.total.amount),
            profit=str(line.profit.amount),
            currency=line.total.currency,
            payment_method=line.payment_method.value,
            customer=line.customer,
            discount=str(line.discount.percent),
            timestamp=to_db_time(line.timestamp),
        )

    @staticmethod
    def _to_domain(row: SaleRow) -> SaleLineItem:
        return SaleLineItem(
            id=str(row.id),
            sale_id=row.sale_id,
            product_id=row.product_id,
            product_name=row.product_name,
            quantity=row.quantity,
            unit_price=Money(Decimal(row.unit_price), row.currency),
            total=Money(Decimal(row.total), row.currency),
            profit=Money(Decimal(row.profit), row.currency),
            payment_method=PaymentMethod(row.payment_method),
            customer=row.customer,
            discount=Discount(Decimal(row.discount)),
            timestamp=from_db_time(row.timestamp),
        )


class SqlReconciliationQueue(ReconciliationQueue):

    def __init__(self, db: Database) -> None:
        self._db = db

    def push(self, warning: StockReconciliationWarning) -> str:
        row = ReconciliationRow(
            sale_id=warning.sale_id,
            product_id=warning.product_id,
            product_name=warning.product_name,
            quantity=warning.quantity,
            reason=warning.reason.value,
            detail=warning.detail,
            created_at=to_db_time(warning.created_at),
            resolved=warning.resolved,
        )
        with self._db.session() as session:
            session.add(row)
            session.flush()
            return str(row.id)

    def list_all(self) -> list[StockReconciliationWarning]:
        with self._db.session() as session:
            rows = session.scalars(select(ReconciliationRow).order_by(ReconciliationRow.id))
            return [
                StockReconciliationWarning(
                    id=str(row.id),
                    sale_id=row.sale_id,
                    product_id=row.product_id,
                    product_name=row.product_name,
                    quantity=row.quantity,
                    reason=WarningReason(row.reason),
                    detail=row.detail,
                    created_at=from_db_time(row.created_at),
                    resolved=row.resolved,
                )
                for row in rows
            ]

    def resolve(self, warning_id: str) -> bool:
        if not warning_id.isdigit():
            return False
        with self._db.session() as session:
            result = session.execute(
                update(ReconciliationRow)
                .where(ReconciliationRow.id == int(warning_id))
                .values(resolved=True)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1
