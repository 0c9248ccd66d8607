"""SQLAlchemy engine/session wiring and schema for the SQL backend.

Money is stored as decimal text so values round-trip exactly on every
dialect. Timestamps are stored as naive UTC and re-tagged on read.
"""

from __future__ import annotations

import math
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, String, Text, create_engine, make_url
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from pos.domain.exceptions import StoreTimeoutError, UnavailableError

_TIMEOUT_MARKERS = ("database is locked", "timeout", "timed out", "lock wait")


class Base(DeclarativeBase):
    pass


class ProductRow(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    cost_price: Mapped[str] = mapped_column(String(32), nullable=False)
    selling_price: Mapped[str] = mapped_column(String(32), nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    low_stock_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    supplier: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    images: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class SaleRow(Base):
    __tablename__ = "sales"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sale_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    product_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[str] = mapped_column(String(32), nullable=False)
    total: Mapped[str] = mapped_column(String(32), nullable=False)
    profit: Mapped[str] = mapped_column(String(32), nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(16), nullable=False)
    customer: Mapped[str] = mapped_column(String(200), nullable=False)
    discount: Mapped[str] = mapped_column(String(16), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)


class ReconciliationRow(Base):
    __tablename__ = "stock_reconciliation"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sale_id: Mapped[str] = mapped_column(String(64), nullable=False)
    product_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String(32), nullable=False)
    detail: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


def to_db_time(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def from_db_time(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def timeout_connect_args(url: str, timeout: float) -> dict:
    """DBAPI arguments that bound connects and statements by ``timeout``.

    Known drivers get a connect timeout plus a statement or socket timeout.
    Any other driver gets nothing here, so only the pool checkout is bounded.
    """
    backend, _, driver = make_url(url).drivername.partition("+")
    seconds = max(1, math.ceil(timeout))
    millis = max(1, int(timeout * 1000))
    if backend == "sqlite":
        return {"timeout": timeout}
    if backend == "postgresql" and driver in ("", "psycopg2", "psycopg"):
        return {
            "connect_timeout": seconds,
            "options": f"-c statement_timeout={millis} -c lock_timeout={millis}",
        }
    if backend == "postgresql" and driver == "pg8000":
        return {"timeout": seconds}
    if backend in ("mysql", "mariadb") and driver in ("", "mysqldb", "pymysql"):
        return {"connect_timeout": seconds, "read_timeout": seconds, "write_timeout": seconds}
    return {}


class Database:
    """Owns the engine and hands out sessions with translated errors."""

    def __init__(self, url: str, timeout: float = 5.0) -> None:
        connect_args = timeout_connect_args(url, timeout)
        if url.startswith("sqlite"):
            self.engine = create_engine(url, connect_args=connect_args)
        else:
            self.engine = create_engine(
                url, connect_args=connect_args, pool_timeout=timeout, pool_pre_ping=True,
            )
        self._sessions: sessionmaker[Session] = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_all(self) -> None:
        with self.translate_errors():
            Base.metadata.create_all(self.engine)

    @contextmanager
    def session(self):
        """Yield a session inside a transaction; commit on success."""
        with self.translate_errors():
            with self._sessions() as session:
                with session.begin():
                    yield session

    @contextmanager
    def translate_errors(self):
        try:
            yield
        except OperationalError as exc:
            message = str(exc).lower()
            if any(marker in message for marker in _TIMEOUT_MARKERS):
                raise StoreTimeoutError(f"Database timed out: {exc.orig}") from exc
            raise UnavailableError(f"Database unavailable: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            raise UnavailableError(f"Database error: {exc}") from exc
