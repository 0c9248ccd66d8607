"""Runtime configuration, read from the environment with local defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path

BACKENDS = ("json", "sql")


def _roles(raw: str) -> frozenset[str]:
    return frozenset(role.strip() for role in raw.split(",") if role.strip())


def _number(env, name: str, default: str, parse):
    raw = env.get(name, default)
    try:
        value = parse(raw.strip())
        valid = value >= 0
    except (ValueError, InvalidOperation):
        valid = False
    if not valid:
        raise ValueError(f"{name} must be a non-negative number, got {raw!r}")
    return value


@dataclass(frozen=True)
class Config:
    # "json" keeps everything in POS_DATA_DIR; "sql" uses DATABASE_URL
    backend: str = "json"
    data_dir: Path = Path("data")
    database_url: str = "sqlite:///pos.sqlite3"

    # Upper bound for any single store call
    io_timeout_seconds: float = 5.0

    checkout_roles: frozenset[str] = field(default_factory=lambda: frozenset({"admin"}))
    catalog_roles: frozenset[str] = field(default_factory=lambda: frozenset({"admin"}))

    # Profit recorded for manual sales, as a share of the sale total
    manual_sale_margin: Decimal = Decimal("0.30")
    currency: str = "KES"
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Config:
        env = os.environ if environ is None else environ
        backend = env.get("POS_BACKEND", "json").strip().lower()
        if backend not in BACKENDS:
            raise ValueError(
                f"Unknown POS_BACKEND {backend!r} (expected one of {', '.join(BACKENDS)})"
            )
        return cls(
            backend=backend,
            data_dir=Path(env.get("POS_DATA_DIR", "data")),
            database_url=env.get("DATABASE_URL", "sqlite:///pos.sqlite3"),
            io_timeout_seconds=_number(env, "POS_IO_TIMEOUT_SECONDS", "5.0", float),
            checkout_roles=_roles(env.get("POS_CHECKOUT_ROLES", "admin")),
            catalog_roles=_roles(env.get("POS_CATALOG_ROLES", "admin")),
            manual_sale_margin=_number(env, "POS_MANUAL_SALE_MARGIN", "0.30", Decimal),
            currency=env.get("POS_CURRENCY", "KES").strip().upper(),
            log_level=env.get("POS_LOG_LEVEL", "WARNING").strip().upper(),
        )
