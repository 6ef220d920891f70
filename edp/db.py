"""Products table and the CRUD calls the data session runs.

SQLAlchemy Core only. Every function opens its own transaction, so each call
commits on its own.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from sqlalchemy import Column, Float, Identity, Integer, MetaData, String, Table, create_engine, delete, insert, select, update
from sqlalchemy.engine import Engine, Row

from .models import ConnectionParams

logger = logging.getLogger(__name__)

metadata = MetaData()

products = Table(
    "products",
    metadata,
    Column("id", Integer, Identity(), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("price", Float, nullable=False),
)


@dataclass(frozen=True)
class ProductRow:
    id: int
    name: str
    price: float


def _rows_to_dataclass(rows: Iterable[Row], cls: Any) -> list[Any]:
    out: list[Any] = []
    for r in rows:
        out.append(cls(**dict(r._mapping)))
    return out


def engine_for(params: ConnectionParams) -> Engine:
    # Logged without credentials.
    logger.info("Creating engine for %s:%s/%s", params.host, params.port, params.service_name)
    return create_engine(params.url(), pool_pre_ping=True)


def ping(engine: Engine) -> None:
    """Open and close one connection; raises if the endpoint refuses it."""
    with engine.connect():
        pass


def reset_schema(engine: Engine) -> None:
    """Drop the products table if present, then create it."""
    metadata.drop_all(engine, tables=[products], checkfirst=True)
    metadata.create_all(engine, tables=[products])


def insert_products(engine: Engine, items: Iterable[tuple[str, float]]) -> int:
    rows = [{"name": name, "price": price} for name, price in items]
    if not rows:
        return 0
    with engine.begin() as conn:
        conn.execute(insert(products), rows)
    return len(rows)


def list_products(engine: Engine) -> list[ProductRow]:
    with engine.connect() as conn:
        rows = conn.execute(select(products).order_by(products.c.id)).fetchall()
        return _rows_to_dataclass(rows, ProductRow)


def rename_product(engine: Engine, product_id: int, name: str) -> int:
    """Update only the name column. Returns the number of rows touched."""
    with engine.begin() as conn:
        result = conn.execute(update(products).where(products.c.id == product_id).values(name=name))
        return result.rowcount


def delete_product(engine: Engine, product_id: int) -> int:
    with engine.begin() as conn:
        result = conn.execute(delete(products).where(products.c.id == product_id))
        return result.rowcount
