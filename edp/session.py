from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, TypeVar

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from . import db
from .db import ProductRow
from .events import log_event


T = TypeVar("T")

SEED_PRODUCTS: tuple[tuple[str, float], ...] = (("apple", 5.99), ("orange", 4.99))


class DataSessionError(Exception):
    def __init__(self, step: str, cause: Exception):
        super().__init__(f"{step} failed: {type(cause).__name__}: {cause}")
        self.step = step
        self.cause = cause


@dataclass
class SessionReport:
    products: list[ProductRow] = field(default_factory=list)
    updated_id: int | None = None
    deleted_id: int | None = None


def format_product(p: ProductRow) -> str:
    return f"Product {p.id}: {p.name} - ${p.price:.2f}"


class DataSession:
    """Scripted demo against a reachable database.

    Steps run strictly in order and each commits on its own. The first failure
    raises DataSessionError and nothing after it runs.
    """

    def __init__(
        self,
        engine: Engine,
        seed: tuple[tuple[str, float], ...] = SEED_PRODUCTS,
        new_name: str = "banana",
        out: Callable[[str], None] = print,
    ):
        self.engine = engine
        self.seed = seed
        self.new_name = new_name
        self.out = out

    def _step(self, name: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except SQLAlchemyError as e:
            log_event("ERROR", f"{name} failed: {e}")
            raise DataSessionError(name, e) from e

    def run(self) -> SessionReport:
        report = SessionReport()

        log_event("INFO", "Connecting to database...")
        self._step("connect", lambda: db.ping(self.engine))
        log_event("INFO", "Connected to database...")

        log_event("INFO", "Creating table...")
        self._step("reset schema", lambda: db.reset_schema(self.engine))
        log_event("INFO", "Created table...")

        log_event("INFO", "Inserting data to the table...")
        self._step("insert", lambda: db.insert_products(self.engine, self.seed))
        log_event("INFO", "Inserted data to the table...")

        log_event("INFO", "Reading data from the table...")
        report.products = self._step("read", lambda: db.list_products(self.engine))
        for p in report.products:
            self.out(format_product(p))
        log_event("INFO", "Read data from the table...")

        if len(report.products) < 2:
            raise DataSessionError("read", LookupError(f"expected at least 2 products, got {len(report.products)}"))

        first, second = report.products[0], report.products[1]

        log_event("INFO", "Updating data in the table...")
        self._step("update", lambda: db.rename_product(self.engine, first.id, self.new_name))
        report.products[0] = replace(first, name=self.new_name)
        report.updated_id = first.id
        log_event("INFO", "Updated data in the table...")

        log_event("INFO", "Deleting data from the table...")
        self._step("delete", lambda: db.delete_product(self.engine, second.id))
        report.deleted_id = second.id
        log_event("INFO", "Deleted data from the table...")

        return report
