from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol

from invtrack.domain.models import Batch, Product, Supplier


class UnitOfWork(Protocol):
    def __enter__(self) -> "UnitOfWork": ...
    def __exit__(self, exc_type, exc, tb) -> None: ...
    def get_product(self, product_id: int) -> Optional[Product]: ...
    def get_supplier(self, supplier_id: int) -> Optional[Supplier]: ...
    def add_batch(
        self,
        product_id: int,
        supplier_id: int,
        quantity: int,
        unit_cost: Decimal,
        entry_date: datetime,
        expiration_date: Optional[datetime],
        actor: str,
    ) -> int: ...
    def fifo_candidates(self, product_id: int) -> list[Batch]: ...
    def set_batch_quantity(self, batch_id: int, quantity: int, actor: str) -> None: ...


@dataclass
class SqliteUnitOfWork:
    """Single SQLite transaction around a ledger use-case.

    ``BEGIN IMMEDIATE`` takes the database write lock before the first read, so
    a read-verify-write sequence cannot interleave with another writer.
    Leaving the block normally commits; any exception rolls everything back.
    """

    repo: object
    _conn: Optional[sqlite3.Connection] = field(default=None, init=False, repr=False)
    _cur: Optional[sqlite3.Cursor] = field(default=None, init=False, repr=False)

    def __enter__(self) -> "SqliteUnitOfWork":
        self._conn = self.repo._conn()
        self._cur = self._conn.cursor()
        self._cur.execute("BEGIN IMMEDIATE")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is None:
                self._conn.commit()
            else:
                self._conn.rollback()
        finally:
            self._conn.close()
            self._conn = None
            self._cur = None

    @property
    def cursor(self) -> sqlite3.Cursor:
        if self._cur is None:
            raise RuntimeError("Unit of work is not active.")
        return self._cur

    def get_product(self, product_id: int) -> Optional[Product]:
        return self.repo.get_product_row(self.cursor, product_id)

    def get_supplier(self, supplier_id: int) -> Optional[Supplier]:
        return self.repo.get_supplier_row(self.cursor, supplier_id)

    def add_batch(
        self,
        product_id: int,
        supplier_id: int,
        quantity: int,
        unit_cost: Decimal,
        entry_date: datetime,
        expiration_date: Optional[datetime],
        actor: str,
    ) -> int:
        return self.repo.insert_batch(
            self.cursor, product_id, supplier_id, quantity, unit_cost, entry_date, expiration_date, actor
        )

    def fifo_candidates(self, product_id: int) -> list[Batch]:
        return self.repo.fifo_candidates(self.cursor, product_id)

    def set_batch_quantity(self, batch_id: int, quantity: int, actor: str) -> None:
        self.repo.write_batch_quantity(self.cursor, batch_id, quantity, actor)
