from __future__ import annotations

import sqlite3
import hashlib
import hmac
import logging
import os
import secrets
import shutil
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Callable, Optional

from invtrack.domain.errors import ConflictError
from invtrack.domain.models import (
    Audit,
    Batch,
    Customer,
    Product,
    ProductCategory,
    Supplier,
    User,
)

log = logging.getLogger(__name__)

SYSTEM_ACTOR = "SYSTEM"

_AUDIT_COLUMNS = """
    created_at TEXT NOT NULL,
    created_by TEXT NOT NULL,
    last_modified_at TEXT NOT NULL,
    last_modified_by TEXT NOT NULL,
    is_deleted INTEGER NOT NULL DEFAULT 0 CHECK(is_deleted IN (0,1)),
    deleted_at TEXT,
    deleted_by TEXT
"""


def _iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    # aware values are kept in UTC so stored text sorts by instant
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="microseconds")


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(str(value))


def _audit_from_row(r: sqlite3.Row) -> Audit:
    return Audit(
        created_at=_parse_dt(r["created_at"]),
        created_by=str(r["created_by"]),
        last_modified_at=_parse_dt(r["last_modified_at"]),
        last_modified_by=str(r["last_modified_by"]),
        is_deleted=bool(r["is_deleted"]),
        deleted_at=_parse_dt(r["deleted_at"]),
        deleted_by=(str(r["deleted_by"]) if r["deleted_by"] is not None else None),
    )


def _product_from_row(r: sqlite3.Row) -> Product:
    return Product(
        id=int(r["id"]),
        name=str(r["name"]),
        sku=str(r["sku"]),
        category=ProductCategory(str(r["category"])),
        is_perishable=bool(r["is_perishable"]),
        audit=_audit_from_row(r),
    )


def _supplier_from_row(r: sqlite3.Row) -> Supplier:
    return Supplier(
        id=int(r["id"]),
        name=str(r["name"]),
        contact_email=str(r["contact_email"] or ""),
        audit=_audit_from_row(r),
    )


def _customer_from_row(r: sqlite3.Row) -> Customer:
    return Customer(id=int(r["id"]), name=str(r["name"]), tax_id=str(r["tax_id"]), audit=_audit_from_row(r))


def _user_from_row(r: sqlite3.Row) -> User:
    return User(id=int(r["id"]), username=str(r["username"]), role=str(r["role"]), audit=_audit_from_row(r))


def _batch_from_row(r: sqlite3.Row) -> Batch:
    return Batch(
        id=int(r["id"]),
        product_id=int(r["product_id"]),
        supplier_id=int(r["supplier_id"]),
        quantity=int(r["quantity"]),
        unit_cost=Decimal(str(r["unit_cost"])),
        entry_date=_parse_dt(r["entry_date"]),
        expiration_date=_parse_dt(r["expiration_date"]),
        audit=_audit_from_row(r),
    )


class SqliteRepository:
    def __init__(self, db_path: Path | str, clock: Callable[[], datetime] | None = None, timeout: float = 5.0):
        self.db_path = str(db_path)
        self.clock = clock or datetime.now
        self.timeout = float(timeout)

    def _conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _now_iso(self) -> str:
        return _iso(self.clock())

    def init_db(self) -> None:
        self.run_migrations()
        self._ensure_bootstrap_admin()

    def run_migrations(self) -> None:
        conn = self._conn()
        backup_path = self._create_pre_migration_backup()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN")
            cur.execute("CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)")
            cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
            current_version = int(cur.fetchone()[0])

            migrations = [
                (1, self._migration_v1_base),
                (2, self._migration_v2_batch_indexes),
            ]

            for version, migration in migrations:
                if version <= current_version:
                    continue
                migration(cur)
                cur.execute(
                    "INSERT INTO schema_migrations (version, applied_at) VALUES (?, datetime('now'))",
                    (version,),
                )
                log.info("schema_migration_applied version=%s", version)
            conn.commit()
        except Exception as exc:
            conn.rollback()
            self._restore_pre_migration_backup(backup_path)
            raise RuntimeError(
                "Database migration failed. Original database restored from automatic backup."
            ) from exc
        finally:
            conn.close()

    def _create_pre_migration_backup(self) -> Path | None:
        db_file = Path(self.db_path)
        if not db_file.exists() or db_file.stat().st_size == 0:
            return None
        backup_file = db_file.with_name(f"{db_file.stem}.pre_migration_{datetime.now().strftime('%Y%m%d%H%M%S')}.bak")
        shutil.copy2(db_file, backup_file)
        return backup_file

    def _restore_pre_migration_backup(self, backup_path: Path | None) -> None:
        if backup_path is None or not backup_path.exists():
            return
        shutil.copy2(backup_path, self.db_path)

    def _migration_v1_base(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            f"""
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                username TEXT NOT NULL UNIQUE,
                password_hash TEXT NOT NULL,
                role TEXT NOT NULL CHECK(role IN ('admin','employee')),
                {_AUDIT_COLUMNS}
            )
            """
        )

        cur.execute(
            f"""
            CREATE TABLE IF NOT EXISTS products (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                sku TEXT NOT NULL UNIQUE,
                category TEXT NOT NULL CHECK(category IN ('Groceries','Electronics','General')),
                is_perishable INTEGER NOT NULL CHECK(is_perishable IN (0,1)),
                {_AUDIT_COLUMNS}
            )
            """
        )

        cur.execute(
            f"""
            CREATE TABLE IF NOT EXISTS suppliers (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                contact_email TEXT,
                {_AUDIT_COLUMNS}
            )
            """
        )

        cur.execute(
            f"""
            CREATE TABLE IF NOT EXISTS customers (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                tax_id TEXT NOT NULL,
                {_AUDIT_COLUMNS}
            )
            """
        )

        cur.execute(
            f"""
            CREATE TABLE IF NOT EXISTS batches (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                product_id INTEGER NOT NULL,
                supplier_id INTEGER NOT NULL,
                quantity INTEGER NOT NULL CHECK(quantity >= 0),
                unit_cost TEXT NOT NULL,
                entry_date TEXT NOT NULL,
                expiration_date TEXT,
                {_AUDIT_COLUMNS},
                FOREIGN KEY(product_id) REFERENCES products(id),
                FOREIGN KEY(supplier_id) REFERENCES suppliers(id)
            )
            """
        )

    def _migration_v2_batch_indexes(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            "CREATE INDEX IF NOT EXISTS ix_batches_fifo ON batches (product_id, entry_date, id)"
        )
        cur.execute(
            "CREATE INDEX IF NOT EXISTS ix_batches_expiration ON batches (expiration_date)"
        )

    def _ensure_bootstrap_admin(self) -> None:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT COUNT(*) FROM users WHERE is_deleted=0")
        active_users = int(cur.fetchone()[0])
        if active_users > 0:
            conn.close()
            return

        bootstrap_password = os.environ.get("INVTRACK_BOOTSTRAP_ADMIN_PASSWORD", "").strip() or secrets.token_urlsafe(12)
        now = self._now_iso()
        cur.execute(
            """
            INSERT INTO users (username, password_hash, role, created_at, created_by, last_modified_at, last_modified_by)
            VALUES ('admin', ?, 'admin', ?, ?, ?, ?)
            """,
            (self._hash_password(bootstrap_password), now, SYSTEM_ACTOR, now, SYSTEM_ACTOR),
        )
        conn.commit()
        conn.close()

        # one-time onboarding channel: the password is readable only by the owner
        secret_file = Path(self.db_path).parent / ".admin_bootstrap_password"
        secret_file.write_text(bootstrap_password + "\n", encoding="utf-8")
        try:
            secret_file.chmod(0o600)
        except OSError:
            log.warning("bootstrap_secret_chmod_failed path=%s", secret_file)
        log.info("bootstrap_admin_created secret_file=%s", secret_file)

    # ---------- Generic audited rows ----------
    def _insert(self, table: str, values: dict, actor: str) -> int:
        now = self._now_iso()
        row = dict(values)
        row.update(created_at=now, created_by=actor, last_modified_at=now, last_modified_by=actor, is_deleted=0)
        cols = ", ".join(row)
        marks = ", ".join("?" for _ in row)
        conn = self._conn()
        try:
            cur = conn.execute(f"INSERT INTO {table} ({cols}) VALUES ({marks})", tuple(row.values()))
            conn.commit()
            return int(cur.lastrowid)
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            if "UNIQUE" in str(exc).upper():
                raise ConflictError(self._conflict_message(table, values)) from exc
            raise
        finally:
            conn.close()

    def _update(self, table: str, row_id: int, values: dict, actor: str) -> bool:
        row = dict(values)
        row.update(last_modified_at=self._now_iso(), last_modified_by=actor)
        assignments = ", ".join(f"{c}=?" for c in row)
        conn = self._conn()
        try:
            cur = conn.execute(
                f"UPDATE {table} SET {assignments} WHERE id=? AND is_deleted=0",
                (*row.values(), int(row_id)),
            )
            conn.commit()
            return cur.rowcount > 0
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            if "UNIQUE" in str(exc).upper():
                raise ConflictError(self._conflict_message(table, values)) from exc
            raise
        finally:
            conn.close()

    def _soft_delete(self, table: str, row_id: int, actor: str) -> bool:
        conn = self._conn()
        cur = conn.execute(
            f"UPDATE {table} SET is_deleted=1, deleted_at=?, deleted_by=? WHERE id=? AND is_deleted=0",
            (self._now_iso(), actor, int(row_id)),
        )
        changed = cur.rowcount > 0
        conn.commit()
        conn.close()
        return bool(changed)

    def _select_all(self, table: str, include_deleted: bool, order_by: str) -> list[sqlite3.Row]:
        conn = self._conn()
        where = "" if include_deleted else "WHERE is_deleted=0"
        rows = conn.execute(f"SELECT * FROM {table} {where} ORDER BY {order_by}").fetchall()
        conn.close()
        return rows

    def _select_by_id(self, table: str, row_id: int) -> Optional[sqlite3.Row]:
        conn = self._conn()
        row = conn.execute(f"SELECT * FROM {table} WHERE id=?", (int(row_id),)).fetchone()
        conn.close()
        return row

    @staticmethod
    def _conflict_message(table: str, values: dict) -> str:
        if table == "products":
            return f"SKU '{values.get('sku')}' already exists."
        if table == "users":
            return f"Username '{values.get('username')}' already exists."
        return f"Duplicate value in {table}."

    # ---------- Products ----------
    def create_product(self, name: str, sku: str, category: ProductCategory, is_perishable: bool, actor: str) -> int:
        return self._insert(
            "products",
            {"name": name, "sku": sku, "category": category.value, "is_perishable": 1 if is_perishable else 0},
            actor,
        )

    def list_products(self, include_deleted: bool = False) -> list[Product]:
        return [_product_from_row(r) for r in self._select_all("products", include_deleted, "name, id")]

    def get_product_by_id(self, product_id: int) -> Optional[Product]:
        r = self._select_by_id("products", product_id)
        return _product_from_row(r) if r else None

    def update_product(self, product: Product, actor: str) -> bool:
        # SKU is the catalog key and never changes after creation
        return self._update(
            "products",
            product.id,
            {
                "name": product.name,
                "category": product.category.value,
                "is_perishable": 1 if product.is_perishable else 0,
            },
            actor,
        )

    def soft_delete_product(self, product_id: int, actor: str) -> bool:
        return self._soft_delete("products", product_id, actor)

    # ---------- Suppliers ----------
    def create_supplier(self, name: str, contact_email: str, actor: str) -> int:
        return self._insert("suppliers", {"name": name, "contact_email": contact_email}, actor)

    def list_suppliers(self, include_deleted: bool = False) -> list[Supplier]:
        return [_supplier_from_row(r) for r in self._select_all("suppliers", include_deleted, "name, id")]

    def get_supplier_by_id(self, supplier_id: int) -> Optional[Supplier]:
        r = self._select_by_id("suppliers", supplier_id)
        return _supplier_from_row(r) if r else None

    def update_supplier(self, supplier: Supplier, actor: str) -> bool:
        return self._update("suppliers", supplier.id, {"name": supplier.name, "contact_email": supplier.contact_email}, actor)

    def soft_delete_supplier(self, supplier_id: int, actor: str) -> bool:
        return self._soft_delete("suppliers", supplier_id, actor)

    # ---------- Customers ----------
    def create_customer(self, name: str, tax_id: str, actor: str) -> int:
        return self._insert("customers", {"name": name, "tax_id": tax_id}, actor)

    def list_customers(self, include_deleted: bool = False) -> list[Customer]:
        return [_customer_from_row(r) for r in self._select_all("customers", include_deleted, "name, id")]

    def get_customer_by_id(self, customer_id: int) -> Optional[Customer]:
        r = self._select_by_id("customers", customer_id)
        return _customer_from_row(r) if r else None

    def update_customer(self, customer: Customer, actor: str) -> bool:
        return self._update("customers", customer.id, {"name": customer.name, "tax_id": customer.tax_id}, actor)

    def soft_delete_customer(self, customer_id: int, actor: str) -> bool:
        return self._soft_delete("customers", customer_id, actor)

    # ---------- Users ----------
    def create_user(self, username: str, password: str, role: str, actor: str) -> int:
        return self._insert(
            "users",
            {"username": username, "password_hash": self._hash_password(password), "role": role},
            actor,
        )

    def list_users(self, include_deleted: bool = False) -> list[User]:
        return [_user_from_row(r) for r in self._select_all("users", include_deleted, "username, id")]

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        r = self._select_by_id("users", user_id)
        return _user_from_row(r) if r else None

    def update_user(self, user: User, actor: str) -> bool:
        return self._update("users", user.id, {"role": user.role}, actor)

    def set_user_password(self, user_id: int, password: str, actor: str) -> bool:
        return self._update("users", user_id, {"password_hash": self._hash_password(password)}, actor)

    def soft_delete_user(self, user_id: int, actor: str) -> bool:
        return self._soft_delete("users", user_id, actor)

    def authenticate_user(self, username: str, password: str) -> Optional[User]:
        conn = self._conn()
        row = conn.execute(
            "SELECT * FROM users WHERE username=? AND is_deleted=0",
            (username,),
        ).fetchone()
        conn.close()
        if row and self._verify_password(str(row["password_hash"]), password):
            return _user_from_row(row)
        return None

    # ---------- Batches ----------
    def insert_batch(
        self,
        cur: sqlite3.Cursor,
        product_id: int,
        supplier_id: int,
        quantity: int,
        unit_cost: Decimal,
        entry_date: datetime,
        expiration_date: Optional[datetime],
        actor: str,
    ) -> int:
        now = self._now_iso()
        cur.execute(
            """
            INSERT INTO batches (
                product_id, supplier_id, quantity, unit_cost, entry_date, expiration_date,
                created_at, created_by, last_modified_at, last_modified_by, is_deleted
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0)
            """,
            (
                int(product_id),
                int(supplier_id),
                int(quantity),
                str(unit_cost),
                _iso(entry_date),
                _iso(expiration_date),
                now,
                actor,
                now,
                actor,
            ),
        )
        return int(cur.lastrowid)

    def fifo_candidates(self, cur: sqlite3.Cursor, product_id: int) -> list[Batch]:
        cur.execute(
            """
            SELECT *
            FROM batches
            WHERE product_id=? AND quantity > 0 AND is_deleted=0
            ORDER BY entry_date ASC, id ASC
            """,
            (int(product_id),),
        )
        return [_batch_from_row(r) for r in cur.fetchall()]

    def write_batch_quantity(self, cur: sqlite3.Cursor, batch_id: int, quantity: int, actor: str) -> None:
        cur.execute(
            """
            UPDATE batches
            SET quantity=?, last_modified_at=?, last_modified_by=?
            WHERE id=? AND is_deleted=0 AND quantity >= ?
            """,
            (int(quantity), self._now_iso(), actor, int(batch_id), int(quantity)),
        )
        if cur.rowcount != 1:
            raise sqlite3.DatabaseError(f"Batch {batch_id} could not be decremented to {quantity}.")

    def get_product_row(self, cur: sqlite3.Cursor, product_id: int) -> Optional[Product]:
        cur.execute("SELECT * FROM products WHERE id=?", (int(product_id),))
        r = cur.fetchone()
        return _product_from_row(r) if r else None

    def get_supplier_row(self, cur: sqlite3.Cursor, supplier_id: int) -> Optional[Supplier]:
        cur.execute("SELECT * FROM suppliers WHERE id=?", (int(supplier_id),))
        r = cur.fetchone()
        return _supplier_from_row(r) if r else None

    def sum_batch_quantity(self, product_id: int) -> int:
        conn = self._conn()
        row = conn.execute(
            "SELECT COALESCE(SUM(quantity), 0) FROM batches WHERE product_id=? AND is_deleted=0",
            (int(product_id),),
        ).fetchone()
        conn.close()
        return int(row[0])

    def get_batch_by_id(self, batch_id: int) -> Optional[Batch]:
        r = self._select_by_id("batches", batch_id)
        return _batch_from_row(r) if r else None

    def list_active_batches(self) -> list[Batch]:
        conn = self._conn()
        rows = conn.execute(
            """
            SELECT *
            FROM batches
            WHERE quantity > 0 AND is_deleted=0
            ORDER BY product_id ASC, entry_date ASC, id ASC
            """
        ).fetchall()
        conn.close()
        return [_batch_from_row(r) for r in rows]

    def list_batches_for_product(self, product_id: int, include_exhausted: bool = True) -> list[Batch]:
        conn = self._conn()
        rows = conn.execute(
            f"""
            SELECT *
            FROM batches
            WHERE product_id=? AND is_deleted=0 {"" if include_exhausted else "AND quantity > 0"}
            ORDER BY entry_date ASC, id ASC
            """,
            (int(product_id),),
        ).fetchall()
        conn.close()
        return [_batch_from_row(r) for r in rows]

    def list_batches_expiring_before(self, cutoff: datetime) -> list[Batch]:
        conn = self._conn()
        rows = conn.execute(
            """
            SELECT *
            FROM batches
            WHERE quantity > 0 AND is_deleted=0
              AND expiration_date IS NOT NULL AND expiration_date <= ?
            ORDER BY expiration_date ASC, id ASC
            """,
            (_iso(cutoff),),
        ).fetchall()
        conn.close()
        return [_batch_from_row(r) for r in rows]

    @staticmethod
    def _hash_password(password: str, *, rounds: int = 200_000, salt: str | None = None) -> str:
        salt = salt or secrets.token_hex(16)
        digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), bytes.fromhex(salt), rounds).hex()
        return f"pbkdf2_sha256${rounds}${salt}${digest}"

    @staticmethod
    def _verify_password(stored: str, provided: str) -> bool:
        if not stored.startswith("pbkdf2_sha256$"):
            return False
        try:
            _algo, rounds_s, salt, digest = stored.split("$", 3)
            candidate = hashlib.pbkdf2_hmac(
                "sha256",
                provided.encode("utf-8"),
                bytes.fromhex(salt),
                int(rounds_s),
            ).hex()
        except ValueError:
            return False
        return hmac.compare_digest(candidate, digest)
