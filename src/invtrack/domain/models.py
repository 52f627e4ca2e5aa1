from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from invtrack.domain.errors import InsufficientStockError, ValidationError


@dataclass(frozen=True)
class Audit:
    """Creation, modification and soft-delete stamps shared by every record."""

    created_at: datetime
    created_by: str
    last_modified_at: datetime
    last_modified_by: str
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[str] = None


class ProductCategory(Enum):
    GROCERIES = "Groceries"
    ELECTRONICS = "Electronics"
    GENERAL = "General"

    @classmethod
    def parse(cls, value: "ProductCategory | str") -> "ProductCategory":
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower()
        for member in cls:
            if key in (member.value.lower(), member.name.lower()):
                return member
        allowed = ", ".join(m.value for m in cls)
        raise ValidationError(f"Unknown category '{value}'. Allowed: {allowed}")


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    sku: str
    category: ProductCategory
    is_perishable: bool
    audit: Audit


@dataclass(frozen=True)
class Supplier:
    id: int
    name: str
    contact_email: str
    audit: Audit


@dataclass(frozen=True)
class Customer:
    id: int
    name: str
    tax_id: str
    audit: Audit


@dataclass(frozen=True)
class User:
    id: int
    username: str
    role: str
    audit: Audit

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass(frozen=True)
class Batch:
    id: int
    product_id: int
    supplier_id: int
    quantity: int
    unit_cost: Decimal
    entry_date: datetime
    expiration_date: Optional[datetime]
    audit: Audit


@dataclass(frozen=True)
class BatchAllocation:
    batch_id: int
    quantity: int
    unit_cost: Decimal

    @property
    def cost(self) -> Decimal:
        return self.unit_cost * self.quantity


@dataclass(frozen=True)
class ExitResult:
    """Outcome of a FIFO withdrawal: either allocations or the business error."""

    product_id: int
    requested: int
    allocations: tuple[BatchAllocation, ...] = field(default_factory=tuple)
    error: Optional[InsufficientStockError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def cost_of_goods(self) -> Decimal:
        return sum((a.cost for a in self.allocations), Decimal("0"))

    def unwrap(self) -> "ExitResult":
        if self.error is not None:
            raise self.error
        return self
