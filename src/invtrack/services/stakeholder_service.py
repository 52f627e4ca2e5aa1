from __future__ import annotations

from dataclasses import replace
from typing import Optional

from invtrack.domain.errors import NotFoundError, ValidationError
from invtrack.domain.models import Customer, Supplier
from invtrack.repositories.contracts import StakeholderRepository


def _required(value: str, label: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{label} is required.")
    return cleaned


def _keep_if_blank(new: Optional[str], old: str) -> str:
    if new is None or not new.strip():
        return old
    return new.strip()


class StakeholderService:
    """Suppliers and customers: the parties stock comes from and goes to."""

    def __init__(self, repo: StakeholderRepository):
        self.repo = repo

    # ---------- Suppliers ----------
    def list_suppliers(self, include_deleted: bool = False) -> list[Supplier]:
        return self.repo.list_suppliers(include_deleted=include_deleted)

    def get_supplier(self, supplier_id: int, include_deleted: bool = False) -> Supplier:
        s = self.repo.get_supplier_by_id(int(supplier_id))
        if not s or (s.audit.is_deleted and not include_deleted):
            raise NotFoundError("Supplier not found.")
        return s

    def add_supplier(self, name: str, contact_email: str, actor: str) -> int:
        return self.repo.create_supplier(_required(name, "Supplier name"), (contact_email or "").strip(), actor)

    def update_supplier(
        self, supplier_id: int, actor: str, name: Optional[str] = None, contact_email: Optional[str] = None
    ) -> Supplier:
        current = self.get_supplier(supplier_id)
        updated = replace(
            current,
            name=_keep_if_blank(name, current.name),
            contact_email=_keep_if_blank(contact_email, current.contact_email),
        )
        if not self.repo.update_supplier(updated, actor):
            raise NotFoundError("Supplier not found.")
        return self.get_supplier(supplier_id)

    def delete_supplier(self, supplier_id: int, actor: str) -> None:
        if not self.repo.soft_delete_supplier(int(supplier_id), actor):
            raise NotFoundError("Supplier not found.")

    # ---------- Customers ----------
    def list_customers(self, include_deleted: bool = False) -> list[Customer]:
        return self.repo.list_customers(include_deleted=include_deleted)

    def get_customer(self, customer_id: int, include_deleted: bool = False) -> Customer:
        c = self.repo.get_customer_by_id(int(customer_id))
        if not c or (c.audit.is_deleted and not include_deleted):
            raise NotFoundError("Customer not found.")
        return c

    def add_customer(self, name: str, tax_id: str, actor: str) -> int:
        return self.repo.create_customer(_required(name, "Customer name"), _required(tax_id, "Tax ID"), actor)

    def update_customer(
        self, customer_id: int, actor: str, name: Optional[str] = None, tax_id: Optional[str] = None
    ) -> Customer:
        current = self.get_customer(customer_id)
        updated = replace(
            current,
            name=_keep_if_blank(name, current.name),
            tax_id=_keep_if_blank(tax_id, current.tax_id),
        )
        if not self.repo.update_customer(updated, actor):
            raise NotFoundError("Customer not found.")
        return self.get_customer(customer_id)

    def delete_customer(self, customer_id: int, actor: str) -> None:
        if not self.repo.soft_delete_customer(int(customer_id), actor):
            raise NotFoundError("Customer not found.")
