from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional, Protocol

from invtrack.domain.models import Batch, Customer, Product, ProductCategory, Supplier, User


class ProductRepository(Protocol):
    def create_product(self, name: str, sku: str, category: ProductCategory, is_perishable: bool, actor: str) -> int: ...
    def list_products(self, include_deleted: bool = False) -> list[Product]: ...
    def get_product_by_id(self, product_id: int) -> Optional[Product]: ...
    def update_product(self, product: Product, actor: str) -> bool: ...
    def soft_delete_product(self, product_id: int, actor: str) -> bool: ...


class StakeholderRepository(Protocol):
    def create_supplier(self, name: str, contact_email: str, actor: str) -> int: ...
    def list_suppliers(self, include_deleted: bool = False) -> list[Supplier]: ...
    def get_supplier_by_id(self, supplier_id: int) -> Optional[Supplier]: ...
    def update_supplier(self, supplier: Supplier, actor: str) -> bool: ...
    def soft_delete_supplier(self, supplier_id: int, actor: str) -> bool: ...
    def create_customer(self, name: str, tax_id: str, actor: str) -> int: ...
    def list_customers(self, include_deleted: bool = False) -> list[Customer]: ...
    def get_customer_by_id(self, customer_id: int) -> Optional[Customer]: ...
    def update_customer(self, customer: Customer, actor: str) -> bool: ...
    def soft_delete_customer(self, customer_id: int, actor: str) -> bool: ...


class UserRepository(Protocol):
    def create_user(self, username: str, password: str, role: str, actor: str) -> int: ...
    def list_users(self, include_deleted: bool = False) -> list[User]: ...
    def get_user_by_id(self, user_id: int) -> Optional[User]: ...
    def set_user_password(self, user_id: int, password: str, actor: str) -> bool: ...
    def soft_delete_user(self, user_id: int, actor: str) -> bool: ...
    def authenticate_user(self, username: str, password: str) -> Optional[User]: ...


class BatchRepository(Protocol):
    clock: Callable[[], datetime]

    def get_product_by_id(self, product_id: int) -> Optional[Product]: ...
    def sum_batch_quantity(self, product_id: int) -> int: ...
    def list_active_batches(self) -> list[Batch]: ...
    def list_batches_for_product(self, product_id: int, include_exhausted: bool = True) -> list[Batch]: ...
    def list_batches_expiring_before(self, cutoff: datetime) -> list[Batch]: ...
