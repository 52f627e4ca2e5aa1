from __future__ import annotations

from dataclasses import replace
from typing import Optional

from invtrack.domain.errors import NotFoundError, ValidationError
from invtrack.domain.models import Product, ProductCategory
from invtrack.repositories.contracts import ProductRepository


class CatalogService:
    def __init__(self, repo: ProductRepository):
        self.repo = repo

    def list_products(self, include_deleted: bool = False) -> list[Product]:
        return self.repo.list_products(include_deleted=include_deleted)

    def get_product(self, product_id: int, include_deleted: bool = False) -> Product:
        p = self.repo.get_product_by_id(int(product_id))
        if not p or (p.audit.is_deleted and not include_deleted):
            raise NotFoundError("Product not found.")
        return p

    def add_product(
        self,
        name: str,
        sku: str,
        category: ProductCategory | str,
        is_perishable: bool,
        actor: str,
    ) -> int:
        name = (name or "").strip()
        sku = (sku or "").strip()
        if not name or not sku:
            raise ValidationError("Name and SKU are required.")
        return self.repo.create_product(name, sku, ProductCategory.parse(category), bool(is_perishable), actor)

    def update_product(
        self,
        product_id: int,
        actor: str,
        name: Optional[str] = None,
        category: ProductCategory | str | None = None,
        is_perishable: Optional[bool] = None,
    ) -> Product:
        product = self.get_product(product_id)
        changes = {}
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Name cannot be empty.")
            changes["name"] = name
        if category is not None:
            changes["category"] = ProductCategory.parse(category)
        if is_perishable is not None:
            changes["is_perishable"] = bool(is_perishable)
        if not changes:
            return product

        updated = replace(product, **changes)
        if not self.repo.update_product(updated, actor):
            raise NotFoundError("Product not found.")
        return self.get_product(product_id)

    def rename_product(self, product_id: int, name: str, actor: str) -> Product:
        return self.update_product(product_id, actor, name=name)

    def delete_product(self, product_id: int, actor: str) -> None:
        if not self.repo.soft_delete_product(int(product_id), actor):
            raise NotFoundError("Product not found.")
