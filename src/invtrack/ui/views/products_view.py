from __future__ import annotations

from invtrack.domain.models import ProductCategory


class ProductsView:
    def __init__(self, app):
        self.app = app

    @property
    def catalog(self):
        return self.app.c.catalog

    def show(self) -> None:
        self.app.say("")
        self.app.say("--- PRODUCT CATALOG ---")
        self.app.table(
            ("ID", "NAME", "SKU", "CATEGORY", "PERISHABLE"),
            (4, 20, 12, 12, 10),
            (
                (p.id, p.name, p.sku, p.category.value, "yes" if p.is_perishable else "no")
                for p in self.catalog.list_products()
            ),
        )

    def run(self) -> None:
        while True:
            self.show()
            self.app.say("[1] New product  [2] Edit  [3] Delete  [4] Back")
            op = self.app.ask("Option: ")
            if op == "1":
                self.app.guard(self.create)
            elif op == "2":
                self.app.guard(self.edit)
            elif op == "3":
                self.app.guard(self.delete)
            elif op == "4":
                return

    def _ask_category(self, allow_blank: bool = False):
        options = list(ProductCategory)
        labels = "  ".join(f"[{i}] {c.value}" for i, c in enumerate(options, start=1))
        raw = self.app.ask(f"Category: {labels}: ")
        if allow_blank and not raw:
            return None
        if raw.isdigit() and 1 <= int(raw) <= len(options):
            return options[int(raw) - 1]
        return ProductCategory.parse(raw)

    def create(self) -> None:
        self.app.session.require("manage_catalog")
        name = self.app.ask("Name: ")
        sku = self.app.ask("SKU (unique code): ")
        category = self._ask_category()
        perishable = self.app.ask_yes("Perishable? (y/n): ")
        pid = self.catalog.add_product(name, sku, category, perishable, self.app.session.actor)
        self.app.say(f"Product {pid} created.")

    def edit(self) -> None:
        self.app.session.require("manage_catalog")
        pid = self.app.ask_int("Product ID to edit: ")
        if pid is None:
            return
        product = self.catalog.get_product(pid)
        name = self.app.ask(f"New name [{product.name}]: ")
        category = self._ask_category(allow_blank=True)
        self.catalog.update_product(pid, self.app.session.actor, name=name or None, category=category)
        self.app.say("Product updated.")

    def delete(self) -> None:
        self.app.session.require("manage_catalog")
        pid = self.app.ask_int("Product ID to delete: ")
        if pid is None:
            return
        self.catalog.delete_product(pid, self.app.session.actor)
        self.app.say("Product deleted.")
