from __future__ import annotations

import logging

log = logging.getLogger(__name__)


class StockView:
    def __init__(self, app):
        self.app = app

    @property
    def ledger(self):
        return self.app.c.ledger

    @property
    def reporting(self):
        return self.app.c.reporting

    def show(self) -> None:
        self.app.say("")
        self.app.say("--- CURRENT STOCK ---")
        self.app.table(
            ("ID", "PRODUCT", "TOTAL"),
            (4, 20, 10),
            ((p.id, p.name, total) for p, total in self.reporting.stock_summary()),
        )

    def run(self) -> None:
        while True:
            self.show()
            self.app.say("[1] Register purchase (new batch)  [2] Register sale (FIFO)")
            self.app.say("[3] Active batches  [4] Expiring batches  [5] Export to Excel  [6] Back")
            op = self.app.ask("Option: ")
            if op == "1":
                self.app.guard(self.register_purchase)
            elif op == "2":
                self.app.guard(self.register_sale)
            elif op == "3":
                self.app.guard(self.show_batches)
            elif op == "4":
                self.app.guard(self.show_expiring)
            elif op == "5":
                self.app.guard(self.export_excel)
            elif op == "6":
                return

    def register_purchase(self) -> None:
        self.app.session.require("register_entry")
        products = self.app.c.catalog.list_products()
        if not products:
            self.app.say("Create products in the catalog first.")
            return
        suppliers = self.app.c.stakeholders.list_suppliers()
        if not suppliers:
            self.app.say("There are no suppliers. Register one first.")
            return

        self.app.say("Available suppliers:")
        for s in suppliers:
            self.app.say(f"  ID: {s.id} - {s.name}")
        supplier_id = self.app.ask_int("Supplier ID: ")
        if supplier_id is None:
            return
        product_id = self.app.ask_int("Product ID: ")
        if product_id is None:
            return
        product = self.app.c.catalog.get_product(product_id)
        qty = self.app.ask_int("Quantity: ")
        if qty is None:
            return
        cost = self.app.ask_decimal("Unit cost: ")
        if cost is None:
            return

        expiration = None
        if product.is_perishable:
            self.app.say("Perishable product: expiration date is required.")
            expiration = self.app.ask_date("Expiration date (YYYY-MM-DD): ")

        batch_id = self.ledger.register_entry(
            product.id, supplier_id, qty, cost, expiration_date=expiration, actor=self.app.session.actor
        )
        self.app.say(f"Purchase registered as batch {batch_id}.")

    def register_sale(self) -> None:
        self.app.session.require("register_exit")
        product_id = self.app.ask_int("Product ID to sell: ")
        if product_id is None:
            return
        current = self.ledger.get_total_stock(product_id)
        if current == 0:
            self.app.say("No stock available.")
            return
        qty = self.app.ask_int(f"Quantity (max {current}): ")
        if qty is None:
            return

        result = self.ledger.try_register_exit(product_id, qty, actor=self.app.session.actor)
        if not result.ok:
            self.app.say(f"Sale rejected: {result.error}")
            return
        for a in result.allocations:
            self.app.say(f"  batch {a.batch_id}: -{a.quantity} @ {a.unit_cost}")
        self.app.say(f"Sale registered (FIFO). Cost of goods: {result.cost_of_goods}")

    def show_batches(self) -> None:
        self.app.session.require("view_reports")
        self.app.say("")
        self.app.say("--- ACTIVE BATCHES ---")
        self.app.table(
            ("BATCH", "PRODUCT", "QTY", "UNIT COST", "ENTRY", "EXPIRES"),
            (5, 15, 8, 10, 10, 10),
            (
                (
                    b.id,
                    p.name if p else "???",
                    b.quantity,
                    f"${b.unit_cost}",
                    b.entry_date.date().isoformat(),
                    b.expiration_date.date().isoformat() if b.expiration_date else "-",
                )
                for b, p in self.reporting.batch_details()
            ),
        )

    def show_expiring(self) -> None:
        self.app.session.require("view_reports")
        days = self.app.ask_int("Days ahead: ")
        if days is None:
            return
        self.app.table(
            ("BATCH", "PRODUCT ID", "QTY", "EXPIRES"),
            (5, 10, 8, 10),
            (
                (b.id, b.product_id, b.quantity, b.expiration_date.date().isoformat())
                for b in self.reporting.expiring_batches(days)
            ),
        )

    def export_excel(self) -> None:
        self.app.session.require("export_report")
        path = self.app.ask("Target .xlsx path: ")
        if not path:
            return
        self.reporting.export_batches_excel(path)
        self.app.say(f"Report saved to {path}.")
