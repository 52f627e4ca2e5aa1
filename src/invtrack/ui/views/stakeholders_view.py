from __future__ import annotations


class SuppliersView:
    def __init__(self, app):
        self.app = app

    @property
    def stakeholders(self):
        return self.app.c.stakeholders

    def show(self) -> None:
        self.app.say("")
        self.app.say("--- SUPPLIERS ---")
        self.app.table(
            ("ID", "NAME", "EMAIL"),
            (4, 24, 28),
            ((s.id, s.name, s.contact_email) for s in self.stakeholders.list_suppliers()),
        )

    def run(self) -> None:
        while True:
            self.show()
            self.app.say("[1] New supplier  [2] Edit  [3] Delete  [4] Back")
            op = self.app.ask("Option: ")
            if op == "1":
                self.app.guard(self.create)
            elif op == "2":
                self.app.guard(self.edit)
            elif op == "3":
                self.app.guard(self.delete)
            elif op == "4":
                return

    def create(self) -> None:
        self.app.session.require("manage_stakeholders")
        name = self.app.ask("Name: ")
        email = self.app.ask("Email: ")
        sid = self.stakeholders.add_supplier(name, email, self.app.session.actor)
        self.app.say(f"Supplier {sid} created.")

    def edit(self) -> None:
        self.app.session.require("manage_stakeholders")
        sid = self.app.ask_int("Supplier ID: ")
        if sid is None:
            return
        self.stakeholders.get_supplier(sid)
        name = self.app.ask("Name (blank keeps current): ")
        email = self.app.ask("Email (blank keeps current): ")
        self.stakeholders.update_supplier(sid, self.app.session.actor, name=name, contact_email=email)
        self.app.say("Supplier updated.")

    def delete(self) -> None:
        self.app.session.require("manage_stakeholders")
        sid = self.app.ask_int("Supplier ID: ")
        if sid is None:
            return
        self.stakeholders.delete_supplier(sid, self.app.session.actor)
        self.app.say("Supplier deleted.")


class CustomersView:
    def __init__(self, app):
        self.app = app

    @property
    def stakeholders(self):
        return self.app.c.stakeholders

    def show(self) -> None:
        self.app.say("")
        self.app.say("--- CUSTOMERS ---")
        self.app.table(
            ("ID", "NAME", "TAX ID"),
            (4, 24, 16),
            ((c.id, c.name, c.tax_id) for c in self.stakeholders.list_customers()),
        )

    def run(self) -> None:
        while True:
            self.show()
            self.app.say("[1] New customer  [2] Edit  [3] Delete  [4] Back")
            op = self.app.ask("Option: ")
            if op == "1":
                self.app.guard(self.create)
            elif op == "2":
                self.app.guard(self.edit)
            elif op == "3":
                self.app.guard(self.delete)
            elif op == "4":
                return

    def create(self) -> None:
        self.app.session.require("manage_stakeholders")
        name = self.app.ask("Name: ")
        tax_id = self.app.ask("Tax ID: ")
        cid = self.stakeholders.add_customer(name, tax_id, self.app.session.actor)
        self.app.say(f"Customer {cid} created.")

    def edit(self) -> None:
        self.app.session.require("manage_stakeholders")
        cid = self.app.ask_int("Customer ID: ")
        if cid is None:
            return
        self.stakeholders.get_customer(cid)
        name = self.app.ask("Name (blank keeps current): ")
        tax_id = self.app.ask("Tax ID (blank keeps current): ")
        self.stakeholders.update_customer(cid, self.app.session.actor, name=name, tax_id=tax_id)
        self.app.say("Customer updated.")

    def delete(self) -> None:
        self.app.session.require("manage_stakeholders")
        cid = self.app.ask_int("Customer ID: ")
        if cid is None:
            return
        self.stakeholders.delete_customer(cid, self.app.session.actor)
        self.app.say("Customer deleted.")
