from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence

from invtrack.domain.errors import AppError, AuthorizationError
from invtrack.ui.views.products_view import ProductsView
from invtrack.ui.views.stakeholders_view import CustomersView, SuppliersView
from invtrack.ui.views.stock_view import StockView
from invtrack.ui.views.users_view import UsersView

log = logging.getLogger(__name__)


def truncate(text: object, width: int) -> str:
    s = "" if text is None else str(text)
    if len(s) <= width:
        return s
    return s[: max(width - 3, 0)] + "..."


class ConsoleApp:
    """Text-menu front end. Reads one line per prompt and prints plain tables."""

    def __init__(
        self,
        container,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
    ):
        self.c = container
        self.session = container.session
        self._input = input_fn
        self._output = output_fn

        self.products_view = ProductsView(self)
        self.suppliers_view = SuppliersView(self)
        self.customers_view = CustomersView(self)
        self.stock_view = StockView(self)
        self.users_view = UsersView(self)

    # ---------- I/O helpers ----------
    def say(self, text: str = "") -> None:
        self._output(text)

    def ask(self, prompt: str) -> str:
        return (self._input(prompt) or "").strip()

    def ask_int(self, prompt: str) -> Optional[int]:
        raw = self.ask(prompt)
        try:
            return int(raw)
        except ValueError:
            self.say(f"'{raw}' is not a whole number.")
            return None

    def ask_decimal(self, prompt: str) -> Optional[Decimal]:
        raw = self.ask(prompt).replace(",", ".")
        try:
            return Decimal(raw)
        except ArithmeticError:
            self.say(f"'{raw}' is not a number.")
            return None

    def ask_date(self, prompt: str) -> Optional[datetime]:
        raw = self.ask(prompt)
        if not raw:
            return None
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            self.say("Wrong date format, expected YYYY-MM-DD.")
            return None

    def ask_yes(self, prompt: str) -> bool:
        return self.ask(prompt).lower() in {"y", "yes", "s", "si"}

    def table(self, headers: Sequence[str], widths: Sequence[int], rows: Iterable[Sequence[object]]) -> None:
        def line(values: Sequence[object]) -> str:
            return " | ".join(f"{truncate(v, w):<{w}}" for v, w in zip(values, widths))

        self.say(line(headers))
        self.say("-" * (sum(widths) + 3 * (len(widths) - 1)))
        empty = True
        for r in rows:
            empty = False
            self.say(line(r))
        if empty:
            self.say("(no records)")

    def guard(self, action: Callable[[], object]) -> bool:
        """Run a menu action, printing business errors instead of raising them."""
        try:
            action()
            return True
        except AppError as e:
            log.info("ui_action_rejected error=%s message=%s", type(e).__name__, e)
            self.say(f"Error: {e}")
            return False

    # ---------- Screens ----------
    def login_screen(self) -> bool:
        self.say("=== LOGIN ===")
        username = self.ask("Username (blank to quit): ")
        if not username:
            return False
        password = self.ask("Password: ")
        try:
            self.session.login(username, password)
        except AuthorizationError as e:
            self.say(f"Error: {e}")
        return True

    def main_menu(self) -> str:
        user = self.session.user
        self.say("")
        self.say("=== INVENTORY SYSTEM ===")
        self.say(f"Active user: {user.username} (role: {user.role})")
        self.say("1. Products")
        self.say("2. Suppliers")
        self.say("3. Customers")
        self.say("4. Stock movements (FIFO)")
        if self.session.can("manage_users"):
            self.say("5. Users")
        self.say("6. Logout")
        self.say("0. Quit")
        choice = self.ask("Option: ")

        if choice == "1":
            self.products_view.run()
        elif choice == "2":
            self.suppliers_view.run()
        elif choice == "3":
            self.customers_view.run()
        elif choice == "4":
            self.stock_view.run()
        elif choice == "5" and self.session.can("manage_users"):
            self.users_view.run()
        elif choice == "6":
            log.info("logout username=%s", user.username)
            self.session.logout()
        elif choice != "0":
            self.say("Unknown option.")
        return choice

    def run(self) -> None:
        while True:
            while not self.session.is_authenticated:
                if not self.login_screen():
                    return
            if self.main_menu() == "0":
                self.session.logout()
                return
