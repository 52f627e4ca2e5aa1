from __future__ import annotations


class UsersView:
    def __init__(self, app):
        self.app = app

    @property
    def auth(self):
        return self.app.c.auth

    def show(self) -> None:
        self.app.say("")
        self.app.say("--- USERS ---")
        self.app.table(
            ("ID", "USERNAME", "ROLE", "CREATED BY"),
            (4, 20, 10, 12),
            ((u.id, u.username, u.role, u.audit.created_by) for u in self.auth.list_users()),
        )

    def run(self) -> None:
        self.app.session.require("manage_users")
        while True:
            self.show()
            self.app.say("[1] Create employee  [2] Change password  [3] Delete  [4] Back")
            op = self.app.ask("Option: ")
            if op == "1":
                self.app.guard(self.create)
            elif op == "2":
                self.app.guard(self.change_password)
            elif op == "3":
                self.app.guard(self.delete)
            elif op == "4":
                return

    def create(self) -> None:
        username = self.app.ask("Username: ")
        password = self.app.ask("Password: ")
        uid = self.auth.register_user(self.app.session.user, username, password, "employee")
        self.app.say(f"User {uid} created.")

    def change_password(self) -> None:
        uid = self.app.ask_int("User ID: ")
        if uid is None:
            return
        password = self.app.ask("New password: ")
        self.auth.change_password(self.app.session.user, uid, password)
        self.app.say("Password changed.")

    def delete(self) -> None:
        uid = self.app.ask_int("User ID: ")
        if uid is None:
            return
        self.auth.delete_user(self.app.session.user, uid)
        self.app.say("User deleted.")
