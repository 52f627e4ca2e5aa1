from __future__ import annotations

from dataclasses import dataclass
import logging
import re

from invtrack.domain.errors import AuthorizationError, NotFoundError
from invtrack.domain.models import User
from invtrack.repositories.contracts import UserRepository

log = logging.getLogger(__name__)

ROLES = {"admin", "employee"}


@dataclass(frozen=True)
class PasswordPolicy:
    min_length: int = 8


def _validate_secret_strength(secret: str, *, min_len: int) -> None:
    if len(secret) < min_len:
        raise AuthorizationError(f"Password must have at least {min_len} characters.")
    if not re.search(r"[A-Za-z]", secret):
        raise AuthorizationError("Password must include at least one letter.")
    if not re.search(r"\d", secret):
        raise AuthorizationError("Password must include at least one number.")


PERMISSIONS: dict[str, set[str]] = {
    "manage_catalog": {"admin", "employee"},
    "manage_stakeholders": {"admin", "employee"},
    "register_entry": {"admin", "employee"},
    "register_exit": {"admin", "employee"},
    "view_reports": {"admin", "employee"},
    "export_report": {"admin", "employee"},
    "manage_users": {"admin"},
}


class AuthService:
    def __init__(self, repo: UserRepository, policy: PasswordPolicy | None = None):
        self.repo = repo
        self.policy = policy or PasswordPolicy()

    def list_users(self) -> list[User]:
        return self.repo.list_users()

    def login(self, username: str, password: str) -> User:
        username_clean = (username or "").strip()
        if not username_clean:
            raise AuthorizationError("Username is required.")

        user = self.repo.authenticate_user(username_clean, password or "")
        if not user:
            log.warning("login_failed username=%s", username_clean)
            raise AuthorizationError("Invalid username or password.")
        log.info("login_ok username=%s role=%s", user.username, user.role)
        return user

    def can(self, user: User, action: str) -> bool:
        allowed_roles = PERMISSIONS.get(action)
        if not allowed_roles:
            return False
        return user.role in allowed_roles

    def require_action(self, user: User, action: str) -> None:
        if not self.can(user, action):
            raise AuthorizationError(f"Role '{user.role}' is not allowed to perform '{action}'.")

    def register_user(self, actor: User, username: str, password: str, role: str = "employee") -> int:
        self.require_action(actor, "manage_users")

        name = (username or "").strip()
        target_role = (role or "").strip().lower()
        if not name:
            raise AuthorizationError("Username is required.")
        if target_role not in ROLES:
            raise AuthorizationError(f"Unknown role '{role}'.")
        _validate_secret_strength(password or "", min_len=self.policy.min_length)

        user_id = self.repo.create_user(name, password, target_role, actor.username)
        log.info("user_created username=%s role=%s actor=%s", name, target_role, actor.username)
        return user_id

    def change_password(self, actor: User, user_id: int, new_password: str) -> None:
        if actor.id != int(user_id):
            self.require_action(actor, "manage_users")
        _validate_secret_strength(new_password or "", min_len=self.policy.min_length)
        if not self.repo.set_user_password(int(user_id), new_password, actor.username):
            raise NotFoundError("User not found.")

    def delete_user(self, actor: User, user_id: int) -> None:
        self.require_action(actor, "manage_users")
        if actor.id == int(user_id):
            raise AuthorizationError("You cannot delete your own user.")
        if not self.repo.soft_delete_user(int(user_id), actor.username):
            raise NotFoundError("User not found.")
        log.info("user_deleted user_id=%s actor=%s", user_id, actor.username)
