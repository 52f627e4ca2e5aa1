from __future__ import annotations

from typing import Optional

from invtrack.domain.errors import AuthorizationError
from invtrack.domain.models import User
from invtrack.services.auth_service import AuthService


class Session:
    """The one logged-in user whose name is stamped on every change."""

    def __init__(self, auth: AuthService):
        self.auth = auth
        self._user: Optional[User] = None

    @property
    def current_user(self) -> Optional[User]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def user(self) -> User:
        if self._user is None:
            raise AuthorizationError("No user is logged in.")
        return self._user

    @property
    def actor(self) -> str:
        return self.user.username

    def login(self, username: str, password: str) -> User:
        self._user = self.auth.login(username, password)
        return self._user

    def logout(self) -> None:
        self._user = None

    def can(self, action: str) -> bool:
        return self._user is not None and self.auth.can(self._user, action)

    def require(self, action: str) -> None:
        self.auth.require_action(self.user, action)
