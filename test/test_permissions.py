from pathlib import Path

import pytest
from conftest import StepClock, set_admin_password

from invtrack.application.container import build_container
from invtrack.domain.errors import AuthorizationError
from invtrack.services.auth_service import PERMISSIONS
from invtrack.ui.app import ConsoleApp

SHARED_ACTIONS = [
    "manage_catalog",
    "manage_stakeholders",
    "register_entry",
    "register_exit",
    "view_reports",
    "export_report",
]


def _container(tmp_path: Path):
    container = build_container(tmp_path / "perm.db", clock=StepClock())
    set_admin_password(container.repo)
    admin = container.auth.login("admin", "Admin#1234")
    container.auth.register_user(admin, "clerk", "Clerk#2024!", role="employee")
    return container


def _console(container, answers: list[str]) -> str:
    feed = iter(answers)
    out: list[str] = []
    ConsoleApp(container, input_fn=lambda _prompt: next(feed), output_fn=out.append).run()
    return "\n".join(out)


@pytest.mark.parametrize("action", SHARED_ACTIONS)
def test_shared_actions_allowed_for_both_roles(tmp_path: Path, action: str):
    container = _container(tmp_path)
    session = container.session

    for username, password in (("admin", "Admin#1234"), ("clerk", "Clerk#2024!")):
        session.login(username, password)
        assert session.can(action)
        session.require(action)
        session.logout()


def test_manage_users_is_admin_only(tmp_path: Path):
    container = _container(tmp_path)
    session = container.session

    session.login("admin", "Admin#1234")
    session.require("manage_users")
    session.logout()

    session.login("clerk", "Clerk#2024!")
    assert not session.can("manage_users")
    with pytest.raises(AuthorizationError):
        session.require("manage_users")


@pytest.mark.parametrize("action", SHARED_ACTIONS + ["manage_users"])
def test_nothing_is_allowed_without_login(tmp_path: Path, action: str):
    session = _container(tmp_path).session

    assert not session.can(action)
    with pytest.raises(AuthorizationError):
        session.require(action)


def test_unknown_action_is_denied(tmp_path: Path):
    session = _container(tmp_path).session
    session.login("admin", "Admin#1234")

    assert not session.can("drop_database")


def test_menus_check_the_permission_table(tmp_path: Path, monkeypatch):
    container = _container(tmp_path)
    monkeypatch.setitem(PERMISSIONS, "register_entry", {"admin"})
    monkeypatch.setitem(PERMISSIONS, "manage_catalog", {"admin"})

    text = _console(container, [
        "clerk", "Clerk#2024!",
        "1", "1", "4",
        "4", "1", "6",
        "0",
    ])

    assert text.count("Error: Role 'employee' is not allowed") == 2
    assert container.catalog.list_products() == []


def test_menu_shows_users_entry_from_permission_table(tmp_path: Path, monkeypatch):
    container = _container(tmp_path)
    monkeypatch.setitem(PERMISSIONS, "manage_users", {"admin", "employee"})

    text = _console(container, ["clerk", "Clerk#2024!", "0"])

    assert "5. Users" in text
