from pathlib import Path

from conftest import StepClock, set_admin_password

from invtrack.application.container import build_container
from invtrack.ui.app import ConsoleApp, truncate


def _run(tmp_path: Path, answers: list[str]):
    container = build_container(tmp_path / "console.db", clock=StepClock())
    set_admin_password(container.repo)
    feed = iter(answers)
    out: list[str] = []
    ConsoleApp(container, input_fn=lambda _prompt: next(feed), output_fn=out.append).run()
    return container, "\n".join(out)


def test_purchase_and_fifo_sale_through_menus(tmp_path: Path):
    container, text = _run(tmp_path, [
        "admin", "Admin#1234",
        "2", "1", "Acme Foods", "sales@acme.test", "4",
        "1", "1", "Milk", "MLK-1", "1", "y", "4",
        "4",
        "1", "1", "1", "5", "2,50", "2025-06-01",
        "2", "1", "7",
        "2", "1", "3",
        "6",
        "0",
    ])

    assert "Supplier 1 created." in text
    assert "Product 1 created." in text
    assert "Purchase registered as batch 1." in text
    assert "Sale rejected:" in text and "missing: 2" in text
    assert "batch 1: -3 @ 2.50" in text
    assert "Cost of goods: 7.50" in text
    assert container.ledger.get_total_stock(1) == 2
    assert not container.session.is_authenticated


def test_business_errors_are_printed_not_raised(tmp_path: Path):
    _container, text = _run(tmp_path, [
        "admin", "Admin#1234",
        "1", "1", "Phone", "PH-1", "Toys", "4",
        "0",
    ])

    assert "Error:" in text
    assert "Product 1 created." not in text


def test_wrong_password_then_quit(tmp_path: Path):
    container, text = _run(tmp_path, ["admin", "nope", ""])

    assert "Error:" in text
    assert "=== INVENTORY SYSTEM ===" not in text
    assert not container.session.is_authenticated


def test_users_menu_hidden_for_employees(tmp_path: Path):
    container = build_container(tmp_path / "console.db", clock=StepClock())
    set_admin_password(container.repo)
    admin = container.auth.login("admin", "Admin#1234")
    container.auth.register_user(admin, "clerk", "Clerk#2024!", role="employee")

    feed = iter(["clerk", "Clerk#2024!", "5", "0"])
    out: list[str] = []
    ConsoleApp(container, input_fn=lambda _prompt: next(feed), output_fn=out.append).run()
    text = "\n".join(out)

    assert "5. Users" not in text
    assert "Unknown option." in text


def test_truncate():
    assert truncate("abcdef", 10) == "abcdef"
    assert truncate("abcdefghijkl", 8) == "abcde..."
    assert truncate(None, 4) == ""
