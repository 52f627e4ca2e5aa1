from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest
from conftest import StepClock

from invtrack.domain.errors import NotFoundError, ValidationError
from invtrack.repositories.sqlite_repo import SqliteRepository
from invtrack.services.catalog_service import CatalogService
from invtrack.services.stakeholder_service import StakeholderService
from invtrack.services.stock_service import StockLedger

NOW = datetime(2025, 6, 1, 12, 0, 0)


def _setup(tmp_path: Path):
    repo = SqliteRepository(tmp_path / "entry.db", clock=StepClock(start=NOW, step=timedelta(seconds=1)))
    repo.init_db()
    catalog = CatalogService(repo)
    milk = catalog.add_product("Milk 1L", "MILK-1", "Groceries", True, "admin")
    cable = catalog.add_product("HDMI cable", "HDMI-1", "Electronics", False, "admin")
    sid = StakeholderService(repo).add_supplier("Dairy Co", "sales@dairy.test", "admin")
    return repo, StockLedger(repo), milk, cable, sid


def test_entry_persists_full_batch_with_audit(tmp_path: Path):
    repo, ledger, milk, _cable, sid = _setup(tmp_path)
    expires = NOW + timedelta(days=10)

    bid = ledger.register_entry(milk, sid, 12, Decimal("0.95"), entry_date=NOW, expiration_date=expires, actor="admin")

    batch = repo.get_batch_by_id(bid)
    assert batch.product_id == milk
    assert batch.supplier_id == sid
    assert batch.quantity == 12
    assert batch.unit_cost == Decimal("0.95")
    assert batch.entry_date == NOW
    assert batch.expiration_date == expires
    assert batch.audit.created_by == "admin"
    assert batch.audit.last_modified_by == "admin"
    assert batch.audit.is_deleted is False


def test_entry_date_defaults_to_clock(tmp_path: Path):
    repo, ledger, _milk, cable, sid = _setup(tmp_path)

    bid = ledger.register_entry(cable, sid, 1, 4, actor="admin")

    batch = repo.get_batch_by_id(bid)
    assert batch.entry_date >= NOW
    assert batch.expiration_date is None


def test_perishable_requires_expiration_date(tmp_path: Path):
    _repo, ledger, milk, _cable, sid = _setup(tmp_path)

    with pytest.raises(ValidationError, match="perishable"):
        ledger.register_entry(milk, sid, 5, 1, entry_date=NOW, actor="admin")
    assert ledger.get_total_stock(milk) == 0


def test_perishable_rejects_past_expiration_date(tmp_path: Path):
    _repo, ledger, milk, _cable, sid = _setup(tmp_path)

    with pytest.raises(ValidationError, match="after the entry date"):
        ledger.register_entry(milk, sid, 5, 1, entry_date=NOW, expiration_date=NOW - timedelta(days=1), actor="admin")
    with pytest.raises(ValidationError):
        ledger.register_entry(milk, sid, 5, 1, entry_date=NOW, expiration_date=NOW, actor="admin")
    assert ledger.get_total_stock(milk) == 0


def test_non_perishable_accepts_missing_expiration(tmp_path: Path):
    _repo, ledger, _milk, cable, sid = _setup(tmp_path)

    ledger.register_entry(cable, sid, 3, "7.50", entry_date=NOW, actor="admin")

    assert ledger.get_total_stock(cable) == 3


def test_mixed_naive_and_aware_dates_are_rejected(tmp_path: Path):
    _repo, ledger, milk, _cable, sid = _setup(tmp_path)

    with pytest.raises(ValidationError):
        ledger.register_entry(
            milk, sid, 1, 1, entry_date=NOW, expiration_date=datetime(2030, 1, 1, tzinfo=timezone.utc), actor="admin"
        )


@pytest.mark.parametrize("qty", [0, -1, 2.5, True, "3"])
def test_entry_rejects_bad_quantity(tmp_path: Path, qty):
    _repo, ledger, _milk, cable, sid = _setup(tmp_path)

    with pytest.raises(ValidationError):
        ledger.register_entry(cable, sid, qty, 1, entry_date=NOW, actor="admin")


@pytest.mark.parametrize("cost", [-0.01, "abc", "NaN", "Infinity"])
def test_entry_rejects_bad_unit_cost(tmp_path: Path, cost):
    _repo, ledger, _milk, cable, sid = _setup(tmp_path)

    with pytest.raises(ValidationError):
        ledger.register_entry(cable, sid, 1, cost, entry_date=NOW, actor="admin")


def test_entry_accepts_zero_unit_cost(tmp_path: Path):
    repo, ledger, _milk, cable, sid = _setup(tmp_path)

    bid = ledger.register_entry(cable, sid, 1, 0, entry_date=NOW, actor="admin")

    assert repo.get_batch_by_id(bid).unit_cost == Decimal("0")


def test_entry_requires_an_actor(tmp_path: Path):
    _repo, ledger, _milk, cable, sid = _setup(tmp_path)

    with pytest.raises(ValidationError):
        ledger.register_entry(cable, sid, 1, 1, entry_date=NOW, actor="  ")


def test_entry_requires_existing_active_supplier(tmp_path: Path):
    repo, ledger, _milk, cable, sid = _setup(tmp_path)

    with pytest.raises(NotFoundError, match="Supplier"):
        ledger.register_entry(cable, 999, 1, 1, entry_date=NOW, actor="admin")

    StakeholderService(repo).delete_supplier(sid, "admin")
    with pytest.raises(NotFoundError, match="Supplier"):
        ledger.register_entry(cable, sid, 1, 1, entry_date=NOW, actor="admin")
    assert ledger.get_total_stock(cable) == 0


def test_entry_requires_existing_active_product(tmp_path: Path):
    repo, ledger, _milk, cable, sid = _setup(tmp_path)

    with pytest.raises(NotFoundError, match="Product"):
        ledger.register_entry(999, sid, 1, 1, entry_date=NOW, actor="admin")

    CatalogService(repo).delete_product(cable, "admin")
    with pytest.raises(NotFoundError, match="Product"):
        ledger.register_entry(cable, sid, 1, 1, entry_date=NOW, actor="admin")


def test_entry_never_touches_existing_batches(tmp_path: Path):
    repo, ledger, _milk, cable, sid = _setup(tmp_path)
    first = ledger.register_entry(cable, sid, 4, 1, entry_date=NOW, actor="admin")
    before = repo.get_batch_by_id(first)

    ledger.register_entry(cable, sid, 6, 2, entry_date=NOW + timedelta(hours=1), actor="clerk")

    assert repo.get_batch_by_id(first) == before
    assert ledger.get_total_stock(cable) == 10
