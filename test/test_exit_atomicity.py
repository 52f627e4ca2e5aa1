import sqlite3
import threading
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from invtrack.repositories.sqlite_repo import SqliteRepository
from invtrack.services.catalog_service import CatalogService
from invtrack.services.stakeholder_service import StakeholderService
from invtrack.services.stock_service import StockLedger

T0 = datetime(2025, 2, 1, 10, 0, 0)


class FailingRepo(SqliteRepository):
    """Fails the second batch update of a withdrawal, after the first was written."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.writes = 0
        self.fail_on = None

    def write_batch_quantity(self, cur, batch_id, quantity, actor):
        self.writes += 1
        if self.fail_on is not None and self.writes == self.fail_on:
            raise sqlite3.OperationalError("disk I/O error")
        super().write_batch_quantity(cur, batch_id, quantity, actor)


def _seed(repo):
    pid = CatalogService(repo).add_product("Soap", "SOAP-1", "General", False, "admin")
    sid = StakeholderService(repo).add_supplier("Clean Inc", "", "admin")
    return pid, sid


def test_exit_rolls_back_all_batches_when_storage_fails(tmp_path: Path):
    repo = FailingRepo(tmp_path / "fail.db")
    repo.init_db()
    pid, sid = _seed(repo)
    ledger = StockLedger(repo)
    b1 = ledger.register_entry(pid, sid, 3, 1, entry_date=T0, actor="admin")
    b2 = ledger.register_entry(pid, sid, 3, 1, entry_date=T0 + timedelta(days=1), actor="admin")

    repo.fail_on = 2
    with pytest.raises(sqlite3.OperationalError):
        ledger.try_register_exit(pid, 5, actor="admin")

    assert repo.get_batch_by_id(b1).quantity == 3
    assert repo.get_batch_by_id(b2).quantity == 3
    assert ledger.get_total_stock(pid) == 6


def test_concurrent_exits_never_oversell(tmp_path: Path):
    db = tmp_path / "race.db"
    repo = SqliteRepository(db, timeout=30.0)
    repo.init_db()
    pid, sid = _seed(repo)
    StockLedger(repo).register_entry(pid, sid, 10, 1, entry_date=T0, actor="admin")

    results = []
    lock = threading.Lock()

    def worker():
        ledger = StockLedger(SqliteRepository(db, timeout=30.0))
        outcome = ledger.try_register_exit(pid, 3, actor="admin")
        with lock:
            results.append(outcome.ok)

    threads = [threading.Thread(target=worker) for _ in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 3
    assert results.count(False) == 3
    assert StockLedger(repo).get_total_stock(pid) == 1
