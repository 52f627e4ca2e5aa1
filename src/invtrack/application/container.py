from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable

from invtrack.repositories.sqlite_repo import SqliteRepository
from invtrack.services.auth_service import AuthService
from invtrack.services.catalog_service import CatalogService
from invtrack.services.reporting_service import ReportingService
from invtrack.services.session_service import Session
from invtrack.services.stakeholder_service import StakeholderService
from invtrack.services.stock_service import StockLedger


@dataclass(frozen=True)
class AppContainer:
    repo: SqliteRepository
    auth: AuthService
    session: Session
    catalog: CatalogService
    stakeholders: StakeholderService
    ledger: StockLedger
    reporting: ReportingService


def build_container(db_path: Path | str, clock: Callable[[], datetime] | None = None) -> AppContainer:
    repo = SqliteRepository(db_path, clock=clock)
    repo.init_db()

    auth = AuthService(repo)
    session = Session(auth)
    catalog = CatalogService(repo)
    stakeholders = StakeholderService(repo)
    ledger = StockLedger(repo)
    reporting = ReportingService(repo, ledger)

    return AppContainer(
        repo=repo,
        auth=auth,
        session=session,
        catalog=catalog,
        stakeholders=stakeholders,
        ledger=ledger,
        reporting=reporting,
    )
