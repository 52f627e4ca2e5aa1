from .auth_service import AuthService
from .catalog_service import CatalogService
from .reporting_service import ReportingService
from .session_service import Session
from .stakeholder_service import StakeholderService
from .stock_service import StockLedger

__all__ = [
    "AuthService",
    "CatalogService",
    "ReportingService",
    "Session",
    "StakeholderService",
    "StockLedger",
]
