"""SQLAlchemy-backed repository implementations."""

from .account_repository import SqlAccountRepository
from .ledger_repository import SqlLedgerRepository
from .product_repository import SqlProductRepository
from .support_repository import SqlSupportRepository

__all__ = [
    "SqlAccountRepository",
    "SqlLedgerRepository",
    "SqlProductRepository",
    "SqlSupportRepository",
]
