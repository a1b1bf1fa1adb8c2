"""Ledger domain exports"""

from .exceptions import (
    AlreadyReserved,
    IdempotencyKeyReused,
    InsufficientBalance,
    InvalidAmount,
    InvalidProduct,
    LedgerError,
    ProductNotFound,
    ProductOwnershipError,
    SelfReservationNotAllowed,
)
from .fees import FeeSchedule, compute_listing_fee
from .models import BalanceAudit, LedgerTransaction, Product, ProductDraft
from .service import LedgerService

__all__ = [
    "AlreadyReserved",
    "BalanceAudit",
    "FeeSchedule",
    "IdempotencyKeyReused",
    "InsufficientBalance",
    "InvalidAmount",
    "InvalidProduct",
    "LedgerError",
    "LedgerService",
    "LedgerTransaction",
    "Product",
    "ProductDraft",
    "ProductNotFound",
    "ProductOwnershipError",
    "SelfReservationNotAllowed",
    "compute_listing_fee",
]
