"""Ledger domain specific exceptions."""

from __future__ import annotations

from marketplace.modules.common.exceptions import MarketplaceError


class LedgerError(MarketplaceError):
    """Base class for ledger domain errors."""

    code = "ledger_error"


class InvalidAmount(LedgerError):
    """Amount must be a positive number of cents."""

    code = "invalid_amount"


class InvalidProduct(LedgerError):
    """Product draft is incomplete or malformed."""

    code = "invalid_product"


class InsufficientBalance(LedgerError):
    """Balance does not cover the fee.

    The context carries ``required_cents``, ``balance_cents`` and
    ``shortfall_cents`` so the caller can prompt for a top-up.
    """

    code = "insufficient_balance"

    def __init__(self, *, required_cents: int, balance_cents: int) -> None:
        shortfall = required_cents - balance_cents
        super().__init__(
            f"Balance of {balance_cents} cents does not cover the {required_cents} cent fee",
            required_cents=required_cents,
            balance_cents=balance_cents,
            shortfall_cents=shortfall,
        )

    @property
    def shortfall_cents(self) -> int:
        return self.context["shortfall_cents"]


class ProductNotFound(LedgerError):
    """Product not found."""

    code = "product_not_found"


class ProductOwnershipError(LedgerError):
    """Only the seller may change this product."""

    code = "product_forbidden"


class AlreadyReserved(LedgerError):
    """Product is already reserved."""

    code = "already_reserved"


class SelfReservationNotAllowed(LedgerError):
    """Sellers cannot reserve their own products."""

    code = "self_reservation_not_allowed"


class IdempotencyKeyReused(LedgerError):
    """Idempotency key was already used for a different operation."""

    code = "idempotency_key_reused"
