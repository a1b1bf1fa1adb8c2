"""Listing and reservation fee rules."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from marketplace.core.config import LedgerSettings

BASIS_POINTS = Decimal("10000")


@dataclass(frozen=True, slots=True)
class FeeSchedule:
    """Fee amounts in cents; the listing fee is a share of the price with a floor."""

    listing_fee_rate_bps: int = 50
    listing_fee_minimum_cents: int = 50
    reserve_fee_cents: int = 20

    @classmethod
    def from_settings(cls, settings: LedgerSettings) -> "FeeSchedule":
        return cls(
            listing_fee_rate_bps=settings.listing_fee_rate_bps,
            listing_fee_minimum_cents=settings.listing_fee_minimum_cents,
            reserve_fee_cents=settings.reserve_fee_cents,
        )

    def listing_fee(self, price_cents: int) -> int:
        """0.5% of the price by default, rounded half-up to the cent, never below the floor."""

        proportional = (Decimal(price_cents) * self.listing_fee_rate_bps / BASIS_POINTS).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
        return max(self.listing_fee_minimum_cents, int(proportional))


def compute_listing_fee(price_cents: int, schedule: FeeSchedule | None = None) -> int:
    return (schedule or FeeSchedule()).listing_fee(price_cents)


__all__ = ["FeeSchedule", "compute_listing_fee"]
