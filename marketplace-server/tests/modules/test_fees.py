import pytest

from marketplace.core.config import LedgerSettings
from marketplace.modules.ledger import FeeSchedule, InvalidAmount, LedgerService, compute_listing_fee


def test_listing_fee_uses_floor_below_threshold():
    # 0.5% of 50.00 is 0.25, lifted to the 0.50 minimum
    assert compute_listing_fee(5000) == 50


def test_listing_fee_is_half_percent_above_threshold():
    assert compute_listing_fee(50000) == 250
    assert compute_listing_fee(100000) == 500


@pytest.mark.parametrize(
    ("price_cents", "expected"),
    [
        (1, 50),
        (10000, 50),
        (10100, 51),
        (12345, 62),  # 61.725 rounds half-up
        (12300, 62),  # 61.5 rounds half-up
    ],
)
def test_listing_fee_rounding(price_cents, expected):
    assert compute_listing_fee(price_cents) == expected


def test_fee_schedule_from_settings():
    settings = LedgerSettings(listing_fee_rate_bps=100, listing_fee_minimum_cents=10, reserve_fee_cents=100)
    schedule = FeeSchedule.from_settings(settings)

    assert schedule.listing_fee(500) == 10
    assert schedule.listing_fee(5000) == 50
    assert schedule.reserve_fee_cents == 100


def test_default_reserve_fee_is_twenty_cents():
    assert FeeSchedule().reserve_fee_cents == 20


def test_service_rejects_non_positive_price():
    service = LedgerService(session_factory=None)
    with pytest.raises(InvalidAmount):
        service.compute_listing_fee(0)
    assert service.compute_listing_fee(50000) == 250
