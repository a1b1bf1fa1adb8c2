import asyncio

import pytest

from marketplace.infrastructure.database.repositories.account_repository import SqlAccountRepository
from marketplace.infrastructure.database.repositories.product_repository import SqlProductRepository
from marketplace.modules.common import ConcurrencyConflict
from marketplace.modules.ledger import AlreadyReserved, LedgerService

DRAFT = {"name": "Road bike", "price_cents": 30000, "category": "Sports"}


async def test_concurrent_reservations_have_exactly_one_winner(ledger, make_account):
    seller = await make_account(1000)
    buyers = [await make_account(100) for _ in range(5)]
    product = await ledger.list_product(seller, DRAFT)

    results = await asyncio.gather(
        *(ledger.reserve_product(buyer, product.id) for buyer in buyers),
        return_exceptions=True,
    )

    winners = [result for result in results if not isinstance(result, BaseException)]
    losers = [result for result in results if isinstance(result, BaseException)]
    assert len(winners) == 1
    assert all(isinstance(error, AlreadyReserved) for error in losers)

    winner = winners[0].reserved_by
    stored = await ledger.get_product(product.id)
    assert stored.reserved_by == winner
    for buyer in buyers:
        expected = 80 if buyer == winner else 100
        assert await ledger.get_balance(buyer) == expected
        assert (await ledger.audit_balance(buyer)).consistent


async def test_concurrent_deposits_never_lose_an_update(ledger, make_account):
    account_id = await make_account()

    results = await asyncio.gather(
        *(ledger.deposit(account_id, 100) for _ in range(8)),
        return_exceptions=True,
    )

    unexpected = [r for r in results if isinstance(r, BaseException) and not isinstance(r, ConcurrencyConflict)]
    assert unexpected == []
    succeeded = sum(1 for r in results if not isinstance(r, BaseException))
    assert succeeded >= 1

    audit = await ledger.audit_balance(account_id)
    assert audit.consistent
    assert audit.balance_cents == succeeded * 100
    assert len(await ledger.get_transaction_history(account_id)) == succeeded


async def test_concurrent_fees_never_overdraw(ledger, make_account):
    seller = await make_account(1000)
    buyer = await make_account(50)
    products = [await ledger.list_product(seller, {**DRAFT, "name": f"Bike {i}"}) for i in range(4)]

    results = await asyncio.gather(
        *(ledger.reserve_product(buyer, product.id) for product in products),
        return_exceptions=True,
    )

    reserved = [r for r in results if not isinstance(r, BaseException)]
    # 50 cents cover at most two 20 cent reserve fees
    assert len(reserved) <= 2
    balance = await ledger.get_balance(buyer)
    assert balance == 50 - 20 * len(reserved)
    assert balance >= 0
    assert (await ledger.audit_balance(buyer)).consistent


async def test_retry_budget_exhaustion_raises_conflict(session_factory, make_account):
    calls = []

    class AlwaysStaleAccountRepository(SqlAccountRepository):
        async def compare_and_set_balance(self, account_id, *, expected_version, balance_cents):
            calls.append(expected_version)
            return False

    account_id = await make_account(1000)
    ledger = LedgerService(
        session_factory,
        max_attempts=3,
        retry_backoff_seconds=0.001,
        account_repository_factory=AlwaysStaleAccountRepository,
    )

    with pytest.raises(ConcurrencyConflict) as excinfo:
        await ledger.deposit(account_id, 100)

    assert excinfo.value.retryable is True
    assert excinfo.value.context["attempts"] == 3
    assert len(calls) == 3
    assert await ledger.get_balance(account_id) == 1000
    assert len(await ledger.get_transaction_history(account_id)) == 1


async def test_cancelled_listing_leaves_no_partial_state(session_factory, make_account):
    entered = asyncio.Event()

    class StalledProductRepository(SqlProductRepository):
        async def add_product(self, **kwargs):
            entered.set()
            await asyncio.Event().wait()

    seller = await make_account(1000)
    ledger = LedgerService(session_factory, product_repository_factory=StalledProductRepository)

    task = asyncio.create_task(ledger.list_product(seller, DRAFT))
    await asyncio.wait_for(entered.wait(), timeout=5)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert await ledger.get_balance(seller) == 1000
    assert await ledger.list_products(seller_id=seller) == []
    assert [tx.kind for tx in await ledger.get_transaction_history(seller)] == ["deposit"]
    assert (await ledger.audit_balance(seller)).consistent
