import pytest
from sqlalchemy.exc import OperationalError

from marketplace.infrastructure.database.repositories.product_repository import SqlProductRepository
from marketplace.modules.accounts import AccountNotFound
from marketplace.modules.common import PersistenceUnavailable
from marketplace.modules.ledger import (
    AlreadyReserved,
    IdempotencyKeyReused,
    InsufficientBalance,
    InvalidAmount,
    InvalidProduct,
    LedgerService,
    ProductDraft,
    ProductNotFound,
    ProductOwnershipError,
    SelfReservationNotAllowed,
)

DRAFT = {"name": "Vintage lamp", "price_cents": 50000, "category": "Furniture", "stock": 2}


async def assert_consistent(ledger, account_id):
    audit = await ledger.audit_balance(account_id)
    assert audit.consistent, audit


async def test_deposit_credits_balance_and_records_transaction(ledger, make_account):
    account_id = await make_account()

    balance = await ledger.deposit(account_id, 1500)

    assert balance == 1500
    assert await ledger.get_balance(account_id) == 1500
    history = await ledger.get_transaction_history(account_id)
    assert [(tx.kind, tx.amount_cents, tx.balance_after_cents) for tx in history] == [("deposit", 1500, 1500)]
    await assert_consistent(ledger, account_id)


@pytest.mark.parametrize("amount", [0, -100, 12.5, True])
async def test_deposit_rejects_invalid_amounts(ledger, make_account, amount):
    account_id = await make_account()

    with pytest.raises(InvalidAmount):
        await ledger.deposit(account_id, amount)

    assert await ledger.get_balance(account_id) == 0


async def test_deposit_respects_configured_minimum(session_factory, make_account):
    account_id = await make_account()
    ledger = LedgerService(session_factory, min_deposit_cents=100)

    with pytest.raises(InvalidAmount) as excinfo:
        await ledger.deposit(account_id, 99)

    assert excinfo.value.context["minimum_cents"] == 100


async def test_deposit_to_unknown_account(ledger):
    with pytest.raises(AccountNotFound):
        await ledger.deposit("missing", 100)


async def test_deposit_replay_with_same_key_credits_once(ledger, make_account):
    account_id = await make_account()

    first = await ledger.deposit(account_id, 700, idempotency_key="topup-1")
    second = await ledger.deposit(account_id, 700, idempotency_key="topup-1")

    assert first == second == 700
    assert await ledger.get_balance(account_id) == 700
    assert len(await ledger.get_transaction_history(account_id)) == 1


async def test_list_product_debits_fee_and_snapshots_it(ledger, make_account):
    seller = await make_account(1000)

    product = await ledger.list_product(seller, DRAFT)

    assert product.seller_id == seller
    assert product.listing_fee_cents == 250
    assert product.is_reserved is False and product.reserved_by is None
    assert await ledger.get_balance(seller) == 750
    latest = (await ledger.get_transaction_history(seller))[0]
    assert latest.kind == "listing_fee"
    assert latest.amount_cents == -250
    assert latest.reference_id == product.id
    await assert_consistent(ledger, seller)


async def test_list_product_accepts_validated_draft(ledger, make_account):
    seller = await make_account(100)

    product = await ledger.list_product(seller, ProductDraft(name="Mug", price_cents=900, category="Kitchen"))

    assert product.listing_fee_cents == 50
    assert product.stock == 1


async def test_list_product_with_insufficient_balance_changes_nothing(ledger, make_account):
    seller = await make_account(100)
    draft = {**DRAFT, "price_cents": 100000}

    with pytest.raises(InsufficientBalance) as excinfo:
        await ledger.list_product(seller, draft)

    assert excinfo.value.shortfall_cents == 400
    assert excinfo.value.context["required_cents"] == 500
    assert await ledger.get_balance(seller) == 100
    assert await ledger.list_products(seller_id=seller) == []


@pytest.mark.parametrize(
    "draft",
    [
        {"price_cents": 1000, "category": "Books"},
        {"name": "  ", "price_cents": 1000, "category": "Books"},
        {"name": "Novel", "category": "Books"},
        {"name": "Novel", "price_cents": 0, "category": "Books"},
        {"name": "Novel", "price_cents": 1000},
        {"name": "Novel", "price_cents": 1000, "category": "Books", "stock": -1},
        None,
    ],
)
async def test_list_product_rejects_invalid_drafts(ledger, make_account, draft):
    seller = await make_account(1000)

    with pytest.raises(InvalidProduct):
        await ledger.list_product(seller, draft)

    assert await ledger.get_balance(seller) == 1000


async def test_list_product_failure_after_debit_rolls_everything_back(session_factory, make_account):
    class BrokenProductRepository(SqlProductRepository):
        async def add_product(self, **kwargs):
            raise OperationalError("INSERT INTO products", {}, Exception("disk I/O error"))

    seller = await make_account(1000)
    ledger = LedgerService(session_factory, product_repository_factory=BrokenProductRepository)

    with pytest.raises(PersistenceUnavailable):
        await ledger.list_product(seller, DRAFT)

    assert await ledger.get_balance(seller) == 1000
    assert await ledger.list_products(seller_id=seller) == []
    assert [tx.kind for tx in await ledger.get_transaction_history(seller)] == ["deposit"]
    await assert_consistent(ledger, seller)


async def test_list_product_replay_does_not_charge_twice(ledger, make_account):
    seller = await make_account(1000)

    first = await ledger.list_product(seller, DRAFT, idempotency_key="draft-42")
    second = await ledger.list_product(seller, DRAFT, idempotency_key="draft-42")

    assert first.id == second.id
    assert await ledger.get_balance(seller) == 750
    assert len(await ledger.list_products(seller_id=seller)) == 1
    await assert_consistent(ledger, seller)


async def test_idempotency_key_cannot_be_reused_for_other_operation(ledger, make_account):
    seller = await make_account(1000)
    await ledger.deposit(seller, 100, idempotency_key="shared")

    with pytest.raises(IdempotencyKeyReused):
        await ledger.list_product(seller, DRAFT, idempotency_key="shared")

    assert await ledger.get_balance(seller) == 1100


async def test_reserve_product_debits_fee(ledger, make_account):
    seller = await make_account(1000)
    buyer = await make_account(30)
    product = await ledger.list_product(seller, DRAFT)

    reserved = await ledger.reserve_product(buyer, product.id)

    assert reserved.is_reserved is True
    assert reserved.reserved_by == buyer
    assert reserved.reserved_at is not None
    assert await ledger.get_balance(buyer) == 10
    stored = await ledger.get_product(product.id)
    assert stored.is_reserved is True and stored.reserved_by == buyer
    history = await ledger.get_transaction_history(buyer)
    assert history[0].kind == "reserve_fee"
    assert history[0].amount_cents == -20
    await assert_consistent(ledger, buyer)


async def test_reserve_already_reserved_product(ledger, make_account):
    seller = await make_account(1000)
    first_buyer = await make_account(100)
    second_buyer = await make_account(100)
    product = await ledger.list_product(seller, DRAFT)
    await ledger.reserve_product(first_buyer, product.id)

    with pytest.raises(AlreadyReserved):
        await ledger.reserve_product(second_buyer, product.id)

    assert await ledger.get_balance(second_buyer) == 100


async def test_seller_cannot_reserve_own_product(ledger, make_account):
    seller = await make_account(1000)
    product = await ledger.list_product(seller, DRAFT)

    with pytest.raises(SelfReservationNotAllowed):
        await ledger.reserve_product(seller, product.id)

    assert await ledger.get_balance(seller) == 750


async def test_reserve_missing_product(ledger, make_account):
    buyer = await make_account(100)

    with pytest.raises(ProductNotFound):
        await ledger.reserve_product(buyer, "no-such-product")


async def test_reserve_with_insufficient_balance_leaves_product_free(ledger, make_account):
    seller = await make_account(1000)
    buyer = await make_account(10)
    product = await ledger.list_product(seller, DRAFT)

    with pytest.raises(InsufficientBalance) as excinfo:
        await ledger.reserve_product(buyer, product.id)

    assert excinfo.value.shortfall_cents == 10
    stored = await ledger.get_product(product.id)
    assert stored.is_reserved is False and stored.reserved_by is None
    assert await ledger.get_balance(buyer) == 10


async def test_reserve_replay_returns_reserved_product(ledger, make_account):
    seller = await make_account(1000)
    buyer = await make_account(100)
    product = await ledger.list_product(seller, DRAFT)

    first = await ledger.reserve_product(buyer, product.id, idempotency_key="hold-1")
    second = await ledger.reserve_product(buyer, product.id, idempotency_key="hold-1")

    assert first.id == second.id
    assert second.reserved_by == buyer
    assert await ledger.get_balance(buyer) == 80


async def test_transaction_history_is_newest_first_and_pages(ledger, make_account):
    account_id = await make_account()
    for amount in (100, 200, 300, 400):
        await ledger.deposit(account_id, amount)

    first_page = await ledger.get_transaction_history(account_id, limit=2)
    second_page = await ledger.get_transaction_history(account_id, limit=2, offset=2)
    past_end = await ledger.get_transaction_history(account_id, limit=2, offset=4)

    assert [tx.amount_cents for tx in first_page] == [400, 300]
    assert [tx.amount_cents for tx in second_page] == [200, 100]
    assert past_end == []


async def test_transaction_history_limit_is_capped(session_factory, make_account):
    ledger = LedgerService(session_factory, history_page_limit=3)
    account_id = await make_account()
    for _ in range(5):
        await ledger.deposit(account_id, 100)

    assert len(await ledger.get_transaction_history(account_id, limit=50)) == 3


async def test_delist_product_by_owner_only(ledger, make_account):
    seller = await make_account(1000)
    other = await make_account()
    product = await ledger.list_product(seller, DRAFT)

    with pytest.raises(ProductOwnershipError):
        await ledger.delist_product(other, product.id)

    await ledger.delist_product(seller, product.id)

    with pytest.raises(ProductNotFound):
        await ledger.get_product(product.id)
    # the fee stays in the ledger
    assert await ledger.get_balance(seller) == 750
    await assert_consistent(ledger, seller)


async def test_mixed_operations_keep_balance_equal_to_ledger_sum(ledger, make_account):
    seller = await make_account(2000)
    buyer = await make_account(500)

    products = [
        await ledger.list_product(seller, {**DRAFT, "name": f"Item {i}", "price_cents": 20000 * (i + 1)})
        for i in range(3)
    ]
    for product in products:
        await ledger.reserve_product(buyer, product.id)
    await ledger.deposit(buyer, 250)

    for account_id in (seller, buyer):
        audit = await ledger.audit_balance(account_id)
        assert audit.consistent
        assert audit.balance_cents >= 0
    assert await ledger.get_balance(buyer) == 500 - 3 * 20 + 250


async def test_deposit_replay_returns_current_balance(ledger, make_account):
    account_id = await make_account()
    await ledger.deposit(account_id, 700, idempotency_key="topup-2")
    await ledger.deposit(account_id, 300)

    replayed = await ledger.deposit(account_id, 700, idempotency_key="topup-2")

    assert replayed == 1000
    assert await ledger.get_balance(account_id) == 1000
    assert len(await ledger.get_transaction_history(account_id)) == 2


async def test_listing_key_reused_for_different_draft(ledger, make_account):
    seller = await make_account(1000)
    await ledger.list_product(seller, DRAFT, idempotency_key="draft-7")

    with pytest.raises(IdempotencyKeyReused):
        await ledger.list_product(seller, {**DRAFT, "price_cents": 90000}, idempotency_key="draft-7")
    with pytest.raises(IdempotencyKeyReused):
        await ledger.list_product(seller, {**DRAFT, "name": "Brass lamp"}, idempotency_key="draft-7")

    assert await ledger.get_balance(seller) == 750
    assert len(await ledger.list_products(seller_id=seller)) == 1
