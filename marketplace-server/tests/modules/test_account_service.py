import pytest

from marketplace.modules.accounts import AccountAlreadyExistsError, AccountNotFound


async def test_register_starts_at_zero(accounts):
    account = await accounts.register(username="alice")

    assert account.balance_cents == 0
    assert account.role == "user"
    assert (await accounts.get(account.id)).username == "alice"


async def test_register_rejects_duplicates(accounts):
    await accounts.register("acc-1", username="bob")

    with pytest.raises(AccountAlreadyExistsError):
        await accounts.register("acc-1")
    with pytest.raises(AccountAlreadyExistsError):
        await accounts.register(username="bob")


async def test_register_rejects_unknown_role(accounts):
    with pytest.raises(ValueError):
        await accounts.register(role="superuser")


async def test_ensure_creates_once(accounts):
    first = await accounts.ensure("gateway-7", role="admin")
    second = await accounts.ensure("gateway-7", role="user")

    assert first.id == second.id == "gateway-7"
    assert second.role == "admin"


async def test_get_missing_account(accounts):
    with pytest.raises(AccountNotFound):
        await accounts.get("ghost")


async def test_get_by_username(accounts):
    created = await accounts.register(username="carol")

    assert (await accounts.get_by_username("carol")).id == created.id
    with pytest.raises(AccountNotFound):
        await accounts.get_by_username("dave")
