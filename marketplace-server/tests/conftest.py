import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from marketplace.infrastructure.database.session import build_session_factory, init_db
from marketplace.modules.accounts import AccountService
from marketplace.modules.ledger import LedgerService
from marketplace.modules.support import SupportService


def sqlite_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'marketplace.db'}"


# file-backed so concurrent sessions get separate connections
@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(sqlite_url(tmp_path), connect_args={"timeout": 30})
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def accounts(session_factory):
    return AccountService(session_factory)


@pytest.fixture
def ledger(session_factory):
    return LedgerService(session_factory, max_attempts=10, retry_backoff_seconds=0.001)


@pytest.fixture
def support(session_factory):
    return SupportService(session_factory)


@pytest.fixture
def make_account(accounts, ledger):
    async def _make(balance_cents: int = 0, *, role: str = "user"):
        account = await accounts.register(role=role)
        if balance_cents:
            await ledger.deposit(account.id, balance_cents)
        return account.id

    return _make
