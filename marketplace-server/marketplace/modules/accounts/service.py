"""Domain services for account management."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketplace.db.models import Account as AccountModel
from marketplace.infrastructure.database.repositories.account_repository import SqlAccountRepository
from marketplace.modules.common.transactions import run_atomic

from .exceptions import AccountAlreadyExistsError, AccountNotFound
from .models import ROLES, Account
from .repository import AccountRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AccountService:
    """Registration and lookups. Balances only change through the ledger."""

    session_factory: async_sessionmaker[AsyncSession]
    repository_factory: Callable[[AsyncSession], AccountRepository] = SqlAccountRepository

    async def register(
        self,
        account_id: str | None = None,
        *,
        username: str | None = None,
        role: str = "user",
    ) -> Account:
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role}")

        async def work(session: AsyncSession) -> AccountModel:
            repository = self.repository_factory(session)
            if account_id is not None and await repository.get_by_id(account_id) is not None:
                raise AccountAlreadyExistsError(account_id=account_id)
            if username is not None and await repository.get_by_username(username) is not None:
                raise AccountAlreadyExistsError(username=username)
            return await repository.create_account(account_id=account_id, username=username, role=role)

        model = await run_atomic(self.session_factory, work, operation="register_account")
        logger.info("Registered account %s (%s)", model.id, role)
        return self._to_domain(model)

    async def ensure(self, account_id: str, *, role: str = "user") -> Account:
        """Return the account, creating it on first contact from a trusted identity."""

        async def work(session: AsyncSession) -> AccountModel:
            repository = self.repository_factory(session)
            model = await repository.get_by_id(account_id)
            if model is None:
                model = await repository.create_account(account_id=account_id, username=None, role=role)
                logger.info("Created account %s on first contact", account_id)
            return model

        # a concurrent first contact surfaces as a unique-key violation; the retry reads the winner
        model = await run_atomic(self.session_factory, work, operation="ensure_account", max_attempts=2)
        return self._to_domain(model)

    async def get(self, account_id: str) -> Account:
        async def work(session: AsyncSession) -> AccountModel:
            model = await self.repository_factory(session).get_by_id(account_id)
            if model is None:
                raise AccountNotFound(account_id=account_id)
            return model

        return self._to_domain(await run_atomic(self.session_factory, work, operation="get_account"))

    async def get_by_username(self, username: str) -> Account:
        async def work(session: AsyncSession) -> AccountModel:
            model = await self.repository_factory(session).get_by_username(username)
            if model is None:
                raise AccountNotFound(username=username)
            return model

        return self._to_domain(await run_atomic(self.session_factory, work, operation="get_account_by_username"))

    @staticmethod
    def _to_domain(model: AccountModel) -> Account:
        return Account(
            id=str(model.id),
            username=model.username,
            role=model.role or "user",
            balance_cents=model.balance_cents,
            version=model.version,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
