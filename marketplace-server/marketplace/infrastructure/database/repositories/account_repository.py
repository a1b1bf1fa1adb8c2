"""SQLAlchemy implementation of the account repository."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.db.models import Account as AccountModel


class SqlAccountRepository:
    """Account repository backed by SQLAlchemy models."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, account_id: str) -> AccountModel | None:
        stmt = select(AccountModel).where(AccountModel.id == account_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> AccountModel | None:
        stmt = select(AccountModel).where(AccountModel.username == username)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_account(self, *, account_id: str | None, username: str | None, role: str) -> AccountModel:
        model = AccountModel(username=username, role=role, balance_cents=0, version=0)
        if account_id is not None:
            model.id = account_id
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return model

    async def compare_and_set_balance(
        self,
        account_id: str,
        *,
        expected_version: int,
        balance_cents: int,
    ) -> bool:
        stmt = (
            update(AccountModel)
            .where(AccountModel.id == account_id, AccountModel.version == expected_version)
            .values(balance_cents=balance_cents, version=expected_version + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1
