"""SQLAlchemy implementation for the transaction log."""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.db.models import LedgerTransaction


class SqlLedgerRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add_transaction(
        self,
        *,
        account_id: str,
        amount_cents: int,
        kind: str,
        description: str | None,
        reference_id: str | None,
        idempotency_key: str | None,
        balance_after_cents: int,
    ) -> LedgerTransaction:
        tx = LedgerTransaction(
            account_id=account_id,
            amount_cents=amount_cents,
            kind=kind,
            description=description,
            reference_id=reference_id,
            idempotency_key=idempotency_key,
            balance_after_cents=balance_after_cents,
        )
        self.session.add(tx)
        await self.session.flush()
        await self.session.refresh(tx)
        return tx

    async def find_by_idempotency_key(self, account_id: str, idempotency_key: str) -> LedgerTransaction | None:
        stmt = select(LedgerTransaction).where(
            LedgerTransaction.account_id == account_id,
            LedgerTransaction.idempotency_key == idempotency_key,
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_transactions(self, account_id: str, limit: int, offset: int) -> Sequence[LedgerTransaction]:
        stmt = (
            select(LedgerTransaction)
            .where(LedgerTransaction.account_id == account_id)
            .order_by(desc(LedgerTransaction.id))
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def sum_amounts(self, account_id: str) -> int:
        stmt = select(func.coalesce(func.sum(LedgerTransaction.amount_cents), 0)).where(
            LedgerTransaction.account_id == account_id
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())
