"""Repository protocol for accounts."""

from __future__ import annotations

from typing import Protocol

from marketplace.db.models import Account as AccountModel


class AccountRepository(Protocol):
    """Abstract repository interface for account persistence."""

    async def get_by_id(self, account_id: str) -> AccountModel | None:
        ...

    async def get_by_username(self, username: str) -> AccountModel | None:
        ...

    async def create_account(self, *, account_id: str | None, username: str | None, role: str) -> AccountModel:
        ...

    async def compare_and_set_balance(
        self,
        account_id: str,
        *,
        expected_version: int,
        balance_cents: int,
    ) -> bool:
        ...
