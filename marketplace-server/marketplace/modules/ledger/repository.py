"""Repository protocols for ledger operations."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from marketplace.db.models import LedgerTransaction as LedgerTransactionModel, Product as ProductModel


class LedgerRepository(Protocol):
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
    ) -> LedgerTransactionModel:
        ...

    async def find_by_idempotency_key(self, account_id: str, idempotency_key: str) -> LedgerTransactionModel | None:
        ...

    async def list_transactions(self, account_id: str, limit: int, offset: int) -> Sequence[LedgerTransactionModel]:
        ...

    async def sum_amounts(self, account_id: str) -> int:
        ...


class ProductRepository(Protocol):
    async def get_product(self, product_id: str) -> ProductModel | None:
        ...

    async def add_product(
        self,
        *,
        product_id: str,
        seller_id: str,
        name: str,
        description: str | None,
        category: str,
        image_url: str | None,
        price_cents: int,
        stock: int,
        listing_fee_cents: int,
    ) -> ProductModel:
        ...

    async def list_products(self, seller_id: str | None, limit: int, offset: int) -> Sequence[ProductModel]:
        ...

    async def mark_reserved(self, product_id: str, *, account_id: str, reserved_at: datetime) -> bool:
        ...

    async def delete_product(self, product_id: str) -> None:
        ...
