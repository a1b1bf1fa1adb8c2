"""Ledger domain service: balances, deposits, listing and reservation fees.

Every balance change is an optimistic compare-and-set on the account row
(``version`` column) committed in the same transaction as its ledger entry,
so ``balance_cents`` always equals the sum of the account's transactions and
never drops below zero. Fee-gated actions (listing, reserving) write the fee
and the product change in one transaction.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketplace.core.config import LedgerSettings
from marketplace.db.models import (
    Account as AccountModel,
    LedgerTransaction as LedgerTransactionModel,
    Product as ProductModel,
    generate_uuid,
)
from marketplace.infrastructure.database.repositories.account_repository import SqlAccountRepository
from marketplace.infrastructure.database.repositories.ledger_repository import SqlLedgerRepository
from marketplace.infrastructure.database.repositories.product_repository import SqlProductRepository
from marketplace.modules.accounts.exceptions import AccountNotFound
from marketplace.modules.accounts.repository import AccountRepository
from marketplace.modules.common.transactions import StaleWrite, run_atomic

from .exceptions import (
    AlreadyReserved,
    IdempotencyKeyReused,
    InsufficientBalance,
    InvalidAmount,
    InvalidProduct,
    ProductNotFound,
    ProductOwnershipError,
    SelfReservationNotAllowed,
)
from .fees import FeeSchedule
from .models import DEPOSIT, LISTING_FEE, RESERVE_FEE, BalanceAudit, LedgerTransaction, Product, ProductDraft
from .repository import LedgerRepository, ProductRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class LedgerService:
    session_factory: async_sessionmaker[AsyncSession]
    fees: FeeSchedule = FeeSchedule()
    currency: str = "EUR"
    max_attempts: int = 3
    retry_backoff_seconds: float = 0.02
    min_deposit_cents: int = 1
    history_page_limit: int = 100
    account_repository_factory: Callable[[AsyncSession], AccountRepository] = SqlAccountRepository
    ledger_repository_factory: Callable[[AsyncSession], LedgerRepository] = SqlLedgerRepository
    product_repository_factory: Callable[[AsyncSession], ProductRepository] = SqlProductRepository

    @classmethod
    def from_settings(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        settings: LedgerSettings,
    ) -> "LedgerService":
        return cls(
            session_factory=session_factory,
            fees=FeeSchedule.from_settings(settings),
            currency=settings.currency,
            max_attempts=settings.max_attempts,
            retry_backoff_seconds=settings.retry_backoff_seconds,
            min_deposit_cents=settings.min_deposit_cents,
            history_page_limit=settings.history_page_limit,
        )

    def compute_listing_fee(self, price_cents: int) -> int:
        if isinstance(price_cents, bool) or not isinstance(price_cents, int) or price_cents <= 0:
            raise InvalidAmount("Price must be a positive number of cents", price_cents=price_cents)
        return self.fees.listing_fee(price_cents)

    @property
    def reserve_fee_cents(self) -> int:
        return self.fees.reserve_fee_cents

    async def deposit(
        self,
        account_id: str,
        amount_cents: int,
        *,
        idempotency_key: str | None = None,
        description: str | None = None,
    ) -> int:
        if isinstance(amount_cents, bool) or not isinstance(amount_cents, int) or amount_cents <= 0:
            raise InvalidAmount("Deposit must be a positive number of cents", amount_cents=amount_cents)
        if amount_cents < self.min_deposit_cents:
            raise InvalidAmount(
                f"Minimum deposit is {self.min_deposit_cents} cents",
                amount_cents=amount_cents,
                minimum_cents=self.min_deposit_cents,
            )

        async def work(session: AsyncSession) -> tuple[int, bool]:
            accounts, ledger, _ = self._repositories(session)
            account = await self._require_account(accounts, account_id)
            if idempotency_key:
                existing = await ledger.find_by_idempotency_key(account_id, idempotency_key)
                if existing is not None:
                    self._ensure_same_operation(existing, DEPOSIT)
                    return account.balance_cents, True

            new_balance = account.balance_cents + amount_cents
            await self._set_balance(accounts, account, new_balance)
            await ledger.add_transaction(
                account_id=account_id,
                amount_cents=amount_cents,
                kind=DEPOSIT,
                description=description or f"Deposited {_format_cents(amount_cents, self.currency)}",
                reference_id=None,
                idempotency_key=idempotency_key,
                balance_after_cents=new_balance,
            )
            return new_balance, False

        balance, replayed = await self._atomic("deposit", work)
        if replayed:
            logger.info("Deposit %s on account %s already applied, balance %s", idempotency_key, account_id, balance)
        else:
            logger.info("Deposit of %s cents to account %s, balance now %s", amount_cents, account_id, balance)
        return balance

    async def list_product(
        self,
        seller_id: str,
        product_draft: ProductDraft | Mapping[str, Any],
        *,
        idempotency_key: str | None = None,
    ) -> Product:
        draft = self._validate_draft(product_draft)
        fee = self.fees.listing_fee(draft.price_cents)

        async def work(session: AsyncSession) -> tuple[ProductModel, bool]:
            accounts, ledger, products = self._repositories(session)
            if idempotency_key:
                existing = await ledger.find_by_idempotency_key(seller_id, idempotency_key)
                if existing is not None:
                    self._ensure_same_operation(existing, LISTING_FEE)
                    replayed = await products.get_product(existing.reference_id)
                    if replayed is None:
                        raise ProductNotFound(product_id=existing.reference_id)
                    if (replayed.name, replayed.price_cents) != (draft.name, draft.price_cents):
                        raise IdempotencyKeyReused(idempotency_key=idempotency_key, product_id=replayed.id)
                    return replayed, True

            account = await self._require_account(accounts, seller_id)
            if account.balance_cents < fee:
                raise InsufficientBalance(required_cents=fee, balance_cents=account.balance_cents)

            product_id = generate_uuid()
            new_balance = account.balance_cents - fee
            await self._set_balance(accounts, account, new_balance)
            await ledger.add_transaction(
                account_id=seller_id,
                amount_cents=-fee,
                kind=LISTING_FEE,
                description=f"Listing fee for {draft.name}",
                reference_id=product_id,
                idempotency_key=idempotency_key,
                balance_after_cents=new_balance,
            )
            model = await products.add_product(
                product_id=product_id,
                seller_id=seller_id,
                name=draft.name,
                description=draft.description,
                category=draft.category,
                image_url=draft.image_url,
                price_cents=draft.price_cents,
                stock=draft.stock,
                listing_fee_cents=fee,
            )
            return model, False

        model, replayed = await self._atomic("list_product", work)
        if replayed:
            logger.info("Listing %s by seller %s already applied as product %s", idempotency_key, seller_id, model.id)
        else:
            logger.info("Seller %s listed product %s (fee %s cents)", seller_id, model.id, model.listing_fee_cents)
        return self._to_product(model)

    async def reserve_product(
        self,
        account_id: str,
        product_id: str,
        *,
        idempotency_key: str | None = None,
    ) -> Product:
        fee = self.fees.reserve_fee_cents

        async def work(session: AsyncSession) -> Product:
            accounts, ledger, products = self._repositories(session)
            if idempotency_key:
                existing = await ledger.find_by_idempotency_key(account_id, idempotency_key)
                if existing is not None:
                    self._ensure_same_operation(existing, RESERVE_FEE)
                    if existing.reference_id != product_id:
                        raise IdempotencyKeyReused(idempotency_key=idempotency_key, product_id=product_id)
                    replayed = await products.get_product(existing.reference_id)
                    if replayed is None:
                        raise ProductNotFound(product_id=existing.reference_id)
                    return self._to_product(replayed)

            model = await products.get_product(product_id)
            if model is None:
                raise ProductNotFound(product_id=product_id)
            if model.is_reserved:
                raise AlreadyReserved(product_id=product_id)
            if model.seller_id == account_id:
                raise SelfReservationNotAllowed(product_id=product_id)

            account = await self._require_account(accounts, account_id)
            if account.balance_cents < fee:
                raise InsufficientBalance(required_cents=fee, balance_cents=account.balance_cents)

            reserved_at = datetime.now(timezone.utc)
            # first writer wins; the loser sees zero matched rows
            if not await products.mark_reserved(product_id, account_id=account_id, reserved_at=reserved_at):
                raise AlreadyReserved(product_id=product_id)

            new_balance = account.balance_cents - fee
            await self._set_balance(accounts, account, new_balance)
            await ledger.add_transaction(
                account_id=account_id,
                amount_cents=-fee,
                kind=RESERVE_FEE,
                description=f"Reserved {model.name}",
                reference_id=product_id,
                idempotency_key=idempotency_key,
                balance_after_cents=new_balance,
            )
            return dataclasses.replace(
                self._to_product(model),
                is_reserved=True,
                reserved_by=account_id,
                reserved_at=reserved_at,
            )

        product = await self._atomic("reserve_product", work)
        logger.info("Account %s reserved product %s (fee %s cents)", account_id, product_id, fee)
        return product

    async def delist_product(self, seller_id: str, product_id: str) -> None:
        async def work(session: AsyncSession) -> None:
            _, _, products = self._repositories(session)
            model = await products.get_product(product_id)
            if model is None:
                raise ProductNotFound(product_id=product_id)
            if model.seller_id != seller_id:
                raise ProductOwnershipError(product_id=product_id)
            await products.delete_product(product_id)

        await self._atomic("delist_product", work, retry=False)
        logger.info("Seller %s removed product %s", seller_id, product_id)

    async def get_product(self, product_id: str) -> Product:
        async def work(session: AsyncSession) -> ProductModel:
            model = await self.product_repository_factory(session).get_product(product_id)
            if model is None:
                raise ProductNotFound(product_id=product_id)
            return model

        return self._to_product(await self._atomic("get_product", work, retry=False))

    async def list_products(self, seller_id: str | None = None, limit: int = 50, offset: int = 0) -> list[Product]:
        limit, offset = self._page(limit, offset)

        async def work(session: AsyncSession) -> list[ProductModel]:
            return list(await self.product_repository_factory(session).list_products(seller_id, limit, offset))

        rows = await self._atomic("list_products", work, retry=False)
        return [self._to_product(row) for row in rows]

    async def get_balance(self, account_id: str) -> int:
        async def work(session: AsyncSession) -> int:
            account = await self._require_account(self.account_repository_factory(session), account_id)
            return account.balance_cents

        return await self._atomic("get_balance", work, retry=False)

    async def audit_balance(self, account_id: str) -> BalanceAudit:
        """Compare the maintained balance with the fold-sum of the transaction log."""

        async def work(session: AsyncSession) -> BalanceAudit:
            accounts, ledger, _ = self._repositories(session)
            account = await self._require_account(accounts, account_id)
            total = await ledger.sum_amounts(account_id)
            return BalanceAudit(account_id=account_id, balance_cents=account.balance_cents, ledger_sum_cents=total)

        audit = await self._atomic("audit_balance", work, retry=False)
        if not audit.consistent:
            logger.error(
                "Ledger drift on account %s: balance %s, transactions sum %s",
                account_id,
                audit.balance_cents,
                audit.ledger_sum_cents,
            )
        return audit

    async def get_transaction_history(
        self,
        account_id: str,
        limit: int = 20,
        offset: int = 0,
    ) -> list[LedgerTransaction]:
        limit, offset = self._page(limit, offset)

        async def work(session: AsyncSession) -> list[LedgerTransactionModel]:
            accounts, ledger, _ = self._repositories(session)
            await self._require_account(accounts, account_id)
            return list(await ledger.list_transactions(account_id, limit, offset))

        rows = await self._atomic("get_transaction_history", work, retry=False)
        return [self._to_transaction(row) for row in rows]

    def _repositories(self, session: AsyncSession) -> tuple[AccountRepository, LedgerRepository, ProductRepository]:
        return (
            self.account_repository_factory(session),
            self.ledger_repository_factory(session),
            self.product_repository_factory(session),
        )

    async def _atomic(self, operation: str, work: Callable[[AsyncSession], Awaitable[T]], *, retry: bool = True) -> T:
        return await run_atomic(
            self.session_factory,
            work,
            operation=operation,
            max_attempts=self.max_attempts if retry else 1,
            backoff_seconds=self.retry_backoff_seconds,
        )

    def _page(self, limit: int, offset: int) -> tuple[int, int]:
        return max(1, min(limit, self.history_page_limit)), max(0, offset)

    @staticmethod
    async def _require_account(accounts: AccountRepository, account_id: str) -> AccountModel:
        account = await accounts.get_by_id(account_id)
        if account is None:
            raise AccountNotFound(account_id=account_id)
        return account

    @staticmethod
    async def _set_balance(accounts: AccountRepository, account: AccountModel, balance_cents: int) -> None:
        updated = await accounts.compare_and_set_balance(
            account.id,
            expected_version=account.version,
            balance_cents=balance_cents,
        )
        if not updated:
            raise StaleWrite(f"account {account.id} changed since version {account.version}")

    @staticmethod
    def _ensure_same_operation(existing: LedgerTransactionModel, kind: str) -> None:
        if existing.kind != kind:
            raise IdempotencyKeyReused(
                idempotency_key=existing.idempotency_key,
                expected_kind=kind,
                recorded_kind=existing.kind,
            )

    @staticmethod
    def _validate_draft(draft: ProductDraft | Mapping[str, Any]) -> ProductDraft:
        if isinstance(draft, ProductDraft):
            return draft
        try:
            return ProductDraft.model_validate(draft)
        except ValidationError as exc:
            fields = sorted({".".join(str(part) for part in error["loc"]) or "draft" for error in exc.errors()})
            raise InvalidProduct(f"Invalid product fields: {', '.join(fields)}", fields=fields) from exc

    @staticmethod
    def _to_transaction(model: LedgerTransactionModel) -> LedgerTransaction:
        return LedgerTransaction(
            id=model.id,
            account_id=model.account_id,
            amount_cents=model.amount_cents,
            kind=model.kind,
            description=model.description,
            reference_id=model.reference_id,
            balance_after_cents=model.balance_after_cents,
            created_at=model.created_at,
        )

    @staticmethod
    def _to_product(model: ProductModel) -> Product:
        return Product(
            id=model.id,
            seller_id=model.seller_id,
            name=model.name,
            description=model.description,
            category=model.category,
            image_url=model.image_url,
            price_cents=model.price_cents,
            stock=model.stock,
            listing_fee_cents=model.listing_fee_cents,
            is_reserved=bool(model.is_reserved),
            reserved_by=model.reserved_by,
            reserved_at=model.reserved_at,
            created_at=model.created_at,
        )


def _format_cents(amount_cents: int, currency: str) -> str:
    return f"{amount_cents // 100}.{amount_cents % 100:02d} {currency}"
