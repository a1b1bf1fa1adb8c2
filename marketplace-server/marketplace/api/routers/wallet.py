"""Wallet endpoints: balance, deposits, history and fee quotes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Query, status

from marketplace.api.deps import get_ledger_service
from marketplace.core.security import get_current_account
from marketplace.modules.accounts import Account as AccountDomain
from marketplace.modules.ledger import LedgerService
from marketplace.schemas import (
    BalanceAuditResponse,
    BalanceResponse,
    DepositRequest,
    FeeQuoteResponse,
    TransactionListResponse,
    TransactionResponse,
)

router = APIRouter()


@router.get("", response_model=BalanceResponse, summary="Current balance")
async def get_balance(
    account: AccountDomain = Depends(get_current_account),
    ledger: LedgerService = Depends(get_ledger_service),
) -> BalanceResponse:
    balance = await ledger.get_balance(account.id)
    return BalanceResponse(account_id=account.id, balance_cents=balance, currency=ledger.currency)


@router.post(
    "/deposits",
    response_model=BalanceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add funds",
)
async def create_deposit(
    payload: DepositRequest,
    idempotency_key: str | None = Header(default=None),
    account: AccountDomain = Depends(get_current_account),
    ledger: LedgerService = Depends(get_ledger_service),
) -> BalanceResponse:
    balance = await ledger.deposit(
        account.id,
        payload.amount_cents,
        idempotency_key=idempotency_key,
        description=payload.description,
    )
    return BalanceResponse(account_id=account.id, balance_cents=balance, currency=ledger.currency)


@router.get("/transactions", response_model=TransactionListResponse, summary="Transaction history, newest first")
async def list_transactions(
    limit: int = Query(default=20, ge=1),
    offset: int = Query(default=0, ge=0),
    account: AccountDomain = Depends(get_current_account),
    ledger: LedgerService = Depends(get_ledger_service),
) -> TransactionListResponse:
    records = await ledger.get_transaction_history(account.id, limit, offset)
    return TransactionListResponse(
        transactions=[TransactionResponse.model_validate(record) for record in records],
        limit=limit,
        offset=offset,
    )


@router.get("/audit", response_model=BalanceAuditResponse, summary="Compare balance with the transaction log")
async def audit_balance(
    account: AccountDomain = Depends(get_current_account),
    ledger: LedgerService = Depends(get_ledger_service),
) -> BalanceAuditResponse:
    audit = await ledger.audit_balance(account.id)
    return BalanceAuditResponse(
        account_id=audit.account_id,
        balance_cents=audit.balance_cents,
        ledger_sum_cents=audit.ledger_sum_cents,
        consistent=audit.consistent,
    )


@router.get("/fees", response_model=FeeQuoteResponse, summary="Quote listing and reserve fees")
async def quote_fees(
    price_cents: int = Query(..., gt=0),
    ledger: LedgerService = Depends(get_ledger_service),
) -> FeeQuoteResponse:
    return FeeQuoteResponse(
        price_cents=price_cents,
        listing_fee_cents=ledger.compute_listing_fee(price_cents),
        reserve_fee_cents=ledger.reserve_fee_cents,
        currency=ledger.currency,
    )
