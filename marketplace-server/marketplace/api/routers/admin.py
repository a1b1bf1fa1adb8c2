"""Admin console endpoints for support chats and ledger audits."""
from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Path, Query

from marketplace.api.deps import get_ledger_service, get_support_service
from marketplace.core.security import Identity, get_current_admin
from marketplace.modules.ledger import LedgerService
from marketplace.modules.support import SupportService
from marketplace.schemas import (
    BalanceAuditResponse,
    ChatMessageListResponse,
    ChatMessageRequest,
    ChatMessageResponse,
    SupportSessionListResponse,
    SupportSessionResponse,
    SupportTicketListResponse,
    SupportTicketResponse,
)

router = APIRouter()


@router.get("/support/sessions", response_model=SupportSessionListResponse, summary="Support chats by status")
async def list_sessions(
    status_filter: Literal["all", "active", "escalated", "closed"] = Query(default="all", alias="status"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    _: Identity = Depends(get_current_admin),
    support: SupportService = Depends(get_support_service),
) -> SupportSessionListResponse:
    sessions = await support.list_sessions(status_filter, limit, offset)
    return SupportSessionListResponse(sessions=[SupportSessionResponse.model_validate(s) for s in sessions])


@router.get("/support/sessions/{session_id}/messages", response_model=ChatMessageListResponse)
async def list_session_messages(
    session_id: str = Path(..., description="Session ID"),
    _: Identity = Depends(get_current_admin),
    support: SupportService = Depends(get_support_service),
) -> ChatMessageListResponse:
    messages = await support.list_messages(session_id)
    return ChatMessageListResponse(messages=[ChatMessageResponse.model_validate(message) for message in messages])


@router.post(
    "/support/sessions/{session_id}/messages",
    response_model=ChatMessageResponse,
    summary="Reply to a user, taking over the chat",
)
async def reply(
    payload: ChatMessageRequest,
    session_id: str = Path(..., description="Session ID"),
    admin: Identity = Depends(get_current_admin),
    support: SupportService = Depends(get_support_service),
) -> ChatMessageResponse:
    message = await support.admin_reply(session_id, admin.account_id, payload.content)
    return ChatMessageResponse.model_validate(message)


@router.post("/support/sessions/{session_id}/close", response_model=SupportSessionResponse)
async def close_session(
    session_id: str = Path(..., description="Session ID"),
    admin: Identity = Depends(get_current_admin),
    support: SupportService = Depends(get_support_service),
) -> SupportSessionResponse:
    return SupportSessionResponse.model_validate(await support.close_session(session_id, admin.account_id))


@router.get("/support/tickets", response_model=SupportTicketListResponse)
async def list_tickets(
    user_id: str | None = None,
    _: Identity = Depends(get_current_admin),
    support: SupportService = Depends(get_support_service),
) -> SupportTicketListResponse:
    tickets = await support.list_tickets(user_id=user_id)
    return SupportTicketListResponse(tickets=[SupportTicketResponse.model_validate(t) for t in tickets])


@router.get("/accounts/{account_id}/audit", response_model=BalanceAuditResponse)
async def audit_account(
    account_id: str = Path(..., description="Account ID"),
    _: Identity = Depends(get_current_admin),
    ledger: LedgerService = Depends(get_ledger_service),
) -> BalanceAuditResponse:
    audit = await ledger.audit_balance(account_id)
    return BalanceAuditResponse(
        account_id=audit.account_id,
        balance_cents=audit.balance_cents,
        ledger_sum_cents=audit.ledger_sum_cents,
        consistent=audit.consistent,
    )
