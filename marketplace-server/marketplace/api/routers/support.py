"""Customer-facing support chat endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Path, status

from marketplace.api.deps import get_support_service
from marketplace.core.security import get_current_account
from marketplace.modules.accounts import Account as AccountDomain
from marketplace.modules.support import SupportService
from marketplace.schemas import (
    ChatMessageListResponse,
    ChatMessageRequest,
    ChatMessageResponse,
    SupportReplyResponse,
    SupportSessionCreateRequest,
    SupportSessionResponse,
)

router = APIRouter()


@router.post(
    "/sessions",
    response_model=SupportSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a support chat",
)
async def open_session(
    payload: SupportSessionCreateRequest,
    account: AccountDomain = Depends(get_current_account),
    support: SupportService = Depends(get_support_service),
) -> SupportSessionResponse:
    session = await support.open_session(account.id, language=payload.language, first_message=payload.message)
    return SupportSessionResponse.model_validate(session)


@router.get("/sessions/{session_id}", response_model=SupportSessionResponse, summary="Support chat status")
async def get_session(
    session_id: str = Path(..., description="Session ID"),
    account: AccountDomain = Depends(get_current_account),
    support: SupportService = Depends(get_support_service),
) -> SupportSessionResponse:
    return SupportSessionResponse.model_validate(await support.get_session(session_id, user_id=account.id))


@router.get("/sessions/{session_id}/messages", response_model=ChatMessageListResponse, summary="Chat transcript")
async def list_messages(
    session_id: str = Path(..., description="Session ID"),
    account: AccountDomain = Depends(get_current_account),
    support: SupportService = Depends(get_support_service),
) -> ChatMessageListResponse:
    messages = await support.list_messages(session_id, user_id=account.id)
    return ChatMessageListResponse(messages=[ChatMessageResponse.model_validate(message) for message in messages])


@router.post("/sessions/{session_id}/messages", response_model=SupportReplyResponse, summary="Send a message")
async def post_message(
    payload: ChatMessageRequest,
    session_id: str = Path(..., description="Session ID"),
    account: AccountDomain = Depends(get_current_account),
    support: SupportService = Depends(get_support_service),
) -> SupportReplyResponse:
    reply = await support.post_user_message(session_id, account.id, payload.content, language=payload.language)
    return SupportReplyResponse.model_validate(reply)


@router.post("/sessions/{session_id}/escalation", response_model=SupportSessionResponse, summary="Ask for a human")
async def escalate(
    session_id: str = Path(..., description="Session ID"),
    account: AccountDomain = Depends(get_current_account),
    support: SupportService = Depends(get_support_service),
) -> SupportSessionResponse:
    return SupportSessionResponse.model_validate(await support.request_escalation(session_id, account.id))
