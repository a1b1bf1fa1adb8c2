"""Repository protocol for support chat persistence."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from marketplace.db.models import (
    ChatMessage as ChatMessageModel,
    SupportSession as SupportSessionModel,
    SupportTicket as SupportTicketModel,
)


class SupportRepository(Protocol):
    async def create_session(self, *, user_id: str, language: str, title: str | None) -> SupportSessionModel:
        ...

    async def get_session(self, session_id: str) -> SupportSessionModel | None:
        ...

    async def list_sessions(self, status: str | None, limit: int, offset: int) -> Sequence[SupportSessionModel]:
        ...

    async def transition(self, session_id: str, *, from_statuses: Sequence[str], to_status: str) -> bool:
        ...

    async def assign_admin(self, session_id: str, *, admin_id: str, joined_at: datetime) -> bool:
        ...

    async def add_message(
        self,
        *,
        session_id: str,
        sender_type: str,
        sender_id: str | None,
        message_type: str,
        content: str,
    ) -> ChatMessageModel:
        ...

    async def list_messages(self, session_id: str) -> Sequence[ChatMessageModel]:
        ...

    async def add_ticket(
        self,
        *,
        user_id: str,
        session_id: str | None,
        title: str,
        priority: str,
    ) -> SupportTicketModel:
        ...

    async def list_tickets(
        self,
        *,
        user_id: str | None = None,
        session_id: str | None = None,
    ) -> Sequence[SupportTicketModel]:
        ...
