"""SQLAlchemy implementation for support sessions, chat messages and tickets."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.db.models import ChatMessage, SupportSession, SupportTicket


class SqlSupportRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_session(self, *, user_id: str, language: str, title: str | None) -> SupportSession:
        model = SupportSession(user_id=user_id, language=language, title=title, status="active")
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return model

    async def get_session(self, session_id: str) -> SupportSession | None:
        stmt = select(SupportSession).where(SupportSession.id == session_id).execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_sessions(self, status: str | None, limit: int, offset: int) -> Sequence[SupportSession]:
        stmt = select(SupportSession)
        if status and status != "all":
            stmt = stmt.where(SupportSession.status == status)
        stmt = stmt.order_by(desc(SupportSession.updated_at), SupportSession.id).offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def transition(self, session_id: str, *, from_statuses: Sequence[str], to_status: str) -> bool:
        """Move the session to ``to_status`` only if it is still in one of ``from_statuses``."""
        stmt = (
            update(SupportSession)
            .where(SupportSession.id == session_id, SupportSession.status.in_(list(from_statuses)))
            .values(status=to_status, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def assign_admin(self, session_id: str, *, admin_id: str, joined_at: datetime) -> bool:
        """Record the first admin to reply; later replies leave the takeover untouched."""
        stmt = (
            update(SupportSession)
            .where(
                SupportSession.id == session_id,
                SupportSession.admin_id.is_(None),
                SupportSession.status != "closed",
            )
            .values(admin_id=admin_id, admin_joined_at=joined_at, status="escalated", updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def add_message(
        self,
        *,
        session_id: str,
        sender_type: str,
        sender_id: str | None,
        message_type: str,
        content: str,
    ) -> ChatMessage:
        message = ChatMessage(
            session_id=session_id,
            sender_type=sender_type,
            sender_id=sender_id,
            message_type=message_type,
            content=content,
        )
        self.session.add(message)
        await self.session.flush()
        await self.session.refresh(message)
        return message

    async def list_messages(self, session_id: str) -> Sequence[ChatMessage]:
        stmt = (
            select(ChatMessage)
            .where(ChatMessage.session_id == session_id)
            .order_by(ChatMessage.created_at, ChatMessage.id)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def add_ticket(
        self,
        *,
        user_id: str,
        session_id: str | None,
        title: str,
        priority: str,
    ) -> SupportTicket:
        ticket = SupportTicket(
            user_id=user_id,
            session_id=session_id,
            title=title,
            status="open",
            priority=priority,
        )
        self.session.add(ticket)
        await self.session.flush()
        await self.session.refresh(ticket)
        return ticket

    async def list_tickets(self, *, user_id: str | None = None, session_id: str | None = None) -> Sequence[SupportTicket]:
        stmt = select(SupportTicket)
        if user_id:
            stmt = stmt.where(SupportTicket.user_id == user_id)
        if session_id:
            stmt = stmt.where(SupportTicket.session_id == session_id)
        stmt = stmt.order_by(desc(SupportTicket.created_at), SupportTicket.id)
        result = await self.session.execute(stmt)
        return result.scalars().all()
