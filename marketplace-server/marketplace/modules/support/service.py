"""Support chat escalation state machine.

Sessions start ``active``; the automated responder or the user can escalate
them, an admin's first reply takes them over, and an admin closes them.
``closed`` is terminal: further messages are rejected and a new session has
to be opened instead.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketplace.core.config import SupportSettings
from marketplace.db.models import (
    ChatMessage as ChatMessageModel,
    SupportSession as SupportSessionModel,
    SupportTicket as SupportTicketModel,
)
from marketplace.infrastructure.database.repositories.support_repository import SqlSupportRepository
from marketplace.modules.common.exceptions import ConcurrencyConflict, PersistenceUnavailable
from marketplace.modules.common.transactions import StaleWrite, run_atomic

from .exceptions import EscalationFailed, InvalidMessage, SessionClosed, SessionNotFound
from .models import (
    ACTIVE,
    CLOSED,
    ESCALATED,
    MESSAGE_ESCALATION,
    MESSAGE_SYSTEM,
    MESSAGE_TEXT,
    SENDER_ADMIN,
    SENDER_BOT,
    SENDER_USER,
    ChatMessage,
    SupportReply,
    SupportSession,
    SupportTicket,
)
from .repository import SupportRepository
from .responder import AutomatedResponder, KeywordResponder

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class SupportService:
    session_factory: async_sessionmaker[AsyncSession]
    responder: AutomatedResponder = field(default_factory=KeywordResponder)
    settings: SupportSettings = field(default_factory=SupportSettings)
    repository_factory: Callable[[AsyncSession], SupportRepository] = SqlSupportRepository

    async def open_session(
        self,
        user_id: str,
        *,
        language: str | None = None,
        first_message: str | None = None,
    ) -> SupportSession:
        language = language or self.settings.default_language

        async def work(session: AsyncSession) -> SupportSessionModel:
            repository = self.repository_factory(session)
            model = await repository.create_session(user_id=user_id, language=language, title="Support chat")
            await repository.add_message(
                session_id=model.id,
                sender_type=SENDER_BOT,
                sender_id=None,
                message_type=MESSAGE_SYSTEM,
                content=self.settings.welcome_message,
            )
            return model

        model = await self._atomic("open_session", work)
        logger.info("User %s opened support session %s", user_id, model.id)
        if first_message:
            reply = await self.post_user_message(model.id, user_id, first_message)
            return reply.session
        return self._to_session(model)

    async def post_user_message(
        self,
        session_id: str,
        user_id: str,
        content: str,
        *,
        language: str | None = None,
    ) -> SupportReply:
        content = self._clean(content)

        async def record_user_message(session: AsyncSession) -> tuple[SupportSessionModel, ChatMessageModel]:
            repository = self.repository_factory(session)
            model = await self._require_open(repository, session_id, user_id=user_id)
            message = await repository.add_message(
                session_id=session_id,
                sender_type=SENDER_USER,
                sender_id=user_id,
                message_type=MESSAGE_TEXT,
                content=content,
            )
            return model, message

        model, user_message = await self._atomic("post_user_message", record_user_message)
        reply = await self.responder.respond(content, language or model.language)

        async def record_bot_reply(session: AsyncSession) -> ChatMessageModel:
            repository = self.repository_factory(session)
            await self._require_open(repository, session_id, user_id=user_id)
            return await repository.add_message(
                session_id=session_id,
                sender_type=SENDER_BOT,
                sender_id=None,
                message_type=MESSAGE_ESCALATION if reply.needs_escalation else MESSAGE_TEXT,
                content=reply.text,
            )

        bot_message = await self._atomic("record_bot_reply", record_bot_reply)

        ticket = None
        if reply.needs_escalation:
            logger.info("Responder flagged session %s for a human agent", session_id)
            current, ticket = await self._escalate(session_id, user_id)
        else:
            current = await self.get_session(session_id)

        return SupportReply(
            session=current,
            user_message=self._to_message(user_message),
            bot_message=self._to_message(bot_message),
            ticket=ticket,
        )

    async def request_escalation(self, session_id: str, user_id: str) -> SupportSession:
        session, _ = await self._escalate(session_id, user_id)
        return session

    async def admin_reply(self, session_id: str, admin_id: str, content: str) -> ChatMessage:
        content = self._clean(content)

        async def work(session: AsyncSession) -> ChatMessageModel:
            repository = self.repository_factory(session)
            model = await self._require_open(repository, session_id)
            if model.admin_id is None:
                joined_at = datetime.now(timezone.utc)
                if await repository.assign_admin(session_id, admin_id=admin_id, joined_at=joined_at):
                    logger.info("Admin %s took over support session %s", admin_id, session_id)
                else:
                    # another admin or a close won the race; re-check before replying
                    await self._require_open(repository, session_id)
            return await repository.add_message(
                session_id=session_id,
                sender_type=SENDER_ADMIN,
                sender_id=admin_id,
                message_type=MESSAGE_TEXT,
                content=content,
            )

        return self._to_message(await self._atomic("admin_reply", work))

    async def close_session(self, session_id: str, admin_id: str) -> SupportSession:
        async def work(session: AsyncSession) -> SupportSessionModel:
            repository = self.repository_factory(session)
            model = await self._require_session(repository, session_id)
            if model.status == CLOSED:
                return model
            if not await repository.transition(session_id, from_statuses=[ACTIVE, ESCALATED], to_status=CLOSED):
                raise StaleWrite(f"session {session_id} changed while closing")
            return await self._require_session(repository, session_id)

        model = await self._atomic("close_session", work, max_attempts=2)
        logger.info("Admin %s closed support session %s", admin_id, session_id)
        return self._to_session(model)

    async def get_session(self, session_id: str, *, user_id: str | None = None) -> SupportSession:
        async def work(session: AsyncSession) -> SupportSessionModel:
            return await self._require_session(self.repository_factory(session), session_id, user_id=user_id)

        return self._to_session(await self._atomic("get_session", work))

    async def list_sessions(self, status: str | None = None, limit: int = 50, offset: int = 0) -> list[SupportSession]:
        async def work(session: AsyncSession) -> list[SupportSessionModel]:
            return list(await self.repository_factory(session).list_sessions(status, limit, max(0, offset)))

        return [self._to_session(row) for row in await self._atomic("list_sessions", work)]

    async def list_messages(self, session_id: str, *, user_id: str | None = None) -> list[ChatMessage]:
        async def work(session: AsyncSession) -> list[ChatMessageModel]:
            repository = self.repository_factory(session)
            await self._require_session(repository, session_id, user_id=user_id)
            return list(await repository.list_messages(session_id))

        return [self._to_message(row) for row in await self._atomic("list_messages", work)]

    async def list_tickets(self, *, user_id: str | None = None, session_id: str | None = None) -> list[SupportTicket]:
        async def work(session: AsyncSession) -> list[SupportTicketModel]:
            return list(await self.repository_factory(session).list_tickets(user_id=user_id, session_id=session_id))

        return [self._to_ticket(row) for row in await self._atomic("list_tickets", work)]

    async def _escalate(self, session_id: str, user_id: str) -> tuple[SupportSession, SupportTicket | None]:
        """Escalate and open a ticket in one transaction; an already escalated session is left as is."""

        async def work(session: AsyncSession) -> tuple[SupportSessionModel, SupportTicketModel | None]:
            repository = self.repository_factory(session)
            model = await self._require_open(repository, session_id, user_id=user_id)
            if model.status == ESCALATED:
                return model, None
            if not await repository.transition(session_id, from_statuses=[ACTIVE], to_status=ESCALATED):
                raise StaleWrite(f"session {session_id} changed while escalating")
            ticket = await repository.add_ticket(
                user_id=user_id,
                session_id=session_id,
                title=self.settings.ticket_title,
                priority=self.settings.ticket_priority,
            )
            await repository.add_message(
                session_id=session_id,
                sender_type=SENDER_BOT,
                sender_id=None,
                message_type=MESSAGE_SYSTEM,
                content=self.settings.escalated_message,
            )
            return await self._require_session(repository, session_id), ticket

        try:
            model, ticket = await self._atomic("escalate_session", work, max_attempts=2)
        except (PersistenceUnavailable, ConcurrencyConflict, SQLAlchemyError) as exc:
            logger.error("Escalation of session %s failed: %s", session_id, exc)
            raise EscalationFailed(session_id=session_id) from exc

        if ticket is not None:
            logger.info("Session %s escalated, ticket %s opened", session_id, ticket.id)
        return self._to_session(model), self._to_ticket(ticket) if ticket is not None else None

    async def _atomic(
        self,
        operation: str,
        work: Callable[[AsyncSession], Awaitable[T]],
        *,
        max_attempts: int = 1,
    ) -> T:
        return await run_atomic(self.session_factory, work, operation=operation, max_attempts=max_attempts)

    @staticmethod
    async def _require_session(
        repository: SupportRepository,
        session_id: str,
        *,
        user_id: str | None = None,
    ) -> SupportSessionModel:
        model = await repository.get_session(session_id)
        # sessions of other users are indistinguishable from missing ones
        if model is None or (user_id is not None and model.user_id != user_id):
            raise SessionNotFound(session_id=session_id)
        return model

    @classmethod
    async def _require_open(
        cls,
        repository: SupportRepository,
        session_id: str,
        *,
        user_id: str | None = None,
    ) -> SupportSessionModel:
        model = await cls._require_session(repository, session_id, user_id=user_id)
        if model.status == CLOSED:
            raise SessionClosed(session_id=session_id)
        return model

    @staticmethod
    def _clean(content: str) -> str:
        content = (content or "").strip()
        if not content:
            raise InvalidMessage()
        return content

    @staticmethod
    def _to_session(model: SupportSessionModel) -> SupportSession:
        return SupportSession(
            id=model.id,
            user_id=model.user_id,
            admin_id=model.admin_id,
            status=model.status,
            language=model.language,
            title=model.title,
            admin_joined_at=model.admin_joined_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @staticmethod
    def _to_message(model: ChatMessageModel) -> ChatMessage:
        return ChatMessage(
            id=model.id,
            session_id=model.session_id,
            sender_type=model.sender_type,
            sender_id=model.sender_id,
            message_type=model.message_type,
            content=model.content,
            created_at=model.created_at,
        )

    @staticmethod
    def _to_ticket(model: SupportTicketModel) -> SupportTicket:
        return SupportTicket(
            id=model.id,
            user_id=model.user_id,
            session_id=model.session_id,
            title=model.title,
            status=model.status,
            priority=model.priority,
            created_at=model.created_at,
        )
