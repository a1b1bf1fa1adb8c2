"""Domain models for support chat."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

ACTIVE = "active"
ESCALATED = "escalated"
CLOSED = "closed"

SENDER_USER = "user"
SENDER_BOT = "bot"
SENDER_ADMIN = "admin"

MESSAGE_TEXT = "text"
MESSAGE_SYSTEM = "system"
MESSAGE_ESCALATION = "escalation"


@dataclass(slots=True)
class SupportSession:
    id: str
    user_id: str
    admin_id: Optional[str]
    status: str
    language: str
    title: Optional[str]
    admin_joined_at: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @property
    def is_closed(self) -> bool:
        return self.status == CLOSED


@dataclass(slots=True)
class ChatMessage:
    id: int
    session_id: str
    sender_type: str
    sender_id: Optional[str]
    message_type: str
    content: str
    created_at: Optional[datetime]


@dataclass(slots=True)
class SupportTicket:
    id: str
    user_id: str
    session_id: Optional[str]
    title: str
    status: str
    priority: str
    created_at: Optional[datetime]


@dataclass(slots=True)
class AutomatedReply:
    text: str
    needs_escalation: bool = False


@dataclass(slots=True)
class SupportReply:
    """Outcome of a user message: what was stored and where the session ended up."""

    session: SupportSession
    user_message: ChatMessage
    bot_message: ChatMessage
    ticket: Optional[SupportTicket] = None
