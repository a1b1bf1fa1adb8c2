"""Support chat domain exports"""

from .exceptions import EscalationFailed, InvalidMessage, SessionClosed, SessionNotFound, SupportError
from .models import AutomatedReply, ChatMessage, SupportReply, SupportSession, SupportTicket
from .responder import AutomatedResponder, KeywordResponder
from .service import SupportService

__all__ = [
    "AutomatedReply",
    "AutomatedResponder",
    "ChatMessage",
    "EscalationFailed",
    "InvalidMessage",
    "KeywordResponder",
    "SessionClosed",
    "SessionNotFound",
    "SupportError",
    "SupportReply",
    "SupportService",
    "SupportSession",
    "SupportTicket",
]
