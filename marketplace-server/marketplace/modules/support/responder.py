"""Automated first-line responses for support chat.

``KeywordResponder`` answers common questions from a keyword table and flags
requests for a human. Anything implementing ``AutomatedResponder`` (for
example a remote text-generation client) can replace it.
"""

from __future__ import annotations

from typing import Protocol

from .models import AutomatedReply


class AutomatedResponder(Protocol):
    async def respond(self, message: str, language: str) -> AutomatedReply:
        ...


FAQ_REPLIES: dict[str, str] = {
    "payment": (
        "We accept credit cards, PayPal, and bank transfers. Payment is processed securely "
        "through our payment gateway. Your order will be confirmed once payment is received."
    ),
    "shipping": (
        "We offer standard shipping (5-7 business days) and express shipping (2-3 business days). "
        "Tracking information will be provided once your order ships."
    ),
    "returns": (
        "You can return items within 30 days of purchase. Items must be in original condition. "
        "Please contact support to initiate a return."
    ),
    "account": (
        "You can update your account information in the Settings page. Go to your profile to change "
        "your username, email, or password."
    ),
    "add_product": (
        "To add a product, open the 'Sell' section and fill in the name, price, category and description. "
        "A listing fee of 0.5% of the price (minimum €0.50) is deducted from your balance."
    ),
    "escalation": (
        "I'll connect you with a human support agent who can provide more detailed assistance "
        "with your inquiry."
    ),
    "default": (
        "I'm here to help! I can assist with questions about payments, shipping, returns, account "
        "management, and how to use our marketplace. What would you like to know?"
    ),
}

# checked in order, first match wins; stems cover English and Latvian
KEYWORD_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("payment", ("payment", "pay", "maksājum")),
    ("shipping", ("shipping", "delivery", "piegād")),
    ("returns", ("return", "refund", "atgriezt")),
    ("account", ("account", "profile", "kont")),
)

ADD_PRODUCT_PAIRS: tuple[tuple[str, str], ...] = (("product", "add"), ("produkt", "pievien"))

ESCALATION_KEYWORDS: tuple[str, ...] = ("admin", "moderator", "human", "support", "help me", "palīdz")


class KeywordResponder:
    """Rule table responder."""

    def __init__(self, replies: dict[str, str] | None = None) -> None:
        self._replies = {**FAQ_REPLIES, **(replies or {})}

    async def respond(self, message: str, language: str) -> AutomatedReply:
        return self.classify(message)

    def classify(self, message: str) -> AutomatedReply:
        text = message.lower()
        for topic, keywords in KEYWORD_RULES:
            if any(keyword in text for keyword in keywords):
                return AutomatedReply(self._replies[topic])
        if any(first in text and second in text for first, second in ADD_PRODUCT_PAIRS):
            return AutomatedReply(self._replies["add_product"])
        if any(keyword in text for keyword in ESCALATION_KEYWORDS):
            return AutomatedReply(self._replies["escalation"], needs_escalation=True)
        return AutomatedReply(self._replies["default"])


__all__ = ["AutomatedResponder", "KeywordResponder"]
