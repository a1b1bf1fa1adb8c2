"""Pydantic schemas used across the project."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BalanceResponse(BaseModel):
    account_id: str
    balance_cents: int
    currency: str


class DepositRequest(BaseModel):
    amount_cents: int
    description: Optional[str] = Field(default=None, max_length=255)


class TransactionResponse(BaseModel):
    id: int
    amount_cents: int
    kind: str
    description: Optional[str] = None
    reference_id: Optional[str] = None
    balance_after_cents: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TransactionListResponse(BaseModel):
    transactions: list[TransactionResponse]
    limit: int
    offset: int


class BalanceAuditResponse(BaseModel):
    account_id: str
    balance_cents: int
    ledger_sum_cents: int
    consistent: bool


class FeeQuoteResponse(BaseModel):
    price_cents: int
    listing_fee_cents: int
    reserve_fee_cents: int
    currency: str


class ProductCreateRequest(BaseModel):
    """Loosely typed on purpose: the ledger validates drafts and reports invalid_product."""

    name: Optional[str] = None
    price_cents: Optional[int] = None
    category: Optional[str] = None
    description: Optional[str] = None
    stock: int = 1
    image_url: Optional[str] = None


class ProductResponse(BaseModel):
    id: str
    seller_id: str
    name: str
    description: Optional[str] = None
    category: str
    image_url: Optional[str] = None
    price_cents: int
    stock: int
    listing_fee_cents: int
    is_reserved: bool
    reserved_by: Optional[str] = None
    reserved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProductListResponse(BaseModel):
    products: list[ProductResponse]


class SupportSessionCreateRequest(BaseModel):
    language: Optional[str] = Field(default=None, max_length=10)
    message: Optional[str] = None


class SupportSessionResponse(BaseModel):
    id: str
    user_id: str
    admin_id: Optional[str] = None
    status: str
    language: str
    title: Optional[str] = None
    admin_joined_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SupportSessionListResponse(BaseModel):
    sessions: list[SupportSessionResponse]


class ChatMessageRequest(BaseModel):
    content: str
    language: Optional[str] = Field(default=None, max_length=10)


class ChatMessageResponse(BaseModel):
    id: int
    session_id: str
    sender_type: str
    sender_id: Optional[str] = None
    message_type: str
    content: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ChatMessageListResponse(BaseModel):
    messages: list[ChatMessageResponse]


class SupportTicketResponse(BaseModel):
    id: str
    user_id: str
    session_id: Optional[str] = None
    title: str
    status: str
    priority: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SupportTicketListResponse(BaseModel):
    tickets: list[SupportTicketResponse]


class SupportReplyResponse(BaseModel):
    session: SupportSessionResponse
    user_message: ChatMessageResponse
    bot_message: ChatMessageResponse
    ticket: Optional[SupportTicketResponse] = None

    model_config = ConfigDict(from_attributes=True)
