"""SQLAlchemy ORM models."""
import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from marketplace.infrastructure.database.base import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint("balance_cents >= 0", name="ck_accounts_balance_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    username = Column(String(50), unique=True, nullable=True, index=True)
    role = Column(String(20), nullable=False, default="user")
    balance_cents = Column(Integer, nullable=False, default=0)
    # bumped on every balance change, guards read-modify-write races
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    transactions = relationship("LedgerTransaction", back_populates="account")


class LedgerTransaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        UniqueConstraint("account_id", "idempotency_key", name="uq_transactions_idempotency"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    amount_cents = Column(Integer, nullable=False)
    kind = Column(String(20), nullable=False)  # deposit, listing_fee, reserve_fee
    description = Column(String(255))
    reference_id = Column(String(36), index=True)
    idempotency_key = Column(String(255))
    balance_after_cents = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    account = relationship("Account", back_populates="transactions")


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("price_cents > 0", name="ck_products_price_positive"),
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint(
            "(is_reserved AND reserved_by IS NOT NULL) OR (NOT is_reserved AND reserved_by IS NULL)",
            name="ck_products_reservation_consistent",
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    seller_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    category = Column(String(50), nullable=False, index=True)
    image_url = Column(String(500))
    price_cents = Column(Integer, nullable=False)
    stock = Column(Integer, nullable=False, default=1)
    listing_fee_cents = Column(Integer, nullable=False)
    is_reserved = Column(Boolean, nullable=False, default=False)
    reserved_by = Column(String(36), ForeignKey("accounts.id"), nullable=True)
    reserved_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    seller = relationship("Account", foreign_keys=[seller_id])


class SupportSession(Base):
    __tablename__ = "support_sessions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    admin_id = Column(String(36), ForeignKey("accounts.id"), nullable=True)
    status = Column(String(20), nullable=False, default="active")  # active, escalated, closed
    title = Column(String(255))
    language = Column(String(10), nullable=False, default="en")
    admin_joined_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    messages = relationship("ChatMessage", back_populates="session", cascade="all, delete-orphan")


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(36), ForeignKey("support_sessions.id"), nullable=False, index=True)
    sender_type = Column(String(10), nullable=False)  # user, bot, admin
    sender_id = Column(String(36))
    message_type = Column(String(20), nullable=False, default="text")  # text, system, escalation
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    session = relationship("SupportSession", back_populates="messages")


class SupportTicket(Base):
    __tablename__ = "support_tickets"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    # no FK: tickets outlive pruned chat sessions
    session_id = Column(String(36), index=True)
    title = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default="open")
    priority = Column(String(20), nullable=False, default="medium")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    resolved_at = Column(DateTime(timezone=True))
