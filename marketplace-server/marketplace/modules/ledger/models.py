"""Domain models for ledger operations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEPOSIT = "deposit"
LISTING_FEE = "listing_fee"
RESERVE_FEE = "reserve_fee"


@dataclass(slots=True)
class LedgerTransaction:
    id: int
    account_id: str
    amount_cents: int
    kind: str
    description: Optional[str]
    reference_id: Optional[str]
    balance_after_cents: int
    created_at: Optional[datetime]


@dataclass(slots=True)
class Product:
    id: str
    seller_id: str
    name: str
    description: Optional[str]
    category: str
    image_url: Optional[str]
    price_cents: int
    stock: int
    listing_fee_cents: int
    is_reserved: bool
    reserved_by: Optional[str]
    reserved_at: Optional[datetime]
    created_at: Optional[datetime]


@dataclass(slots=True)
class BalanceAudit:
    account_id: str
    balance_cents: int
    ledger_sum_cents: int

    @property
    def consistent(self) -> bool:
        return self.balance_cents == self.ledger_sum_cents and self.balance_cents >= 0


class ProductDraft(BaseModel):
    """Seller input for a new listing, validated before any money moves."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str = Field(..., min_length=1, max_length=200)
    price_cents: int = Field(..., gt=0)
    category: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None
    stock: int = Field(default=1, ge=0)
    image_url: Optional[str] = Field(default=None, max_length=500)

    @field_validator("description", "image_url")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None
