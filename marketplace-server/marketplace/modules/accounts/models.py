"""Domain models for accounts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

ROLES = frozenset({"user", "admin"})


@dataclass(slots=True)
class Account:
    id: str
    username: Optional[str]
    role: str
    balance_cents: int
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
