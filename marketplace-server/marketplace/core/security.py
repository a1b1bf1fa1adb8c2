"""Caller identity supplied by the authentication gateway.

Credentials are verified upstream; requests reach this service with the
authenticated account id and role in trusted headers.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, status

from marketplace.api.deps import get_account_service
from marketplace.modules.accounts import Account as AccountDomain, AccountService
from marketplace.modules.accounts.models import ROLES


@dataclass(slots=True)
class Identity:
    account_id: str
    role: str


async def get_identity(
    x_account_id: str | None = Header(default=None),
    x_account_role: str = Header(default="user"),
) -> Identity:
    if not x_account_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing caller identity")
    role = x_account_role.lower()
    if role not in ROLES:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown caller role")
    return Identity(account_id=x_account_id, role=role)


async def get_current_account(
    identity: Identity = Depends(get_identity),
    accounts: AccountService = Depends(get_account_service),
) -> AccountDomain:
    return await accounts.ensure(identity.account_id, role=identity.role)


async def get_current_admin(identity: Identity = Depends(get_identity)) -> Identity:
    if identity.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return identity
