"""Reusable FastAPI dependencies."""

from fastapi import Request

from marketplace.core.container import ApplicationContainer
from marketplace.modules.accounts import AccountService
from marketplace.modules.ledger import LedgerService
from marketplace.modules.support import SupportService


def get_container(request: Request) -> ApplicationContainer:
    return request.app.state.container


def get_account_service(request: Request) -> AccountService:
    return get_container(request).accounts


def get_ledger_service(request: Request) -> LedgerService:
    return get_container(request).ledger


def get_support_service(request: Request) -> SupportService:
    return get_container(request).support


__all__ = [
    "get_account_service",
    "get_container",
    "get_ledger_service",
    "get_support_service",
]
