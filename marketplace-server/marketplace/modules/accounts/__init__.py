"""Account domain exports"""

from .exceptions import AccountAlreadyExistsError, AccountError, AccountNotFound
from .models import Account
from .service import AccountService

__all__ = [
    "Account",
    "AccountAlreadyExistsError",
    "AccountError",
    "AccountNotFound",
    "AccountService",
]
