"""Account domain specific exceptions."""

from marketplace.modules.common.exceptions import MarketplaceError


class AccountError(MarketplaceError):
    """Base class for account domain errors."""

    code = "account_error"


class AccountAlreadyExistsError(AccountError):
    """Account already exists."""

    code = "account_exists"


class AccountNotFound(AccountError):
    """Account not found."""

    code = "account_not_found"
