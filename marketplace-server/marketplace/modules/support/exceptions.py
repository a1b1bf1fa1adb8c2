"""Support domain specific exceptions."""

from marketplace.modules.common.exceptions import MarketplaceError


class SupportError(MarketplaceError):
    """Base class for support chat errors."""

    code = "support_error"


class SessionNotFound(SupportError):
    """Support session not found."""

    code = "session_not_found"


class SessionClosed(SupportError):
    """Support session is closed; start a new one."""

    code = "session_closed"


class EscalationFailed(SupportError):
    """Escalation could not be recorded; the session was left unchanged."""

    code = "escalation_failed"
    retryable = True


class InvalidMessage(SupportError):
    """Message content is empty."""

    code = "invalid_message"
