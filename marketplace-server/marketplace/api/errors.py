"""Maps typed domain errors onto HTTP responses."""

from __future__ import annotations

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from marketplace.modules.common.exceptions import MarketplaceError

logger = logging.getLogger(__name__)

STATUS_BY_CODE: dict[str, int] = {
    "invalid_amount": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "invalid_product": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "invalid_message": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "insufficient_balance": status.HTTP_402_PAYMENT_REQUIRED,
    "already_reserved": status.HTTP_409_CONFLICT,
    "self_reservation_not_allowed": status.HTTP_409_CONFLICT,
    "idempotency_key_reused": status.HTTP_409_CONFLICT,
    "account_exists": status.HTTP_409_CONFLICT,
    "session_closed": status.HTTP_409_CONFLICT,
    "concurrency_conflict": status.HTTP_409_CONFLICT,
    "product_not_found": status.HTTP_404_NOT_FOUND,
    "account_not_found": status.HTTP_404_NOT_FOUND,
    "session_not_found": status.HTTP_404_NOT_FOUND,
    "product_forbidden": status.HTTP_403_FORBIDDEN,
    "escalation_failed": status.HTTP_503_SERVICE_UNAVAILABLE,
    "persistence_unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
}


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    status_code = STATUS_BY_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST)
    if status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.code)
    headers = {"Retry-After": "1"} if exc.retryable else None
    return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)


__all__ = ["STATUS_BY_CODE", "marketplace_error_handler"]
