"""Shared-secret guard for service-to-service read endpoints."""

import hmac
from typing import Optional

from fastapi import Header

from config import settings
from routers.errors import Unauthorized

INTERNAL_TOKEN_HEADER = "X-Internal-Token"


def internal_token_matches(received: Optional[str], expected: Optional[str]) -> bool:
    """Constant-time exact comparison; an unset secret never matches."""
    if received is None or not expected:
        return False
    return hmac.compare_digest(received.encode("utf-8"), expected.encode("utf-8"))


async def require_internal_token(
    x_internal_token: Optional[str] = Header(default=None, alias=INTERNAL_TOKEN_HEADER),
) -> None:
    """Reject the request before any store access unless the internal token matches."""
    if not internal_token_matches(x_internal_token, settings.INTERNAL_TOKEN):
        raise Unauthorized()
