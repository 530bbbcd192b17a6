"""
Identity resolution against the user directory service.

A caller may present an opaque credential in the `Authorization` header.
`fetch_user` turns it into a `User` or `None`:

- `None` means the directory does not know the credential (or it was blank).
  This is a normal outcome and the pipeline answers 401 for it.
- `UsersServiceError` means the directory could not be asked (timeout,
  connection failure, unexpected status or body). The pipeline answers 500.

Nothing is cached between requests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from config import settings
from services.errors import UsersServiceError

logger = logging.getLogger(__name__)

UNKNOWN_CREDENTIAL_STATUSES = {400, 401, 403, 404}


@dataclass
class User:
    id: str


class IdentityResolver(ABC):
    @abstractmethod
    async def fetch_user(self, credential: str) -> Optional[User]:
        """Resolve a credential to a user, or None when it is not recognised."""

    async def validate(self, credential: str) -> bool:
        return await self.fetch_user(credential) is not None

    async def aclose(self) -> None:
        return None


class UsersServiceClient(IdentityResolver):
    """HTTP client for the users microservice."""

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout_seconds: float = 5.0,
        retries: int = 1,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers: Dict[str, str] = {}
        if token:
            headers["X-Secret-Token"] = token
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout_seconds,
            transport=transport or httpx.AsyncHTTPTransport(retries=max(int(retries), 0)),
        )

    async def fetch_user(self, credential: str) -> Optional[User]:
        if not credential or not credential.strip():
            return None

        try:
            response = await self._client.get("/users/me", headers={"Authorization": credential})
        except httpx.HTTPError as exc:
            logger.warning("Users service request failed: %s", exc)
            raise UsersServiceError(f"Users service request failed: {exc}") from exc

        if response.status_code in UNKNOWN_CREDENTIAL_STATUSES:
            return None
        if response.status_code != 200:
            raise UsersServiceError(f"Users service answered {response.status_code}")

        try:
            payload: Any = response.json()
        except ValueError as exc:
            raise UsersServiceError("Users service returned invalid JSON") from exc

        user_id = payload.get("id") if isinstance(payload, dict) else None
        if user_id is None or str(user_id).strip() == "":
            raise UsersServiceError("Users service response is missing the user id")
        return User(id=str(user_id))

    async def aclose(self) -> None:
        await self._client.aclose()


class MockUsersClient(IdentityResolver):
    """Deterministic resolver: any credential of 10+ characters is one fixed user."""

    MOCK_USER_ID = "1234567890"

    def __init__(self, min_length: int = 10):
        self.min_length = min_length

    async def fetch_user(self, credential: str) -> Optional[User]:
        if credential and len(credential) >= self.min_length:
            return User(id=self.MOCK_USER_ID)
        return None


def create_identity_resolver() -> IdentityResolver:
    if settings.USE_MOCK_UPSTREAMS:
        return MockUsersClient()
    return UsersServiceClient(
        settings.USERS_SERVICE_URL,
        token=settings.USERS_SERVICE_TOKEN,
        timeout_seconds=settings.UPSTREAM_TIMEOUT_SECONDS,
        retries=settings.UPSTREAM_RETRIES,
    )
