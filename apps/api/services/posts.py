"""Post existence checks against the content service."""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
from typing import Dict, Optional
from urllib.parse import quote

import httpx

from config import settings
from services.errors import PostsServiceError

logger = logging.getLogger(__name__)

MISSING_POST_STATUSES = {400, 404, 422}


class PostValidator(ABC):
    @abstractmethod
    async def validate_post_id(self, post_id: str) -> bool:
        """True when the post exists; PostsServiceError when that cannot be determined."""

    async def aclose(self) -> None:
        return None


class PostsServiceClient(PostValidator):
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

    async def validate_post_id(self, post_id: str) -> bool:
        if not post_id:
            return False

        try:
            response = await self._client.get(f"/posts/{quote(post_id, safe='')}")
        except httpx.HTTPError as exc:
            logger.warning("Posts service request failed for post=%s: %s", post_id, exc)
            raise PostsServiceError(f"Posts service request failed: {exc}") from exc

        if response.status_code == 200:
            return True
        if response.status_code in MISSING_POST_STATUSES:
            return False
        raise PostsServiceError(f"Posts service answered {response.status_code}")

    async def aclose(self) -> None:
        await self._client.aclose()


class MockPostsClient(PostValidator):
    """Any id of 10+ characters is treated as an existing post."""

    def __init__(self, min_length: int = 10):
        self.min_length = min_length

    async def validate_post_id(self, post_id: str) -> bool:
        return len(post_id or "") >= self.min_length


def create_post_validator() -> PostValidator:
    if settings.USE_MOCK_UPSTREAMS:
        return MockPostsClient()
    return PostsServiceClient(
        settings.POSTS_SERVICE_URL,
        token=settings.POSTS_SERVICE_TOKEN,
        timeout_seconds=settings.UPSTREAM_TIMEOUT_SECONDS,
        retries=settings.UPSTREAM_RETRIES,
    )
