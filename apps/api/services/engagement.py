"""Write-path orchestration: validate the post, then persist the event."""

from __future__ import annotations

import logging
from typing import Optional

from routers.errors import BadRequest, InternalServerError
from schemas import CreateEventRequest
from services.errors import ServiceError
from services.event_store import EventStore
from services.posts import PostValidator
from services.users import User

logger = logging.getLogger(__name__)


async def record_event_service(
    request: CreateEventRequest,
    *,
    user: Optional[User],
    posts: PostValidator,
    store: EventStore,
) -> int:
    """Record one interaction for an already-resolved (or anonymous) caller.

    The post check runs before any write, so a rejected post leaves no event
    or device row behind. Posts-service and store failures surface as
    `InternalServerError` chained to the original error.
    """
    try:
        post_exists = await posts.validate_post_id(request.post_id)
    except ServiceError as exc:
        raise InternalServerError() from exc
    if not post_exists:
        logger.info("event_rejected post=%s reason=invalid_post", request.post_id)
        raise BadRequest("Invalid post ID")

    user_id = user.id if user else None
    try:
        event_id = await store.create_event(request, user_id)
    except ServiceError as exc:
        raise InternalServerError() from exc
    logger.info(
        "event_created id=%s post=%s kind=%s user=%s device=%s",
        event_id,
        request.post_id,
        request.kind.value,
        user_id or "anonymous",
        "yes" if request.device is not None else "no",
    )
    return event_id
