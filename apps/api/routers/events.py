"""
Events router: public event recording and guarded event queries.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from routers.auth_scope import get_optional_user
from routers.dependencies import get_event_store, get_post_validator
from routers.errors import NotFound, status_response
from routers.internal_access import require_internal_token
from schemas import CreateEventRequest, EventOut, EventSummary, StatusResponse
from services.engagement import record_event_service
from services.event_store import EventStore
from services.posts import PostValidator
from services.users import User

router = APIRouter()
internal_router = APIRouter(dependencies=[Depends(require_internal_token)])


@internal_router.get("", response_model=List[EventOut])
async def list_events(
    user_id: Optional[str] = Query(default=None),
    post_id: Optional[str] = Query(default=None),
    store: EventStore = Depends(get_event_store),
):
    """Return all events, optionally filtered by user and/or post."""
    return await store.find_events(user_id=user_id, post_id=post_id)


@internal_router.get("/summary", response_model=EventSummary)
async def event_summary(
    user_id: Optional[str] = Query(default=None),
    post_id: Optional[str] = Query(default=None),
    store: EventStore = Depends(get_event_store),
):
    """Count views, likes and shares under the same filters as the listing."""
    return await store.find_event_summary(user_id=user_id, post_id=post_id)


@internal_router.get("/{event_id}", response_model=EventOut)
async def get_event(
    event_id: int,
    store: EventStore = Depends(get_event_store),
):
    event = await store.find_event_by_id(event_id)
    if event is None:
        raise NotFound(f"Event {event_id} not found")
    return event


@router.post("", status_code=201, response_model=StatusResponse, response_model_exclude_none=True)
async def create_event(
    request: CreateEventRequest,
    user: Optional[User] = Depends(get_optional_user),
    posts: PostValidator = Depends(get_post_validator),
    store: EventStore = Depends(get_event_store),
) -> JSONResponse:
    """Record a view, like or share for a post."""
    await record_event_service(request, user=user, posts=posts, store=store)
    return status_response(201)
