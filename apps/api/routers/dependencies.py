"""Providers for the event store and upstream clients used by the routers."""

from typing import Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from services.event_store import EventStore, InMemoryEventStore, SqlEventStore
from services.posts import PostValidator, create_post_validator
from services.users import IdentityResolver, create_identity_resolver

_memory_store: Optional[InMemoryEventStore] = None
_identity_resolver: Optional[IdentityResolver] = None
_post_validator: Optional[PostValidator] = None


async def get_event_store(db: AsyncSession = Depends(get_db)) -> EventStore:
    global _memory_store
    if settings.EVENT_STORE_BACKEND == "memory":
        if _memory_store is None:
            _memory_store = InMemoryEventStore()
        return _memory_store
    return SqlEventStore(db)


def get_identity_resolver() -> IdentityResolver:
    global _identity_resolver
    if _identity_resolver is None:
        _identity_resolver = create_identity_resolver()
    return _identity_resolver


def get_post_validator() -> PostValidator:
    global _post_validator
    if _post_validator is None:
        _post_validator = create_post_validator()
    return _post_validator


async def close_upstream_clients() -> None:
    global _identity_resolver, _post_validator
    if _identity_resolver is not None:
        await _identity_resolver.aclose()
        _identity_resolver = None
    if _post_validator is not None:
        await _post_validator.aclose()
        _post_validator = None
