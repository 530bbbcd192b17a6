"""Devices router (internal)."""

from typing import List

from fastapi import APIRouter, Depends

from routers.dependencies import get_event_store
from routers.internal_access import require_internal_token
from schemas import DeviceOut
from services.event_store import EventStore

router = APIRouter(dependencies=[Depends(require_internal_token)])


@router.get("", response_model=List[DeviceOut])
async def list_devices(store: EventStore = Depends(get_event_store)):
    """Return every recorded device."""
    return await store.find_devices()
