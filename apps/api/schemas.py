"""Request and response shapes shared by routers and the event store."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from models.event import EventKind


class DeviceRequest(BaseModel):
    os: Optional[str] = None
    browser: Optional[str] = None
    screen_resolution: Optional[str] = None
    language: Optional[str] = None


class CreateEventRequest(BaseModel):
    post_id: str
    kind: EventKind
    device: Optional[DeviceRequest] = None


class EventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[str] = None
    device_id: Optional[int] = None
    post_id: str
    kind: EventKind
    timestamp: datetime


class DeviceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    os: Optional[str] = None
    browser: Optional[str] = None
    screen_resolution: Optional[str] = None
    language: Optional[str] = None


class EventSummary(BaseModel):
    """Per-kind counts; a kind with no events reports 0."""

    views: int = 0
    likes: int = 0
    shares: int = 0


class StatusResponse(BaseModel):
    """Envelope used for status replies and every error body."""

    status: int
    title: str
    detail: Optional[str] = None
