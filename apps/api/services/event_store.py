"""
Event store: durable repository for engagement events and devices.

The request pipeline only talks to the `EventStore` contract. Two
implementations exist:

- `SqlEventStore` runs on an async SQLAlchemy session (Postgres in
  production, SQLite in tests).
- `InMemoryEventStore` keeps everything in process memory with the same
  semantics, for tests and local runs without a database.

Ordering: `find_events` always returns events by `(timestamp, id)`
ascending, with or without filters.

Devices are deduplicated on the full (os, browser, screen_resolution,
language) tuple. An absent field is part of the key, so `{"os": "Linux"}`
and `{"os": "Linux", "language": "en"}` are two different devices.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import func, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.device import Device, device_fingerprint
from models.event import Event, EventKind
from schemas import CreateEventRequest, DeviceOut, DeviceRequest, EventOut, EventSummary
from services.errors import StorageError

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _summary_from_counts(counts: Dict[EventKind, int]) -> EventSummary:
    return EventSummary(
        views=int(counts.get(EventKind.VIEW, 0)),
        likes=int(counts.get(EventKind.LIKE, 0)),
        shares=int(counts.get(EventKind.SHARE, 0)),
    )


class EventStore(ABC):
    """Capability contract for event and device persistence.

    Implementations validate nothing: callers must have checked the post id
    and resolved the user before calling `create_event`.
    """

    @abstractmethod
    async def find_events(
        self,
        user_id: Optional[str] = None,
        post_id: Optional[str] = None,
    ) -> List[EventOut]:
        """Return events matching every filter that is given."""

    @abstractmethod
    async def find_event_summary(
        self,
        user_id: Optional[str] = None,
        post_id: Optional[str] = None,
    ) -> EventSummary:
        """Count events per kind under the same filters as `find_events`."""

    @abstractmethod
    async def create_event(self, request: CreateEventRequest, user_id: Optional[str] = None) -> int:
        """Persist the device (deduplicated) and then the event; return the event id."""

    @abstractmethod
    async def find_devices(self) -> List[DeviceOut]:
        """Return every recorded device."""

    @abstractmethod
    async def find_event_by_id(self, event_id: int) -> Optional[EventOut]:
        """Return one event, or None when no event has that id."""

    async def find_all_events(self) -> List[EventOut]:
        return await self.find_events()

    async def ping(self) -> None:
        """Raise StorageError when the backing store is unreachable."""


class SqlEventStore(EventStore):
    """SQLAlchemy-backed store bound to one request-scoped session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _filtered(query, user_id: Optional[str], post_id: Optional[str]):
        if user_id is not None:
            query = query.where(Event.user_id == user_id)
        if post_id is not None:
            query = query.where(Event.post_id == post_id)
        return query

    @staticmethod
    def _event_out(row: Event) -> EventOut:
        event = EventOut.model_validate(row)
        event.timestamp = _as_utc(event.timestamp)
        return event

    async def find_events(
        self,
        user_id: Optional[str] = None,
        post_id: Optional[str] = None,
    ) -> List[EventOut]:
        query = self._filtered(select(Event), user_id, post_id).order_by(
            Event.timestamp.asc(),
            Event.id.asc(),
        )
        try:
            result = await self.db.execute(query)
            rows = result.scalars().all()
        except SQLAlchemyError as exc:
            raise StorageError("Failed to query events") from exc
        return [self._event_out(row) for row in rows]

    async def find_event_summary(
        self,
        user_id: Optional[str] = None,
        post_id: Optional[str] = None,
    ) -> EventSummary:
        query = self._filtered(
            select(Event.kind, func.count(Event.id)).group_by(Event.kind),
            user_id,
            post_id,
        )
        try:
            result = await self.db.execute(query)
            counts = {EventKind(kind): int(count) for kind, count in result.all()}
        except SQLAlchemyError as exc:
            raise StorageError("Failed to summarize events") from exc
        return _summary_from_counts(counts)

    async def _find_device_id(self, fingerprint: str) -> Optional[int]:
        result = await self.db.execute(select(Device.id).where(Device.fingerprint == fingerprint))
        return result.scalar_one_or_none()

    async def _upsert_device(self, device: DeviceRequest) -> int:
        fingerprint = device_fingerprint(
            device.os,
            device.browser,
            device.screen_resolution,
            device.language,
        )
        existing_id = await self._find_device_id(fingerprint)
        if existing_id is not None:
            return int(existing_id)

        row = Device(
            os=device.os,
            browser=device.browser,
            screen_resolution=device.screen_resolution,
            language=device.language,
            fingerprint=fingerprint,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(row)
                await self.db.flush()
        except IntegrityError:
            # A concurrent request inserted the same tuple first.
            existing_id = await self._find_device_id(fingerprint)
            if existing_id is None:
                raise
            logger.debug("Device insert lost race; reusing device %s", existing_id)
            return int(existing_id)
        return int(row.id)

    async def create_event(self, request: CreateEventRequest, user_id: Optional[str] = None) -> int:
        try:
            device_id = None
            if request.device is not None:
                device_id = await self._upsert_device(request.device)

            event = Event(
                user_id=user_id,
                device_id=device_id,
                post_id=request.post_id,
                kind=request.kind,
                timestamp=datetime.now(timezone.utc),
            )
            self.db.add(event)
            await self.db.flush()
            event_id = int(event.id)
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise StorageError("Failed to persist event") from exc
        return event_id

    async def find_devices(self) -> List[DeviceOut]:
        try:
            result = await self.db.execute(select(Device).order_by(Device.id.asc()))
            rows = result.scalars().all()
        except SQLAlchemyError as exc:
            raise StorageError("Failed to query devices") from exc
        return [DeviceOut.model_validate(row) for row in rows]

    async def find_event_by_id(self, event_id: int) -> Optional[EventOut]:
        try:
            row = await self.db.get(Event, event_id)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load event {event_id}") from exc
        if row is None:
            return None
        return self._event_out(row)

    async def ping(self) -> None:
        try:
            await self.db.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise StorageError("Database is unreachable") from exc


class InMemoryEventStore(EventStore):
    """Process-local store with the same contract as `SqlEventStore`."""

    def __init__(self):
        self._events: List[EventOut] = []
        self._devices: Dict[str, DeviceOut] = {}
        self._lock = asyncio.Lock()

    @staticmethod
    def _matches(event: EventOut, user_id: Optional[str], post_id: Optional[str]) -> bool:
        if user_id is not None and event.user_id != user_id:
            return False
        if post_id is not None and event.post_id != post_id:
            return False
        return True

    async def find_events(
        self,
        user_id: Optional[str] = None,
        post_id: Optional[str] = None,
    ) -> List[EventOut]:
        matched = [e for e in self._events if self._matches(e, user_id, post_id)]
        matched.sort(key=lambda e: (e.timestamp, e.id))
        return [e.model_copy() for e in matched]

    async def find_event_summary(
        self,
        user_id: Optional[str] = None,
        post_id: Optional[str] = None,
    ) -> EventSummary:
        counts: Dict[EventKind, int] = {}
        for event in self._events:
            if self._matches(event, user_id, post_id):
                counts[event.kind] = counts.get(event.kind, 0) + 1
        return _summary_from_counts(counts)

    def _upsert_device(self, device: DeviceRequest) -> int:
        fingerprint = device_fingerprint(
            device.os,
            device.browser,
            device.screen_resolution,
            device.language,
        )
        existing = self._devices.get(fingerprint)
        if existing is not None:
            return existing.id
        stored = DeviceOut(id=len(self._devices) + 1, **device.model_dump())
        self._devices[fingerprint] = stored
        return stored.id

    async def create_event(self, request: CreateEventRequest, user_id: Optional[str] = None) -> int:
        async with self._lock:
            device_id = None
            if request.device is not None:
                device_id = self._upsert_device(request.device)
            event = EventOut(
                id=len(self._events) + 1,
                user_id=user_id,
                device_id=device_id,
                post_id=request.post_id,
                kind=request.kind,
                timestamp=datetime.now(timezone.utc),
            )
            self._events.append(event)
            return event.id

    async def find_devices(self) -> List[DeviceOut]:
        return sorted((d.model_copy() for d in self._devices.values()), key=lambda d: d.id)

    async def find_event_by_id(self, event_id: int) -> Optional[EventOut]:
        for event in self._events:
            if event.id == event_id:
                return event.model_copy()
        return None
