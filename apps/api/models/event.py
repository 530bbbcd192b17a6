"""Engagement event model."""

import enum

from sqlalchemy import BigInteger, Column, DateTime, Enum, ForeignKey, Integer, String

from database import Base


class EventKind(str, enum.Enum):
    """Closed set of interactions a reader can have with a post."""

    VIEW = "view"
    LIKE = "like"
    SHARE = "share"


class Event(Base):
    """Append-only record of one interaction with a post."""

    __tablename__ = "events"

    # BIGINT does not autoincrement on SQLite, so fall back to INTEGER there.
    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=True, index=True)
    device_id = Column(Integer, ForeignKey("devices.id"), nullable=True)
    post_id = Column(String, nullable=False, index=True)
    kind = Column(
        Enum(EventKind, name="event_kind", values_callable=lambda kinds: [k.value for k in kinds]),
        nullable=False,
    )
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
