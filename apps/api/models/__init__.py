"""Models package."""

from .device import Device
from .event import Event, EventKind
