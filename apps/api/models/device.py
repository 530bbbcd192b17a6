"""Device model for deduplicated client environment metadata."""

import hashlib
import json
from typing import Optional

from sqlalchemy import Column, Integer, String

from database import Base


def device_fingerprint(
    os: Optional[str],
    browser: Optional[str],
    screen_resolution: Optional[str],
    language: Optional[str],
) -> str:
    """Hash the full field tuple; an absent field hashes as null, not as ''."""
    canonical = json.dumps(
        [os, browser, screen_resolution, language],
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class Device(Base):
    """A distinct (os, browser, screen_resolution, language) combination."""

    __tablename__ = "devices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    os = Column(String, nullable=True)
    browser = Column(String, nullable=True)
    screen_resolution = Column(String, nullable=True)
    language = Column(String, nullable=True)
    fingerprint = Column(String(64), nullable=False, unique=True)
