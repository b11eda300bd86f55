"""Shared dataclasses and lightweight types used across modules."""

from dataclasses import dataclass
from datetime import datetime

from washcast.domain import WashAdvisory


@dataclass
class CachedAdvisory:
    """Advisory payload stored in a session with the time it was computed."""
    data: WashAdvisory
    generated_at: datetime
