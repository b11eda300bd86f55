"""Backends that keep each caller's location and last wash advisory.

``InMemorySessionStore`` serves a single process (dev/tests);
``RedisSessionStore`` shares sessions between workers.
"""

from .base import SessionPayload, SessionStore
from .memory import InMemorySessionStore
from .redis import RedisSessionStore

__all__ = [
    "SessionStore",
    "SessionPayload",
    "InMemorySessionStore",
    "RedisSessionStore",
]
