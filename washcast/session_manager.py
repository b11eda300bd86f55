"""Session manager facade over pluggable backends.

A session holds the caller's last location and last advisory, so follow-up
requests (notifications, re-reads) use an explicit stored value instead of
whatever was computed most recently by anyone.
"""
from datetime import datetime, timezone
from typing import Optional

import redis

from washcast.app_types import CachedAdvisory
from washcast.config import settings
from washcast.domain import Location, WashAdvisory
from washcast.session_store import InMemorySessionStore, RedisSessionStore, SessionStore
from utils.logging_utils import get_tagged_logger, mask_url_credentials

logger = get_tagged_logger(__name__, tag="session_manager")


def _init_store() -> SessionStore:
    """Initialize the backing session store based on configuration."""
    redis_url = settings.session_redis_url
    logger.debug(f"Initializing session store: redis_url='{mask_url_credentials(redis_url) or 'None'}'")
    if redis_url:
        try:
            client = redis.Redis.from_url(redis_url)
            client.ping()
            logger.info("Using RedisSessionStore", extra={"redis_url": mask_url_credentials(redis_url)})
            return RedisSessionStore(client, ttl_seconds=settings.session_ttl_seconds)
        except (redis.RedisError, ValueError) as exc:
            logger.warning("Falling back to InMemorySessionStore (Redis unavailable)", extra={"error": str(exc)})
    return InMemorySessionStore(ttl_seconds=settings.session_ttl_seconds)


_store: SessionStore = _init_store()


def use_in_memory_store_for_tests(ttl_seconds: int = 3600) -> None:
    """Override store for tests to ensure isolation and determinism."""
    global _store
    _store = InMemorySessionStore(ttl_seconds=ttl_seconds)


def _wrap_advisory(advisory):
    """Wrap advisories with the time they were stored."""
    if advisory is None or isinstance(advisory, CachedAdvisory):
        return advisory
    if isinstance(advisory, WashAdvisory):
        generated_at = advisory.generated_at or datetime.now(timezone.utc)
        return CachedAdvisory(data=advisory, generated_at=generated_at)
    raise TypeError(f"Unsupported advisory type: {type(advisory).__name__}")


def create_session(location: Optional[Location] = None, advisory=None) -> str:
    """Create and persist a new session payload, returning its ID."""
    return _store.create_session(location, _wrap_advisory(advisory))


def get_session(session_id: str) -> Optional[tuple[Optional[Location], Optional[WashAdvisory]]]:
    """Fetch (location, last advisory) by ID, refreshing TTL if applicable."""
    payload = _store.get_session(session_id)
    if payload is None:
        return None
    location, advisory = payload
    return location, advisory.data if advisory else None


def update_session(session_id: str, location: Optional[Location] = None, advisory=None) -> bool:
    """Replace the stored location and/or advisory; False if the session is gone."""
    return _store.update_session(session_id, location, _wrap_advisory(advisory))


def delete_session(session_id: str):
    """Delete a session by ID."""
    return _store.delete_session(session_id)


def clear_sessions():
    """Clear all sessions from the backing store (dev/testing)."""
    return _store.clear()
