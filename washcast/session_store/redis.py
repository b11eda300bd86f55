"""Redis-backed session store with TTL."""

import json
import time
import uuid
from datetime import datetime
from typing import Optional

from washcast.app_types import CachedAdvisory
from washcast.domain import Location, WashAdvisory
from washcast.session_store.base import SessionPayload, SessionStore
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="session_store/redis_session_store")


class RedisSessionStore(SessionStore):
    """Redis-backed sessions with TTL. Payloads are stored as JSON."""

    def __init__(
        self,
        client,
        ttl_seconds: int = 3600,
        max_age_seconds: int | None = None,
        prefix: str = "washcast:session:",
    ) -> None:
        """Initialize with a Redis client, TTL, and optional absolute max age."""
        logger.debug("Initializing RedisSessionStore")
        self.client = client
        self.ttl = ttl_seconds
        self.max_age = max_age_seconds
        self.prefix = prefix

    def _key(self, session_id: str) -> str:
        """Return the Redis key for a session id."""
        return f"{self.prefix}{session_id}"

    def _dump(self, payload: SessionPayload, *, created_at: float) -> bytes:
        """Serialize a session payload to JSON bytes."""
        location, advisory = payload
        data = {
            "location": location.model_dump(mode="json") if location else None,
            "advisory": self._serialize_advisory(advisory),
            "created_at": created_at,
        }
        return json.dumps(data).encode("utf-8")

    def _safe_load(self, raw: bytes) -> Optional[tuple[SessionPayload, float]]:
        """Deserialize JSON bytes into a session payload and created_at."""
        try:
            data = json.loads(raw.decode("utf-8") if isinstance(raw, bytes) else raw)
            location_raw = data.get("location")
            location = Location.model_validate(location_raw) if location_raw else None
            advisory = self._deserialize_advisory(data.get("advisory"))
            created_at = data.get("created_at") or time.time()
            return (location, advisory), float(created_at)
        except (ValueError, TypeError, AttributeError) as exc:
            logger.error("Failed to deserialize session payload: %s", exc)
            return None

    def _is_expired(self, created_at: float) -> bool:
        """Return True if the session exceeds absolute max age."""
        if self.max_age is None:
            return False
        return (time.time() - created_at) > self.max_age

    def _ttl_remaining(self, created_at: float) -> int:
        """Return TTL seconds capped by absolute max age."""
        if self.max_age is None:
            return self.ttl
        remaining = int(max(0.0, (created_at + self.max_age) - time.time()))
        return min(self.ttl, remaining)

    @staticmethod
    def _serialize_advisory(advisory: CachedAdvisory | None):
        """Serialize a cached advisory with its timestamp."""
        if not advisory:
            return None
        return {
            "generated_at": advisory.generated_at.isoformat(),
            "data": advisory.data.model_dump(mode="json"),
        }

    @staticmethod
    def _deserialize_advisory(data: dict | None) -> CachedAdvisory | None:
        """Deserialize a cached advisory with its timestamp."""
        if not data:
            return None
        generated_at_raw = data.get("generated_at")
        payload = data.get("data")
        if not generated_at_raw or not payload:
            return None
        return CachedAdvisory(
            data=WashAdvisory.model_validate(payload),
            generated_at=datetime.fromisoformat(generated_at_raw),
        )

    def _load_live(self, session_id: str) -> Optional[tuple[SessionPayload, float]]:
        """Read and decode a session, dropping it if past its absolute max age."""
        raw = self.client.get(self._key(session_id))
        if not raw:
            return None
        loaded = self._safe_load(raw)
        if not loaded:
            return None
        if self._is_expired(loaded[1]):
            self.delete_session(session_id)
            return None
        return loaded

    def create_session(self, location: Optional[Location] = None,
                       advisory: Optional[CachedAdvisory] = None) -> str:
        """Create and persist a new session, returning its id."""
        sid = str(uuid.uuid4())
        created_at = time.time()
        payload = self._dump((location, advisory), created_at=created_at)
        ttl = self._ttl_remaining(created_at)
        if ttl <= 0:
            raise RuntimeError("Session max age expired before storage")
        self.client.setex(self._key(sid), ttl, payload)
        return sid

    def get_session(self, session_id: str) -> Optional[SessionPayload]:
        """Fetch a session payload, refreshing TTL, or None if missing/invalid."""
        loaded = self._load_live(session_id)
        if not loaded:
            return None
        payload, created_at = loaded
        ttl = self._ttl_remaining(created_at)
        if ttl > 0:
            self.client.expire(self._key(session_id), ttl)
        return payload

    def update_session(self, session_id: str, location: Optional[Location] = None,
                       advisory: Optional[CachedAdvisory] = None) -> bool:
        """Update an existing session; returns False if it is missing/expired."""
        loaded = self._load_live(session_id)
        if not loaded:
            return False
        (stored_location, stored_advisory), created_at = loaded
        if location is not None:
            stored_location = location
        if advisory is not None:
            stored_advisory = advisory
        ttl = self._ttl_remaining(created_at)
        if ttl <= 0:
            self.delete_session(session_id)
            return False
        self.client.setex(
            self._key(session_id),
            ttl,
            self._dump((stored_location, stored_advisory), created_at=created_at),
        )
        return True

    def delete_session(self, session_id: str) -> None:
        """Delete a session if present."""
        self.client.delete(self._key(session_id))

    def clear(self) -> None:
        """Clear all sessions under the configured prefix."""
        for key in self.client.scan_iter(f"{self.prefix}*"):
            self.client.delete(key)
