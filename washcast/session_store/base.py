"""Shared protocol and types for session storage backends."""

from typing import Optional, Protocol, Tuple

from washcast.app_types import CachedAdvisory
from washcast.domain import Location

SessionPayload = Tuple[Optional[Location], Optional[CachedAdvisory]]


class SessionStore(Protocol):
    """Protocol for session storage backends."""
    def create_session(
        self,
        location: Optional[Location] = None,
        advisory: Optional[CachedAdvisory] = None,
    ) -> str:
        """Persist a new session and return its id."""

    def get_session(self, session_id: str) -> Optional[SessionPayload]:
        """Fetch a session by id, returning None if missing or expired."""

    def update_session(
        self,
        session_id: str,
        location: Optional[Location] = None,
        advisory: Optional[CachedAdvisory] = None,
    ) -> bool:
        """Update fields on an existing session; return False for missing/expired ids."""

    def delete_session(self, session_id: str) -> None:
        """Delete a session without raising if it is absent."""

    def clear(self) -> None:
        """Clear all stored sessions."""
