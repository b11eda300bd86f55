import time
import unittest
from datetime import datetime, timezone

from washcast.app_types import CachedAdvisory
from washcast.advisory_engine import build_advisory
from washcast.domain import HourlySeries, Location
from washcast.session_store.memory import InMemorySessionStore


def _cached_advisory():
    series = HourlySeries(timestamps=["2025-01-01T00:00"], precipitation=[0.0], temperature=[5.0])
    return CachedAdvisory(data=build_advisory(series), generated_at=datetime.now(timezone.utc))


class TestInMemorySessionStore(unittest.TestCase):
    def test_create_and_get_refreshes_ttl(self):
        store = InMemorySessionStore(ttl_seconds=2)
        sid = store.create_session()
        self.assertEqual(store.get_session(sid), (None, None))
        time.sleep(1.2)
        # Access should refresh TTL; should still exist
        self.assertIsNotNone(store.get_session(sid))
        time.sleep(2.1)
        self.assertIsNone(store.get_session(sid))

    def test_update_replaces_only_given_fields(self):
        store = InMemorySessionStore(ttl_seconds=5)
        location = Location(latitude=55.75, longitude=37.62, label="Moscow, Russia")
        sid = store.create_session(location)
        advisory = _cached_advisory()

        self.assertTrue(store.update_session(sid, advisory=advisory))
        stored_location, stored_advisory = store.get_session(sid)
        self.assertEqual(stored_location, location)
        self.assertIs(stored_advisory, advisory)

    def test_update_unknown_session_returns_false(self):
        store = InMemorySessionStore(ttl_seconds=5)
        self.assertFalse(store.update_session("missing", advisory=_cached_advisory()))

    def test_max_age_expires_even_with_access(self):
        store = InMemorySessionStore(ttl_seconds=5, max_age_seconds=1)
        sid = store.create_session()
        self.assertIsNotNone(store.get_session(sid))
        time.sleep(0.6)
        self.assertIsNotNone(store.get_session(sid))
        time.sleep(0.6)
        self.assertIsNone(store.get_session(sid))

    def test_delete_and_clear(self):
        store = InMemorySessionStore()
        sid1, sid2 = store.create_session(), store.create_session()
        store.delete_session(sid1)
        self.assertIsNone(store.get_session(sid1))
        self.assertIsNotNone(store.get_session(sid2))
        store.clear()
        self.assertIsNone(store.get_session(sid2))


if __name__ == "__main__":
    unittest.main()
