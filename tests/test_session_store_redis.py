import json
import unittest
from datetime import datetime, timezone

from washcast.advisory_engine import build_advisory
from washcast.app_types import CachedAdvisory
from washcast.domain import HourlySeries, Location, WeatherMood
from washcast.session_store.redis import RedisSessionStore


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.expires = {}

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.expires[key] = ttl

    def get(self, key):
        return self.store.get(key)

    def expire(self, key, ttl):
        self.expires[key] = ttl

    def delete(self, key):
        self.store.pop(key, None)
        self.expires.pop(key, None)

    def scan_iter(self, pattern):
        prefix = pattern.rstrip("*")
        return [k for k in list(self.store.keys()) if k.startswith(prefix)]


def _sample_advisory():
    series = HourlySeries(
        timestamps=["2025-01-01T22:00", "2025-01-01T23:00", "2025-01-02T00:00"],
        precipitation=[0.0, 1.6, 0.2],
        temperature=[-3.0, -2.0, -1.0],
    )
    location = Location(latitude=55.79, longitude=49.12, label="Kazan, Russia")
    generated = datetime(2025, 1, 1, 21, 30, tzinfo=timezone.utc)
    advisory = build_advisory(series, location=location, generated_at=generated)
    return CachedAdvisory(data=advisory, generated_at=generated)


class TestRedisSessionStore(unittest.TestCase):
    def setUp(self):
        self.client = FakeRedis()
        self.store = RedisSessionStore(self.client, ttl_seconds=120)

    def test_round_trip_preserves_advisory(self):
        cached = _sample_advisory()
        sid = self.store.create_session(cached.data.location, cached)

        location, advisory = self.store.get_session(sid)

        self.assertEqual(location, cached.data.location)
        self.assertEqual(advisory.data, cached.data)
        self.assertEqual(advisory.data.mood, WeatherMood.SNOW)
        self.assertEqual(advisory.generated_at, cached.generated_at)

    def test_payload_is_json_under_prefix(self):
        sid = self.store.create_session()
        key = f"washcast:session:{sid}"
        self.assertIn(key, self.client.store)
        self.assertEqual(self.client.expires[key], 120)
        data = json.loads(self.client.store[key])
        self.assertIsNone(data["advisory"])

    def test_update_keeps_location_when_only_advisory_changes(self):
        location = Location(latitude=1.0, longitude=2.0)
        sid = self.store.create_session(location)
        cached = _sample_advisory()

        self.assertTrue(self.store.update_session(sid, advisory=cached))

        stored_location, stored_advisory = self.store.get_session(sid)
        self.assertEqual(stored_location, location)
        self.assertEqual(stored_advisory.data.score, cached.data.score)

    def test_update_missing_session_returns_false(self):
        self.assertFalse(self.store.update_session("nope", advisory=_sample_advisory()))

    def test_corrupt_payload_reads_as_missing(self):
        self.client.store["washcast:session:bad"] = b"{not json"
        self.assertIsNone(self.store.get_session("bad"))

    def test_max_age_expired_session_is_deleted(self):
        store = RedisSessionStore(self.client, ttl_seconds=120, max_age_seconds=10)
        sid = store.create_session()
        key = f"washcast:session:{sid}"
        data = json.loads(self.client.store[key])
        data["created_at"] -= 60
        self.client.store[key] = json.dumps(data).encode("utf-8")

        self.assertIsNone(store.get_session(sid))
        self.assertNotIn(key, self.client.store)

    def test_clear_removes_only_prefixed_keys(self):
        self.store.create_session()
        self.client.store["other:key"] = b"1"
        self.store.clear()
        self.assertEqual(list(self.client.store), ["other:key"])


if __name__ == "__main__":
    unittest.main()
