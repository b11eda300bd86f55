import unittest

import requests

from washcast.data_sources import open_meteo_client
from washcast.domain import InvalidInputError


class DummyResp:
    def __init__(self, payload, status_error=None):
        self._payload = payload
        self._status_error = status_error

    def raise_for_status(self):
        if self._status_error:
            raise self._status_error

    def json(self):
        return self._payload


class RecordingSession:
    """Stand-in for the cached/retrying requests session."""

    def __init__(self, resp=None, exc=None):
        self.resp = resp
        self.exc = exc
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if self.exc:
            raise self.exc
        return self.resp


def _make_forecast_payload():
    return {
        "latitude": 55.75,
        "longitude": 37.625,
        "timezone": "Europe/Moscow",
        "hourly_units": {"time": "iso8601", "precipitation": "mm", "temperature_2m": "°C"},
        "hourly": {
            "time": ["2025-01-01T00:00", "2025-01-01T01:00", "2025-01-01T02:00"],
            "precipitation": [0.0, 0.3, 1.1],
            "temperature_2m": [-2.0, -1.5, -1.0],
        },
    }


def _make_geocoding_payload():
    return {
        "results": [
            {
                "id": 551487,
                "name": "Kazan",
                "latitude": 55.78874,
                "longitude": 49.12214,
                "country_code": "RU",
                "country": "Russia",
                "timezone": "Europe/Moscow",
            }
        ]
    }


class TestOpenMeteoClient(unittest.TestCase):
    def setUp(self):
        self._orig_session = open_meteo_client.session

    def tearDown(self):
        open_meteo_client.session = self._orig_session

    def test_fetch_hourly_series(self):
        fake = RecordingSession(DummyResp(_make_forecast_payload()))
        open_meteo_client.session = fake

        series = open_meteo_client.fetch_hourly_series(55.75, 37.62, forecast_days=4)

        self.assertEqual(len(series), 3)
        self.assertEqual(series.precipitation[2], 1.1)
        params = fake.calls[0]["params"]
        self.assertEqual(fake.calls[0]["url"], open_meteo_client.OPEN_METEO_FORECAST_URL)
        self.assertEqual(params["hourly"], "precipitation,temperature_2m")
        self.assertEqual(params["timezone"], "auto")
        self.assertEqual(params["forecast_days"], 4)

    def test_fetch_hourly_series_omits_forecast_days_by_default(self):
        fake = RecordingSession(DummyResp(_make_forecast_payload()))
        open_meteo_client.session = fake
        open_meteo_client.fetch_hourly_series(0, 0)
        self.assertNotIn("forecast_days", fake.calls[0]["params"])

    def test_http_error_becomes_forecast_unavailable(self):
        open_meteo_client.session = RecordingSession(
            DummyResp({}, status_error=requests.HTTPError("500 Server Error"))
        )
        with self.assertRaises(open_meteo_client.ForecastUnavailableError):
            open_meteo_client.fetch_hourly_series(0, 0)

    def test_connection_error_becomes_forecast_unavailable(self):
        open_meteo_client.session = RecordingSession(exc=requests.ConnectionError("offline"))
        with self.assertRaises(open_meteo_client.ForecastUnavailableError):
            open_meteo_client.fetch_hourly_series(0, 0)

    def test_malformed_forecast_raises_invalid_input(self):
        open_meteo_client.session = RecordingSession(DummyResp({"hourly": {"time": []}}))
        with self.assertRaises(InvalidInputError):
            open_meteo_client.fetch_hourly_series(0, 0)

    def test_unexpected_units_are_logged(self):
        payload = _make_forecast_payload()
        payload["hourly_units"]["temperature_2m"] = "°F"
        open_meteo_client.session = RecordingSession(DummyResp(payload))
        with self.assertLogs(open_meteo_client.logger.logger, level="WARNING"):
            open_meteo_client.fetch_hourly_series(0, 0)

    def test_geocode_city_uses_typed_name_and_country(self):
        fake = RecordingSession(DummyResp(_make_geocoding_payload()))
        open_meteo_client.session = fake

        location = open_meteo_client.geocode_city("  kazan ", country="RU")

        self.assertAlmostEqual(location.latitude, 55.78874)
        self.assertEqual(location.label, "kazan, Russia")
        params = fake.calls[0]["params"]
        self.assertEqual(params["name"], "kazan")
        self.assertEqual(params["count"], 1)
        self.assertEqual(params["countryCode"], "RU")

    def test_geocode_label_without_country(self):
        payload = _make_geocoding_payload()
        del payload["results"][0]["country"]
        open_meteo_client.session = RecordingSession(DummyResp(payload))
        self.assertEqual(open_meteo_client.geocode_city("Kazan").label, "Kazan")

    def test_geocode_no_results_raises_city_not_found(self):
        open_meteo_client.session = RecordingSession(DummyResp({"generationtime_ms": 0.5}))
        with self.assertRaises(open_meteo_client.CityNotFoundError):
            open_meteo_client.geocode_city("Atlantis")

    def test_geocode_blank_name_skips_request(self):
        fake = RecordingSession(DummyResp(_make_geocoding_payload()))
        open_meteo_client.session = fake
        with self.assertRaises(open_meteo_client.CityNotFoundError):
            open_meteo_client.geocode_city("   ")
        self.assertEqual(fake.calls, [])

    def test_geocode_transport_failure_is_geocoding_error(self):
        open_meteo_client.session = RecordingSession(exc=requests.Timeout("slow"))
        with self.assertRaises(open_meteo_client.GeocodingError) as ctx:
            open_meteo_client.geocode_city("Kazan")
        self.assertNotIsInstance(ctx.exception, open_meteo_client.CityNotFoundError)


if __name__ == "__main__":
    unittest.main()
