import unittest

from washcast.data_sources.base import CallableForecastDataSource
from washcast.data_sources.factory import DEFAULT_SOURCE_NAME, build_data_source
from washcast.data_sources.open_meteo_client import fetch_hourly_series, geocode_city


class DummySettings:
    def __init__(self, **kwargs):
        for k, v in kwargs.items():
            setattr(self, k, v)
        self.forecast_source = getattr(self, "forecast_source", DEFAULT_SOURCE_NAME)


class TestDataSourceFactory(unittest.TestCase):
    def test_build_open_meteo_default(self):
        ds = build_data_source(DummySettings(forecast_source="open_meteo"))
        self.assertIsInstance(ds, CallableForecastDataSource)
        self.assertIs(ds.hourly_series, fetch_hourly_series)
        self.assertIs(ds.geocoder, geocode_city)

    def test_source_name_is_case_insensitive(self):
        ds = build_data_source(DummySettings(forecast_source="Open_Meteo"))
        self.assertIsInstance(ds, CallableForecastDataSource)

    def test_empty_source_falls_back_to_default(self):
        ds = build_data_source(DummySettings(forecast_source=""))
        self.assertIsInstance(ds, CallableForecastDataSource)

    def test_unknown_source_raises(self):
        with self.assertRaises(ValueError):
            build_data_source(DummySettings(forecast_source="unknown-source"))


if __name__ == "__main__":
    unittest.main()
