"""Forecast data sources and the Open-Meteo client behind the default one."""

from .base import CallableForecastDataSource, ForecastDataSource
from .factory import build_data_source
from .open_meteo_client import (
    CityNotFoundError,
    ForecastUnavailableError,
    GeocodingError,
    fetch_hourly_series,
    geocode_city,
)

__all__ = [
    "build_data_source",
    "ForecastDataSource",
    "CallableForecastDataSource",
    "CityNotFoundError",
    "ForecastUnavailableError",
    "GeocodingError",
    "fetch_hourly_series",
    "geocode_city",
]
