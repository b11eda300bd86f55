"""Helpers for fetching hourly forecasts and geocoding from the Open-Meteo APIs."""
from __future__ import annotations

from typing import Optional

import requests
import requests_cache
from retry_requests import retry

from washcast.config import settings
from washcast.domain import HourlySeries, Location
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag='open_meteo_client')

cache_session = requests_cache.CachedSession('.cache', expire_after=settings.http_cache_seconds)
session = retry(cache_session, retries=settings.http_retries, backoff_factor=0.2)

OPEN_METEO_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
OPEN_METEO_GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"

HOURLY_VARS = ["precipitation", "temperature_2m"]

EXPECTED_HOURLY_UNITS = {
    "precipitation": "mm",
    "temperature_2m": "°C",
}

# Acceptable spellings that should not trigger warnings.
ALLOWED_HOURLY_UNIT_SYNONYMS = {
    "precipitation": {"mm"},
    "temperature_2m": {"°C", "C", "celsius"},
}


class ForecastUnavailableError(RuntimeError):
    """The forecast API could not be reached or answered with an error."""


class GeocodingError(RuntimeError):
    """The geocoding API could not be reached or answered with an error."""


class CityNotFoundError(GeocodingError):
    """Geocoding returned no place for the requested name."""


def _warn_on_unexpected_units(units: dict | None, *, context: str):
    """Log a warning if Open-Meteo returns units we did not request."""
    if not units:
        return
    for field, expected in EXPECTED_HOURLY_UNITS.items():
        actual = units.get(field)
        if actual and actual != expected and actual not in ALLOWED_HOURLY_UNIT_SYNONYMS.get(field, set()):
            logger.warning(
                "Unexpected Open-Meteo unit",
                extra={"context": context, "field": field, "unit": actual, "expected": expected},
            )


def fetch_hourly_series(
    latitude: float,
    longitude: float,
    *,
    timezone: str = "auto",
    forecast_days: int | None = None,
) -> HourlySeries:
    """Fetch hourly precipitation and temperature for the given coordinates.

    Timestamps come back in the location's local time (``timezone="auto"``), so
    the date part of each one is the local calendar day.
    """
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "hourly": ",".join(HOURLY_VARS),
        "timezone": timezone,
        "temperature_unit": "celsius",
        "precipitation_unit": "mm",
    }
    if forecast_days is not None:
        params["forecast_days"] = forecast_days

    try:
        resp = session.get(OPEN_METEO_FORECAST_URL, params=params, timeout=settings.request_timeout_seconds)
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as exc:
        logger.error("Open-Meteo forecast request failed: %s", exc)
        raise ForecastUnavailableError("Could not fetch the weather forecast") from exc

    _warn_on_unexpected_units(data.get("hourly_units"), context="forecast_hourly")
    series = HourlySeries.from_open_meteo(data)
    logger.info(
        "Fetched hourly forecast",
        extra={"latitude": latitude, "longitude": longitude, "hours": len(series)},
    )
    return series


def _place_label(typed_name: str, place: dict) -> str:
    """Label a place by what the user typed, falling back to Open-Meteo's name."""
    name = typed_name.strip() or place.get("name") or ""
    country = place.get("country")
    return f"{name}, {country}" if country else name


def geocode_city(
    name: str,
    *,
    language: str = "en",
    country: Optional[str] = None,
) -> Location:
    """Resolve a city name to coordinates using the first Open-Meteo match."""
    cleaned = (name or "").strip()
    if not cleaned:
        raise CityNotFoundError("City name is empty")

    params = {
        "name": cleaned,
        "count": 1,
        "language": language,
        "format": "json",
    }
    if country:
        params["countryCode"] = country

    try:
        resp = session.get(OPEN_METEO_GEOCODING_URL, params=params, timeout=settings.request_timeout_seconds)
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as exc:
        logger.error("Open-Meteo geocoding request failed: %s", exc)
        raise GeocodingError("Geocoding request failed") from exc

    results = data.get("results") or []
    if not results:
        logger.info("City not found", extra={"city": cleaned, "country": country})
        raise CityNotFoundError(f"City '{cleaned}' not found")

    place = results[0]
    try:
        location = Location(
            latitude=place["latitude"],
            longitude=place["longitude"],
            label=_place_label(name, place),
        )
    except (KeyError, ValueError) as exc:
        raise GeocodingError("Geocoding result has no usable coordinates") from exc

    logger.debug("Geocoded city", extra={"city": cleaned, "label": location.label})
    return location
