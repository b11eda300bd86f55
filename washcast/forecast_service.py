"""Fetch forecasts and turn them into car-wash advisories."""
from __future__ import annotations

import datetime as dt

from washcast.advisory_engine import build_advisory
from washcast.config import settings
from washcast.data_sources import ForecastDataSource, build_data_source
from washcast.domain import Location, WashAdvisory, WashNotification
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="forecast_service")

NOTIFICATION_TITLE = "Car wash advice"
DEFAULT_LOCATION_LABEL = "current location"


def get_advisory_for_location(
    location: Location,
    *,
    data_source: ForecastDataSource | None = None,
    timezone: str | None = None,
    forecast_days: int | None = None,
) -> WashAdvisory:
    """
    Fetch the hourly forecast for a location and compute its advisory.

    The `data_source` argument lets you inject alternate providers (fixtures,
    a different API, a cached layer). Nothing is retained between calls; the
    returned advisory is the caller's to keep.
    """
    ds = data_source or build_data_source(settings)
    tz = timezone or settings.forecast_timezone
    days = forecast_days if forecast_days is not None else settings.forecast_days

    logger.info(
        "Fetching forecast for advisory",
        extra={"latitude": location.latitude, "longitude": location.longitude, "timezone": tz, "forecast_days": days},
    )
    series = ds.fetch_hourly_series(location.latitude, location.longitude, timezone=tz, forecast_days=days)

    advisory = build_advisory(
        series,
        location=location,
        generated_at=dt.datetime.now(dt.timezone.utc),
    )
    logger.info(
        "Computed wash advisory",
        extra={"score": advisory.score, "tier": advisory.advice.tier.value, "mood": advisory.mood.value},
    )
    return advisory


def get_advisory_for_coords(
    latitude: float,
    longitude: float,
    *,
    label: str | None = None,
    data_source: ForecastDataSource | None = None,
    timezone: str | None = None,
    forecast_days: int | None = None,
) -> WashAdvisory:
    """Compute an advisory for a point picked on a map or from device geolocation."""
    location = Location(latitude=latitude, longitude=longitude, label=label)
    return get_advisory_for_location(
        location,
        data_source=data_source,
        timezone=timezone,
        forecast_days=forecast_days,
    )


def get_advisory_for_city(
    city: str,
    *,
    data_source: ForecastDataSource | None = None,
    timezone: str | None = None,
    forecast_days: int | None = None,
) -> WashAdvisory:
    """Geocode a city name, then compute its advisory.

    Raises CityNotFoundError / GeocodingError from the data source unchanged.
    """
    ds = data_source or build_data_source(settings)
    location = ds.geocode_city(
        city,
        language=settings.geocoding_language,
        country=settings.geocoding_country,
    )
    logger.debug("Resolved city", extra={"city": city, "label": location.label})
    return get_advisory_for_location(
        location,
        data_source=ds,
        timezone=timezone,
        forecast_days=forecast_days,
    )


def build_notification(advisory: WashAdvisory) -> WashNotification:
    """Render the notification text for a previously computed advisory."""
    label = (advisory.location.label if advisory.location else None) or DEFAULT_LOCATION_LABEL
    body = f"{advisory.advice.display_text} (score {advisory.score}/10, location: {label})"
    return WashNotification(title=NOTIFICATION_TITLE, body=body)


def main():
    """Manual test helper: print an advisory for a city given on the command line."""
    import sys

    from utils.logging_utils import setup_logging

    setup_logging(level=settings.log_level, job_name="washcast_cli")
    city = " ".join(sys.argv[1:]) or "Moscow"

    advisory = get_advisory_for_city(city)
    print(f"{advisory.advice.display_text} (score {advisory.score}/10)\n"
          f"    {advisory.advice.reason_text}\n"
          f"    location: {advisory.location.label if advisory.location else '-'}\n"
          f"    mood: {advisory.mood.value}")
    for day in advisory.daily:
        print(f"    {day.day_label:<6} {day.icon.value:<14} {day.temperature_text}")


if __name__ == "__main__":
    main()
