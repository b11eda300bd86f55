"""Interfaces and helpers for forecast data sources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from washcast.domain import HourlySeries, Location


class ForecastDataSource(Protocol):
    """Interface for anything that can provide an hourly forecast and geocoding."""

    def fetch_hourly_series(
        self,
        latitude: float,
        longitude: float,
        *,
        timezone: str = "auto",
        forecast_days: int | None = None,
    ) -> HourlySeries:
        """Return hourly precipitation and temperature for a point."""
        ...

    def geocode_city(
        self,
        name: str,
        *,
        language: str = "en",
        country: Optional[str] = None,
    ) -> Location:
        """Resolve a place name to coordinates and a display label."""
        ...


@dataclass
class CallableForecastDataSource(ForecastDataSource):
    """Wrap two callables so they can be swapped for different backends."""

    hourly_series: Callable[..., HourlySeries]
    geocoder: Callable[..., Location]

    def fetch_hourly_series(self, *args, **kwargs) -> HourlySeries:
        """Delegate to the configured hourly-forecast callable."""
        return self.hourly_series(*args, **kwargs)

    def geocode_city(self, *args, **kwargs) -> Location:
        """Delegate to the configured geocoding callable."""
        return self.geocoder(*args, **kwargs)
