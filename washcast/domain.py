"""Domain vocabulary and schemas for car-wash advisories.

This module defines the contract between the advisory engine and everything
around it (forecast client, sessions, HTTP layer): the hourly input series,
enums, and the Pydantic models for the payloads the engine produces. No
scoring logic lives here.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, List, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field


class InvalidInputError(ValueError):
    """Raised when an hourly series (or a value derived from it) is malformed."""


class _StrictBaseModel(BaseModel):
    """Base model with strict extra handling."""

    model_config = ConfigDict(extra="forbid")


class AdviceTier(str, Enum):
    """How strongly the forecast favors a wash."""
    GREAT = "great"
    OKAY = "okay"
    WAIT = "wait"


class WeatherMood(str, Enum):
    """Presentation mood of the next 24 hours, used to pick a theme."""
    CLEAR = "clear"
    CLOUDY = "cloudy"
    RAIN = "rain"
    SNOW = "snow"


class DayIcon(str, Enum):
    """Icon variant shown on a daily summary card."""
    SUNNY = "sunny"
    PARTLY_CLOUDY = "partly_cloudy"
    CLOUDY = "cloudy"
    RAINY = "rainy"


@dataclass(frozen=True)
class HourlySeries:
    """Index-aligned hourly timestamps, precipitation (mm) and temperature (°C).

    The sequences are copied into tuples, so the engine can never mutate the
    caller's data. Timestamps are expected in ascending hourly order; that is
    assumed, not enforced.
    """
    timestamps: Sequence[str]
    precipitation: Sequence[float]
    temperature: Sequence[float]

    def __post_init__(self) -> None:
        timestamps = tuple(self.timestamps)
        try:
            precipitation = tuple(float(p) for p in self.precipitation)
            temperature = tuple(float(t) for t in self.temperature)
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(f"Hourly values must be numbers: {exc}") from exc

        if not (len(timestamps) == len(precipitation) == len(temperature)):
            raise InvalidInputError(
                "Hourly series lengths differ: "
                f"time={len(timestamps)}, precipitation={len(precipitation)}, temperature={len(temperature)}"
            )
        for name, values in (("precipitation", precipitation), ("temperature", temperature)):
            for idx, value in enumerate(values):
                if not math.isfinite(value):
                    raise InvalidInputError(f"Non-finite {name} {value} at index {idx}")
        for idx, value in enumerate(precipitation):
            if value < 0:
                raise InvalidInputError(f"Negative precipitation {value} at index {idx}")

        object.__setattr__(self, "timestamps", timestamps)
        object.__setattr__(self, "precipitation", precipitation)
        object.__setattr__(self, "temperature", temperature)

    def __len__(self) -> int:
        return len(self.timestamps)

    @classmethod
    def from_open_meteo(cls, payload: Mapping[str, Any]) -> "HourlySeries":
        """Build a series from an Open-Meteo forecast record.

        Hours where Open-Meteo reports ``null`` precipitation or temperature are
        skipped so the three sequences stay aligned.
        """
        hourly = payload.get("hourly") if isinstance(payload, Mapping) else None
        if not isinstance(hourly, Mapping):
            raise InvalidInputError("Forecast payload has no 'hourly' block")
        try:
            times = list(hourly["time"])
            precip = list(hourly["precipitation"])
            temps = list(hourly["temperature_2m"])
        except (KeyError, TypeError) as exc:
            raise InvalidInputError(f"Forecast payload is missing hourly field {exc}") from exc

        if not (len(times) == len(precip) == len(temps)):
            raise InvalidInputError(
                "Hourly series lengths differ: "
                f"time={len(times)}, precipitation={len(precip)}, temperature_2m={len(temps)}"
            )

        kept = [(t, p, c) for t, p, c in zip(times, precip, temps) if p is not None and c is not None]
        return cls(
            timestamps=[t for t, _, _ in kept],
            precipitation=[p for _, p, _ in kept],
            temperature=[c for _, _, c in kept],
        )


class AdvisoryResult(_StrictBaseModel):
    """Tier, fixed display text and justification for a wash score."""
    tier: AdviceTier
    display_text: str
    reason_text: str
    score: int = Field(ge=0, le=10)


class DailySummary(_StrictBaseModel):
    """Compact forecast card for one calendar day."""
    day_label: str
    icon: DayIcon
    temperature: int
    temperature_text: str


class Location(_StrictBaseModel):
    """Coordinates the advisory was computed for, with an optional display label."""
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    label: str | None = None


class WashAdvisory(_StrictBaseModel):
    """Everything a client needs to render one advisory."""
    score: int = Field(ge=0, le=10)
    advice: AdvisoryResult
    mood: WeatherMood
    daily: List[DailySummary] = Field(default_factory=list, max_length=4)
    location: Location | None = None
    generated_at: datetime | None = None


class WashNotification(_StrictBaseModel):
    """Title and body for a push/desktop notification about the last advisory."""
    title: str
    body: str
