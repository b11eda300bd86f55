"""Deterministic car-wash advisory logic.

This module turns an HourlySeries into a wash score, advice text, weather mood
and a short daily outlook. Every function is pure: no I/O, no shared state, and
the input series is never modified, so calls are safe from any thread.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Sequence

from washcast.domain import (
    AdviceTier,
    AdvisoryResult,
    DailySummary,
    DayIcon,
    HourlySeries,
    InvalidInputError,
    Location,
    WashAdvisory,
    WeatherMood,
)
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="advisory_engine")

SCORE_WINDOW_HOURS = 48
TEXT_WINDOW_HOURS = 24
MOOD_WINDOW_HOURS = 24
MAX_DAILY_SUMMARIES = 4

MAX_SCORE = 10
GREAT_MIN_SCORE = 8
OKAY_MIN_SCORE = 5

TODAY_LABEL = "Today"
_WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

_GREAT_TEXT = "Perfect day for a car wash!"
_GREAT_REASON = (
    "Almost no precipitation expected over the next 1-2 days, "
    "average temperature around {temp}°C."
)
_OKAY_TEXT = "You can wash, but with caveats."
_OKAY_REASON = (
    "The weather is mostly fine, but light precipitation is possible. "
    "Average temperature around {temp}°C."
)
_NO_TEMP_GREAT_REASON = "Almost no precipitation expected over the next 1-2 days."
_NO_TEMP_OKAY_REASON = "The weather is mostly fine, but light precipitation is possible."
_WAIT_TEXT = "Better hold off on washing."
_WAIT_REASON = (
    "Noticeable precipitation is expected within the next day, "
    "so the car will get dirty again quickly."
)
_LOCATION_SUFFIX = " Location: {label}."


def _round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (-2.5 -> -2, 2.5 -> 3)."""
    return math.floor(value + 0.5)


def _mean(values: Sequence[float]) -> float:
    """Average of values, 0.0 for an empty window."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def _peak(values: Sequence[float]) -> float:
    """Maximum of values, 0.0 for an empty window."""
    return max(values, default=0.0)


def leading_window(series: HourlySeries, hours: int) -> HourlySeries:
    """Return the first ``hours`` entries of the series (all of it if shorter)."""
    if hours < 0:
        raise InvalidInputError(f"Window size must be non-negative, got {hours}")
    return HourlySeries(
        timestamps=series.timestamps[:hours],
        precipitation=series.precipitation[:hours],
        temperature=series.temperature[:hours],
    )


def _total_precip_deduction(total_precip: float) -> int:
    """Penalty for accumulated precipitation; only the highest tier applies."""
    if total_precip > 5:
        return 4
    if total_precip > 2:
        return 2
    if total_precip > 0.5:
        return 1
    return 0


def _peak_precip_deduction(max_precip: float) -> int:
    """Penalty for the heaviest single hour; only the highest tier applies."""
    if max_precip > 2:
        return 3
    if max_precip > 1:
        return 2
    return 0


def compute_score(series: HourlySeries) -> int:
    """
    Score the next 48 hours from 0 (don't bother) to 10 (perfect wash weather).

    Deductions from 10:
    - total precipitation > 5 / > 2 / > 0.5 mm: -4 / -2 / -1
    - wettest hour > 2 / > 1 mm: -3 / -2
    - average temperature > 2°C while some hour exceeds 0.5 mm: -1
      (rain or melting slush rather than dry snow)
    """
    window = leading_window(series, SCORE_WINDOW_HOURS)
    total_precip = sum(window.precipitation)
    max_precip = _peak(window.precipitation)
    avg_temp = _mean(window.temperature)

    score = MAX_SCORE
    score -= _total_precip_deduction(total_precip)
    score -= _peak_precip_deduction(max_precip)
    if avg_temp > 2 and max_precip > 0.5:
        score -= 1

    return max(0, min(MAX_SCORE, score))


def classify_mood(series: HourlySeries) -> WeatherMood:
    """Classify the next 24 hours as snow, rain, cloudy or clear (first match wins)."""
    window = leading_window(series, MOOD_WINDOW_HOURS)
    max_precip = _peak(window.precipitation)
    avg_precip = _mean(window.precipitation)
    avg_temp = _mean(window.temperature)

    # snow is the narrowest condition, so it has to be checked before rain
    if max_precip > 1 and avg_temp <= 1:
        return WeatherMood.SNOW
    if max_precip > 0.4:
        return WeatherMood.RAIN
    if avg_precip > 0.1:
        return WeatherMood.CLOUDY
    return WeatherMood.CLEAR


def tier_for_score(score: int) -> AdviceTier:
    """Map a wash score onto its advice tier."""
    if not 0 <= score <= MAX_SCORE:
        raise InvalidInputError(f"Wash score must be within 0-{MAX_SCORE}, got {score}")
    if score >= GREAT_MIN_SCORE:
        return AdviceTier.GREAT
    if score >= OKAY_MIN_SCORE:
        return AdviceTier.OKAY
    return AdviceTier.WAIT


def compose_advice(series: HourlySeries, score: int) -> AdvisoryResult:
    """Build the advice text for an already computed score.

    The reason quotes the average temperature of the next 24 hours, which is a
    shorter window than the one the score is computed over. With no hours at
    all the reason leaves the temperature out.
    """
    tier = tier_for_score(score)
    text_window = leading_window(series, TEXT_WINDOW_HOURS)
    if len(text_window) == 0:
        great_reason, okay_reason = _NO_TEMP_GREAT_REASON, _NO_TEMP_OKAY_REASON
    else:
        avg_temp_24 = _round_half_up(_mean(text_window.temperature))
        great_reason = _GREAT_REASON.format(temp=avg_temp_24)
        okay_reason = _OKAY_REASON.format(temp=avg_temp_24)

    if tier == AdviceTier.GREAT:
        text, reason = _GREAT_TEXT, great_reason
    elif tier == AdviceTier.OKAY:
        text, reason = _OKAY_TEXT, okay_reason
    else:
        text, reason = _WAIT_TEXT, _WAIT_REASON

    return AdvisoryResult(tier=tier, display_text=text, reason_text=reason, score=score)


def _day_icon(avg_precip: float, avg_temp: float) -> DayIcon:
    """Pick a card icon for one day's averages."""
    if avg_precip > 1:
        return DayIcon.RAINY
    if avg_precip > 0.1:
        return DayIcon.CLOUDY
    if avg_temp > 20:
        return DayIcon.SUNNY
    return DayIcon.PARTLY_CLOUDY


def _day_label(date_str: str, index: int) -> str:
    """'Today' for the first day, abbreviated weekday name afterwards."""
    if index == 0:
        return TODAY_LABEL
    try:
        day = date.fromisoformat(date_str)
    except ValueError as exc:
        raise InvalidInputError(f"Unparseable forecast date '{date_str}'") from exc
    return _WEEKDAY_LABELS[day.weekday()]


def aggregate_daily(series: HourlySeries) -> list[DailySummary]:
    """
    Summarize the series per calendar day, at most four days.

    Hours are grouped by the date part of their timestamp in the order the
    dates first appear; the series is not re-sorted.
    """
    by_date: dict[str, tuple[list[float], list[float]]] = {}
    for ts, precip, temp in zip(series.timestamps, series.precipitation, series.temperature):
        date_str = ts.split("T")[0]
        if date_str not in by_date:
            if len(by_date) == MAX_DAILY_SUMMARIES:
                continue  # only the first four dates are summarized
            by_date[date_str] = ([], [])
        temps, precips = by_date[date_str]
        temps.append(temp)
        precips.append(precip)

    summaries: list[DailySummary] = []
    for index, (date_str, (temps, precips)) in enumerate(by_date.items()):
        rounded = _round_half_up(_mean(temps))
        summaries.append(
            DailySummary(
                day_label=_day_label(date_str, index),
                icon=_day_icon(_mean(precips), _mean(temps)),
                temperature=rounded,
                temperature_text=f"{rounded}°C",
            )
        )
    return summaries


def build_advisory(
    series: HourlySeries,
    *,
    location: Location | None = None,
    generated_at: datetime | None = None,
) -> WashAdvisory:
    """Run every derivation over one series and bundle the results.

    When the location has a label, the advice reason ends with
    ``" Location: <label>."``.
    """
    score = compute_score(series)
    advice = compose_advice(series, score)
    if location is not None and location.label:
        reason = advice.reason_text + _LOCATION_SUFFIX.format(label=location.label)
        advice = advice.model_copy(update={"reason_text": reason})
    mood = classify_mood(series)
    daily = aggregate_daily(series)

    logger.debug(
        "Built wash advisory",
        extra={"hours": len(series), "score": score, "tier": advice.tier.value, "mood": mood.value},
    )

    return WashAdvisory(
        score=score,
        advice=advice,
        mood=mood,
        daily=daily,
        location=location,
        generated_at=generated_at,
    )
