"""HTTP API for the car-wash advisory service."""

import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from pydantic import BaseModel, Field

from .advisory_engine import build_advisory
from .config import settings
from .data_sources import (
    CityNotFoundError,
    ForecastUnavailableError,
    GeocodingError,
    build_data_source,
)
from .domain import HourlySeries, InvalidInputError, WashAdvisory, WashNotification
from .forecast_service import build_notification, get_advisory_for_city, get_advisory_for_coords
from .session_manager import create_session, delete_session, get_session, update_session
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="api")

CITY_NOT_FOUND_DETAIL = "City not found. Check the spelling and try again."
GEOCODING_FAILED_DETAIL = "City search is unavailable right now. Try again later."
FORECAST_FAILED_DETAIL = "Could not fetch the weather. Try again later or choose another point."
BAD_FORECAST_DETAIL = "The weather service returned unusable data. Try again later."
MISSING_LOCATION_DETAIL = "Provide a city name or both latitude and longitude."
NO_ADVICE_DETAIL = "Compute wash advice for this session first."


def require_api_key(x_api_key: str | None = Header(default=None)):
    """Validate the X-API-Key header against the configured static key."""
    if not settings.api_key:
        return

    if not x_api_key:
        logger.debug("No API key provided")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")

    if hmac.compare_digest(str(x_api_key), str(settings.api_key)):
        return

    logger.debug("Invalid API key provided")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


router = APIRouter(dependencies=[Depends(require_api_key)])
DATA_SOURCE = build_data_source(settings)


class AdviceRequest(BaseModel):
    """Where to compute advice for: a city name, or a point from a map/geolocation."""
    city: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(default=None, ge=-180.0, le=180.0)
    label: Optional[str] = None


class HourlyBlock(BaseModel):
    """The `hourly` block of an Open-Meteo forecast response."""
    time: list[str]
    precipitation: list[Optional[float]]
    temperature_2m: list[Optional[float]]


class ForecastRecord(BaseModel):
    """Open-Meteo forecast response (only the fields the engine reads)."""
    hourly: HourlyBlock


class StartResponse(BaseModel):
    """Session bootstrap response."""
    session_id: str


def _compute_advisory(req: AdviceRequest) -> WashAdvisory:
    """Resolve the request location and compute the advisory, mapping failures to HTTP errors."""
    city = (req.city or "").strip()
    try:
        if city:
            return get_advisory_for_city(city, data_source=DATA_SOURCE)
        if req.latitude is not None and req.longitude is not None:
            return get_advisory_for_coords(
                req.latitude,
                req.longitude,
                label=req.label,
                data_source=DATA_SOURCE,
            )
    except CityNotFoundError as exc:
        logger.info("City lookup failed", extra={"city": city, "error": str(exc)})
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=CITY_NOT_FOUND_DETAIL) from exc
    except GeocodingError as exc:
        logger.warning("Geocoding unavailable", extra={"error": str(exc)})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=GEOCODING_FAILED_DETAIL) from exc
    except ForecastUnavailableError as exc:
        logger.warning("Forecast unavailable", extra={"error": str(exc)})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=FORECAST_FAILED_DETAIL) from exc
    except InvalidInputError as exc:
        logger.error("Forecast payload rejected: %s", exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=BAD_FORECAST_DETAIL) from exc

    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=MISSING_LOCATION_DETAIL)


def _require_session(session_id: str):
    """Return the stored (location, advisory) pair or raise a 404."""
    session = get_session(session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown session ID")
    return session


@router.post("/advice", response_model=WashAdvisory)
def advise(req: AdviceRequest):
    """Compute wash advice for a city or a point, without touching any session."""
    return _compute_advisory(req)


@router.post("/advice/series", response_model=WashAdvisory)
def advise_from_series(record: ForecastRecord):
    """Compute wash advice for a forecast the caller already fetched.

    Anything wrong with the posted series (mismatched lengths, non-finite
    values, unparseable dates) is the caller's problem and returns 422.
    """
    try:
        series = HourlySeries.from_open_meteo(record.model_dump())
        return build_advisory(series)
    except InvalidInputError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc


@router.post("/session/start", response_model=StartResponse)
def start_session():
    """Create an empty session that will hold the caller's last advisory."""
    session_id = create_session()
    logger.info("Started session", extra={"session_id": session_id})
    return StartResponse(session_id=session_id)


@router.post("/session/{session_id}/advice", response_model=WashAdvisory)
def advise_session(session_id: str, req: AdviceRequest):
    """Compute wash advice and keep it as the session's last advisory.

    A failed computation leaves the previously stored advisory untouched.
    """
    _require_session(session_id)
    advisory = _compute_advisory(req)
    if not update_session(session_id, location=advisory.location, advisory=advisory):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown session ID")
    return advisory


@router.get("/session/{session_id}/advice", response_model=WashAdvisory)
def last_advice(session_id: str):
    """Return the session's last advisory."""
    _location, advisory = _require_session(session_id)
    if advisory is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NO_ADVICE_DETAIL)
    return advisory


@router.get("/session/{session_id}/notification", response_model=WashNotification)
def notification(session_id: str):
    """Build notification text from the session's last advisory."""
    _location, advisory = _require_session(session_id)
    if advisory is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=NO_ADVICE_DETAIL)
    return build_notification(advisory)


@router.delete("/session/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def end_session(session_id: str):
    """Forget a session."""
    delete_session(session_id)
