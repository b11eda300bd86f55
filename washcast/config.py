"""Service configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the washcast service."""
    model_config = SettingsConfigDict(env_prefix="WASH_", extra="ignore")

    forecast_source: str = "open_meteo"  # options: open_meteo
    forecast_timezone: str = "auto"
    forecast_days: int = 4  # the daily summary never shows more than 4 days
    geocoding_language: str = "en"
    geocoding_country: str | None = None  # ISO-3166 alpha-2, e.g. "RU"
    request_timeout_seconds: float = 10.0
    http_cache_seconds: int = 3600
    http_retries: int = 5
    api_key: str | None = None
    session_redis_url: str | None = None
    session_ttl_seconds: int = 3600
    log_level: str = "INFO"

    @field_validator("geocoding_country", mode="before")
    @classmethod
    def normalize_country(cls, v):
        """Upper-case country codes and treat blanks as unset."""
        if v is None:
            return None
        v = str(v).strip()
        return v.upper() or None


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4)}")
