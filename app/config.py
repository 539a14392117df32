"""Application configuration pulled from environment variables via pydantic."""
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the operations dashboard service."""
    model_config = SettingsConfigDict(env_prefix="DASHBOARD_", extra="ignore", populate_by_name=True)

    # Upstream credentials keep their conventional, unprefixed names.
    fred_api_key: str | None = Field(default=None, validation_alias=AliasChoices("FRED_API_KEY", "fred_api_key"))
    eia_api_key: str | None = Field(default=None, validation_alias=AliasChoices("EIA_API_KEY", "eia_api_key"))
    weather_api_key: str | None = Field(
        default=None, validation_alias=AliasChoices("WEATHER_API_KEY", "weather_api_key")
    )
    claude_api_key: str | None = Field(default=None, validation_alias=AliasChoices("CLAUDE_API_KEY", "claude_api_key"))

    fred_series_id: str = "INDPRO"
    eia_state_id: str = "TX"
    eia_sector_id: str = "RES"
    weather_latitude: float = 31.7619
    weather_longitude: float = -106.4850
    location_name: str = "El Paso, TX"

    production_ttl_seconds: int = 3600
    energy_ttl_seconds: int = 600
    weather_ttl_seconds: int = 900
    insight_ttl_seconds: int = 1800

    source_timeout_seconds: float = 10.0
    claude_timeout_seconds: float = 20.0
    claude_base_url: str = "https://api.anthropic.com"
    claude_model: str = "claude-3-5-haiku-latest"
    claude_max_tokens: int = 300
    claude_temperature: float = 0.3
    anthropic_version: str = "2023-06-01"

    strict_credentials: bool = False
    log_level: str = "INFO"

    @field_validator("claude_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")

    @field_validator("fred_api_key", "eia_api_key", "weather_api_key", "claude_api_key", mode="after")
    @classmethod
    def blank_is_missing(cls, v: str | None) -> str | None:
        """Treat empty or whitespace-only credentials as unset."""
        if v is None or not v.strip():
            return None
        return v.strip()


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(
        f"Loaded settings: {settings.model_dump_json(indent=4, exclude={'fred_api_key', 'eia_api_key', 'weather_api_key', 'claude_api_key'})}"
    )
