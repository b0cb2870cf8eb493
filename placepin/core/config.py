"""Application configuration."""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings.

    Environment variables will be loaded and validated using Pydantic.
    """

    app_name: str = "placepin"
    version: str = "0.1.0"
    api_prefix: str = "/api/v1"

    # CORS Settings
    cors_origins: list[str] = ["*"]  # Default to allow all in development
    cors_allow_credentials: bool = False

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = True

    # Provider Settings
    GOOGLE_MAPS_API_KEY: str | None = None
    GOOGLE_MAPS_BASE_URL: str = "https://maps.googleapis.com/maps/api"
    GOOGLE_MAPS_LIBRARIES: list[str] = Field(
        default=["places", "geometry"],
        description="Provider libraries to load; 'places' is required",
    )
    GOOGLE_MAPS_HTTP_TIMEOUT: float = 10.0

    # Service client lifecycle
    MAPS_LOAD_TIMEOUT: float = Field(default=20.0, gt=0)
    MAPS_VALIDATION_TIMEOUT: float = Field(default=8.0, gt=0)
    MAPS_VALIDATION_QUERY: str = "malaysia"

    # Search
    SEARCH_MIN_QUERY_LENGTH: int = Field(default=2, ge=1)
    SEARCH_SUFFICIENT_RESULTS: int = 8
    SEARCH_MAX_RESULTS: int = Field(default=10, ge=1)
    SEARCH_DEBOUNCE_SECONDS: float = Field(default=0.5, ge=0)

    # Selection / history
    HISTORY_MAX_ENTRIES: int = Field(default=20, ge=1)
    PHOTO_MAX_COUNT: int = Field(default=3, ge=0)
    SELECTION_SETTLE_DELAY: float = Field(default=0.2, ge=0)

    # Map (defaults centred on Kuala Lumpur)
    MAP_DEFAULT_LAT: float = Field(default=3.139, ge=-90, le=90)
    MAP_DEFAULT_LNG: float = Field(default=101.686, ge=-180, le=180)
    MAP_DEFAULT_ZOOM: int = 11
    MAP_CREATE_ZOOM: int = 13
    MAP_FOCUS_ZOOM: int = 15
    MAP_ELEMENT_ID: str = "google-map"
    MARKER_BOUNCE_SECONDS: float = Field(default=1.5, ge=0)

    # Favorites collaborator
    FAVORITES_API_URL: str = "http://localhost:8080/api"
    FAVORITES_TIMEOUT: float = 10.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",  # Allow extra fields in environment
    )

    @model_validator(mode="after")
    def validate_origins(self) -> "Settings":
        """Validate CORS origins."""
        if self.cors_origins == ["*"]:
            self.cors_origins = [
                "http://localhost",
                "http://localhost:8000",
                "http://localhost:3000",
            ]
        return self

    @property
    def default_center(self) -> dict[str, float]:
        """Fallback map centre as a plain lat/lng mapping."""
        return {"lat": self.MAP_DEFAULT_LAT, "lng": self.MAP_DEFAULT_LNG}


# Create settings instance
settings = Settings()
