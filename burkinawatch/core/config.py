"""Application configuration."""

from typing import Annotated, Any, Literal

from pydantic import AnyUrl, BeforeValidator, HttpUrl, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",")]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "BurkinaWatch Feeds"
    SERVER_PORT: int = 8000
    ROOTPATH: str = ""
    API_V1_STR: str = "/api/v1"
    FRONTEND_HOST: str = "http://localhost:5173"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    TIMEZONE: str = "Africa/Ouagadougou"

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []
    CORS_ALLOW_METHODS: list[str] = ["GET", "POST", "DELETE"]
    CORS_ALLOW_HEADERS: list[str] = ["*"]

    @computed_field
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS] + [
            self.FRONTEND_HOST
        ]

    # Sentry
    SENTRY_DSN: HttpUrl | None = None

    # Event classifier (any OpenAI-compatible endpoint)
    OPENAI_API_KEY: str | None = None
    OPENAI_API_BASE: str = "https://api.openai.com/v1"
    CLASSIFIER_MODEL: str = "gpt-4o-mini"
    CLASSIFIER_TIMEOUT_SEC: float = 20.0
    CLASSIFIER_MAX_ATTEMPTS: int = 2
    CLASSIFIER_CONCURRENCY: int = 8

    # Feature Flags
    LLM_ENABLED: bool = True  # off: every candidate is treated as "not an event"
    IMAGE_ENRICHMENT_ENABLED: bool = True

    # Geocoding
    GOOGLE_MAPS_API_KEY: str | None = None
    GOOGLE_GEOCODE_URL: str = "https://maps.googleapis.com/maps/api/geocode/json"
    NOMINATIM_REVERSE_URL: str = "https://nominatim.openstreetmap.org/reverse"
    GEOCODE_LANGUAGE: str = "fr"
    GEOCODE_TIMEOUT_SEC: float = 10.0
    GEOCODE_PRECISION: int = 6

    # Fetch Settings
    FETCHER_USER_AGENT: str = "BurkinaWatch/1.0 (News Aggregator)"
    FETCH_TIMEOUT_SEC: float = 10.0
    NEWS_ITEMS_PER_SOURCE: int = 5
    BULLETIN_ITEMS_PER_SOURCE: int = 20
    EVENT_ITEMS_PER_SOURCE: int = 20
    NEWS_MAX_RESULTS: int = 10
    SNIPPET_MAX_LENGTH: int = 500

    # Image enrichment (Open Graph lookups on article pages)
    IMAGE_FETCH_TIMEOUT_SEC: float = 5.0
    IMAGE_ENRICH_MAX_ITEMS: int = 30
    EVENT_IMAGE_ENRICH_MAX_ITEMS: int = 25
    IMAGE_ENRICH_BATCH_SIZE: int = 5
    IMAGE_MEMO_MAX_ENTRIES: int = 2000

    # Cache TTLs
    NEWS_CACHE_TTL_SEC: int = 5 * 60
    BULLETIN_CACHE_TTL_SEC: int = 30 * 60
    EVENT_CACHE_TTL_SEC: int = 6 * 60 * 60

    # Scheduler
    SCHEDULER_ENABLED: bool = True
    EVENTS_WARMUP_DELAY_SEC: float = 10.0
    NEWS_REFRESH_INTERVAL_SEC: int = 0  # 0 disables the periodic refresh
    BULLETIN_REFRESH_INTERVAL_SEC: int = 0


settings = Settings()
