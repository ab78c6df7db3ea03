from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import Any, Literal
import os


class Settings(BaseSettings):
    PROJECT_NAME: str = "Citizen Portal Client"
    DEBUG: bool = False

    # Remote portal API
    PORTAL_API_BASE_URL: str = "http://localhost:5000/api"
    API_TIMEOUT_SECONDS: float = 15.0

    # Local persistent client storage
    LOCAL_STORAGE_PATH: str = os.path.join(os.path.expanduser("~"), ".citizen_portal", "storage.json")
    AUTH_TOKEN_KEY: str = "token"

    # Notification polling
    NOTIFICATION_POLL_INTERVAL_SECONDS: float = 30.0
    NOTIFICATION_FETCH_LIMIT: int = 10

    # Dashboard staleness windows
    STATS_STALE_SECONDS: float = 5 * 60
    APPLICATIONS_STALE_SECONDS: float = 2 * 60
    NOTIFICATIONS_STALE_SECONDS: float = 1 * 60
    ACTIVITY_STALE_SECONDS: float = 2 * 60
    DOCUMENTS_STALE_SECONDS: float = 5 * 60

    # Color scheme reported for "system" until the shell forwards the OS value
    SYSTEM_COLOR_SCHEME: Literal["light", "dark"] = "light"

    # Stub portal API (local development)
    STUB_API_HOST: str = "127.0.0.1"
    STUB_API_PORT: int = 5000

    model_config = SettingsConfigDict(
        env_file=os.path.join(os.path.dirname(__file__), "../../.env"),
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator('PORTAL_API_BASE_URL')
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) URL and drop any trailing slash."""
        if not v:
            raise ValueError("PORTAL_API_BASE_URL must be set")
        if not v.startswith(('http://', 'https://')):
            raise ValueError("PORTAL_API_BASE_URL must be an http or https URL")
        return v.rstrip('/')

    @field_validator('SYSTEM_COLOR_SCHEME', mode='before')
    @classmethod
    def validate_color_scheme(cls, v: Any) -> Literal["light", "dark"]:
        """Normalize and validate the fallback OS color scheme."""
        if isinstance(v, str):
            normalized = v.strip().lower()
            if normalized in {"light", "dark"}:
                return normalized  # type: ignore[return-value]
        raise ValueError("SYSTEM_COLOR_SCHEME must be one of: light, dark")

    @field_validator(
        'API_TIMEOUT_SECONDS',
        'NOTIFICATION_POLL_INTERVAL_SECONDS',
        'STATS_STALE_SECONDS',
        'APPLICATIONS_STALE_SECONDS',
        'NOTIFICATIONS_STALE_SECONDS',
        'ACTIVITY_STALE_SECONDS',
        'DOCUMENTS_STALE_SECONDS',
    )
    @classmethod
    def validate_positive_duration(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Durations must be positive")
        return v


settings = Settings()
