from functools import lru_cache

import orjson
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOCAL_ORIGINS = ("http://localhost:8081", "http://localhost:19006")


def split_origins(raw: str | None) -> list[str]:
    """CORS_ORIGINS accepts a comma-separated string or a JSON array; empty means local dev origins."""
    raw = (raw or "").strip()
    if raw.startswith("["):
        try:
            items = orjson.loads(raw)
        except orjson.JSONDecodeError:
            items = []
    else:
        items = raw.split(",")
    origins = [o.strip() for o in items if isinstance(o, str) and o.strip()]
    return origins or list(_LOCAL_ORIGINS)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    env: str = Field(default="development", alias="ENV")
    debug: bool = Field(default=False, alias="DEBUG")
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")
    cors_origins_raw: str = Field(default=",".join(_LOCAL_ORIGINS), alias="CORS_ORIGINS")

    # Payment simulation (priced listings)
    payment_delay_seconds: float = Field(default=2.0, ge=0, alias="PAYMENT_DELAY_SECONDS")
    payment_failure_rate: float = Field(default=0.0, ge=0, le=1, alias="PAYMENT_FAILURE_RATE")

    # Credit amounts
    welcome_bonus_credits: int = Field(default=50, ge=0, alias="WELCOME_BONUS_CREDITS")
    participation_bonus_credits: int = Field(default=30, ge=0, alias="PARTICIPATION_BONUS_CREDITS")
    credits_base_clothing: int = Field(default=12, ge=0, alias="CREDITS_BASE_CLOTHING")
    credits_base_other: int = Field(default=10, ge=0, alias="CREDITS_BASE_OTHER")

    subscriber_queue_size: int = Field(default=100, ge=1, alias="SUBSCRIBER_QUEUE_SIZE")

    @property
    def cors_origins(self) -> list[str]:
        return split_origins(self.cors_origins_raw)


@lru_cache
def get_settings() -> Settings:
    return Settings()
