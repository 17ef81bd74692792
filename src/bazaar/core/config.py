"""Client configuration using pydantic-settings."""
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_PROTECTED_PREFIXES = ["/dashboard", "/checkout", "/orders", "/order-confirmation"]


class Settings(BaseSettings):
    """Client settings loaded from environment variables (BAZAAR_ prefix)."""

    model_config = SettingsConfigDict(
        env_prefix="BAZAAR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Backend
    api_base_url: str = "http://localhost:5000"
    request_timeout: float = 10.0

    # Query cache - 0 means data is stale as soon as it arrives
    default_stale_time: float = 0.0

    # Optional shared cache tier
    redis_url: str = "redis://localhost:6379"
    redis_enabled: bool = False
    redis_key_prefix: str = "bazaar:query:"

    # Routing
    login_path: str = "/auth"
    landing_path: str = "/"
    protected_prefixes: list[str] | str = DEFAULT_PROTECTED_PREFIXES

    @field_validator("protected_prefixes", mode="before")
    @classmethod
    def parse_protected_prefixes(cls, v: str | list[str]) -> list[str]:
        """Parse comma-separated prefixes from an env var, or pass a list through."""
        if isinstance(v, str):
            return [prefix.strip() for prefix in v.split(",") if prefix.strip()]
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
