from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("crm_backend.config")


class Settings(BaseSettings):
    """
    Central configuration for the CRM backend.

    - Reads from .env (local) and process environment.
    - Ignores extra env vars so adding new ones doesn't break startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # -------------------------------------------------------------------------
    # Core app
    # -------------------------------------------------------------------------
    app_name: str = Field(default="Pipeline CRM Backend", alias="APP_NAME")
    debug: bool = Field(default=False, alias="DEBUG")
    environment: str = Field(default="local", alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # -------------------------------------------------------------------------
    # Database
    # -------------------------------------------------------------------------
    database_url: str = Field(default="sqlite:///./crm.db", alias="DATABASE_URL")

    # -------------------------------------------------------------------------
    # Session context
    # -------------------------------------------------------------------------
    # Single-tenant fallback when a request carries no user header/cookie.
    default_user_id: int = Field(default=1, alias="DEFAULT_USER_ID")

    # -------------------------------------------------------------------------
    # CORS
    # -------------------------------------------------------------------------
    #   CORS_ORIGINS=http://localhost:5000,https://crm.example.com
    cors_origins_raw: str = Field(
        default="http://localhost:5000,http://127.0.0.1:5000",
        alias="CORS_ORIGINS",
    )

    @property
    def cors_origins(self) -> list[str]:
        """
        Returns a list of origins from the comma-separated env string.
        Safe if env is empty.
        """
        if not self.cors_origins_raw:
            return []
        return [
            origin.strip()
            for origin in self.cors_origins_raw.split(",")
            if origin.strip()
        ]


@lru_cache
def get_settings() -> Settings:
    """Build Settings once; later calls return the same instance."""
    settings = Settings()
    logger.info(
        "CRM settings ready (env=%s, debug=%s)",
        settings.environment,
        settings.debug,
    )
    return settings


# Imported directly by db, main and the auth dependency
settings: Settings = get_settings()
