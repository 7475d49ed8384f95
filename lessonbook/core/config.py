# lessonbook/core/config.py
import logging
import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"
    logger.debug("[CONFIG] Looking for .env at: %s (exists=%s)", env_path, env_path.exists())
    load_dotenv(env_path)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore", case_sensitive=False)

    environment: str = Field(default="development", description="Deployment environment name")
    log_level: str = Field(default="INFO", description="Root log level")

    database_url: str = Field(
        default="sqlite:///./lessonbook.db",
        description="SQLAlchemy database URL (PostgreSQL in production)",
    )
    database_echo: bool = False
    database_pool_size: int = Field(default=5, ge=1)
    database_max_overflow: int = Field(default=10, ge=0)

    # Catalog listing
    default_page_size: int = Field(default=20, ge=1)
    max_page_size: int = Field(default=100, ge=1)
    image_base_path: str = Field(default="/images", description="Public prefix for lesson images")
    default_lesson_image: str = Field(
        default="default-lesson.jpg", description="Placeholder image used when none is stored"
    )

    # Order placement transaction hardening
    order_transaction_max_attempts: int = Field(
        default=3, ge=1, le=10, description="Attempts for transient store conflicts"
    )
    order_transaction_timeout_ms: int = Field(
        default=5000, ge=100, description="Statement timeout applied inside order transactions"
    )

    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        normalized = (v or "INFO").strip().upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return normalized

    @field_validator("image_base_path")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/") or "/"

    def get_database_url(self) -> str:
        """Return the configured database URL."""
        return self.database_url


settings = Settings()
