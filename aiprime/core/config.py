"""
Application Configuration
Loads settings from environment variables.
"""

from typing import List
from pydantic_settings import BaseSettings
from pydantic import field_validator
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    APP_NAME: str = "AI Prime API"
    DEBUG: bool = False
    API_BASE_URL: str = "http://localhost:8000"  # Base URL for file serving
    LOG_LEVEL: str = "INFO"

    # Database - SQLite for local dev, PostgreSQL for production
    DATABASE_URL: str = "sqlite:///./aiprime.db"

    # Persisted dashboard state: "sql" (DATABASE_URL), "redis" (REDIS_URL) or "memory"
    STATE_BACKEND: str = "sql"
    STATE_KEY_PREFIX: str = "aiprime:"

    # Redis
    REDIS_URL: str = "redis://localhost:6379"

    # Prompt enhancement and post packages
    GEMINI_API_KEY: str = ""
    TEXT_MODEL: str = "gemini-2.5-flash"

    # Video Generation (Veo 3.1 fast preview)
    VEO_MODEL: str = "veo-3.1-fast-generate-preview"
    VEO_POLL_INTERVAL: float = 10  # Seconds between status checks
    VEO_MAX_WAIT_TIME: float = 600  # 0 waits until the operation reports done
    VIDEO_DOWNLOAD_TIMEOUT: float = 120

    # Local storage fallback
    LOCAL_STORAGE_PATH: str = "./uploads"

    # Google Cloud Storage (for Cloud Run deployment)
    USE_GCS: bool = False
    GCS_BUCKET_OUTPUTS: str = "aiprime-outputs"
    GCP_PROJECT_ID: str = ""

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Start the background job processor with the API
    PROCESSOR_AUTOSTART: bool = True

    @field_validator('GEMINI_API_KEY', mode='before')
    @classmethod
    def strip_api_keys(cls, v):
        """Strip whitespace and newlines from API keys loaded from secrets."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator('STATE_BACKEND', mode='before')
    @classmethod
    def normalize_backend(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
