"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "hirepath"
    mongodb_timeout_ms: int = 5000

    # JWT Auth (7 day sessions)
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7

    # Google OAuth
    google_client_id: str = ""
    google_client_secret: str = ""
    api_url: str = "http://localhost:5000"
    frontend_url: str = "http://localhost:3000"

    # CORS
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:5000",
        "https://hirepath-backend.onrender.com",
        "https://hirepath.vercel.app",
    ]

    # App
    environment: str = "development"
    log_level: str = "INFO"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def google_callback_url(self) -> str:
        """Callback registered with Google for the OAuth code exchange"""
        return f"{self.api_url.rstrip('/')}/api/auth/google/callback"

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
