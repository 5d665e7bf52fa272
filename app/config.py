"""Application configuration using Pydantic Settings."""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # MongoDB
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "timetrack"

    # Slack
    slack_signing_secret: Optional[str] = None
    slack_bot_token: Optional[str] = None
    slack_api_url: str = "https://slack.com/api"
    slack_timeout_seconds: float = 10.0
    signature_max_age_seconds: int = 300  # 5 minutes

    # Tokens issued by the external auth provider
    auth_jwt_secret: Optional[str] = None
    auth_jwt_algorithm: str = "HS256"
    auth_jwt_audience: Optional[str] = None

    # Time tracking
    timezone: str = "UTC"
    project_picker_limit: int = 5

    debug: bool = False

    # CORS
    cors_origins: str = "http://localhost:3000,http://localhost:8000"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]


settings = Settings()
