"""
Application configuration using Pydantic Settings.

Loads all environment variables required for the forum backend.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration
    database_url: str = Field(..., env="DATABASE_URL")
    create_tables: bool = Field(default=True, env="CREATE_TABLES")

    # Identity provider (issues and validates sessions; we only consume them)
    auth_service_url: str = Field(..., env="AUTH_SERVICE_URL")
    auth_timeout_seconds: float = Field(default=10.0, env="AUTH_TIMEOUT_SECONDS")

    # Server Configuration
    host: str = Field(default="0.0.0.0", env="HOST")
    port: int = Field(default=8000, env="PORT")
    reload: bool = Field(default=False, env="RELOAD")
    log_level: str = Field(default="info", env="LOG_LEVEL")

    # Security
    cors_origins: str = Field(
        default="http://localhost:5173", env="CORS_ORIGINS"
    )  # Comma-separated
    rate_limit_per_minute: int = Field(default=60, env="RATE_LIMIT_PER_MINUTE")

    # Messages
    max_content_length: int = Field(default=100000, env="MAX_CONTENT_LENGTH")

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra env vars (like VITE_API_URL)

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


# Global settings instance
settings = Settings()
