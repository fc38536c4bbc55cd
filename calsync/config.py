"""
Configuration management for calsync.

Uses Pydantic Settings for type-safe environment variable loading.
Configured via .env file in project root.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be configured via .env file or environment variables.
    """

    # Python & Application
    python_env: Literal["development", "production"] = Field(
        default="development",
        description="Application environment"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./data/calsync.db",
        description="Database connection URL"
    )

    # API Configuration
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=8000,
        description="API server port"
    )
    api_reload: bool = Field(
        default=True,
        description="Enable auto-reload in development"
    )

    # Calendar providers
    google_api_url: str = Field(
        default="https://www.googleapis.com/calendar/v3",
        description="Google Calendar API base URL"
    )
    google_people_api_url: str = Field(
        default="https://people.googleapis.com/v1",
        description="Google People API base URL"
    )
    google_userinfo_url: str = Field(
        default="https://www.googleapis.com/oauth2/v2/userinfo",
        description="Google OAuth user profile endpoint"
    )
    microsoft_graph_url: str = Field(
        default="https://graph.microsoft.com/v1.0",
        description="Microsoft Graph API base URL"
    )
    default_lookahead_months: int = Field(
        default=3,
        ge=1,
        description="Months ahead listed when no range end is given (both providers)"
    )
    provider_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for outbound provider requests"
    )

    # Downstream collaborators
    activity_client_url: str = Field(
        default="",
        description="Base URL of the activity logging service"
    )
    task_client_url: str = Field(
        default="",
        description="Base URL of the task service"
    )
    storage_client_url: str = Field(
        default="",
        description="Base URL of the object storage service"
    )
    service_api_key: str = Field(
        default="",
        description="API key sent as x-api-key to downstream services"
    )
    default_actor: str = Field(
        default="system",
        description="Actor recorded on logged meetings and generated tasks"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.python_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.python_env == "production"

    @property
    def uses_postgresql(self) -> bool:
        """Check if PostgreSQL is the configured database."""
        return "postgresql" in self.database_url.lower()

    def validate_production_config(self) -> None:
        """
        Validate configuration for production environment.

        Raises:
            ValueError: If required production settings are missing or invalid
        """
        if not self.is_production:
            return

        errors = []

        if not self.uses_postgresql:
            errors.append(
                "Production requires PostgreSQL. "
                "Set DATABASE_URL to a PostgreSQL connection string."
            )

        for name in ("activity_client_url", "task_client_url", "storage_client_url"):
            if not getattr(self, name):
                errors.append(f"{name.upper()} is required in production.")

        if not self.service_api_key:
            errors.append("SERVICE_API_KEY is required in production.")

        if errors:
            raise ValueError("Production configuration errors:\n- " + "\n- ".join(errors))


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    This function is cached to ensure we only load settings once.

    Returns:
        Settings instance loaded from environment

    Example:
        >>> from calsync.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.database_url)
    """
    return Settings()
