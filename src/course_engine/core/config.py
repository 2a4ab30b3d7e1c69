"""
Configuration management for Course Engine.
Settings are read from the environment (or a .env file) with Pydantic BaseSettings.
"""

from pydantic import Field
from pydantic_settings import BaseSettings

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Engine settings and configuration."""

    # Application
    app_name: str = Field("Course Engine", description="Application name")
    app_version: str = Field("1.0.0", description="Application version")
    log_level: str = Field("INFO", description="Logging level")

    # Remote data service (Supabase REST)
    supabase_url: str = Field("http://localhost:54321", description="Remote data service base URL")
    supabase_anon_key: str = Field("your-anon-key-here", description="Remote data service API key")
    request_timeout_seconds: float = Field(10.0, description="Per-request transport timeout")

    # Sync retry policy
    sync_max_attempts: int = Field(3, description="Attempts per sync operation, first try included")
    sync_base_delay_seconds: float = Field(
        1.0, description="Backoff base delay; attempt n waits base * 2^(n-1)"
    )

    # Session
    default_user_id: str = Field("anonymous-user", description="User id used without authentication")

    # Monitoring
    enable_metrics: bool = Field(True, description="Record Prometheus metrics")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def rest_base_url(self) -> str:
        return f"{self.supabase_url.rstrip('/')}/rest/v1"

    def rest_headers(self) -> dict[str, str]:
        """Headers the remote REST interface expects on every request."""
        return {
            "apikey": self.supabase_anon_key,
            "Authorization": f"Bearer {self.supabase_anon_key}",
            "Content-Type": "application/json",
        }


def get_settings() -> Settings:
    """Get engine settings instance."""
    return Settings()


def validate_settings(settings: Settings) -> list[str]:
    """
    Validate settings and return list of issues.

    Returns:
        List of validation issues (empty if all valid)
    """
    issues = []

    if settings.sync_max_attempts <= 0:
        issues.append("Sync max attempts must be positive")

    if settings.sync_base_delay_seconds < 0:
        issues.append("Sync base delay cannot be negative")

    if settings.request_timeout_seconds <= 0:
        issues.append("Request timeout must be positive")

    if not settings.supabase_url.startswith(("http://", "https://")):
        issues.append(f"Invalid service URL: {settings.supabase_url}")

    if not settings.supabase_anon_key or len(settings.supabase_anon_key.strip()) == 0:
        issues.append("Service API key cannot be empty")

    if settings.log_level.upper() not in VALID_LOG_LEVELS:
        issues.append(
            f"Invalid log level: {settings.log_level}. Valid options: {VALID_LOG_LEVELS}"
        )

    return issues
