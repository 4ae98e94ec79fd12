"""
Configuration module with strict validation.

Key principles:
- Vendor credentials and the proxy secret are REQUIRED (startup fails fast)
- Token TTL, HTTP timeout and classifier strictness are configurable
- Safe defaults for all optional settings
"""
from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.api_errors import ConfigurationError


REQUIRED_SETTINGS = {
    "alto_username": "ALTO_USERNAME",
    "alto_password": "ALTO_PASSWORD",
    "alto_datafeed_id": "ALTO_DATAFEED_ID",
    "proxy_secret": "PROXY_SECRET",
}


class Settings(BaseSettings):
    """Application settings with validation.

    Loads from environment variables and .env file.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Server
    port: int = Field(
        default=3000,
        ge=1,
        le=65535,
        description="Port the proxy listens on"
    )

    # Alto credentials (REQUIRED, checked by validate_required)
    alto_username: Optional[str] = Field(
        default=None,
        description="Alto datafeed username"
    )
    alto_password: Optional[str] = Field(
        default=None,
        description="Alto datafeed password"
    )
    alto_datafeed_id: Optional[str] = Field(
        default=None,
        description="Alto datafeed id, part of the API base URL"
    )
    alto_branch_id: str = Field(
        default="44928",
        description="Alto branch whose properties are imported"
    )
    alto_api_host: str = Field(
        default="https://webservices.vebra.com/export",
        description="Alto export API host"
    )

    # Proxy authorization (REQUIRED)
    proxy_secret: Optional[str] = Field(
        default=None,
        description="Shared secret callers send as a Bearer token"
    )

    # Token cache and transport
    alto_token_ttl_seconds: int = Field(
        default=1200,
        ge=60,
        le=86400,
        description="How long an Alto token is reused before refreshing"
    )
    alto_http_timeout_seconds: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        description="Timeout for each Alto HTTP call"
    )

    # Classification
    alto_strict_student_match: bool = Field(
        default=False,
        description=(
            "Only match 'student' keywords and bedroom count; "
            "ignore generic 'letting'/'to let' text"
        )
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator("alto_api_host")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def api_base(self) -> str:
        """Base URL of the Alto v13 export API for this datafeed."""
        return f"{self.alto_api_host}/{self.alto_datafeed_id}/v13"

    def missing_required(self) -> List[str]:
        """Return the environment variable names of unset required settings."""
        return [
            env_name
            for attr, env_name in REQUIRED_SETTINGS.items()
            if not (getattr(self, attr) or "").strip()
        ]

    def validate_required(self) -> "Settings":
        """
        Check that every required setting is present.

        Call this at application startup so missing credentials fail
        immediately instead of producing broken Authorization headers.

        Raises:
            ConfigurationError: If one or more required settings are missing

        Returns:
            Settings: self, for chaining
        """
        missing = self.missing_required()
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}. "
                "Please set them in your .env file or environment variables.",
                source="config",
                missing_config=", ".join(missing),
            )
        return self


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get or create the global settings instance.

    This pattern allows:
    - Easy testing (can reset settings between tests)
    - Lazy loading (only loads when first accessed)
    - Singleton pattern (same instance used everywhere)
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """
    Reset the global settings instance.

    Useful for testing to ensure clean state between tests.
    """
    global _settings
    _settings = None
