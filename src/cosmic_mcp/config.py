"""Configuration management for the Cosmic MCP server."""

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cosmic_mcp.errors import ConfigurationError

REQUIRED_ENV_VARS = ("COSMIC_BUCKET_SLUG", "COSMIC_READ_KEY", "COSMIC_WRITE_KEY")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Cosmic credentials
    cosmic_bucket_slug: str = Field(..., min_length=1)
    cosmic_read_key: str = Field(..., min_length=1)
    cosmic_write_key: str = Field(..., min_length=1)

    # Cosmic endpoints
    cosmic_api_url: str = "https://api.cosmicjs.com/v3"
    cosmic_upload_url: str = "https://workers.cosmicjs.com/v3"
    # None = wait forever, matching the upstream SDK
    cosmic_request_timeout: float | None = None

    # Logging
    debug: bool = False
    log_level: str = "INFO"
    log_format: str = "console"

    # Rate limiting
    rate_limit_window_ms: int = Field(default=60_000, gt=0)
    rate_limit_max_requests: int = Field(default=100, gt=0)

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format is one of the supported renderers."""
        valid_formats = {"console", "json"}
        if v.lower() not in valid_formats:
            raise ValueError(
                f"Invalid LOG_FORMAT: '{v}'. "
                f"Must be one of: {', '.join(sorted(valid_formats))}"
            )
        return v.lower()

    @property
    def effective_log_level(self) -> str:
        """DEBUG=true always wins over LOG_LEVEL."""
        return "DEBUG" if self.debug else self.log_level.upper()

    def redacted(self) -> dict:
        """Settings safe to log."""
        return {
            "bucket_slug": self.cosmic_bucket_slug,
            "read_key": "***" if self.cosmic_read_key else "missing",
            "write_key": "***" if self.cosmic_write_key else "missing",
            "api_url": self.cosmic_api_url,
            "debug": self.debug,
        }


def load_settings(**overrides) -> Settings:
    """Build settings, turning missing credentials into a ConfigurationError."""
    try:
        return Settings(**overrides)
    except ValidationError as e:
        fields = [".".join(str(p) for p in err["loc"]).upper() for err in e.errors()]
        missing = [f for f in fields if f in REQUIRED_ENV_VARS]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}\n"
                "Please copy .env.example to .env and fill in your Cosmic credentials.\n"
                "Get your credentials from: https://www.cosmicjs.com/dashboard",
                {"missing": missing},
                cause=e,
            ) from e
        raise ConfigurationError(
            f"Invalid configuration: {', '.join(fields)}",
            {"fields": fields},
            cause=e,
        ) from e


# Lazy settings initialization
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the settings instance, creating it if needed."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Forget the cached settings (used by tests)."""
    global _settings
    _settings = None
