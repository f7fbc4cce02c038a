"""Configuration management for the finance dashboard."""

import os
from typing import Optional

import pytz
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file
load_dotenv()

DEFAULT_API_BASE_URL = "http://localhost:8000"
DEFAULT_TOKEN_FILE = "~/.finance_dashboard/access_token"
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    """Read an env var, treating an empty string as unset."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


class Config(BaseModel):
    """Main configuration class."""

    # Backend API
    api_base_url: str = Field(default=DEFAULT_API_BASE_URL, description="Finance backend base URL")
    api_token: Optional[str] = Field(default=None, description="Bearer token; overrides the token file")
    token_file: str = Field(default=DEFAULT_TOKEN_FILE, description="File holding a locally stored access token")
    request_timeout: float = Field(default=30.0, description="Per-request timeout in seconds")

    # Concurrency
    max_workers: int = Field(default=8, description="Concurrent sub-requests (e.g. cash per platform)")

    # Display
    display_timezone: str = Field(default="Europe/London", description="Timezone for chart labels")
    privacy_mode: bool = Field(default=False, description="Mask monetary values in output and logs")

    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        """Validate backend URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid API base URL: {v}. Must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("request_timeout")
    @classmethod
    def validate_request_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Invalid request timeout: {v}. Must be positive")
        return v

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Invalid max workers: {v}. Must be at least 1")
        return v

    @field_validator("display_timezone")
    @classmethod
    def validate_display_timezone(cls, v: str) -> str:
        if v not in pytz.all_timezones_set:
            raise ValueError(f"Invalid display timezone: {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {', '.join(VALID_LOG_LEVELS)}")
        return v_upper

    @property
    def timezone(self):
        return pytz.timezone(self.display_timezone)

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables."""
        # Handle numeric values with proper defaults for empty strings
        timeout_str = _env_str("REQUEST_TIMEOUT", "30")
        max_workers_str = _env_str("MAX_WORKERS", "8")

        return cls(
            api_base_url=_env_str("FINANCE_API_BASE_URL", DEFAULT_API_BASE_URL),
            api_token=_env_str("FINANCE_API_TOKEN"),
            token_file=_env_str("FINANCE_TOKEN_FILE", DEFAULT_TOKEN_FILE),
            request_timeout=float(timeout_str),
            max_workers=int(max_workers_str),
            display_timezone=_env_str("DISPLAY_TIMEZONE", "Europe/London"),
            privacy_mode=(_env_str("PRIVACY_MODE", "false").lower() == "true"),
            log_level=_env_str("LOG_LEVEL", "INFO"),
        )


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config
