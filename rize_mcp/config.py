"""Environment configuration for the Rize MCP server.

Values come from the process environment (optionally seeded from a .env file)
and are validated with pydantic before the server starts.
"""

from __future__ import annotations

import logging
import os
from enum import Enum

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

load_dotenv()

DEFAULT_CACHE_MAX_SIZE = 1000
DEFAULT_CACHE_TTL_MS = 5 * 60 * 1000
DEFAULT_RATE_LIMIT_MAX = 100
DEFAULT_RATE_LIMIT_WINDOW_MS = 60 * 1000


class ConfigError(ValueError):
    """Raised when required configuration is missing or malformed."""
    pass


class LogLevel(str, Enum):
    """Accepted LOG_LEVEL values."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"

    def to_logging(self) -> int:
        """Map to a stdlib logging level."""
        return {
            LogLevel.ERROR: logging.ERROR,
            LogLevel.WARN: logging.WARNING,
            LogLevel.INFO: logging.INFO,
            LogLevel.DEBUG: logging.DEBUG,
        }[self]


_CONFIG = ConfigDict(extra="forbid", frozen=True)


class CacheConfig(BaseModel):
    """Capacity and time-to-live for the response cache."""
    model_config = _CONFIG

    max_size: int = Field(default=DEFAULT_CACHE_MAX_SIZE, ge=1)
    ttl_ms: int = Field(
        default=DEFAULT_CACHE_TTL_MS,
        description="Entry lifetime in milliseconds; 0 or negative disables expiry",
    )


class RateLimitConfig(BaseModel):
    """Declared request limits.

    These values are carried through to the client but not enforced there;
    see RizeClient._throttle.
    """
    model_config = _CONFIG

    enabled: bool = True
    max_requests: int = Field(default=DEFAULT_RATE_LIMIT_MAX, ge=1)
    window_ms: int = Field(default=DEFAULT_RATE_LIMIT_WINDOW_MS, ge=1)


class RizeConfig(BaseModel):
    """Top-level server configuration."""
    model_config = _CONFIG

    api_key: str = Field(..., min_length=1)
    log_level: LogLevel = LogLevel.INFO
    cache: CacheConfig = Field(default_factory=CacheConfig)
    rate_limiting: RateLimitConfig = Field(default_factory=RateLimitConfig)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got: {raw!r}") from None


def load_config() -> RizeConfig:
    """Build a RizeConfig from environment variables.

    Raises:
        ConfigError: RIZE_API_KEY is missing or a value fails validation.
    """
    api_key = os.getenv("RIZE_API_KEY", "").strip()
    if not api_key:
        raise ConfigError(
            "RIZE_API_KEY is required. "
            "Set it in your .env file or the MCP client's environment. "
            "Create a key in the Rize.io settings under API."
        )

    try:
        return RizeConfig(
            api_key=api_key,
            log_level=os.getenv("LOG_LEVEL", "info").strip().lower(),
            cache=CacheConfig(
                max_size=_int_env("CACHE_MAX_SIZE", DEFAULT_CACHE_MAX_SIZE),
                ttl_ms=_int_env("CACHE_TTL", DEFAULT_CACHE_TTL_MS),
            ),
            rate_limiting=RateLimitConfig(
                enabled=os.getenv("RATE_LIMITING", "true").strip().lower() != "false",
                max_requests=_int_env("RATE_LIMIT_MAX", DEFAULT_RATE_LIMIT_MAX),
                window_ms=_int_env("RATE_LIMIT_WINDOW", DEFAULT_RATE_LIMIT_WINDOW_MS),
            ),
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
