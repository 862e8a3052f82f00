"""
Configuration management for the Standup Order Bot.

This module provides environment-based configuration using Pydantic Settings.
Supports loading from .env files, environment variables, and provides
startup validation with clear error messages.
"""

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from standup_bot.utils.logging import get_logger

logger = get_logger(__name__)


DEFAULT_DEBOUNCE_WINDOW_MS = 60_000
DEFAULT_OVERRIDE_PREFIX = "override:"


class AppSettings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or a .env file.
    Priority: Environment variables > .env file > defaults
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ======================
    # Messaging Platform
    # ======================
    bot_access_token: Optional[str] = None
    """Bearer token attached to outbound Bot Connector calls."""
    platform_timeout_seconds: float = 10.0
    """Timeout for a single roster, presence or reply call."""
    platform_max_retries: int = 3
    """Attempts for a platform call failing with a transport error."""

    # ======================
    # Ordering
    # ======================
    debounce_window_ms: int = DEFAULT_DEBOUNCE_WINDOW_MS
    """Window during which a second order request is suppressed."""
    debounce_backend: str = "memory"
    """Where recent orderings live: memory or redis."""
    redis_url: str = "redis://localhost:6379/0"
    """Redis connection URL for the shared debounce store."""

    override_domain: str = "example.com"
    """Mail domain appended to override:<alias> tokens."""
    override_prefix: str = DEFAULT_OVERRIDE_PREFIX
    """Token prefix that marks a manually present participant."""

    send_acknowledgement: bool = True
    """Post a short acknowledgement before fetching the roster."""
    help_command: str = "help"
    """Exact (case-sensitive) text that returns usage instructions."""

    # ======================
    # Application Settings
    # ======================
    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR)."""
    environment: str = "development"
    """Application environment (development, staging, production)."""

    # ======================
    # Validators
    # ======================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level '{v}'. Must be one of: {', '.join(sorted(valid_levels))}"
            )
        return upper_v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment name."""
        valid_envs = {"development", "staging", "production"}
        lower_v = v.lower()
        if lower_v not in valid_envs:
            raise ValueError(
                f"Invalid environment '{v}'. Must be one of: {', '.join(sorted(valid_envs))}"
            )
        return lower_v

    @field_validator("debounce_backend")
    @classmethod
    def validate_debounce_backend(cls, v: str) -> str:
        lower_v = v.lower()
        if lower_v not in {"memory", "redis"}:
            raise ValueError(
                f"Invalid debounce backend '{v}'. Must be one of: memory, redis"
            )
        return lower_v

    @field_validator("debounce_window_ms")
    @classmethod
    def validate_debounce_window_ms(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"debounce_window_ms must be at least 1, got {v}")
        return v

    @field_validator("override_domain")
    @classmethod
    def validate_override_domain(cls, v: str) -> str:
        """Store the domain without a leading '@' and in lowercase."""
        return v.strip().lstrip("@").lower()

    @field_validator("override_prefix", "help_command")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("value must not be blank")
        return v.strip()

    @field_validator("platform_timeout_seconds")
    @classmethod
    def validate_platform_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"platform_timeout_seconds must be positive, got {v}")
        return v

    @field_validator("platform_max_retries")
    @classmethod
    def validate_platform_max_retries(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"platform_max_retries must be at least 1, got {v}")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def has_bot_access_token(self) -> bool:
        """Check if an outbound access token is configured."""
        return bool(self.bot_access_token and self.bot_access_token != "your_bot_access_token_here")

    @property
    def has_custom_override_domain(self) -> bool:
        """Check if the override domain was changed from the placeholder."""
        return bool(self.override_domain) and self.override_domain != "example.com"

    def validate_for_startup(self) -> list[str]:
        """
        Validate configuration for startup and return warnings.

        Returns a list of warning messages for missing optional configurations.
        Raises ValueError for critical missing configurations in production.
        """
        warnings = []
        errors = []

        if not self.has_custom_override_domain:
            if self.is_production:
                errors.append("OVERRIDE_DOMAIN is required in production")
            else:
                warnings.append(
                    "OVERRIDE_DOMAIN not configured - override:<alias> resolves to @example.com"
                )

        if not self.has_bot_access_token:
            warnings.append(
                "BOT_ACCESS_TOKEN not configured - outbound platform calls are unauthenticated"
            )

        if self.debounce_backend == "memory" and not self.is_development:
            warnings.append(
                "DEBOUNCE_BACKEND is memory - duplicate orders are only suppressed per process"
            )

        if errors:
            error_msg = "Configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            raise ValueError(error_msg)

        return warnings

    def log_configuration_summary(self) -> None:
        """Log a summary of the current configuration (without secrets)."""
        logger.info(
            "configuration_summary",
            environment=self.environment,
            log_level=self.log_level,
            debounce_backend=self.debounce_backend,
            debounce_window_ms=self.debounce_window_ms,
            override_domain=self.override_domain,
            override_prefix=self.override_prefix,
            bot_access_token_configured=self.has_bot_access_token,
            platform_timeout_seconds=self.platform_timeout_seconds,
            send_acknowledgement=self.send_acknowledgement,
        )


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get the global application settings (cached).

    Returns:
        AppSettings: The configured application settings.
    """
    return AppSettings()
