"""Application settings via Pydantic BaseSettings."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings

from otpgate.exceptions import ConfigError

# 10-digit mobile number starting with 6-9
DEFAULT_IDENTIFIER_PATTERN = r"^[6-9]\d{9}$"


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # App
    debug: bool = False
    log_level: str = "INFO"
    allowed_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]

    # OTP challenges
    otp_ttl_seconds: int = 300
    otp_max_attempts: int = 3
    otp_code_length: int = 6
    otp_reaper_interval_seconds: float = 300.0
    identifier_pattern: str = DEFAULT_IDENTIFIER_PATTERN

    # Rate limiting for /api/ paths
    rate_limit_requests: int = 60
    rate_limit_window_seconds: int = 60


def validate_settings(settings: Settings) -> Settings:
    """Reject challenge settings that would break the lifecycle invariants."""
    for name in (
        "otp_ttl_seconds",
        "otp_max_attempts",
        "otp_code_length",
        "otp_reaper_interval_seconds",
    ):
        if getattr(settings, name) <= 0:
            msg = f"{name.upper()} must be positive"
            raise ConfigError(msg)
    return settings


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return validate_settings(Settings())
