"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with FEEDBOARD_ prefix.
No config files — just env vars (12-factor app style).

Learn: The server only really needs two knobs (listening port and the
liveness-probe interval). Everything else is operational polish.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All app configuration. Set via FEEDBOARD_* env vars."""

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    # Seconds between liveness sweeps and transport keepalive pings
    ping_interval: float = 30.0

    # Feedback content longer than this is truncated
    content_max_length: int = 100

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    model_config = {"env_prefix": "FEEDBOARD_"}

    @field_validator("ping_interval")
    @classmethod
    def validate_ping_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("FEEDBOARD_PING_INTERVAL must be greater than zero")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown FEEDBOARD_LOG_LEVEL: {v}")
        return level

    @field_validator("content_max_length")
    @classmethod
    def validate_content_max_length(cls, v: int) -> int:
        if v < 1:
            raise ValueError("FEEDBOARD_CONTENT_MAX_LENGTH must be at least 1")
        return v


# Singleton — import this everywhere
settings = Settings()
