"""Probe agent configuration."""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class ProbeSettings(BaseSettings):
    """
    Probe agent settings.

    Read from PROBE_* environment variables or a .env file, e.g.
    PROBE_TIMEOUT=5 PROBE_LOG_LEVEL=DEBUG.
    """

    # seconds allowed for connect, TLS handshake and banner read together
    timeout: float = Field(default=10.0, gt=0)
    banner_limit: int = Field(default=4096, gt=0)

    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)

    model_config = {"env_prefix": "PROBE_", "env_file": ".env", "extra": "ignore"}

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level


@lru_cache()
def get_settings() -> ProbeSettings:
    """Settings singleton, read from the environment on first use."""
    return ProbeSettings()
