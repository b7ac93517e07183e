"""Runtime configuration models."""

import os

from pydantic import BaseModel, Field


class RetryPolicy(BaseModel):
    """Retry and cooldown settings for rate-limited backends.

    Delays grow as ``base_delay_seconds * multiplier ** (n - 1)`` for the
    n-th retry, capped at ``max_delay_seconds``.
    """

    max_attempts: int = Field(3, ge=1, le=10, description="Total attempts including the first")
    base_delay_seconds: float = Field(2.0, gt=0, description="Delay before the first retry")
    multiplier: float = Field(2.0, gt=1.0, description="Growth factor between retries")
    max_delay_seconds: float = Field(30.0, gt=0, description="Upper bound for a single delay")
    default_cooldown_seconds: int = Field(60, ge=1, description="Cooldown when the backend gives no hint")

    @classmethod
    def from_env(cls) -> "RetryPolicy":
        """Build a policy, letting VISIONSTUDIO_* environment variables override defaults."""
        overrides: dict[str, str] = {}
        env_map = {
            "VISIONSTUDIO_MAX_ATTEMPTS": "max_attempts",
            "VISIONSTUDIO_BASE_DELAY": "base_delay_seconds",
            "VISIONSTUDIO_COOLDOWN_SECONDS": "default_cooldown_seconds",
        }
        for env_name, field_name in env_map.items():
            value = os.getenv(env_name)
            if value:
                overrides[field_name] = value
        return cls(**overrides)
