"""Shared application configuration for qt-mongo."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Verbosity modes accepted by the server's explain command
EXPLAIN_VERBOSITIES = ("queryPlanner", "executionStats", "allPlansExecution")


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Every field can be overridden with a ``QT_``-prefixed variable,
    e.g. ``QT_EXPLAIN_HISTORY_LIMIT=50``.
    """

    model_config = SettingsConfigDict(env_prefix="QT_", env_file=".env", extra="ignore")

    # Explain requests
    explain_verbosity: str = "executionStats"

    # Session history
    explain_history_limit: int = Field(default=20, ge=1)

    # Bottleneck ranking
    bottleneck_limit: int = Field(default=5, ge=1)
    bottleneck_max_depth: int = Field(default=8, ge=0)

    # Logging
    log_level: str = "INFO"

    @field_validator("explain_verbosity")
    @classmethod
    def _known_verbosity(cls, value: str) -> str:
        if value not in EXPLAIN_VERBOSITIES:
            raise ValueError(
                f"explain_verbosity must be one of {', '.join(EXPLAIN_VERBOSITIES)}, got {value!r}"
            )
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def history_limit(self) -> int:
        """History capacity, never below one run."""
        return max(self.explain_history_limit, 1)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
