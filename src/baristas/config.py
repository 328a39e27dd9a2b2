"""Runtime settings, loaded from ``BARISTAS_*`` environment variables or ``.env``."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LOG_LEVELS: tuple[str, ...] = LogLevel.__args__


class Settings(BaseSettings):
    """
    Defaults for a shop run.

    Every field can be overridden with an environment variable of the same
    name, upper-cased and prefixed with ``BARISTAS_``, e.g.
    ``BARISTAS_INITIAL_STOCK=25``.
    """

    model_config = SettingsConfigDict(
        env_prefix="BARISTAS_",
        env_file=".env",
        extra="ignore",
    )

    # Shop
    initial_stock: int = Field(default=10, ge=0)

    # Simulated brewing time, in seconds
    min_delay: float = Field(default=1.0, ge=0)
    max_delay: float = Field(default=3.0, ge=0)

    # Workers; None means one per order
    max_workers: Optional[int] = Field(default=None, ge=1)

    # Batch deadline in seconds; None means no deadline
    deadline: Optional[float] = Field(default=None, ge=0)

    log_level: LogLevel = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _check_delay_range(self) -> "Settings":
        if self.min_delay > self.max_delay:
            raise ValueError(
                f"min_delay ({self.min_delay}) must not exceed max_delay ({self.max_delay})"
            )
        return self

    @property
    def delay_range(self) -> tuple[float, float]:
        return (self.min_delay, self.max_delay)


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
