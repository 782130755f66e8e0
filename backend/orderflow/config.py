"""Pydantic Settings configuration models.

3-tier config hierarchy (lowest to highest priority):
1. Pydantic defaults (in code below)
2. .env file (loaded by Pydantic Settings)
3. Environment variables (e.g., ORDERFLOW_GUARD__MAX_AUTO_UPDATES=6)
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from orderflow.orders.types import OrderStatus

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
VALID_LOG_FORMATS = frozenset({"console", "json"})


class GuardConfig(BaseModel):
    """Reconciliation guard thresholds with validation bounds.

    Automatic recomputations get a small per-order budget per window;
    user-initiated status changes get a larger one. Crossing the emergency
    threshold on any single order halts all automatic pushes for the
    cooldown period.
    """

    window_seconds: float = Field(default=60.0, ge=1.0, le=3600.0)
    max_auto_updates: int = Field(default=8, ge=1, le=100)
    max_user_updates: int = Field(default=20, ge=1, le=500)
    emergency_threshold: int = Field(default=50, ge=2, le=10000)
    emergency_cooldown_seconds: float = Field(default=120.0, ge=1.0, le=3600.0)
    debounce_seconds: float = Field(default=0.1, ge=0.0, le=5.0)
    echo_delay_seconds: float = Field(default=1.0, ge=0.0, le=60.0)
    echo_delay_terminal_seconds: float = Field(default=2.0, ge=0.0, le=60.0)
    echo_delay_completed_seconds: float = Field(default=3.0, ge=0.0, le=120.0)

    @model_validator(mode="after")
    def validate_budgets(self) -> GuardConfig:
        if self.max_user_updates <= self.max_auto_updates:
            raise ValueError(
                f"max_user_updates ({self.max_user_updates}) must exceed "
                f"max_auto_updates ({self.max_auto_updates})"
            )
        if self.emergency_threshold <= self.max_user_updates:
            raise ValueError(
                f"emergency_threshold ({self.emergency_threshold}) must exceed "
                f"max_user_updates ({self.max_user_updates})"
            )
        return self

    def echo_delay_for(self, status: OrderStatus) -> float:
        """How long to ignore change notifications after pushing ``status``.

        Completion triggers the slowest downstream effects, so it gets the
        longest delay.
        """
        if status is OrderStatus.COMPLETED:
            return self.echo_delay_completed_seconds
        if status in (OrderStatus.SERVED, OrderStatus.CANCELLED):
            return self.echo_delay_terminal_seconds
        return self.echo_delay_seconds


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Env var examples:
        ORDERFLOW_LOG_LEVEL=DEBUG
        ORDERFLOW_LOG_FORMAT=json
        ORDERFLOW_GUARD__WINDOW_SECONDS=30
    """

    model_config = SettingsConfigDict(
        env_prefix="ORDERFLOW_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"
    log_format: str = "console"
    guard: GuardConfig = GuardConfig()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {sorted(VALID_LOG_LEVELS)}, got {v}"
            )
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in VALID_LOG_FORMATS:
            raise ValueError(
                f"log_format must be one of {sorted(VALID_LOG_FORMATS)}, got {v}"
            )
        return v
