"""
Configuration management with environment variable support and validation.

Design principles:
- Clinical thresholds are configuration, not magic numbers in the evaluators
- Validation at startup (fail fast)
- Type safety with Pydantic
"""

import os
from functools import lru_cache
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

# Load environment variables from .env file
load_dotenv()

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
Environment = Literal["development", "staging", "production"]


class FeverConfig(BaseModel):
    """Fever rule thresholds, all in degrees Fahrenheit."""

    spike_threshold_f: float = Field(
        default=101.0, gt=0.0, description="Single most recent reading at or above this is fever"
    )
    sustained_threshold_f: float = Field(
        default=100.4, gt=0.0, description="Every reading in the window at or above this is fever"
    )
    window_minutes: int = Field(
        default=60, gt=0, description="Length of the evaluation window ending now"
    )

    @model_validator(mode="after")
    def sustained_not_above_spike(self) -> "FeverConfig":
        if self.sustained_threshold_f > self.spike_threshold_f:
            raise ValueError("sustained threshold must not exceed spike threshold")
        return self


class NeutropeniaConfig(BaseModel):
    """ANC severity band boundaries (cells/uL, inclusive lower bounds)."""

    normal_min_anc: float = Field(default=500.0, gt=0.0)
    severe_min_anc: float = Field(default=100.0, ge=0.0)
    lab_stale_after_days: int = Field(
        default=7, gt=0, description="Latest lab panel older than this needs an update"
    )

    @model_validator(mode="after")
    def bands_are_ordered(self) -> "NeutropeniaConfig":
        if self.severe_min_anc >= self.normal_min_anc:
            raise ValueError("severe band must start below the normal band")
        return self


class AlertConfig(BaseModel):
    """Wording and retention for alert events."""

    title: str = Field(default="Health Alert", min_length=1)
    body_template: str = Field(
        default="Risk detected: {condition}, please contact your care provider.",
        description="Formatted with the composite condition label",
    )
    history_size: int = Field(default=1000, gt=0)


class SensorConfig(BaseModel):
    """Rolling window and scheduling for the wearable sensor feed."""

    reading_buffer_size: int = Field(
        default=720, gt=0, description="Maximum number of samples kept in memory"
    )
    check_interval_seconds: float = Field(
        default=60.0, gt=0.0, description="Interval between periodic risk checks"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(default="INFO", description="Logging level")
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    environment: Environment = Field(default="development", description="Environment")
    debug: bool = Field(default=False, description="Enable debug mode")

    fever: FeverConfig = Field(default_factory=FeverConfig)
    neutropenia: NeutropeniaConfig = Field(default_factory=NeutropeniaConfig)
    alerts: AlertConfig = Field(default_factory=AlertConfig)
    sensor: SensorConfig = Field(default_factory=SensorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Environment:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> LogLevel:
        v = val.strip().upper()
        return cast(
            LogLevel,
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    fever_config = FeverConfig(
        spike_threshold_f=float(os.getenv("FEVER_SPIKE_THRESHOLD_F", "101.0")),
        sustained_threshold_f=float(os.getenv("FEVER_SUSTAINED_THRESHOLD_F", "100.4")),
        window_minutes=int(os.getenv("FEVER_WINDOW_MINUTES", "60")),
    )

    neutropenia_config = NeutropeniaConfig(
        normal_min_anc=float(os.getenv("ANC_NORMAL_MIN", "500")),
        severe_min_anc=float(os.getenv("ANC_SEVERE_MIN", "100")),
        lab_stale_after_days=int(os.getenv("LAB_STALE_AFTER_DAYS", "7")),
    )

    alert_config = AlertConfig(title=os.getenv("ALERT_TITLE", "Health Alert"))

    sensor_config = SensorConfig(
        reading_buffer_size=int(os.getenv("READING_BUFFER_SIZE", "720")),
        check_interval_seconds=float(os.getenv("CHECK_INTERVAL_SECONDS", "60.0")),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        fever=fever_config,
        neutropenia=neutropenia_config,
        alerts=alert_config,
        sensor=sensor_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()
