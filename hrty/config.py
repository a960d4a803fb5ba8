"""
Configuration management with environment variable support and validation.

Design principles:
- Clinical thresholds live in one immutable table passed into each evaluator
- Validation at startup (fail fast)
- Type safety with Pydantic
- Per-test overrides by constructing a new table, never by mutating globals
"""

import os
from functools import lru_cache
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, model_validator

from hrty.domain.models import VitalKind

# Load environment variables from .env file
load_dotenv()


class AlertThresholds(BaseModel):
    """Clinical alert thresholds shared by all evaluators."""

    model_config = ConfigDict(frozen=True)

    # Weight (lb)
    weight_gain_24h: float = Field(default=2.0, gt=0.0, description="Gain vs. previous day")
    weight_gain_7d: float = Field(default=5.0, gt=0.0, description="Gain vs. preceding week")
    weight_short_window_days: int = Field(default=1, gt=0)
    weight_long_window_days: int = Field(default=7, gt=0)

    # Heart rate (bpm), exclusive bounds
    heart_rate_low: int = Field(default=40, gt=0)
    heart_rate_high: int = Field(default=120, gt=0)
    heart_rate_persistent_readings: int = Field(default=3, ge=2)
    heart_rate_lookback_days: int = Field(default=7, gt=0)
    heart_rate_max_gap_days: int = Field(default=1, gt=0)

    # Oxygen saturation (%) and blood pressure (mmHg)
    oxygen_saturation_low: int = Field(default=90, gt=0, le=100)
    systolic_low: int = Field(default=90, gt=0)
    map_low: float = Field(default=60.0, gt=0.0, description="Inclusive: MAP <= map_low alerts")

    # Symptoms
    severe_symptom_severity: int = Field(default=4, ge=1, le=5)
    dizziness_bp_prompt_severity: int = Field(default=3, ge=1, le=5)
    bp_lookback_hours: int = Field(default=24, gt=0)

    @model_validator(mode="after")
    def check_ordering(self) -> "AlertThresholds":
        if self.heart_rate_low >= self.heart_rate_high:
            raise ValueError("heart_rate_low must be below heart_rate_high")
        if self.weight_short_window_days > self.weight_long_window_days:
            raise ValueError("short weight window cannot exceed the long window")
        return self


class ValidationBounds(BaseModel):
    """Plausible entry ranges.

    Weights outside the range are dropped before evaluation. Vitals are only checked
    against physical limits: a reading of zero or less, or above the maximum, cannot be
    a real measurement. Low vitals are never dropped because they are the ones that alert.
    """

    model_config = ConfigDict(frozen=True)

    minimum_weight: float = Field(default=50.0, gt=0.0)
    maximum_weight: float = Field(default=500.0, gt=0.0)
    maximum_heart_rate: int = Field(default=300, gt=0)
    maximum_oxygen_saturation: int = Field(default=100, gt=0, le=100)
    maximum_systolic: int = Field(default=300, gt=0)
    maximum_diastolic: int = Field(default=200, gt=0)

    @model_validator(mode="after")
    def check_ranges(self) -> "ValidationBounds":
        if self.minimum_weight >= self.maximum_weight:
            raise ValueError("minimum_weight must be below maximum_weight")
        return self

    def vital_maximum(self, kind: VitalKind) -> float | None:
        return {
            VitalKind.HEART_RATE: self.maximum_heart_rate,
            VitalKind.OXYGEN_SATURATION: self.maximum_oxygen_saturation,
            VitalKind.SYSTOLIC: self.maximum_systolic,
            VitalKind.DIASTOLIC: self.maximum_diastolic,
        }.get(kind)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    thresholds: AlertThresholds = Field(default_factory=AlertThresholds)
    bounds: ValidationBounds = Field(default_factory=ValidationBounds)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    defaults = AlertThresholds()
    thresholds = AlertThresholds(
        weight_gain_24h=float(os.getenv("WEIGHT_GAIN_24H_LB", str(defaults.weight_gain_24h))),
        weight_gain_7d=float(os.getenv("WEIGHT_GAIN_7D_LB", str(defaults.weight_gain_7d))),
        heart_rate_low=int(os.getenv("HEART_RATE_LOW_BPM", str(defaults.heart_rate_low))),
        heart_rate_high=int(os.getenv("HEART_RATE_HIGH_BPM", str(defaults.heart_rate_high))),
        oxygen_saturation_low=int(
            os.getenv("OXYGEN_SATURATION_LOW", str(defaults.oxygen_saturation_low))
        ),
        systolic_low=int(os.getenv("SYSTOLIC_LOW_MMHG", str(defaults.systolic_low))),
        map_low=float(os.getenv("MAP_LOW_MMHG", str(defaults.map_low))),
        bp_lookback_hours=int(os.getenv("BP_LOOKBACK_HOURS", str(defaults.bp_lookback_hours))),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        thresholds=thresholds,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def reset_config_cache() -> None:
    """Drop the cached configuration so the next get_config() re-reads the environment."""
    get_config.cache_clear()


# Development helpers
def print_config_summary() -> None:
    """Print configuration summary for debugging."""
    config = get_config()
    thresholds = config.thresholds

    print("\nCONFIGURATION SUMMARY")
    print(f"Environment: {config.environment}")
    print(f"Debug Mode: {config.debug}")
    print(f"Log Level: {config.logging.level} ({config.logging.format})")

    print("\nWEIGHT")
    print(f"24h gain: >= {thresholds.weight_gain_24h} lb")
    print(f"7d gain: >= {thresholds.weight_gain_7d} lb")

    print("\nVITALS")
    print(
        f"Heart rate: < {thresholds.heart_rate_low} or > {thresholds.heart_rate_high} bpm "
        f"for {thresholds.heart_rate_persistent_readings} readings"
    )
    print(f"SpO2: < {thresholds.oxygen_saturation_low}%")
    print(f"Systolic: < {thresholds.systolic_low} mmHg, MAP: <= {thresholds.map_low} mmHg")
    print(f"BP lookback for dizziness: {thresholds.bp_lookback_hours}h")


if __name__ == "__main__":
    print_config_summary()
