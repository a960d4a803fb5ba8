"""
Tests for configuration management in `hrty/config.py`.

Covers:
- Environment parsing and debug defaults
- Logging level coercion to the expected Literal
- Threshold overrides from the environment
- Threshold and bounds validation
- get_config cache behavior
- AppConfig validation (debug only allowed in development)
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from hrty.config import (
    AlertThresholds,
    AppConfig,
    ValidationBounds,
    get_config,
    load_config_from_env,
    reset_config_cache,
)
from hrty.domain.models import VitalKind

THRESHOLD_VARS = (
    "WEIGHT_GAIN_24H_LB",
    "WEIGHT_GAIN_7D_LB",
    "HEART_RATE_LOW_BPM",
    "HEART_RATE_HIGH_BPM",
    "OXYGEN_SATURATION_LOW",
    "SYSTOLIC_LOW_MMHG",
    "MAP_LOW_MMHG",
    "BP_LOOKBACK_HOURS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Clear threshold overrides and the get_config cache around each test."""
    for name in THRESHOLD_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config_cache()
    yield
    reset_config_cache()


def test_load_config_dev_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    config = load_config_from_env()

    assert config.environment == "development"
    assert config.debug is True
    assert config.logging.format == "console"
    assert config.thresholds == AlertThresholds()


def test_production_uses_json_logs(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "prod")

    config = load_config_from_env()

    assert config.environment == "production"
    assert config.debug is False
    assert config.logging.format == "json"


def test_logging_level_literal_coercion(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "staging")

    # Unknown level should coerce to INFO
    monkeypatch.setenv("LOG_LEVEL", "unknown")
    config = load_config_from_env()
    assert config.logging.level == "INFO"

    # Known level should pass through
    monkeypatch.setenv("LOG_LEVEL", "error")
    config = load_config_from_env()
    assert config.logging.level == "ERROR"


def test_threshold_overrides_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WEIGHT_GAIN_24H_LB", "3")
    monkeypatch.setenv("HEART_RATE_HIGH_BPM", "110")
    monkeypatch.setenv("MAP_LOW_MMHG", "65")
    monkeypatch.setenv("BP_LOOKBACK_HOURS", "12")

    thresholds = load_config_from_env().thresholds

    assert thresholds.weight_gain_24h == 3.0
    assert thresholds.heart_rate_high == 110
    assert thresholds.map_low == 65.0
    assert thresholds.bp_lookback_hours == 12
    assert thresholds.weight_gain_7d == 5.0


def test_invalid_threshold_from_env_fails_fast(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HEART_RATE_LOW_BPM", "130")

    with pytest.raises(ValueError, match="heart_rate_low must be below"):
        load_config_from_env()


class TestAlertThresholds:
    def test_defaults(self) -> None:
        thresholds = AlertThresholds()

        assert thresholds.weight_gain_24h == 2.0
        assert thresholds.weight_gain_7d == 5.0
        assert (thresholds.heart_rate_low, thresholds.heart_rate_high) == (40, 120)
        assert thresholds.heart_rate_persistent_readings == 3
        assert thresholds.oxygen_saturation_low == 90
        assert thresholds.systolic_low == 90
        assert thresholds.map_low == 60.0
        assert thresholds.bp_lookback_hours == 24

    def test_immutable(self) -> None:
        thresholds = AlertThresholds()

        with pytest.raises(ValueError, match="frozen"):
            thresholds.map_low = 65.0  # type: ignore

    @pytest.mark.parametrize(
        "overrides",
        [
            {"weight_gain_24h": 0.0},
            {"heart_rate_persistent_readings": 1},
            {"oxygen_saturation_low": 101},
            {"weight_short_window_days": 8},
            {"severe_symptom_severity": 6},
        ],
    )
    def test_invalid_values_are_rejected(self, overrides: dict[str, float]) -> None:
        with pytest.raises(ValueError):
            AlertThresholds(**overrides)


class TestValidationBounds:
    def test_inverted_range_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="minimum_weight must be below maximum_weight"):
            ValidationBounds(minimum_weight=500, maximum_weight=50)

    def test_vital_maximums(self) -> None:
        bounds = ValidationBounds()

        assert bounds.vital_maximum(VitalKind.OXYGEN_SATURATION) == 100
        assert bounds.vital_maximum(VitalKind.WEIGHT) is None

    def test_oxygen_maximum_cannot_exceed_one_hundred(self) -> None:
        with pytest.raises(ValueError):
            ValidationBounds(maximum_oxygen_saturation=101)


def test_get_config_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "development")

    # First call populates cache
    c1 = get_config()
    c2 = get_config()
    assert c1 is c2  # same object due to lru_cache

    reset_config_cache()
    assert get_config() is not c1


def test_app_config_debug_only_in_dev_validation() -> None:
    with pytest.raises(ValueError, match="debug mode is only allowed"):
        AppConfig(environment="production", debug=True)
