"""
Weight trend evaluation.

Fluid retention shows up on the scale before it shows up as breathlessness, so two
gain rules run on every saved weight: a short one against the previous day and a long
one against the preceding week. When both fire the patient sees a single finding.
"""

from collections.abc import Sequence
from datetime import UTC, date, datetime
from typing import Protocol

import structlog

from hrty.config import AlertThresholds, ValidationBounds
from hrty.domain.models import AlertFinding, AlertKind, DatedReading, Evidence, VitalKind
from hrty.services.temporal import WindowDelta, find_max_increase, latest_per_day

logger = structlog.get_logger(__name__)

RULE_24H = "weight_gain_24h"
RULE_7D = "weight_gain_7d"


class WeightEvaluator(Protocol):
    """Anything that turns a weight series into findings."""

    def evaluate_weight(
        self,
        series: Sequence[DatedReading],
        now: datetime | None = None,
        day: date | None = None,
    ) -> list[AlertFinding]: ...


class WeightTrendEvaluator:
    """Applies the 24-hour and 7-day weight-gain rules."""

    def __init__(
        self,
        thresholds: AlertThresholds | None = None,
        bounds: ValidationBounds | None = None,
    ) -> None:
        self.thresholds = thresholds or AlertThresholds()
        self.bounds = bounds or ValidationBounds()
        self.logger = logger.bind(component="weight_trend_evaluator")

    def evaluate_weight(
        self,
        series: Sequence[DatedReading],
        now: datetime | None = None,
        day: date | None = None,
    ) -> list[AlertFinding]:
        """Findings for the latest saved weight.

        With ``day`` set, nothing fires unless the latest weight was saved on that day.
        """
        readings = latest_per_day(self._plausible(series))
        if len(readings) < 2:
            return []
        if day is not None and readings[-1].day != day:
            return []

        short = find_max_increase(readings, self.thresholds.weight_short_window_days)
        long = find_max_increase(readings, self.thresholds.weight_long_window_days)

        fired: list[tuple[str, WindowDelta]] = []
        if short and short.delta >= self.thresholds.weight_gain_24h:
            fired.append((RULE_24H, short))
        if long and long.delta >= self.thresholds.weight_gain_7d:
            fired.append((RULE_7D, long))
        if not fired:
            return []

        # One finding per save; the larger gain wins and the weekly rule wins ties
        rule, trigger = max(fired, key=lambda item: (item[1].delta, item[0] == RULE_7D))
        self.logger.info(
            "weight_gain_detected",
            rule=rule,
            delta=trigger.delta,
            rules_fired=[name for name, _ in fired],
        )
        return [
            AlertFinding(
                kind=AlertKind.WEIGHT_GAIN,
                message=self._message(rule, trigger.delta),
                evidence=[
                    Evidence.from_reading(VitalKind.WEIGHT.value, trigger.baseline),
                    Evidence.from_reading(VitalKind.WEIGHT.value, trigger.latest),
                ],
                rule=rule,
                generated_at=now or datetime.now(UTC),
            )
        ]

    def _plausible(self, series: Sequence[DatedReading]) -> list[DatedReading]:
        kept = []
        for reading in series:
            if self.bounds.minimum_weight <= reading.value <= self.bounds.maximum_weight:
                kept.append(reading)
            else:
                self.logger.warning(
                    "weight_out_of_bounds_ignored", value=reading.value, day=str(reading.day)
                )
        return kept

    @staticmethod
    def _message(rule: str, delta: float) -> str:
        if rule == RULE_24H:
            return (
                f"Your weight has increased by {delta:.1f} lbs since yesterday. "
                "This is good information to share with your care team. "
                "Consider reaching out to discuss."
            )
        return (
            f"Over the past week, your weight has increased by {delta:.1f} lbs. "
            "Your clinician may want to know about this trend. "
            "It might be a good time to check in with them."
        )
