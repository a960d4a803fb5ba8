"""
Vital signs evaluation: heart rate, oxygen saturation and blood pressure.

Each rule is independent. Heart rate needs a persistent run of extreme readings so that
transient wearable noise never alerts; oxygen saturation and blood pressure are judged
on the latest reading.

Pass ``day`` to evaluate on behalf of a particular day: a rule then only fires when the
reading that triggers it was taken that day, so an old reading inside the look-back
window does not raise the same alert again on every later pass.
"""

from collections.abc import Mapping, Sequence
from datetime import UTC, date, datetime, timedelta
from typing import Protocol

import structlog

from hrty.config import AlertThresholds, ValidationBounds
from hrty.domain.models import AlertFinding, AlertKind, DatedReading, Evidence, VitalKind
from hrty.services.temporal import find_persistent_streak, latest_per_day

logger = structlog.get_logger(__name__)

SeriesByKind = Mapping[VitalKind, Sequence[DatedReading]]


def mean_arterial_pressure(systolic: float, diastolic: float) -> float:
    """MAP = diastolic + (systolic - diastolic) / 3."""
    return diastolic + (systolic - diastolic) / 3


class VitalsEvaluator(Protocol):
    def evaluate_vitals(
        self,
        series_by_kind: SeriesByKind,
        now: datetime | None = None,
        day: date | None = None,
    ) -> list[AlertFinding]: ...


class VitalSignsEvaluator:
    """Applies the heart-rate persistence rule and the single-reading SpO2 and BP rules."""

    def __init__(
        self,
        thresholds: AlertThresholds | None = None,
        bounds: ValidationBounds | None = None,
    ) -> None:
        self.thresholds = thresholds or AlertThresholds()
        self.bounds = bounds or ValidationBounds()
        self.logger = logger.bind(component="vital_signs_evaluator")

    def evaluate_vitals(
        self,
        series_by_kind: SeriesByKind,
        now: datetime | None = None,
        day: date | None = None,
    ) -> list[AlertFinding]:
        generated_at = now or datetime.now(UTC)
        readings = {
            kind: self._measurable(kind, series_by_kind.get(kind, ()))
            for kind in (
                VitalKind.HEART_RATE,
                VitalKind.OXYGEN_SATURATION,
                VitalKind.SYSTOLIC,
                VitalKind.DIASTOLIC,
            )
        }

        findings: list[AlertFinding] = []
        if finding := self._check_heart_rate(readings[VitalKind.HEART_RATE], generated_at):
            findings.append(finding)
        spo2 = readings[VitalKind.OXYGEN_SATURATION]
        if finding := self._check_oxygen_saturation(spo2, generated_at):
            findings.append(finding)
        findings.extend(
            self._check_blood_pressure(
                readings[VitalKind.SYSTOLIC], readings[VitalKind.DIASTOLIC], generated_at
            )
        )

        if day is not None:
            findings = [f for f in findings if self._triggered_on(f, day)]
        return findings

    # Heart rate

    def _is_extreme_heart_rate(self, value: float) -> bool:
        return value < self.thresholds.heart_rate_low or value > self.thresholds.heart_rate_high

    def _check_heart_rate(
        self, readings: list[DatedReading], generated_at: datetime
    ) -> AlertFinding | None:
        if not readings:
            return None

        window_start = readings[-1].day - timedelta(days=self.thresholds.heart_rate_lookback_days)
        recent = [r for r in readings if r.day > window_start]
        streak = find_persistent_streak(
            recent,
            self._is_extreme_heart_rate,
            self.thresholds.heart_rate_persistent_readings,
            self.thresholds.heart_rate_max_gap_days,
        )
        if streak is None:
            return None

        latest = streak[-1]
        is_low = latest.value < self.thresholds.heart_rate_low
        kind = AlertKind.HEART_RATE_LOW if is_low else AlertKind.HEART_RATE_HIGH
        self.logger.info(
            "persistent_heart_rate_detected",
            kind=kind.value,
            readings=[r.value for r in streak],
        )
        if is_low:
            message = (
                f"Your resting heart rate has been around {latest.value:.0f} bpm recently, "
                "which is lower than usual. This is good information to share with your "
                "care team."
            )
        else:
            message = (
                f"Your resting heart rate has been around {latest.value:.0f} bpm recently, "
                "which is higher than usual. Your care team can help you understand what "
                "this means for you."
            )
        return AlertFinding(
            kind=kind,
            message=message,
            evidence=[Evidence.from_reading(VitalKind.HEART_RATE.value, r) for r in streak],
            generated_at=generated_at,
        )

    # Oxygen saturation

    def _check_oxygen_saturation(
        self, readings: list[DatedReading], generated_at: datetime
    ) -> AlertFinding | None:
        if not readings:
            return None

        latest = readings[-1]
        if latest.value >= self.thresholds.oxygen_saturation_low:
            return None

        self.logger.info("low_oxygen_saturation_detected", value=latest.value)
        return AlertFinding(
            kind=AlertKind.LOW_SPO2,
            message=(
                f"Your oxygen level is {latest.value:.0f}%, which is lower than usual. "
                "Please contact your care team to discuss this reading."
            ),
            evidence=[Evidence.from_reading(VitalKind.OXYGEN_SATURATION.value, latest)],
            generated_at=generated_at,
        )

    # Blood pressure

    def _check_blood_pressure(
        self,
        systolic: list[DatedReading],
        diastolic: list[DatedReading],
        generated_at: datetime,
    ) -> list[AlertFinding]:
        diastolic_by_day = {r.day: r for r in diastolic}
        paired_days = [r.day for r in systolic if r.day in diastolic_by_day]
        if not paired_days:
            return []

        day = paired_days[-1]
        sys_reading = next(r for r in systolic if r.day == day)
        dia_reading = diastolic_by_day[day]
        sys_value, dia_value = sys_reading.value, dia_reading.value

        if sys_value <= dia_value:
            self.logger.warning(
                "blood_pressure_reading_rejected",
                reason="systolic_not_above_diastolic",
                systolic=sys_value,
                diastolic=dia_value,
                day=str(day),
            )
            return []

        evidence = [
            Evidence.from_reading(VitalKind.SYSTOLIC.value, sys_reading),
            Evidence.from_reading(VitalKind.DIASTOLIC.value, dia_reading),
        ]
        reading_text = f"{sys_value:.0f}/{dia_value:.0f} mmHg"
        findings: list[AlertFinding] = []

        if sys_value < self.thresholds.systolic_low:
            self.logger.info("low_blood_pressure_detected", systolic=sys_value)
            findings.append(
                AlertFinding(
                    kind=AlertKind.LOW_BP,
                    message=(
                        f"Your blood pressure reading of {reading_text} is lower than usual. "
                        "Please contact your care team if you're feeling unwell."
                    ),
                    evidence=evidence,
                    generated_at=generated_at,
                )
            )

        map_value = mean_arterial_pressure(sys_value, dia_value)
        if map_value <= self.thresholds.map_low:
            map_value = round(map_value, 1)
            self.logger.info("low_mean_arterial_pressure_detected", map=map_value)
            findings.append(
                AlertFinding(
                    kind=AlertKind.LOW_MAP,
                    message=(
                        f"Your blood pressure reading of {reading_text} indicates your blood "
                        "pressure may be low. Please contact your care team if you have any "
                        "symptoms."
                    ),
                    evidence=[*evidence, Evidence(label="map", value=map_value, day=day)],
                    generated_at=generated_at,
                )
            )

        return findings

    def _measurable(self, kind: VitalKind, series: Sequence[DatedReading]) -> list[DatedReading]:
        readings = latest_per_day(series)
        maximum = self.bounds.vital_maximum(kind)
        kept = [r for r in readings if r.value > 0 and (maximum is None or r.value <= maximum)]
        if len(kept) != len(readings):
            self.logger.warning(
                "impossible_vital_ignored", vital=kind.value, dropped=len(readings) - len(kept)
            )
        return kept

    @staticmethod
    def _triggered_on(finding: AlertFinding, day: date) -> bool:
        # The newest evidence is the reading that tripped the rule
        days = [e.day for e in finding.evidence if e.day is not None]
        return bool(days) and max(days) == day
