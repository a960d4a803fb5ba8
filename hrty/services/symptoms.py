"""Symptom severity evaluation for the daily check-in."""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Protocol

import structlog

from hrty.config import AlertThresholds
from hrty.domain.models import (
    AlertFinding,
    AlertKind,
    DatedReading,
    Evidence,
    SeverityLevel,
    SymptomKind,
    SymptomRecord,
)
from hrty.services.temporal import has_reading_within

logger = structlog.get_logger(__name__)

DIZZINESS_BP_MESSAGE = (
    "You mentioned feeling dizzy today. If you have a blood pressure cuff, it might be "
    "helpful to take a reading. Remember to stand up slowly. If you're unable to check or "
    "you're concerned, consider reaching out to your care team."
)


class SymptomsEvaluator(Protocol):
    def evaluate_symptoms(
        self,
        today: SymptomRecord | None,
        recent_blood_pressure: Sequence[DatedReading],
        now: datetime | None = None,
    ) -> list[AlertFinding]: ...


class SymptomSeverityEvaluator:
    """
    Flags every symptom at or above the severe level, and prompts a blood pressure check
    when dizziness is reported without a recent reading.

    Blood pressure history is handed in by the caller; nothing is fetched here.
    """

    def __init__(self, thresholds: AlertThresholds | None = None) -> None:
        self.thresholds = thresholds or AlertThresholds()
        self.logger = logger.bind(component="symptom_severity_evaluator")

    def evaluate_symptoms(
        self,
        today: SymptomRecord | None,
        recent_blood_pressure: Sequence[DatedReading],
        now: datetime | None = None,
    ) -> list[AlertFinding]:
        if today is None:
            return []

        now = now or datetime.now(UTC)
        findings = self._severe_symptoms(today, now)
        if prompt := self._dizziness_bp_check(today, recent_blood_pressure, now):
            findings.append(prompt)
        return findings

    def _severe_symptoms(self, today: SymptomRecord, now: datetime) -> list[AlertFinding]:
        findings = []
        for kind in SymptomKind:
            severity = today.severity(kind)
            if severity is None or severity < self.thresholds.severe_symptom_severity:
                continue
            self.logger.info("severe_symptom_detected", symptom=kind.value, severity=severity)
            findings.append(
                AlertFinding(
                    kind=AlertKind.SYMPTOM_SEVERITY,
                    message=(
                        f"You've noted that {kind.display_name.lower()} is bothering you more "
                        "than usual today. This is helpful information to share with your "
                        "care team when you get a chance."
                    ),
                    evidence=[
                        Evidence(
                            label=f"{kind.value}:{SeverityLevel(severity).label.lower()}",
                            value=severity,
                            day=today.day,
                        )
                    ],
                    subject=kind.value,
                    generated_at=now,
                )
            )
        return findings

    def _dizziness_bp_check(
        self,
        today: SymptomRecord,
        recent_blood_pressure: Sequence[DatedReading],
        now: datetime,
    ) -> AlertFinding | None:
        dizziness = today.severity(SymptomKind.DIZZINESS)
        if dizziness is None or dizziness < self.thresholds.dizziness_bp_prompt_severity:
            return None
        if has_reading_within(recent_blood_pressure, now, self.thresholds.bp_lookback_hours):
            self.logger.debug("dizziness_bp_check_suppressed", reason="recent_bp_reading")
            return None

        self.logger.info("dizziness_bp_check_prompted", dizziness=dizziness)
        return AlertFinding(
            kind=AlertKind.DIZZINESS_BP_CHECK,
            message=DIZZINESS_BP_MESSAGE,
            evidence=[
                Evidence(label=SymptomKind.DIZZINESS.value, value=dizziness, day=today.day)
            ],
            generated_at=now,
        )
