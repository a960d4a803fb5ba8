"""
Alert monitor that ties the evaluators to the data collaborators and the ledger.

This is the reference control flow after a save:
1. Pull read-only snapshots from the health data source
2. Run the relevant evaluators for that day; weight and vitals findings only fire
   for readings taken on the day being evaluated
3. Record findings in the ledger (duplicates are dropped there)

Each check is an error boundary: a failing collaborator is logged and reported as an
error result, and the remaining checks still run.
"""

import asyncio
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from typing import Protocol, TypeVar

import structlog

from hrty.config import AppConfig, get_config
from hrty.domain.models import (
    AlertFinding,
    AlertLedgerEntry,
    ConflictRecord,
    DatedReading,
    Medication,
    SymptomRecord,
    VitalKind,
)
from hrty.services.conflicts import ConflictChecker, MedicationConflictEngine, conflict_findings
from hrty.services.ledger import AlertLedger
from hrty.services.results import Result
from hrty.services.symptoms import SymptomsEvaluator, SymptomSeverityEvaluator
from hrty.services.vitals import VitalsEvaluator, VitalSignsEvaluator
from hrty.services.weight import WeightEvaluator, WeightTrendEvaluator

logger = structlog.get_logger(__name__)

T = TypeVar("T")

VITAL_KINDS = (
    VitalKind.HEART_RATE,
    VitalKind.SYSTOLIC,
    VitalKind.DIASTOLIC,
    VitalKind.OXYGEN_SATURATION,
)


class HealthDataSource(Protocol):
    """
    Read-only snapshot provider owned by the persistence layer.

    Date ranges are inclusive on both ends.
    """

    def fetch_weight_series(self, start: date, end: date) -> list[DatedReading]: ...

    def fetch_vital_series(self, kind: VitalKind, start: date, end: date) -> list[DatedReading]: ...

    def fetch_symptom_record(self, day: date) -> SymptomRecord | None: ...

    def fetch_active_medications(self) -> list[Medication]: ...


@dataclass
class MonitorReport:
    """Outcome of one full evaluation pass."""

    day: date
    findings: list[AlertFinding] = field(default_factory=list)
    recorded: list[AlertLedgerEntry] = field(default_factory=list)
    conflicts: list[ConflictRecord] = field(default_factory=list)
    show_conflict_banner: bool = False
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def had_errors(self) -> bool:
        return bool(self.errors)


class HealthAlertMonitor:
    """Runs the weight, vitals, symptom and medication checks for a given day."""

    def __init__(
        self,
        source: HealthDataSource,
        ledger: AlertLedger | None = None,
        config: AppConfig | None = None,
        weight_evaluator: WeightEvaluator | None = None,
        vitals_evaluator: VitalsEvaluator | None = None,
        symptoms_evaluator: SymptomsEvaluator | None = None,
        conflict_checker: ConflictChecker | None = None,
    ) -> None:
        self.source = source
        self.ledger = ledger or AlertLedger()
        self.config = config or get_config()
        thresholds, bounds = self.config.thresholds, self.config.bounds

        self.weight_evaluator = weight_evaluator or WeightTrendEvaluator(thresholds, bounds)
        self.vitals_evaluator = vitals_evaluator or VitalSignsEvaluator(thresholds, bounds)
        self.symptoms_evaluator = symptoms_evaluator or SymptomSeverityEvaluator(thresholds)
        self.conflict_checker = conflict_checker or MedicationConflictEngine()
        self.logger = logger.bind(component="health_alert_monitor")

    # Individual checks

    def check_weight(
        self, day: date, now: datetime | None = None
    ) -> Result[list[AlertFinding], Exception]:
        def run() -> list[AlertFinding]:
            start = day - timedelta(days=self.config.thresholds.weight_long_window_days)
            series = self.source.fetch_weight_series(start, day)
            return self.weight_evaluator.evaluate_weight(series, now, day)

        return self._guarded("weight", run)

    def check_vitals(
        self, day: date, now: datetime | None = None
    ) -> Result[list[AlertFinding], Exception]:
        def run() -> list[AlertFinding]:
            start = day - timedelta(days=self.config.thresholds.heart_rate_lookback_days)
            series_by_kind = {
                kind: self.source.fetch_vital_series(kind, start, day) for kind in VITAL_KINDS
            }
            return self.vitals_evaluator.evaluate_vitals(series_by_kind, now, day)

        return self._guarded("vitals", run)

    def check_symptoms(
        self, day: date, now: datetime | None = None
    ) -> Result[list[AlertFinding], Exception]:
        def run() -> list[AlertFinding]:
            record = self.source.fetch_symptom_record(day)
            lookback_days = math.ceil(self.config.thresholds.bp_lookback_hours / 24)
            blood_pressure = self.source.fetch_vital_series(
                VitalKind.SYSTOLIC, day - timedelta(days=lookback_days), day
            )
            return self.symptoms_evaluator.evaluate_symptoms(record, blood_pressure, now)

        return self._guarded("symptoms", run)

    def check_medications(self) -> Result[list[ConflictRecord], Exception]:
        def run() -> list[ConflictRecord]:
            return self.conflict_checker.find_all_conflicts(self.source.fetch_active_medications())

        return self._guarded("medications", run)

    def check_candidate(
        self, candidate: Medication
    ) -> Result[list[ConflictRecord], Exception]:
        """Conflicts a medication would introduce, before the caller saves it."""

        def run() -> list[ConflictRecord]:
            existing = self.source.fetch_active_medications()
            return self.conflict_checker.check_conflicts(candidate.category, existing)

        return self._guarded("candidate_medication", run)

    # Full passes

    def evaluate_all(self, day: date | None = None, now: datetime | None = None) -> MonitorReport:
        """Sequential evaluation of every check, recording findings as they arrive."""
        now = now or datetime.now(UTC)
        day = day or now.date()
        results = {
            "weight": self.check_weight(day, now),
            "vitals": self.check_vitals(day, now),
            "symptoms": self.check_symptoms(day, now),
        }
        return self._build_report(day, now, results, self.check_medications())

    async def evaluate_all_concurrently(
        self, day: date | None = None, now: datetime | None = None
    ) -> MonitorReport:
        """Same as evaluate_all, with each check on a worker thread.

        The evaluators share nothing but immutable snapshots, and the ledger serialises
        its own writes.
        """
        now = now or datetime.now(UTC)
        day = day or now.date()

        async with asyncio.TaskGroup() as task_group:
            weight = task_group.create_task(asyncio.to_thread(self.check_weight, day, now))
            vitals = task_group.create_task(asyncio.to_thread(self.check_vitals, day, now))
            symptoms = task_group.create_task(asyncio.to_thread(self.check_symptoms, day, now))
            medications = task_group.create_task(asyncio.to_thread(self.check_medications))

        results = {
            "weight": weight.result(),
            "vitals": vitals.result(),
            "symptoms": symptoms.result(),
        }
        return self._build_report(day, now, results, medications.result())

    # Internals

    def _build_report(
        self,
        day: date,
        now: datetime,
        results: dict[str, Result[list[AlertFinding], Exception]],
        medications: Result[list[ConflictRecord], Exception],
    ) -> MonitorReport:
        report = MonitorReport(day=day)

        for name, result in results.items():
            if result.is_err():
                report.errors[name] = str(result.unwrap_err())
                continue
            report.findings.extend(result.unwrap())

        if medications.is_err():
            report.errors["medications"] = str(medications.unwrap_err())
        else:
            report.conflicts = medications.unwrap()
            report.findings.extend(conflict_findings(report.conflicts, now))
            report.show_conflict_banner = bool(
                report.conflicts
            ) and not self.ledger.is_conflict_banner_dismissed(now)

        report.recorded = self.ledger.record_all(report.findings)
        self.logger.info(
            "evaluation_pass_completed",
            day=str(day),
            findings=len(report.findings),
            recorded=len(report.recorded),
            conflicts=len(report.conflicts),
            failed_checks=sorted(report.errors),
        )
        return report

    def _guarded(self, check: str, run: Callable[[], T]) -> Result[T, Exception]:
        try:
            value = run()
        except Exception as e:
            self.logger.exception("check_failed", check=check, error=str(e))
            return Result.err(e)
        self.logger.debug("check_completed", check=check)
        return Result.ok(value)
