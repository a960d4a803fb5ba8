"""
In-memory health data store implementing the HealthDataSource protocol.

Stands in for the on-device persistence layer in tests and the scenario walkthrough.
Saves are kept as history; reads collapse each day to its most recent save, which is
the authoritative value the evaluators expect.
"""

from collections import defaultdict
from datetime import UTC, date, datetime

import structlog

from hrty.domain.models import DatedReading, Medication, SymptomKind, SymptomRecord, VitalKind
from hrty.services.temporal import latest_per_day

logger = structlog.get_logger(__name__)


class InMemoryHealthStore:
    """Dictionary-backed store for weights, vitals, symptom check-ins and medications."""

    def __init__(self) -> None:
        self._vitals: dict[VitalKind, list[DatedReading]] = defaultdict(list)
        self._symptoms: dict[date, SymptomRecord] = {}
        self._medications: dict[str, Medication] = {}
        self.logger = logger.bind(component="in_memory_health_store")

    # Writes

    def save_vital(
        self,
        kind: VitalKind,
        day: date,
        value: float,
        recorded_at: datetime | None = None,
    ) -> DatedReading:
        reading = DatedReading(
            day=day, value=value, recorded_at=recorded_at or datetime.now(UTC)
        )
        self._vitals[kind].append(reading)
        self.logger.debug("vital_saved", vital=kind.value, day=str(day), value=value)
        return reading

    def save_weight(
        self, day: date, pounds: float, recorded_at: datetime | None = None
    ) -> DatedReading:
        return self.save_vital(VitalKind.WEIGHT, day, pounds, recorded_at)

    def save_blood_pressure(
        self, day: date, systolic: float, diastolic: float, recorded_at: datetime | None = None
    ) -> tuple[DatedReading, DatedReading]:
        recorded_at = recorded_at or datetime.now(UTC)
        return (
            self.save_vital(VitalKind.SYSTOLIC, day, systolic, recorded_at),
            self.save_vital(VitalKind.DIASTOLIC, day, diastolic, recorded_at),
        )

    def save_symptoms(self, day: date, severities: dict[SymptomKind, int]) -> SymptomRecord:
        record = SymptomRecord(day=day, severities=severities)
        self._symptoms[day] = record
        return record

    def add_medication(self, medication: Medication) -> Medication:
        self._medications[medication.id] = medication
        self.logger.info(
            "medication_added",
            medication_id=medication.id,
            category=medication.category.value if medication.category else None,
        )
        return medication

    def deactivate_medication(self, medication_id: str) -> Medication:
        """Soft delete: the medication stays on record, marked inactive."""
        archived = self._medications[medication_id].archive()
        self._medications[medication_id] = archived
        self.logger.info("medication_deactivated", medication_id=medication_id)
        return archived

    # HealthDataSource

    def fetch_weight_series(self, start: date, end: date) -> list[DatedReading]:
        return self.fetch_vital_series(VitalKind.WEIGHT, start, end)

    def fetch_vital_series(self, kind: VitalKind, start: date, end: date) -> list[DatedReading]:
        in_range = [r for r in self._vitals.get(kind, []) if start <= r.day <= end]
        return latest_per_day(in_range)

    def fetch_symptom_record(self, day: date) -> SymptomRecord | None:
        return self._symptoms.get(day)

    def fetch_active_medications(self) -> list[Medication]:
        return [m for m in self._medications.values() if m.is_active]

    def all_medications(self) -> list[Medication]:
        return list(self._medications.values())
