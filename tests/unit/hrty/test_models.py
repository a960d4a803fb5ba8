"""Tests for the domain models."""

from datetime import UTC, date, datetime

import pytest
from hypothesis import given
from hypothesis import strategies as st

from hrty.domain.models import (
    AlertFinding,
    AlertKind,
    AvoidCategory,
    DatedReading,
    Medication,
    SymptomKind,
    SymptomRecord,
    TherapeuticCategory,
    VitalKind,
)

NOW = datetime(2025, 3, 10, 9, tzinfo=UTC)


class TestDatedReading:
    def test_naive_recorded_at_is_utc(self) -> None:
        naive = datetime(2025, 3, 10, 8)
        reading = DatedReading(day=date(2025, 3, 10), value=80.0, recorded_at=naive)

        assert reading.recorded_at == datetime(2025, 3, 10, 8, tzinfo=UTC)

    def test_timestamp_falls_back_to_start_of_day(self) -> None:
        reading = DatedReading(day=date(2025, 3, 10), value=80.0)

        assert reading.timestamp == datetime(2025, 3, 10, tzinfo=UTC)

    def test_immutable(self) -> None:
        reading = DatedReading(day=date(2025, 3, 10), value=80.0)

        with pytest.raises(ValueError, match="frozen"):
            reading.value = 90.0  # type: ignore


class TestSymptomRecord:
    @given(severity=st.integers(min_value=-10, max_value=20))
    def test_severity_is_always_on_the_scale(self, severity: int) -> None:
        record = SymptomRecord(day=date(2025, 3, 10), severities={SymptomKind.PND: severity})

        assert 1 <= record.severity(SymptomKind.PND) <= 5  # type: ignore[operator]

    def test_in_range_severity_is_unchanged(self) -> None:
        record = SymptomRecord(day=date(2025, 3, 10), severities={SymptomKind.SYNCOPE: 3})

        assert record.severity(SymptomKind.SYNCOPE) == 3
        assert record.severity(SymptomKind.CHEST_PAIN) is None


class TestMedication:
    def test_archive_and_reactivate(self) -> None:
        med = Medication(name="Carvedilol", category=TherapeuticCategory.BETA_BLOCKER, dosage=6.25)

        archived = med.archive(at=NOW)
        restored = archived.reactivate(dosage=12.5)

        assert med.is_active
        assert not archived.is_active and archived.archived_at == NOW
        assert not archived.is_conflict_eligible
        assert restored.is_active and restored.archived_at is None
        assert restored.dosage == 12.5
        assert restored.id == med.id

    def test_uncategorized_is_not_conflict_eligible(self) -> None:
        assert not Medication(name="Fish oil").is_conflict_eligible

    def test_negative_dosage_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            Medication(name="Lisinopril", dosage=-5)


class TestAlertFinding:
    def test_dedup_key_uses_calendar_day(self) -> None:
        finding = AlertFinding(
            kind=AlertKind.SYMPTOM_SEVERITY, message="m", subject="pnd", generated_at=NOW
        )

        assert finding.dedup_key == (AlertKind.SYMPTOM_SEVERITY, "pnd", date(2025, 3, 10))

    def test_empty_message_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            AlertFinding(kind=AlertKind.LOW_BP, message="")


class TestEnumProperties:
    @pytest.mark.parametrize("kind", list(AlertKind))
    def test_every_alert_kind_has_text(self, kind: AlertKind) -> None:
        assert kind.display_name
        assert kind.accessibility_description

    @pytest.mark.parametrize("kind", list(SymptomKind))
    def test_every_symptom_has_display_name(self, kind: SymptomKind) -> None:
        assert kind.display_name

    @pytest.mark.parametrize("kind", list(VitalKind))
    def test_every_vital_has_unit(self, kind: VitalKind) -> None:
        assert kind.unit

    @pytest.mark.parametrize("category", list(AvoidCategory))
    def test_every_avoid_category_has_warning(self, category: AvoidCategory) -> None:
        assert category.display_name
        assert "care team" in category.warning_message or "pharmacist" in category.warning_message

    def test_category_sort_index_follows_declaration(self) -> None:
        assert [c.sort_index for c in TherapeuticCategory] == list(range(len(TherapeuticCategory)))
