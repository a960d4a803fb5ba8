"""Tests for severe symptom findings and the dizziness blood pressure prompt."""

from datetime import UTC, date, datetime, timedelta

import pytest

from hrty.config import AlertThresholds
from hrty.domain.models import AlertKind, DatedReading, SymptomKind, SymptomRecord
from hrty.services.symptoms import DIZZINESS_BP_MESSAGE, SymptomSeverityEvaluator

TODAY = date(2025, 3, 10)
NOW = datetime(2025, 3, 10, 18, tzinfo=UTC)


def _bp_taken(hours_ago: int) -> list[DatedReading]:
    taken = NOW - timedelta(hours=hours_ago)
    return [DatedReading(day=taken.date(), value=118.0, recorded_at=taken)]


@pytest.fixture
def evaluator() -> SymptomSeverityEvaluator:
    return SymptomSeverityEvaluator(AlertThresholds())


class TestSevereSymptoms:
    def test_no_check_in(self, evaluator: SymptomSeverityEvaluator) -> None:
        assert evaluator.evaluate_symptoms(None, [], NOW) == []

    def test_mild_symptoms_do_not_fire(self, evaluator: SymptomSeverityEvaluator) -> None:
        record = SymptomRecord(
            day=TODAY, severities={SymptomKind.ORTHOPNEA: 3, SymptomKind.CHEST_PAIN: 1}
        )

        assert evaluator.evaluate_symptoms(record, [], NOW) == []

    @pytest.mark.parametrize("severity", [4, 5])
    def test_severe_symptom_fires(self, evaluator: SymptomSeverityEvaluator, severity: int) -> None:
        record = SymptomRecord(day=TODAY, severities={SymptomKind.ORTHOPNEA: severity})

        [finding] = evaluator.evaluate_symptoms(record, [], NOW)

        assert finding.kind == AlertKind.SYMPTOM_SEVERITY
        assert finding.subject == SymptomKind.ORTHOPNEA.value
        assert "difficulty breathing lying flat" in finding.message
        assert finding.evidence[0].value == severity

    def test_one_finding_per_severe_symptom_in_stable_order(
        self, evaluator: SymptomSeverityEvaluator
    ) -> None:
        record = SymptomRecord(
            day=TODAY,
            severities={
                SymptomKind.SYNCOPE: 5,
                SymptomKind.DYSPNEA_AT_REST: 4,
                SymptomKind.PND: 2,
            },
        )

        findings = evaluator.evaluate_symptoms(record, [], NOW)

        assert [f.subject for f in findings] == ["dyspnea_at_rest", "syncope"]
        assert {f.dedup_key for f in findings} == {
            (AlertKind.SYMPTOM_SEVERITY, "dyspnea_at_rest", TODAY),
            (AlertKind.SYMPTOM_SEVERITY, "syncope", TODAY),
        }

    def test_out_of_range_severity_is_clamped(
        self, evaluator: SymptomSeverityEvaluator
    ) -> None:
        record = SymptomRecord(day=TODAY, severities={SymptomKind.CHEST_PAIN: 9})

        [finding] = evaluator.evaluate_symptoms(record, [], NOW)

        assert finding.evidence[0].value == 5
        assert finding.evidence[0].label == "chest_pain:severe"


class TestDizzinessPrompt:
    def test_dizzy_without_bp_reading_prompts(self, evaluator: SymptomSeverityEvaluator) -> None:
        record = SymptomRecord(day=TODAY, severities={SymptomKind.DIZZINESS: 3})

        [finding] = evaluator.evaluate_symptoms(record, [], NOW)

        assert finding.kind == AlertKind.DIZZINESS_BP_CHECK
        assert finding.message == DIZZINESS_BP_MESSAGE

    def test_bp_reading_23_hours_ago_suppresses(
        self, evaluator: SymptomSeverityEvaluator
    ) -> None:
        record = SymptomRecord(day=TODAY, severities={SymptomKind.DIZZINESS: 3})

        assert evaluator.evaluate_symptoms(record, _bp_taken(23), NOW) == []

    def test_bp_reading_25_hours_ago_does_not_suppress(
        self, evaluator: SymptomSeverityEvaluator
    ) -> None:
        record = SymptomRecord(day=TODAY, severities={SymptomKind.DIZZINESS: 3})

        [finding] = evaluator.evaluate_symptoms(record, _bp_taken(25), NOW)

        assert finding.kind == AlertKind.DIZZINESS_BP_CHECK

    def test_mild_dizziness_does_not_prompt(self, evaluator: SymptomSeverityEvaluator) -> None:
        record = SymptomRecord(day=TODAY, severities={SymptomKind.DIZZINESS: 2})

        assert evaluator.evaluate_symptoms(record, [], NOW) == []

    def test_severe_dizziness_yields_both_findings(
        self, evaluator: SymptomSeverityEvaluator
    ) -> None:
        record = SymptomRecord(day=TODAY, severities={SymptomKind.DIZZINESS: 4})

        findings = evaluator.evaluate_symptoms(record, [], NOW)

        assert [f.kind for f in findings] == [
            AlertKind.SYMPTOM_SEVERITY,
            AlertKind.DIZZINESS_BP_CHECK,
        ]

    def test_lookback_is_configurable(self) -> None:
        evaluator = SymptomSeverityEvaluator(AlertThresholds(bp_lookback_hours=48))
        record = SymptomRecord(day=TODAY, severities={SymptomKind.DIZZINESS: 3})

        assert evaluator.evaluate_symptoms(record, _bp_taken(25), NOW) == []
