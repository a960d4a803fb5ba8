"""
Tests for the alert ledger.

Covers:
- Same-day de-duplication per kind and subject
- Monotonic acknowledgement and unknown ids
- Unacknowledged listing and filtering
- Conflict banner dismissal window
- Export/restore for caller-owned storage
- Concurrent inserts of the same finding
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta

import pytest

from hrty.domain.models import AlertFinding, AlertKind
from hrty.errors import HrtyError, LedgerEntryNotFoundError
from hrty.services.ledger import AlertLedger

NOW = datetime(2025, 3, 10, 9, tzinfo=UTC)


def _finding(
    kind: AlertKind = AlertKind.WEIGHT_GAIN, subject: str = "", at: datetime = NOW
) -> AlertFinding:
    return AlertFinding(
        kind=kind, message=f"{kind.display_name} detected", subject=subject, generated_at=at
    )


@pytest.fixture
def ledger() -> AlertLedger:
    return AlertLedger()


class TestRecord:
    def test_first_finding_is_recorded(self, ledger: AlertLedger) -> None:
        entry = ledger.record(_finding())

        assert entry is not None
        assert not entry.acknowledged
        assert ledger.get(entry.id) == entry

    def test_same_kind_same_day_is_dropped(self, ledger: AlertLedger) -> None:
        first = ledger.record(_finding())
        second = ledger.record(_finding(at=NOW + timedelta(hours=6)))

        assert first is not None
        assert second is None
        assert len(ledger.entries()) == 1

    def test_same_kind_next_day_is_new_entry(self, ledger: AlertLedger) -> None:
        ledger.record(_finding())

        assert ledger.record(_finding(at=NOW + timedelta(days=1))) is not None
        assert len(ledger.entries()) == 2

    def test_different_subjects_are_distinct(self, ledger: AlertLedger) -> None:
        ledger.record(_finding(AlertKind.SYMPTOM_SEVERITY, "orthopnea"))
        ledger.record(_finding(AlertKind.SYMPTOM_SEVERITY, "chest_pain"))

        assert len(ledger.entries()) == 2

    def test_duplicate_after_acknowledgement_is_still_dropped(self, ledger: AlertLedger) -> None:
        entry = ledger.record(_finding())
        assert entry is not None
        ledger.acknowledge(entry.id, at=NOW)

        assert ledger.record(_finding(at=NOW + timedelta(hours=1))) is None
        assert ledger.get(entry.id).acknowledged

    def test_record_all_returns_only_new_entries(self, ledger: AlertLedger) -> None:
        findings = [_finding(), _finding(), _finding(AlertKind.LOW_SPO2)]

        recorded = ledger.record_all(findings)

        assert [e.finding.kind for e in recorded] == [AlertKind.WEIGHT_GAIN, AlertKind.LOW_SPO2]

    def test_concurrent_inserts_keep_one_entry(self, ledger: AlertLedger) -> None:
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: ledger.record(_finding()), range(50)))

        assert sum(r is not None for r in results) == 1
        assert len(ledger.entries()) == 1


class TestAcknowledge:
    def test_acknowledge_sets_timestamp(self, ledger: AlertLedger) -> None:
        entry = ledger.record(_finding())
        assert entry is not None

        acknowledged = ledger.acknowledge(entry.id, at=NOW)

        assert acknowledged.acknowledged
        assert acknowledged.acknowledged_at == NOW

    def test_acknowledging_twice_keeps_first_timestamp(self, ledger: AlertLedger) -> None:
        entry = ledger.record(_finding())
        assert entry is not None
        ledger.acknowledge(entry.id, at=NOW)

        again = ledger.acknowledge(entry.id, at=NOW + timedelta(hours=2))

        assert again.acknowledged_at == NOW

    def test_unknown_id_raises(self, ledger: AlertLedger) -> None:
        with pytest.raises(LedgerEntryNotFoundError) as exc_info:
            ledger.acknowledge("missing")

        assert exc_info.value.entry_id == "missing"
        assert isinstance(exc_info.value, HrtyError)
        assert isinstance(exc_info.value, KeyError)

    def test_get_unknown_id_raises(self, ledger: AlertLedger) -> None:
        with pytest.raises(LedgerEntryNotFoundError):
            ledger.get("missing")


class TestListUnacknowledged:
    def test_newest_first(self, ledger: AlertLedger) -> None:
        ledger.record(_finding(AlertKind.WEIGHT_GAIN, at=NOW - timedelta(days=1)))
        ledger.record(_finding(AlertKind.LOW_SPO2, at=NOW))

        pending = ledger.list_unacknowledged()

        assert [e.finding.kind for e in pending] == [AlertKind.LOW_SPO2, AlertKind.WEIGHT_GAIN]

    def test_acknowledged_entries_are_hidden(self, ledger: AlertLedger) -> None:
        entry = ledger.record(_finding())
        ledger.record(_finding(AlertKind.LOW_BP))
        assert entry is not None
        ledger.acknowledge(entry.id)

        assert [e.finding.kind for e in ledger.list_unacknowledged()] == [AlertKind.LOW_BP]

    def test_filter_by_kind(self, ledger: AlertLedger) -> None:
        ledger.record(_finding(AlertKind.WEIGHT_GAIN))
        ledger.record(_finding(AlertKind.MEDICATION_CONFLICT, "cross_class:ace_inhibitor+arb"))

        pending = ledger.list_unacknowledged(kinds=[AlertKind.MEDICATION_CONFLICT])

        assert len(pending) == 1
        assert pending[0].finding.subject == "cross_class:ace_inhibitor+arb"


class TestConflictBanner:
    def test_not_dismissed_by_default(self, ledger: AlertLedger) -> None:
        assert not ledger.is_conflict_banner_dismissed(NOW)

    def test_dismissed_until_the_given_time(self, ledger: AlertLedger) -> None:
        ledger.dismiss_conflict_banner(NOW + timedelta(days=7))

        assert ledger.is_conflict_banner_dismissed(NOW)
        assert ledger.is_conflict_banner_dismissed(NOW + timedelta(days=6))
        assert not ledger.is_conflict_banner_dismissed(NOW + timedelta(days=7))

    def test_naive_until_is_treated_as_utc(self, ledger: AlertLedger) -> None:
        ledger.dismiss_conflict_banner(datetime(2025, 3, 11, 9))

        assert ledger.conflict_banner_dismissed_until == datetime(2025, 3, 11, 9, tzinfo=UTC)

    def test_naive_now_is_treated_as_utc(self, ledger: AlertLedger) -> None:
        ledger.dismiss_conflict_banner(datetime(2025, 3, 11, 9, tzinfo=UTC))

        assert ledger.is_conflict_banner_dismissed(datetime(2025, 3, 11, 8))
        assert not ledger.is_conflict_banner_dismissed(datetime(2025, 3, 11, 9))


class TestExportRestore:
    def test_restored_ledger_keeps_entries_and_dedup(self, ledger: AlertLedger) -> None:
        entry = ledger.record(_finding())
        assert entry is not None
        ledger.acknowledge(entry.id, at=NOW)
        ledger.dismiss_conflict_banner(NOW + timedelta(days=1))

        restored = AlertLedger.restore(ledger.export())

        assert restored.get(entry.id) == ledger.get(entry.id)
        assert restored.record(_finding(at=NOW + timedelta(hours=3))) is None
        assert restored.is_conflict_banner_dismissed(NOW)

    def test_export_is_json_ready(self, ledger: AlertLedger) -> None:
        ledger.record(_finding())

        payload = ledger.export()

        assert payload["conflict_banner_dismissed_until"] is None
        assert payload["entries"][0]["finding"]["kind"] == "weight_gain"
        assert isinstance(payload["entries"][0]["finding"]["generated_at"], str)
