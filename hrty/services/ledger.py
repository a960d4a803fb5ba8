"""
Alert ledger: the record of findings shown to the patient and their acknowledgement.

The ledger is the only stateful object in the core. A single lock guards every read and
write, so acknowledgement is atomic with respect to readers and two racing inserts of
the same finding resolve to "first recorded wins".

Storage is the caller's job: ``export()`` returns a JSON-ready payload and
``AlertLedger.restore()`` rebuilds a ledger from it.
"""

import threading
from collections.abc import Iterable
from datetime import UTC, date, datetime
from typing import Any

import structlog

from hrty.domain.models import AlertFinding, AlertKind, AlertLedgerEntry
from hrty.errors import LedgerEntryNotFoundError

logger = structlog.get_logger(__name__)

DedupKey = tuple[AlertKind, str, date]


class AlertLedger:
    """In-memory, thread-safe ledger of alert entries."""

    def __init__(
        self,
        entries: Iterable[AlertLedgerEntry] = (),
        conflict_banner_dismissed_until: datetime | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, AlertLedgerEntry] = {}
        self._by_key: dict[DedupKey, str] = {}
        self._banner_dismissed_until = conflict_banner_dismissed_until
        self.logger = logger.bind(component="alert_ledger")

        for entry in entries:
            self._entries[entry.id] = entry
            self._by_key.setdefault(entry.finding.dedup_key, entry.id)

    def record(self, finding: AlertFinding) -> AlertLedgerEntry | None:
        """Store a finding unless one with the same kind, subject and day already exists.

        Returns the new entry, or None when the finding was a duplicate. A finding of the
        same kind on a later day always creates a fresh entry.
        """
        key = finding.dedup_key
        with self._lock:
            if key in self._by_key:
                self.logger.debug(
                    "duplicate_finding_dropped", kind=finding.kind.value, subject=finding.subject
                )
                return None
            entry = AlertLedgerEntry(finding=finding)
            self._entries[entry.id] = entry
            self._by_key[key] = entry.id

        self.logger.info(
            "finding_recorded", entry_id=entry.id, kind=finding.kind.value, subject=finding.subject
        )
        return entry

    def record_all(self, findings: Iterable[AlertFinding]) -> list[AlertLedgerEntry]:
        return [entry for finding in findings if (entry := self.record(finding)) is not None]

    def acknowledge(self, entry_id: str, at: datetime | None = None) -> AlertLedgerEntry:
        """Mark an entry acknowledged. Acknowledging twice keeps the first timestamp."""
        with self._lock:
            entry = self._entries.get(entry_id)
            if entry is None:
                raise LedgerEntryNotFoundError(entry_id)
            if entry.acknowledged:
                return entry
            entry = entry.model_copy(
                update={"acknowledged": True, "acknowledged_at": at or datetime.now(UTC)}
            )
            self._entries[entry_id] = entry

        self.logger.info("finding_acknowledged", entry_id=entry_id, kind=entry.finding.kind.value)
        return entry

    def get(self, entry_id: str) -> AlertLedgerEntry:
        with self._lock:
            entry = self._entries.get(entry_id)
        if entry is None:
            raise LedgerEntryNotFoundError(entry_id)
        return entry

    def list_unacknowledged(
        self, kinds: Iterable[AlertKind] | None = None
    ) -> list[AlertLedgerEntry]:
        """Unacknowledged entries, newest first, optionally limited to some kinds."""
        wanted = set(kinds) if kinds is not None else None
        with self._lock:
            pending = [
                e
                for e in self._entries.values()
                if not e.acknowledged and (wanted is None or e.finding.kind in wanted)
            ]
        return sorted(pending, key=lambda e: e.finding.generated_at, reverse=True)

    def entries(self) -> list[AlertLedgerEntry]:
        with self._lock:
            return list(self._entries.values())

    # Conflict banner

    def dismiss_conflict_banner(self, until: datetime) -> None:
        if until.tzinfo is None:
            until = until.replace(tzinfo=UTC)
        with self._lock:
            self._banner_dismissed_until = until
        self.logger.info("conflict_banner_dismissed", until=until.isoformat())

    @property
    def conflict_banner_dismissed_until(self) -> datetime | None:
        with self._lock:
            return self._banner_dismissed_until

    def is_conflict_banner_dismissed(self, now: datetime | None = None) -> bool:
        until = self.conflict_banner_dismissed_until
        if until is None:
            return False
        now = now or datetime.now(UTC)
        if now.tzinfo is None:
            now = now.replace(tzinfo=UTC)
        return now < until

    # Caller-owned persistence

    def export(self) -> dict[str, Any]:
        with self._lock:
            entries = list(self._entries.values())
            until = self._banner_dismissed_until
        return {
            "entries": [e.model_dump(mode="json") for e in entries],
            "conflict_banner_dismissed_until": until.isoformat() if until else None,
        }

    @classmethod
    def restore(cls, payload: dict[str, Any]) -> "AlertLedger":
        until = payload.get("conflict_banner_dismissed_until")
        return cls(
            entries=[AlertLedgerEntry.model_validate(e) for e in payload.get("entries", [])],
            conflict_banner_dismissed_until=datetime.fromisoformat(until) if until else None,
        )
