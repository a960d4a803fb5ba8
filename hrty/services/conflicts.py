"""
Medication conflict detection over therapeutic categories.

Two rule families:
- same-class: two or more active medications share one category
- cross-class: medications drawn from two categories of the mutually exclusive
  renin-angiotensin set {ACE inhibitor, ARB, ARNI}

The engine holds no state. Output order depends only on the set of medications, never
on the order they were added, so repeated runs are identical.
"""

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from itertools import combinations
from typing import Protocol

import structlog

from hrty.domain.models import (
    AlertFinding,
    AlertKind,
    ConflictRecord,
    ConflictType,
    Evidence,
    Medication,
    TherapeuticCategory,
)

logger = structlog.get_logger(__name__)

MUTUALLY_EXCLUSIVE: frozenset[TherapeuticCategory] = frozenset(
    {
        TherapeuticCategory.ACE_INHIBITOR,
        TherapeuticCategory.ARB,
        TherapeuticCategory.ARNI,
    }
)


def _sorted_meds(medications: Iterable[Medication]) -> list[Medication]:
    return sorted(medications, key=lambda m: (m.name.lower(), m.id))


def _join_names(names: Sequence[str], conjunction: str = "and") -> str:
    if len(names) <= 1:
        return "".join(names)
    if len(names) == 2:
        return f"{names[0]} {conjunction} {names[1]}"
    return f"{', '.join(names[:-1])}, {conjunction} {names[-1]}"


def _record(
    conflict_type: ConflictType,
    categories: Iterable[TherapeuticCategory],
    medications: Iterable[Medication],
    rationale: str,
) -> ConflictRecord:
    meds = _sorted_meds(medications)
    return ConflictRecord(
        conflict_type=conflict_type,
        categories=tuple(sorted(set(categories), key=lambda c: c.sort_index)),
        medication_ids=tuple(m.id for m in meds),
        medication_names=tuple(m.name for m in meds),
        rationale=rationale,
    )


class ConflictChecker(Protocol):
    def find_all_conflicts(self, medications: Sequence[Medication]) -> list[ConflictRecord]: ...

    def check_conflicts(
        self,
        candidate_category: TherapeuticCategory | None,
        existing: Sequence[Medication],
    ) -> list[ConflictRecord]: ...


class MedicationConflictEngine:
    """Detects same-class duplicates and cross-class renin-angiotensin combinations."""

    def __init__(self) -> None:
        self.logger = logger.bind(component="medication_conflict_engine")

    def find_all_conflicts(self, medications: Sequence[Medication]) -> list[ConflictRecord]:
        """Full recompute over the current list, used for the dismissible banner."""
        by_category = self._group(medications)
        conflicts: list[ConflictRecord] = []

        for category, meds in by_category.items():
            if len(meds) < 2:
                continue
            names = [m.name for m in _sorted_meds(meds)]
            quantifier = "both" if len(names) == 2 else "all"
            conflicts.append(
                _record(
                    ConflictType.SAME_CLASS,
                    [category],
                    meds,
                    f"You have {_join_names(names)} listed, which are {quantifier} "
                    f"{category.display_name.lower()}. Most patients take only one. "
                    "Consider verifying with your care team.",
                )
            )

        exclusive_present = [c for c in by_category if c in MUTUALLY_EXCLUSIVE]
        for first, second in combinations(exclusive_present, 2):
            conflicts.append(
                _record(
                    ConflictType.CROSS_CLASS,
                    [first, second],
                    [*by_category[first], *by_category[second]],
                    f"You have both {first.display_name} and {second.display_name} "
                    "medications listed. These are usually not taken together. "
                    "Your care team can help clarify.",
                )
            )

        if conflicts:
            self.logger.info(
                "medication_conflicts_found",
                count=len(conflicts),
                keys=[c.key for c in conflicts],
            )
        return conflicts

    def check_conflicts(
        self,
        candidate_category: TherapeuticCategory | None,
        existing: Sequence[Medication],
    ) -> list[ConflictRecord]:
        """Conflicts a not-yet-saved medication of ``candidate_category`` would introduce.

        Records cite only the existing medications, so the caller can ask
        "add anyway?" before persisting.
        """
        if candidate_category is None:
            return []

        by_category = self._group(existing)
        conflicts: list[ConflictRecord] = []

        same = by_category.get(candidate_category, [])
        if same:
            names = [m.name for m in _sorted_meds(same)]
            conflicts.append(
                _record(
                    ConflictType.SAME_CLASS,
                    [candidate_category],
                    same,
                    f"You're already taking {', '.join(names)}, which is also "
                    f"{_article(candidate_category.singular)} {candidate_category.singular}. "
                    "It's worth verifying with your care team if you need both.",
                )
            )

        if candidate_category in MUTUALLY_EXCLUSIVE:
            for other, meds in by_category.items():
                if other == candidate_category or other not in MUTUALLY_EXCLUSIVE:
                    continue
                names = [m.name for m in _sorted_meds(meds)]
                conflicts.append(
                    _record(
                        ConflictType.CROSS_CLASS,
                        [candidate_category, other],
                        meds,
                        f"You're already taking {', '.join(names)}. "
                        f"{candidate_category.display_name} and {other.display_name} are "
                        "usually not taken together. Your care team can help clarify.",
                    )
                )

        self.logger.debug(
            "candidate_conflicts_checked",
            candidate=candidate_category.value,
            count=len(conflicts),
        )
        return conflicts

    @staticmethod
    def _group(medications: Iterable[Medication]) -> dict[TherapeuticCategory, list[Medication]]:
        """Active categorized medications by category, in category declaration order."""
        grouped: dict[TherapeuticCategory, list[Medication]] = {}
        for med in medications:
            if med.is_conflict_eligible and med.category is not None:
                grouped.setdefault(med.category, []).append(med)
        return {c: grouped[c] for c in sorted(grouped, key=lambda c: c.sort_index)}


def _article(phrase: str) -> str:
    first = phrase.split()[0]
    # Acronyms are read letter by letter: "an MRA", "an SGLT2 inhibitor"
    vowel_sounds = "AEFHILMNORSX" if first.isupper() else "aeiou"
    return "an" if first[0] in vowel_sounds else "a"


def conflict_findings(
    conflicts: Iterable[ConflictRecord], now: datetime | None = None
) -> list[AlertFinding]:
    """Wrap conflict records as ledger-ready findings, one per record."""
    generated_at = now or datetime.now(UTC)
    return [
        AlertFinding(
            kind=AlertKind.MEDICATION_CONFLICT,
            message=conflict.rationale,
            evidence=[Evidence(label=name) for name in conflict.medication_names],
            subject=conflict.key,
            rule=conflict.conflict_type.value,
            generated_at=generated_at,
        )
        for conflict in conflicts
    ]
