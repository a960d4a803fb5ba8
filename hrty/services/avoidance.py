"""
Over-the-counter and supplement names worth discussing with a care team.

Informational only: a match produces a warning the UI can show while the patient types
a custom medication name. Nothing is blocked.
"""

from typing import Protocol

import structlog

from hrty.domain.models import AvoidCategory, AvoidWarning

logger = structlog.get_logger(__name__)

# Low-dose aspirin is commonly prescribed for heart patients, so it is not listed.
# Amlodipine and felodipine are generally considered safer and are not listed either.
AVOID_KEYWORDS: dict[AvoidCategory, frozenset[str]] = {
    AvoidCategory.NSAID: frozenset(
        {
            "ibuprofen", "naproxen", "diclofenac", "celecoxib", "indomethacin", "ketorolac",
            "meloxicam", "piroxicam", "sulindac", "ketoprofen", "flurbiprofen", "etodolac",
            "nabumetone", "oxaprozin", "advil", "motrin", "aleve", "naprosyn", "voltaren",
            "celebrex", "indocin", "toradol", "mobic", "feldene", "clinoril", "orudis",
            "ansaid", "lodine", "relafen", "daypro",
        }
    ),
    AvoidCategory.COLD_MEDICINE: frozenset(
        {
            "pseudoephedrine", "phenylephrine", "ephedrine", "sudafed", "dayquil", "nyquil",
            "mucinex d", "claritin-d", "zyrtec-d", "allegra-d", "advil cold", "tylenol cold",
            "theraflu", "contac", "dimetapp", "robitussin cf", "alka-seltzer plus",
            "coricidin",
        }
    ),
    AvoidCategory.HERBAL_SUPPLEMENT: frozenset(
        {
            "ephedra", "ma huang", "st. john's wort", "st john's wort", "st johns wort",
            "ginseng", "ginkgo", "ginkgo biloba", "hawthorn", "licorice root",
            "bitter orange", "guarana", "yohimbe", "kava",
        }
    ),
    AvoidCategory.CALCIUM_CHANNEL_BLOCKER: frozenset(
        {
            "diltiazem", "verapamil", "nifedipine", "cardizem", "tiazac", "calan",
            "verelan", "isoptin", "procardia", "adalat",
        }
    ),
}


class AvoidChecker(Protocol):
    def check_avoid(self, medication_name: str) -> AvoidWarning | None: ...


class MedicationAvoidanceChecker:
    """Keyword matcher; categories are tried in declaration order, longest keyword first."""

    def __init__(self, keywords: dict[AvoidCategory, frozenset[str]] | None = None) -> None:
        source = keywords or AVOID_KEYWORDS
        self._ordered = [
            (category, sorted(source[category], key=lambda k: (-len(k), k)))
            for category in AvoidCategory
            if category in source
        ]
        self.logger = logger.bind(component="medication_avoidance_checker")

    def check_avoid(self, medication_name: str) -> AvoidWarning | None:
        name = medication_name.lower()
        for category, keywords in self._ordered:
            for keyword in keywords:
                if keyword in name:
                    self.logger.info(
                        "avoid_list_match", category=category.value, keyword=keyword
                    )
                    return AvoidWarning(
                        category=category,
                        matched_keyword=keyword,
                        message=category.warning_message,
                    )
        return None

    def should_avoid(self, medication_name: str) -> bool:
        return self.check_avoid(medication_name) is not None
