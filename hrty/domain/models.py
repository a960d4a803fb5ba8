"""
Domain models for heart-failure self-management alerting.

These models represent the core clinical-tracking concepts and are framework-agnostic.
They use Pydantic for validation; every value type is frozen so evaluators can share
snapshots without copying.
"""

from datetime import UTC, date, datetime, time
from enum import Enum, IntEnum
from uuid import uuid4

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = structlog.get_logger(__name__)

SEVERITY_MIN = 1
SEVERITY_MAX = 5


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


class VitalKind(str, Enum):
    """Scalar vitals tracked as one authoritative value per day."""

    WEIGHT = "weight"
    HEART_RATE = "heart_rate"
    SYSTOLIC = "systolic"
    DIASTOLIC = "diastolic"
    OXYGEN_SATURATION = "oxygen_saturation"

    @property
    def unit(self) -> str:
        match self:
            case VitalKind.WEIGHT:
                return "lb"
            case VitalKind.HEART_RATE:
                return "bpm"
            case VitalKind.SYSTOLIC | VitalKind.DIASTOLIC:
                return "mmHg"
            case VitalKind.OXYGEN_SATURATION:
                return "%"


class SymptomKind(str, Enum):
    """The eight symptoms captured in the daily check-in."""

    DYSPNEA_AT_REST = "dyspnea_at_rest"
    DYSPNEA_ON_EXERTION = "dyspnea_on_exertion"
    ORTHOPNEA = "orthopnea"
    PND = "pnd"
    CHEST_PAIN = "chest_pain"
    DIZZINESS = "dizziness"
    SYNCOPE = "syncope"
    REDUCED_URINE_OUTPUT = "reduced_urine_output"

    @property
    def display_name(self) -> str:
        match self:
            case SymptomKind.DYSPNEA_AT_REST:
                return "Shortness of breath at rest"
            case SymptomKind.DYSPNEA_ON_EXERTION:
                return "Shortness of breath with activity"
            case SymptomKind.ORTHOPNEA:
                return "Difficulty breathing lying flat"
            case SymptomKind.PND:
                return "Waking up short of breath"
            case SymptomKind.CHEST_PAIN:
                return "Chest discomfort"
            case SymptomKind.DIZZINESS:
                return "Feeling dizzy or lightheaded"
            case SymptomKind.SYNCOPE:
                return "Fainting or near-fainting"
            case SymptomKind.REDUCED_URINE_OUTPUT:
                return "Less urine than usual"


class SeverityLevel(IntEnum):
    """Symptom severity on the 1-5 check-in scale."""

    NONE = 1
    MILD = 2
    MODERATE = 3
    SIGNIFICANT = 4
    SEVERE = 5

    @property
    def label(self) -> str:
        return self.name.capitalize()


class TherapeuticCategory(str, Enum):
    """Guideline heart-failure drug classes the conflict engine understands."""

    BETA_BLOCKER = "beta_blocker"
    ACE_INHIBITOR = "ace_inhibitor"
    ARB = "arb"
    ARNI = "arni"
    MRA = "mra"
    SGLT2_INHIBITOR = "sglt2_inhibitor"

    @property
    def display_name(self) -> str:
        match self:
            case TherapeuticCategory.BETA_BLOCKER:
                return "Beta Blockers"
            case TherapeuticCategory.ACE_INHIBITOR:
                return "ACE Inhibitors"
            case TherapeuticCategory.ARB:
                return "ARBs"
            case TherapeuticCategory.ARNI:
                return "ARNI"
            case TherapeuticCategory.MRA:
                return "MRAs"
            case TherapeuticCategory.SGLT2_INHIBITOR:
                return "SGLT2 Inhibitors"

    @property
    def singular(self) -> str:
        match self:
            case TherapeuticCategory.BETA_BLOCKER:
                return "beta blocker"
            case TherapeuticCategory.ACE_INHIBITOR:
                return "ACE inhibitor"
            case TherapeuticCategory.ARB:
                return "ARB"
            case TherapeuticCategory.ARNI:
                return "ARNI"
            case TherapeuticCategory.MRA:
                return "MRA"
            case TherapeuticCategory.SGLT2_INHIBITOR:
                return "SGLT2 inhibitor"

    @property
    def sort_index(self) -> int:
        return list(TherapeuticCategory).index(self)


class AlertKind(str, Enum):
    """Every finding kind an evaluator can emit."""

    WEIGHT_GAIN = "weight_gain"
    HEART_RATE_LOW = "heart_rate_low"
    HEART_RATE_HIGH = "heart_rate_high"
    LOW_SPO2 = "low_spo2"
    LOW_BP = "low_bp"
    LOW_MAP = "low_map"
    SYMPTOM_SEVERITY = "symptom_severity"
    DIZZINESS_BP_CHECK = "dizziness_bp_check"
    MEDICATION_CONFLICT = "medication_conflict"

    @property
    def display_name(self) -> str:
        match self:
            case AlertKind.WEIGHT_GAIN:
                return "Weight change"
            case AlertKind.HEART_RATE_LOW:
                return "Low heart rate"
            case AlertKind.HEART_RATE_HIGH:
                return "High heart rate"
            case AlertKind.LOW_SPO2:
                return "Low oxygen level"
            case AlertKind.LOW_BP | AlertKind.LOW_MAP:
                return "Low blood pressure"
            case AlertKind.SYMPTOM_SEVERITY:
                return "Symptom needs attention"
            case AlertKind.DIZZINESS_BP_CHECK:
                return "Blood pressure check suggested"
            case AlertKind.MEDICATION_CONFLICT:
                return "Medications to review"

    @property
    def accessibility_description(self) -> str:
        """Patient-friendly summary for screen readers and compact UI."""
        match self:
            case AlertKind.WEIGHT_GAIN:
                return (
                    "Your weight has changed noticeably. "
                    "It's a good idea to check in with your care team."
                )
            case AlertKind.HEART_RATE_LOW:
                return (
                    "Your heart rate seems lower than usual. "
                    "Consider reaching out to your care team."
                )
            case AlertKind.HEART_RATE_HIGH:
                return (
                    "Your heart rate seems higher than usual. "
                    "Your care team can help you figure out next steps."
                )
            case AlertKind.LOW_SPO2:
                return (
                    "Your oxygen level seems lower than usual. It's a good idea to check in "
                    "with your care team to discuss this reading."
                )
            case AlertKind.LOW_BP:
                return (
                    "Your blood pressure seems lower than usual. Consider reaching out to "
                    "your care team, especially if you're feeling unwell."
                )
            case AlertKind.LOW_MAP:
                return (
                    "Your blood pressure reading may be on the low side. Your care team can "
                    "help you understand what this means for you."
                )
            case AlertKind.SYMPTOM_SEVERITY:
                return (
                    "You've noted a symptom that may need attention. "
                    "Please consider contacting your care team."
                )
            case AlertKind.DIZZINESS_BP_CHECK:
                return (
                    "You mentioned feeling dizzy. "
                    "Checking your blood pressure may be helpful."
                )
            case AlertKind.MEDICATION_CONFLICT:
                return (
                    "Some of your medications are usually not taken together. "
                    "Your care team can help clarify."
                )


class ConflictType(str, Enum):
    SAME_CLASS = "same_class"
    CROSS_CLASS = "cross_class"


class AvoidCategory(str, Enum):
    """Over-the-counter and supplement groups worth discussing before use."""

    NSAID = "nsaid"
    COLD_MEDICINE = "cold_medicine"
    HERBAL_SUPPLEMENT = "herbal_supplement"
    CALCIUM_CHANNEL_BLOCKER = "calcium_channel_blocker"

    @property
    def display_name(self) -> str:
        match self:
            case AvoidCategory.NSAID:
                return "NSAID (Pain Reliever)"
            case AvoidCategory.COLD_MEDICINE:
                return "Cold & Cough Medicine"
            case AvoidCategory.HERBAL_SUPPLEMENT:
                return "Herbal Supplement"
            case AvoidCategory.CALCIUM_CHANNEL_BLOCKER:
                return "Calcium Channel Blocker"

    @property
    def warning_message(self) -> str:
        match self:
            case AvoidCategory.NSAID:
                return (
                    "NSAIDs can cause fluid retention and may worsen heart failure symptoms. "
                    "They can also reduce the effectiveness of some heart failure medications. "
                    "Consider discussing with your care team whether this medication is right "
                    "for you."
                )
            case AvoidCategory.COLD_MEDICINE:
                return (
                    "Decongestants can raise blood pressure and heart rate, which may worsen "
                    "heart failure. Ask your pharmacist or care team about heart-safe "
                    "alternatives."
                )
            case AvoidCategory.HERBAL_SUPPLEMENT:
                return (
                    "Some herbal supplements can interact with heart failure medications or "
                    "affect heart function. Always check with your care team before taking "
                    "herbal products."
                )
            case AvoidCategory.CALCIUM_CHANNEL_BLOCKER:
                return (
                    "Certain calcium channel blockers may weaken the heart's pumping ability. "
                    "Your care team can advise if this medication is appropriate for your "
                    "condition."
                )


class DatedReading(BaseModel):
    """One authoritative value of a scalar vital for a calendar day."""

    model_config = ConfigDict(frozen=True)

    day: date
    value: float
    recorded_at: datetime | None = Field(
        default=None, description="When the value was measured or saved"
    )

    @field_validator("recorded_at")
    @classmethod
    def ensure_timezone(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v) if v is not None else None

    @property
    def timestamp(self) -> datetime:
        """Measurement instant; readings without one count from the start of their day."""
        if self.recorded_at is not None:
            return self.recorded_at
        return datetime.combine(self.day, time.min, tzinfo=UTC)


class SymptomRecord(BaseModel):
    """One day's symptom check-in. Severities are clamped to the 1-5 scale."""

    model_config = ConfigDict(frozen=True)

    day: date
    severities: dict[SymptomKind, int] = Field(default_factory=dict)

    @field_validator("severities", mode="after")
    @classmethod
    def clamp_severities(cls, v: dict[SymptomKind, int]) -> dict[SymptomKind, int]:
        clamped: dict[SymptomKind, int] = {}
        for kind, severity in v.items():
            bounded = min(max(severity, SEVERITY_MIN), SEVERITY_MAX)
            if bounded != severity:
                logger.warning(
                    "symptom_severity_clamped", symptom=kind.value, received=severity, used=bounded
                )
            clamped[kind] = bounded
        return clamped

    def severity(self, kind: SymptomKind) -> int | None:
        return self.severities.get(kind)


class Medication(BaseModel):
    """A medication on the patient's list. Deletion is soft: archive() deactivates."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str = Field(min_length=1)
    category: TherapeuticCategory | None = None
    is_active: bool = True
    is_diuretic: bool = False
    dosage: float | None = Field(default=None, ge=0.0)
    unit: str = "mg"
    schedule: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    archived_at: datetime | None = None

    @property
    def is_conflict_eligible(self) -> bool:
        return self.is_active and self.category is not None

    def archive(self, at: datetime | None = None) -> "Medication":
        return self.model_copy(
            update={"is_active": False, "archived_at": at or datetime.now(UTC)}
        )

    def reactivate(
        self, dosage: float | None = None, unit: str | None = None, schedule: str | None = None
    ) -> "Medication":
        return self.model_copy(
            update={
                "is_active": True,
                "archived_at": None,
                "dosage": self.dosage if dosage is None else dosage,
                "unit": unit or self.unit,
                "schedule": self.schedule if schedule is None else schedule,
            }
        )


class Evidence(BaseModel):
    """A single fact that contributed to a finding."""

    model_config = ConfigDict(frozen=True)

    label: str
    value: float | None = None
    day: date | None = None
    recorded_at: datetime | None = None

    @classmethod
    def from_reading(cls, label: str, reading: DatedReading) -> "Evidence":
        return cls(
            label=label, value=reading.value, day=reading.day, recorded_at=reading.recorded_at
        )


class AlertFinding(BaseModel):
    """Stateless evaluator output describing one detected condition."""

    model_config = ConfigDict(frozen=True)

    kind: AlertKind
    message: str = Field(min_length=1)
    evidence: list[Evidence] = Field(default_factory=list)
    subject: str = Field(default="", description="Discriminates findings of the same kind")
    rule: str | None = Field(default=None, description="Which rule variant fired")
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("generated_at")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @property
    def dedup_key(self) -> tuple[AlertKind, str, date]:
        return (self.kind, self.subject, self.generated_at.date())


class AlertLedgerEntry(BaseModel):
    """A recorded finding plus its acknowledgement state."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    finding: AlertFinding
    acknowledged: bool = False
    acknowledged_at: datetime | None = None


class ConflictRecord(BaseModel):
    """Symmetric pairing of medications (or a same-class group) worth reviewing."""

    model_config = ConfigDict(frozen=True)

    conflict_type: ConflictType
    categories: tuple[TherapeuticCategory, ...]
    medication_ids: tuple[str, ...]
    medication_names: tuple[str, ...]
    rationale: str

    @property
    def key(self) -> str:
        return f"{self.conflict_type.value}:" + "+".join(c.value for c in self.categories)


class AvoidWarning(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: AvoidCategory
    matched_keyword: str
    message: str
