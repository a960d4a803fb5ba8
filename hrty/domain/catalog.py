"""
Preset heart-failure medication table.

Based on the 2022 AHA/ACC/HFSA guideline drug classes. Categories are assigned from this
table when a medication is added; names not found here become custom entries with no
category, which keeps them out of conflict checks.
"""

from dataclasses import dataclass

from hrty.domain.models import Medication, TherapeuticCategory


@dataclass(frozen=True)
class PresetMedication:
    generic_name: str
    brand_name: str | None
    category: TherapeuticCategory | None
    is_diuretic: bool = False
    unit: str = "mg"

    @property
    def display_name(self) -> str:
        if self.brand_name:
            return f"{self.generic_name} ({self.brand_name})"
        return self.generic_name


PRESET_MEDICATIONS: tuple[PresetMedication, ...] = (
    # Loop and thiazide-like diuretics carry no conflict category
    PresetMedication("Furosemide", "Lasix", None, is_diuretic=True),
    PresetMedication("Torsemide", "Demadex", None, is_diuretic=True),
    PresetMedication("Bumetanide", "Bumex", None, is_diuretic=True),
    PresetMedication("Metolazone", "Zaroxolyn", None, is_diuretic=True),
    # Beta blockers
    PresetMedication("Carvedilol", "Coreg", TherapeuticCategory.BETA_BLOCKER),
    PresetMedication("Metoprolol Succinate", "Toprol-XL", TherapeuticCategory.BETA_BLOCKER),
    PresetMedication("Bisoprolol", "Zebeta", TherapeuticCategory.BETA_BLOCKER),
    # ACE inhibitors
    PresetMedication("Lisinopril", "Zestril", TherapeuticCategory.ACE_INHIBITOR),
    PresetMedication("Enalapril", "Vasotec", TherapeuticCategory.ACE_INHIBITOR),
    PresetMedication("Ramipril", "Altace", TherapeuticCategory.ACE_INHIBITOR),
    PresetMedication("Captopril", "Capoten", TherapeuticCategory.ACE_INHIBITOR),
    # ARBs
    PresetMedication("Losartan", "Cozaar", TherapeuticCategory.ARB),
    PresetMedication("Valsartan", "Diovan", TherapeuticCategory.ARB),
    PresetMedication("Candesartan", "Atacand", TherapeuticCategory.ARB),
    # ARNI
    PresetMedication("Sacubitril/Valsartan", "Entresto", TherapeuticCategory.ARNI),
    # MRAs
    PresetMedication("Spironolactone", "Aldactone", TherapeuticCategory.MRA),
    PresetMedication("Eplerenone", "Inspra", TherapeuticCategory.MRA),
    # SGLT2 inhibitors
    PresetMedication("Dapagliflozin", "Farxiga", TherapeuticCategory.SGLT2_INHIBITOR),
    PresetMedication("Empagliflozin", "Jardiance", TherapeuticCategory.SGLT2_INHIBITOR),
    PresetMedication("Sotagliflozin", "Inpefa", TherapeuticCategory.SGLT2_INHIBITOR),
    # Other
    PresetMedication("Digoxin", "Lanoxin", None),
    PresetMedication("Hydralazine", None, None),
    PresetMedication("Isosorbide Dinitrate", "Isordil", None),
    PresetMedication("Hydralazine/Isosorbide Dinitrate", "BiDil", None),
    PresetMedication("Ivabradine", "Corlanor", None),
)


def _normalize(name: str) -> str:
    return " ".join(name.lower().split())


_BY_NAME: dict[str, PresetMedication] = {}
for _preset in PRESET_MEDICATIONS:
    _BY_NAME[_normalize(_preset.generic_name)] = _preset
    if _preset.brand_name:
        _BY_NAME[_normalize(_preset.brand_name)] = _preset

# Longest first so "torsemide" is not shadowed by a shorter overlapping name
_DIURETIC_NAMES: tuple[str, ...] = tuple(
    sorted(
        (name for name, preset in _BY_NAME.items() if preset.is_diuretic),
        key=lambda n: (-len(n), n),
    )
)


def lookup(name: str) -> PresetMedication | None:
    """Find a preset by generic or brand name, case-insensitively."""
    return _BY_NAME.get(_normalize(name))


def is_diuretic(name: str) -> bool:
    """True when the name contains a known diuretic, e.g. "Furosemide 40mg"."""
    normalized = _normalize(name)
    return any(diuretic in normalized for diuretic in _DIURETIC_NAMES)


def medications_by_category() -> dict[TherapeuticCategory | None, list[PresetMedication]]:
    grouped: dict[TherapeuticCategory | None, list[PresetMedication]] = {}
    for preset in PRESET_MEDICATIONS:
        grouped.setdefault(preset.category, []).append(preset)
    return grouped


def new_medication(name: str, **fields: object) -> Medication:
    """Create a Medication, taking category and diuretic flag from the preset table.

    Custom names get no category. Explicit keyword arguments win over the table.
    """
    preset = lookup(name)
    defaults: dict[str, object] = {
        "name": name.strip(),
        "category": preset.category if preset else None,
        "is_diuretic": preset.is_diuretic if preset else is_diuretic(name),
    }
    if preset:
        defaults["unit"] = preset.unit
    defaults.update(fields)
    return Medication.model_validate(defaults)
