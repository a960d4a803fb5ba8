"""
Rule services for the application.

This package contains the evaluators that turn recorded readings, symptom
check-ins and medication lists into alert findings, plus the ledger and monitor
that record them.
"""

from .avoidance import MedicationAvoidanceChecker
from .conflicts import MedicationConflictEngine, conflict_findings
from .ledger import AlertLedger
from .monitor import HealthAlertMonitor, HealthDataSource, MonitorReport
from .results import Result
from .symptoms import SymptomSeverityEvaluator
from .vitals import VitalSignsEvaluator
from .weight import WeightTrendEvaluator

__all__ = [
    "AlertLedger",
    "HealthAlertMonitor",
    "HealthDataSource",
    "MedicationAvoidanceChecker",
    "MedicationConflictEngine",
    "MonitorReport",
    "Result",
    "SymptomSeverityEvaluator",
    "VitalSignsEvaluator",
    "WeightTrendEvaluator",
    "conflict_findings",
]
