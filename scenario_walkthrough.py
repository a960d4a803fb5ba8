"""
End-to-end walkthrough of the alerting pipeline.

This script exercises:
1. Weight trend rules over a sparse week of weigh-ins
2. Persistent heart-rate and low blood pressure rules
3. Severe symptoms and the dizziness blood pressure prompt
4. Medication conflicts, the conflict banner and the avoid-list checker
5. Ledger de-duplication and acknowledgement

Run with: uv run python scenario_walkthrough.py
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from adapters.memory.store import InMemoryHealthStore
from hrty.config import AppConfig
from hrty.domain.catalog import new_medication
from hrty.domain.models import SymptomKind, VitalKind
from hrty.log import configure_logging
from hrty.services.avoidance import MedicationAvoidanceChecker
from hrty.services.ledger import AlertLedger
from hrty.services.monitor import HealthAlertMonitor, MonitorReport

console = Console()


@dataclass
class Scenario:
    name: str
    description: str
    populate: Callable[[InMemoryHealthStore, date], None]


def _weight_week(store: InMemoryHealthStore, today: date) -> None:
    # Sparse weigh-ins: no reading the day before today
    store.save_weight(today - timedelta(days=3), 180.0)
    store.save_weight(today - timedelta(days=2), 181.0)
    store.save_weight(today, 186.0)


def _racing_heart(store: InMemoryHealthStore, today: date) -> None:
    for offset, bpm in ((4, 72), (2, 128), (1, 131), (0, 126)):
        store.save_vital(VitalKind.HEART_RATE, today - timedelta(days=offset), bpm)
    store.save_vital(VitalKind.OXYGEN_SATURATION, today, 95)


def _low_pressure(store: InMemoryHealthStore, today: date) -> None:
    store.save_blood_pressure(today - timedelta(days=1), 118, 76)
    store.save_blood_pressure(today, 80, 50)


def _dizzy_without_cuff(store: InMemoryHealthStore, today: date) -> None:
    store.save_symptoms(
        today,
        {
            SymptomKind.DIZZINESS: 3,
            SymptomKind.ORTHOPNEA: 4,
            SymptomKind.DYSPNEA_ON_EXERTION: 2,
        },
    )


def _medication_list(store: InMemoryHealthStore, today: date) -> None:
    store.add_medication(new_medication("Lisinopril", dosage=10))
    store.add_medication(new_medication("Losartan", dosage=50))
    store.add_medication(new_medication("Furosemide", dosage=40))
    stopped = store.add_medication(new_medication("Carvedilol", dosage=6.25))
    store.deactivate_medication(stopped.id)
    store.add_medication(new_medication("Metoprolol Succinate", dosage=25))


def build_scenarios() -> list[Scenario]:
    return [
        Scenario("Weight", "180 -> 181 -> 186 lb over four days", _weight_week),
        Scenario("Heart rate", "Three consecutive days above 120 bpm", _racing_heart),
        Scenario("Blood pressure", "80/50 mmHg today after a normal day", _low_pressure),
        Scenario("Symptoms", "Dizzy and orthopneic, no cuff reading", _dizzy_without_cuff),
        Scenario("Medications", "ACE inhibitor and ARB listed together", _medication_list),
    ]


def run_scenario(
    scenario: Scenario, now: datetime, config: AppConfig | None = None
) -> tuple[MonitorReport, AlertLedger]:
    store = InMemoryHealthStore()
    scenario.populate(store, now.date())
    ledger = AlertLedger()
    monitor = HealthAlertMonitor(store, ledger=ledger, config=config or AppConfig())
    return monitor.evaluate_all(now.date(), now), ledger


def render_report(out: Console, scenario: Scenario, report: MonitorReport) -> None:
    out.print(Panel(f"{scenario.name}: {scenario.description}", style="blue"))

    if not report.findings:
        out.print("No findings", style="green")
        return

    table = Table(title=f"Findings for {report.day.isoformat()}")
    table.add_column("Alert", style="cyan")
    table.add_column("Rule", style="magenta")
    table.add_column("Evidence", style="yellow")
    table.add_column("Message", style="white")

    for finding in report.findings:
        evidence = ", ".join(
            e.label if e.value is None else f"{e.label}={e.value:g}" for e in finding.evidence
        )
        table.add_row(
            finding.kind.display_name, finding.rule or finding.kind.value, evidence, finding.message
        )

    out.print(table)
    if report.show_conflict_banner:
        out.print(
            f"Conflict banner shown ({len(report.conflicts)} conflict(s))", style="yellow"
        )
    if report.had_errors:
        out.print(f"Failed checks: {', '.join(sorted(report.errors))}", style="red")


def render_avoid_list(out: Console, names: list[str]) -> None:
    checker = MedicationAvoidanceChecker()

    table = Table(title="Avoid-list check")
    table.add_column("Medication", style="cyan")
    table.add_column("Category", style="magenta")
    table.add_column("Matched", style="yellow")

    for name in names:
        warning = checker.check_avoid(name)
        if warning is None:
            table.add_row(name, "-", "-")
        else:
            table.add_row(name, warning.category.display_name, warning.matched_keyword)

    out.print(table)


def render_ledger(out: Console, ledger: AlertLedger, now: datetime) -> None:
    """Show de-duplication and acknowledgement on a ledger that already holds a pass."""
    pending = ledger.list_unacknowledged()
    if not pending:
        return

    acknowledged = ledger.acknowledge(pending[0].id, at=now)
    table = Table(title="Alert ledger")
    table.add_column("Alert", style="cyan")
    table.add_column("Acknowledged", style="white")
    for entry in ledger.entries():
        table.add_row(entry.finding.kind.display_name, "yes" if entry.acknowledged else "no")
    out.print(table)
    out.print(
        f"Acknowledged {acknowledged.finding.kind.display_name}; "
        f"{len(ledger.list_unacknowledged())} still pending",
        style="green",
    )


def run_walkthrough(out: Console, now: datetime | None = None) -> list[MonitorReport]:
    now = now or datetime.now(UTC)
    out.print(Panel("Heart-failure alerting walkthrough", style="bold blue"))

    reports = []
    for scenario in build_scenarios():
        report, ledger = run_scenario(scenario, now)
        render_report(out, scenario, report)
        if scenario.name == "Medications":
            render_ledger(out, ledger, now)
        reports.append(report)

    render_avoid_list(out, ["Advil", "Sudafed PE", "St. John's Wort", "Amlodipine"])

    summary = Table(title="Summary")
    summary.add_column("Scenario", style="cyan")
    summary.add_column("Findings", style="white")
    for scenario, report in zip(build_scenarios(), reports, strict=True):
        summary.add_row(scenario.name, str(len(report.findings)))
    out.print(summary)
    return reports


if __name__ == "__main__":
    configure_logging()
    try:
        run_walkthrough(console)
    except KeyboardInterrupt:
        console.print("\nWalkthrough stopped by user", style="yellow")
