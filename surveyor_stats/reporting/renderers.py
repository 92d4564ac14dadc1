"""
Report Renderers

Pure transforms of a PeriodReport into:
- An HTML digest for email (Jinja2 template)
- A terse plain-text summary for SMS

Missing sections are skipped independently.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from surveyor_stats.schemas import OutcomeCategory, TimeEntryRecord
from .generator import PeriodReport, SurveySummary, top_performers

TEMPLATE_DIR = Path(__file__).parent / "templates"
DIGEST_TEMPLATE = "daily_digest.html.j2"

TEAM_INACTIVE_WARNING_HOURS = 5
EMPLOYEE_INACTIVE_WARNING_MINUTES = 120

OUTCOME_LABELS = [
    (OutcomeCategory.BAD_CONTACT, "BCI"),
    (OutcomeCategory.DEAD, "Dead"),
    (OutcomeCategory.STILL_CONTACTING, "Still Contacting"),
    (OutcomeCategory.DEMO, "Demo"),
    (OutcomeCategory.INSTALL, "Installs"),
]


@dataclass(frozen=True)
class RenderedDigest:
    subject: str
    body: str


def store_label(entry: TimeEntryRecord) -> str:
    """Store display name, falling back to the store code"""
    if entry.store_name:
        return entry.store_name
    return "Lowes" if entry.store == "lowes" else "Home Depot"


def outcome_cells(survey: SurveySummary) -> List[Tuple[str, str]]:
    cells = [(label, str(survey.count(category))) for category, label in OUTCOME_LABELS]
    cells.append(("Install Rate", f"{survey.install_rate * 100:.1f}%"))
    return cells


def _build_environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=True,
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["day"] = lambda value: value.strftime("%Y-%m-%d")
    env.filters["clock"] = lambda value: value.strftime("%H:%M")
    env.filters["stamp"] = lambda value: value.strftime("%Y-%m-%d %H:%M")
    env.filters["store_label"] = store_label
    env.globals["outcome_cells"] = outcome_cells
    return env


_environment: Optional[Environment] = None


def _get_environment() -> Environment:
    global _environment
    if _environment is None:
        _environment = _build_environment()
    return _environment


def digest_subject(report: PeriodReport) -> str:
    return f"Daily Surveyor Report - {report.period.label} ({report.date_range.describe()})"


def render_digest(
    report: PeriodReport,
    incident_detail_limit: int = 5,
    generated_at: Optional[datetime] = None,
) -> RenderedDigest:
    """
    Render the detailed HTML digest.

    Employee cards are ordered by installs, most first.
    """
    employees = sorted(report.employees, key=lambda e: e.install_count, reverse=True)
    template = _get_environment().get_template(DIGEST_TEMPLATE)
    body = template.render(
        period_label=report.period.label,
        date_range=report.date_range.describe(),
        totals=report.team_totals,
        employees=employees,
        incident_detail_limit=incident_detail_limit,
        team_inactive_warning_hours=TEAM_INACTIVE_WARNING_HOURS,
        employee_inactive_warning_minutes=EMPLOYEE_INACTIVE_WARNING_MINUTES,
        generated_at=generated_at or report.generated_at,
    )
    return RenderedDigest(subject=digest_subject(report), body=body)


def render_summary(report: PeriodReport, top_count: int = 3) -> str:
    """Render the SMS summary: team totals then the top performers"""
    totals = report.team_totals
    lines = [
        f"Daily Report ({report.period.label})",
        "",
        "Team Summary:",
        f"- {totals.total_surveys} surveys",
        f"- {totals.install_count} installs",
        f"- {totals.hours_worked:.1f} hrs worked",
        f"- {totals.inactive_hours:.1f} hrs inactive",
    ]

    ranked = top_performers(report, top_count)
    if ranked:
        lines.extend(["", "Top Performers:"])
        for position, emp in enumerate(ranked, start=1):
            lines.append(
                f"{position}. {emp.name}: {emp.install_count} installs ({emp.install_rate * 100:.0f}%)"
            )

    return "\n".join(lines) + "\n"
