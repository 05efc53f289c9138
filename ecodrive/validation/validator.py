"""
Input Validation

DESIGN DECISION: User input is validated before anything else happens.
A trip form that is missing a driver or an address never reaches the
distance lookup, and nothing is written.

Checks are split by severity:
- ERRORS block the action (missing driver, blank origin, bad consumption)
- WARNINGS are shown but do not block (same origin and destination,
  date far in the future)

IMPORTANT: Validation NEVER silently fixes input.
It reports issues for the user to correct.
"""

import math
from datetime import date, timedelta
from typing import Optional

from ecodrive.config import AppSettings, get_settings
from ecodrive.models.trip import (
    Driver,
    TripDraft,
    ValidationIssue,
    ValidationResult,
)


class TripFormValidator:
    """Validates trip form drafts and new driver entries."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def validate(
        self,
        draft: TripDraft,
        drivers: list[Driver],
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Validate a trip draft against the current drivers.

        Args:
            draft: The submitted form
            drivers: Drivers currently known to the session
            today: Reference date for the future-date check

        Returns:
            ValidationResult; is_valid is False if any error was found
        """
        issues = []

        if not draft.driver_id:
            issues.append(ValidationIssue(
                field="driver_id",
                issue_type="missing",
                message="Selecione um motorista",
                severity="error",
            ))
        elif not any(d.id == draft.driver_id for d in drivers):
            issues.append(ValidationIssue(
                field="driver_id",
                issue_type="invalid_value",
                message="O motorista selecionado não existe mais",
                severity="error",
            ))

        if not draft.origin:
            issues.append(ValidationIssue(
                field="origin",
                issue_type="missing",
                message="Informe a origem",
                severity="error",
            ))

        if not draft.destination:
            issues.append(ValidationIssue(
                field="destination",
                issue_type="missing",
                message="Informe o destino",
                severity="error",
            ))

        if (
            draft.origin
            and draft.destination
            and draft.origin.casefold() == draft.destination.casefold()
        ):
            issues.append(ValidationIssue(
                field="destination",
                issue_type="suspicious_value",
                message="Origem e destino são iguais",
                severity="warning",
            ))

        today = today or date.today()
        limit = today + timedelta(days=self._settings.future_date_tolerance_days)
        if draft.travel_date > limit:
            issues.append(ValidationIssue(
                field="travel_date",
                issue_type="future_date",
                message=f"A data {draft.travel_date.strftime('%d/%m/%Y')} está muito no futuro",
                severity="warning",
            ))

        return ValidationResult(issues=issues)


def validate_new_driver(name: str, avg_consumption: float) -> ValidationResult:
    """Check a driver entry before it is added."""
    issues = []

    if not name or not name.strip():
        issues.append(ValidationIssue(
            field="name",
            issue_type="missing",
            message="Informe o nome do motorista",
            severity="error",
        ))

    if avg_consumption is None or not math.isfinite(avg_consumption) or avg_consumption <= 0:
        issues.append(ValidationIssue(
            field="avg_consumption",
            issue_type="invalid_value",
            message="O consumo médio deve ser maior que zero (km/l)",
            severity="error",
        ))

    return ValidationResult(issues=issues)


def get_user_friendly_summary(result: ValidationResult) -> str:
    """One message per line, errors first."""
    if not result.issues:
        return ""
    ordered = sorted(result.issues, key=lambda i: i.severity != "error")
    return "\n".join(issue.message for issue in ordered)
