"""
Entry Validation

Trips, expenses and friends typed in by the user are checked before anything
is stored:

EXPENSE:
- Amount present and greater than zero
- Title present
- Payer chosen
- At least one involved member
- Payer and involved members belong to the trip

TRIP:
- Name present

FRIEND:
- Name present
- Phone, if given, is a full domestic mobile number

Validation NEVER silently fixes or defaults input. It reports issues and
the user corrects them. Entries arriving through a share code are not
re-validated here; the codec's schema check covers those.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Sequence

from tripsplit.config import PaymentSettings, get_settings
from tripsplit.models.entities import Trip, digits_only
from tripsplit.models.validation import ValidationIssue, ValidationResult


def parse_amount(raw: Any) -> Optional[Decimal]:
    """
    Best-effort parse of a typed amount.

    Returns None for anything that is not a finite number.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, float):
        raw = repr(raw)
    try:
        value = Decimal(str(raw).strip().replace(",", ""))
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


class ExpenseValidator:
    """Validates a new expense against the trip it is added to."""

    def validate(
        self,
        trip: Trip,
        title: Optional[str],
        amount: Any,
        payer_id: Optional[str],
        involved_ids: Sequence[str],
    ) -> ValidationResult:
        """
        Check an expense entry.

        Returns:
            ValidationResult; is_valid is False if anything must be fixed
        """
        issues = []

        parsed = parse_amount(amount)
        if parsed is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
                suggested_fix="Enter how much was paid",
            ))
        elif parsed <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
            ))

        if not title or not title.strip():
            issues.append(ValidationIssue(
                field="title",
                issue_type="missing",
                message="Title is required",
                severity="error",
                suggested_fix="Describe what the money was spent on",
            ))

        if not payer_id:
            issues.append(ValidationIssue(
                field="payer_id",
                issue_type="missing",
                message="Choose who paid",
                severity="error",
            ))
        elif payer_id not in trip.members:
            issues.append(ValidationIssue(
                field="payer_id",
                issue_type="not_a_member",
                message="The payer is not a member of this trip",
                severity="error",
                suggested_fix="Add them to the trip first",
            ))

        if not involved_ids:
            issues.append(ValidationIssue(
                field="involved_ids",
                issue_type="missing",
                message="At least one person must share the cost",
                severity="error",
            ))
        else:
            outsiders = [i for i in involved_ids if i not in trip.members]
            if outsiders:
                issues.append(ValidationIssue(
                    field="involved_ids",
                    issue_type="not_a_member",
                    message=f"{len(outsiders)} selected person(s) are not members of this trip",
                    severity="error",
                    suggested_fix="Add them to the trip first",
                ))
            if len(set(involved_ids)) != len(involved_ids):
                issues.append(ValidationIssue(
                    field="involved_ids",
                    issue_type="duplicate",
                    message="The same person is selected more than once",
                    severity="error",
                ))

        return ValidationResult.from_issues("expense", issues)


class TripValidator:
    """Validates the name given to a trip."""

    def validate(self, name: Optional[str]) -> ValidationResult:
        issues = []
        if not name or not name.strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Trip name is required",
                severity="error",
                suggested_fix="Name the trip after where you are going",
            ))
        return ValidationResult.from_issues("trip", issues)


class FriendValidator:
    """Validates a friend profile entry."""

    def __init__(self, settings: Optional[PaymentSettings] = None):
        self._settings = settings or get_settings().payment

    def validate(self, name: Optional[str], phone: Optional[str]) -> ValidationResult:
        issues = []

        if not name or not name.strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Name is required",
                severity="error",
            ))

        if phone and phone.strip():
            digits = digits_only(phone)
            expected = self._settings.local_phone_length
            prefix = self._settings.trunk_prefix
            if len(digits) != expected or not digits.startswith(prefix):
                issues.append(ValidationIssue(
                    field="phone",
                    issue_type="invalid_format",
                    message=f"Phone number must be a {expected}-digit mobile number",
                    severity="error",
                    suggested_fix=f"For example {prefix}{'8' * (expected - len(prefix))}",
                ))

        return ValidationResult.from_issues("friend", issues)


def get_user_friendly_summary(result: ValidationResult) -> str:
    """
    Generate a user-friendly summary of validation results.

    This is what the entry form shows.
    """
    if result.is_valid and not result.warnings:
        return "All checks passed."

    lines = []

    if result.has_errors:
        lines.append("Please fix the following:")
        for issue in result.issues:
            if issue.severity == "error":
                lines.append(f"   • {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     {issue.suggested_fix}")

    if result.warnings:
        if lines:
            lines.append("")
        lines.append("Please verify the following:")
        for warning in result.warnings:
            lines.append(f"   • {warning}")

    return "\n".join(lines)
