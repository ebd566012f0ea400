"""
Validation Result Models

Entry validation never fixes input silently. It reports issues and the
caller asks the user to correct them.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    """One problem with one field of an entry."""

    field: str = Field(
        ...,
        description="Entry field the problem is on"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'not_a_member')"
    )
    message: str = Field(
        ...,
        description="Text shown to the user"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="error blocks the entry, warning and info do not"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Hint on how to correct the entry"
    )


class ValidationResult(BaseModel):
    """
    Result of validating one entry form (an expense or a friend).

    Any error-level issue means the entry must not be stored.
    """

    subject: str = Field(
        ...,
        description="What was validated ('expense', 'friend')"
    )
    validated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    is_valid: bool = Field(
        ...,
        description="False if any error-level issue was found"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="Every issue, in the order the checks ran"
    )

    warnings: list[str] = Field(
        default_factory=list,
        description="Messages of warning-level issues"
    )

    @property
    def has_errors(self) -> bool:
        """True if the entry must not be stored."""
        return self.error_count > 0

    @property
    def error_count(self) -> int:
        """Number of blocking issues."""
        return len([i for i in self.issues if i.severity == "error"])

    @classmethod
    def from_issues(cls, subject: str, issues: list[ValidationIssue]) -> "ValidationResult":
        return cls(
            subject=subject,
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
            warnings=[i.message for i in issues if i.severity == "warning"],
        )
