"""
Data Models Package

This package contains all Pydantic models used by tripsplit.
Everything read from a token or from disk must conform to these schemas.
"""

from tripsplit.models.entities import (
    UNKNOWN_MEMBER_NAME,
    AppState,
    Expense,
    Friend,
    Trip,
)
from tripsplit.models.settlement import (
    SettlementPlan,
    Transfer,
)
from tripsplit.models.validation import (
    ValidationIssue,
    ValidationResult,
)
from tripsplit.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Entity models
    "UNKNOWN_MEMBER_NAME",
    "AppState",
    "Expense",
    "Friend",
    "Trip",
    # Settlement models
    "SettlementPlan",
    "Transfer",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
