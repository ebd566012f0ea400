"""
Audit Models for tripsplit

Every state-changing action and every share/import attempt produces an
audit event. This gives:
1. Traceability of where a trip's data came from (which import merged what)
2. Debugging information when a token fails to decode
3. A record of entries the validator rejected

Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Trips
    TRIP_CREATED = "trip_created"
    TRIP_UPDATED = "trip_updated"
    MEMBERS_ADDED = "members_added"

    # Friends
    FRIEND_ADDED = "friend_added"
    FRIEND_UPDATED = "friend_updated"
    FRIEND_REMOVED = "friend_removed"

    # Expenses
    EXPENSE_ADDED = "expense_added"
    EXPENSE_REJECTED = "expense_rejected"

    # Sharing
    TRIP_EXPORTED = "trip_exported"
    EXPORT_FAILED = "export_failed"
    TRIP_IMPORTED = "trip_imported"
    IMPORT_FAILED = "import_failed"
    PROFILES_IMPORTED = "profiles_imported"

    # Settlement
    SETTLEMENT_PLANNED = "settlement_planned"

    # Persistence
    STATE_SAVED = "state_saved"
    SAVE_FAILED = "save_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'trip', 'friend', 'expense')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., an import and the save after it)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


# User-typed text quoted in a description is cut to this length
DESCRIPTION_NAME_LIMIT = 80


def _quote(text: str) -> str:
    if len(text) <= DESCRIPTION_NAME_LIMIT:
        return text
    return text[:DESCRIPTION_NAME_LIMIT - 3] + "..."


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.trip_created(trip_id, name)
        event = AuditEventBuilder.import_failed(reason, correlation_id)
    """

    @staticmethod
    def trip_created(trip_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRIP_CREATED,
            entity_type="trip",
            entity_id=trip_id,
            description=f"Trip created: {_quote(name)}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def trip_updated(trip_id: str, changed: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRIP_UPDATED,
            entity_type="trip",
            entity_id=trip_id,
            description=f"Trip updated: {', '.join(changed) or 'no changes'}",
            details={"changed": changed},
            is_user_action=True,
        )

    @staticmethod
    def members_added(trip_id: str, friend_ids: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MEMBERS_ADDED,
            entity_type="trip",
            entity_id=trip_id,
            description=f"{len(friend_ids)} member(s) added to trip",
            details={"friend_ids": friend_ids},
            is_user_action=True,
        )

    @staticmethod
    def friend_changed(
        event_type: AuditEventType,
        friend_id: str,
        name: str,
    ) -> AuditEvent:
        verb = event_type.value.split("_", 1)[1]
        return AuditEvent(
            event_type=event_type,
            entity_type="friend",
            entity_id=friend_id,
            description=f"Friend {verb}: {_quote(name)}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def expense_added(
        trip_id: str,
        expense_id: str,
        amount: str,
        involved_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            description=f"Expense of {amount} split between {involved_count}",
            details={
                "trip_id": trip_id,
                "amount": amount,
                "involved_count": involved_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_rejected(trip_id: str, issues: list[dict]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="trip",
            entity_id=trip_id,
            description=f"Expense rejected with {len(issues)} issue(s)",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def trip_exported(
        trip_id: str,
        include_private: bool,
        token_length: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRIP_EXPORTED,
            entity_type="trip",
            entity_id=trip_id,
            correlation_id=correlation_id,
            description="Trip exported to a share code",
            details={
                "include_private": include_private,
                "token_length": token_length,
            },
            is_user_action=True,
        )

    @staticmethod
    def export_failed(trip_id: str, reason: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="trip",
            entity_id=trip_id,
            correlation_id=correlation_id,
            description="Trip could not be exported",
            error_message=reason,
        )

    @staticmethod
    def trip_imported(
        trip_id: str,
        was_new: bool,
        expense_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRIP_IMPORTED,
            entity_type="trip",
            entity_id=trip_id,
            correlation_id=correlation_id,
            description="New trip imported" if was_new else "Trip merged from share code",
            details={
                "was_new": was_new,
                "expense_count": expense_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def import_failed(reason: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_FAILED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description="Share code rejected: invalid or corrupted",
            error_message=reason,
            is_user_action=True,
        )

    @staticmethod
    def profiles_imported(friend_ids: list[str], correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROFILES_IMPORTED,
            entity_type="friend",
            correlation_id=correlation_id,
            description=f"{len(friend_ids)} friend profile(s) learned from a share code",
            details={"friend_ids": friend_ids},
        )

    @staticmethod
    def settlement_planned(trip_id: str, transfer_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_PLANNED,
            severity=AuditSeverity.DEBUG,
            entity_type="trip",
            entity_id=trip_id,
            description=f"Settlement planned with {transfer_count} transfer(s)",
            details={"transfer_count": transfer_count},
        )

    @staticmethod
    def state_saved(trip_count: int, friend_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_SAVED,
            severity=AuditSeverity.DEBUG,
            description="State saved",
            details={
                "trip_count": trip_count,
                "friend_count": friend_count,
            },
        )

    @staticmethod
    def save_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            description="State could not be saved",
            error_message=error_message,
        )
