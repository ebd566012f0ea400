"""
Audit Logger

Every significant action in the system is logged. This provides:
1. Traceability of shares and imports between devices
2. Debugging capability for rejected share codes
3. A history the user can look back on

The audit logger:
- Is synchronous, like the rest of the engine
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from tripsplit.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from tripsplit.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


ENGINE_LOGGER = "tripsplit"


def configure_logging(debug: bool = False) -> None:
    """Set the level of every tripsplit.* logger."""
    logging.getLogger(ENGINE_LOGGER).setLevel(logging.DEBUG if debug else logging.INFO)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Structured logger for engine modules."""
    return structlog.get_logger(name)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, if one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("tripsplit.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_trip_created(self, trip_id: str, name: str) -> None:
        self.log(AuditEventBuilder.trip_created(trip_id=trip_id, name=name))

    def log_trip_updated(self, trip_id: str, changed: list[str]) -> None:
        self.log(AuditEventBuilder.trip_updated(trip_id=trip_id, changed=changed))

    def log_members_added(self, trip_id: str, friend_ids: list[str]) -> None:
        self.log(AuditEventBuilder.members_added(trip_id=trip_id, friend_ids=friend_ids))

    def log_friend_added(self, friend_id: str, name: str) -> None:
        self.log(AuditEventBuilder.friend_changed(AuditEventType.FRIEND_ADDED, friend_id, name))

    def log_friend_updated(self, friend_id: str, name: str) -> None:
        self.log(AuditEventBuilder.friend_changed(AuditEventType.FRIEND_UPDATED, friend_id, name))

    def log_friend_removed(self, friend_id: str, name: str) -> None:
        self.log(AuditEventBuilder.friend_changed(AuditEventType.FRIEND_REMOVED, friend_id, name))

    def log_expense_added(
        self,
        trip_id: str,
        expense_id: str,
        amount: str,
        involved_count: int,
    ) -> None:
        """Log a stored expense."""
        self.log(AuditEventBuilder.expense_added(
            trip_id=trip_id,
            expense_id=expense_id,
            amount=amount,
            involved_count=involved_count,
        ))

    def log_expense_rejected(self, trip_id: str, issues: list[dict]) -> None:
        """Log an expense entry the validator refused."""
        self.log(AuditEventBuilder.expense_rejected(trip_id=trip_id, issues=issues))

    def log_trip_exported(
        self,
        trip_id: str,
        include_private: bool,
        token_length: int,
        correlation_id: UUID,
    ) -> None:
        """Log a successful export."""
        self.log(AuditEventBuilder.trip_exported(
            trip_id=trip_id,
            include_private=include_private,
            token_length=token_length,
            correlation_id=correlation_id,
        ))

    def log_export_failed(self, trip_id: str, reason: str, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.export_failed(
            trip_id=trip_id,
            reason=reason,
            correlation_id=correlation_id,
        ))

    def log_trip_imported(
        self,
        trip_id: str,
        was_new: bool,
        expense_count: int,
        correlation_id: UUID,
    ) -> None:
        """Log an import that was merged into local state."""
        self.log(AuditEventBuilder.trip_imported(
            trip_id=trip_id,
            was_new=was_new,
            expense_count=expense_count,
            correlation_id=correlation_id,
        ))

    def log_import_failed(self, reason: str, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.import_failed(reason=reason, correlation_id=correlation_id))

    def log_profiles_imported(self, friend_ids: list[str], correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.profiles_imported(
            friend_ids=friend_ids,
            correlation_id=correlation_id,
        ))

    def log_settlement_planned(self, trip_id: str, transfer_count: int) -> None:
        self.log(AuditEventBuilder.settlement_planned(
            trip_id=trip_id,
            transfer_count=transfer_count,
        ))

    def log_state_saved(self, trip_count: int, friend_count: int) -> None:
        self.log(AuditEventBuilder.state_saved(trip_count=trip_count, friend_count=friend_count))

    def log_save_failed(self, error_message: str) -> None:
        self.log(AuditEventBuilder.save_failed(error_message=error_message))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., an import).
    Pass it through all subsequent operations.
    """
    return uuid4()
