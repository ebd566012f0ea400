"""
Abstract Storage Interface

The persistence gateway sits outside the sync engine. The engine only
ever hands it the whole state to save, and asks for the whole state back
at startup. No partial or incremental writes.

Keeping this behind an interface lets us:
1. Store state as a local JSON file today
2. Use in-memory storage for testing
3. Move to platform storage later without touching the engine
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from tripsplit.models.audit import AuditEvent
from tripsplit.models.entities import AppState


class StateStorageInterface(ABC):
    """
    Whole-state load/save.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def load(self) -> Optional[AppState]:
        """
        Load the persisted state.

        Returns:
            The state, or None if nothing was saved yet

        Raises:
            CorruptStateError: If what was saved cannot be read back
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def save(self, state: AppState) -> None:
        """
        Persist the full state, replacing whatever was there.

        Raises:
            StorageError: If save fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one import flow).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptStateError(StorageError):
    """Persisted state exists but does not match the schema."""
    pass
