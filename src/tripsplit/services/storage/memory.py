"""
In-Memory Storage

Used by tests and by callers that manage persistence themselves. The
saved state is kept as its serialized JSON so that a later load() hands
back an independent copy, exactly like the file backend does.
"""

from typing import Optional
from uuid import UUID

from tripsplit.models.audit import AuditEvent
from tripsplit.models.entities import AppState
from tripsplit.services.storage.interface import (
    AuditStorageInterface,
    StateStorageInterface,
)


class InMemoryStateStorage(StateStorageInterface):

    def __init__(self, initial: Optional[AppState] = None):
        self._snapshot: Optional[str] = None
        self.save_count = 0
        if initial is not None:
            self._snapshot = initial.model_dump_json(by_alias=True)

    def load(self) -> Optional[AppState]:
        if self._snapshot is None:
            return None
        return AppState.model_validate_json(self._snapshot)

    def save(self, state: AppState) -> None:
        self._snapshot = state.model_dump_json(by_alias=True)
        self.save_count += 1


class InMemoryAuditStorage(AuditStorageInterface):

    def __init__(self):
        self.events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return sorted(
            (e for e in self.events if e.correlation_id == correlation_id),
            key=lambda e: e.timestamp,
        )

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return sorted(self.events, key=lambda e: e.timestamp, reverse=True)[:limit]
