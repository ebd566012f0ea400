"""
Local JSON File Storage

The whole state is one JSON document on disk, in the same camelCase
shape the web app kept in localStorage. An exported state file
from there loads as-is.

Writes go to a temporary sibling first and are moved into place, so a
crash mid-write leaves the previous state intact. Transient OS errors
(file briefly locked by a sync client, etc.) are retried.
"""

import json
import os
from pathlib import Path
from typing import Optional
from uuid import UUID

from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from tripsplit.config import get_settings
from tripsplit.models.audit import AuditEvent
from tripsplit.models.entities import AppState
from tripsplit.services.storage.interface import (
    AuditStorageInterface,
    CorruptStateError,
    StateStorageInterface,
    StorageError,
)


class JsonFileStateStorage(StateStorageInterface):
    """Whole-state storage in a single JSON file."""

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path).expanduser() if path else get_settings().app.state_file

    @property
    def path(self) -> Path:
        return self._path

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        retry=retry_if_exception_type(OSError),
        reraise=True,
    )
    def _write(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        os.replace(tmp_path, self._path)

    def load(self) -> Optional[AppState]:
        """Read the state file; None if it does not exist yet."""
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read state from {self._path}: {e}")

        try:
            return AppState.model_validate_json(raw)
        except ValidationError as e:
            raise CorruptStateError(
                f"State file {self._path} is not a valid state: {e.error_count()} error(s)"
            ) from e

    def save(self, state: AppState) -> None:
        """Replace the state file with the given state."""
        payload = state.model_dump_json(by_alias=True, indent=2)
        try:
            self._write(payload)
        except OSError as e:
            raise StorageError(f"Failed to save state to {self._path}: {e}")


class JsonLinesAuditStorage(AuditStorageInterface):
    """
    Audit trail as an append-only JSON Lines file.

    One event per line, so appends never rewrite earlier events.
    """

    def __init__(self, path: Path):
        self._path = Path(path).expanduser()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        retry=retry_if_exception_type(OSError),
        reraise=True,
    )
    def _append_line(self, line: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")

    def _read_events(self) -> list[AuditEvent]:
        try:
            lines = self._path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageError(f"Failed to read audit log: {e}")

        events = []
        for line in lines:
            if not line.strip():
                continue
            try:
                events.append(AuditEvent.model_validate(json.loads(line)))
            except ValueError:
                # A torn last line from an interrupted append
                continue
        return events

    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._append_line(event.model_dump_json())
            return True
        except OSError:
            return False

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        events = [e for e in self._read_events() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        events = self._read_events()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
