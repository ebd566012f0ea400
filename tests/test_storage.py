"""Tests for state and audit storage backends."""

import json
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from tripsplit.models.audit import AuditEventBuilder
from tripsplit.models.entities import AppState
from tripsplit.services.storage import (
    CorruptStateError,
    InMemoryAuditStorage,
    InMemoryStateStorage,
    JsonFileStateStorage,
    JsonLinesAuditStorage,
)


class TestJsonFileStateStorage:
    """Tests for the JSON file backend."""

    def test_missing_file_loads_none(self, tmp_path):
        """Test a first run."""
        assert JsonFileStateStorage(tmp_path / "state.json").load() is None

    def test_save_then_load(self, tmp_path, state):
        """Test the whole state survives a save/load."""
        storage = JsonFileStateStorage(tmp_path / "nested" / "state.json")
        storage.save(state)
        loaded = storage.load()
        assert loaded.model_dump() == state.model_dump()
        assert list(loaded.find_trip("t1").expenses) == ["e_shared", "e_solo", "e_pair"]

    def test_file_uses_camel_case_shape(self, tmp_path, state):
        """Test the on-disk shape matches the web app's."""
        path = tmp_path / "state.json"
        JsonFileStateStorage(path).save(state)
        raw = json.loads(path.read_text(encoding="utf-8"))
        assert set(raw) == {"trips", "friends", "currentTripId"}
        expense = raw["trips"][0]["expenses"][0]
        assert expense["payerId"] == "A"
        assert expense["amount"] == 300

    def test_no_temp_file_left_behind(self, tmp_path, state):
        """Test the atomic replace cleans up."""
        JsonFileStateStorage(tmp_path / "state.json").save(state)
        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]

    def test_corrupt_file_raises(self, tmp_path):
        """Test that a broken file is reported, not replaced."""
        path = tmp_path / "state.json"
        path.write_text('{"trips": "not a list"}', encoding="utf-8")
        with pytest.raises(CorruptStateError):
            JsonFileStateStorage(path).load()

    def test_not_json_raises(self, tmp_path):
        """Test a truncated file."""
        path = tmp_path / "state.json"
        path.write_text('{"trips": [', encoding="utf-8")
        with pytest.raises(CorruptStateError):
            JsonFileStateStorage(path).load()


class TestInMemoryStateStorage:
    """Tests for the in-memory backend."""

    def test_empty(self):
        """Test that nothing saved loads None."""
        assert InMemoryStateStorage().load() is None

    def test_loads_are_independent_copies(self, state):
        """Test that mutating a loaded state does not touch the saved one."""
        storage = InMemoryStateStorage(state)
        first = storage.load()
        first.trips.clear()
        assert len(storage.load().trips) == 1

    def test_save_count(self):
        """Test the save counter."""
        storage = InMemoryStateStorage()
        storage.save(AppState())
        storage.save(AppState())
        assert storage.save_count == 2


class TestAuditStorage:
    """Tests for the audit backends."""

    @pytest.fixture(params=["memory", "jsonl"])
    def audit_storage(self, request, tmp_path):
        if request.param == "memory":
            return InMemoryAuditStorage()
        return JsonLinesAuditStorage(tmp_path / "audit.jsonl")

    def test_recent_events_newest_first(self, audit_storage):
        """Test get_recent_events ordering and limit."""
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        for i in range(3):
            event = AuditEventBuilder.trip_created(trip_id=f"t{i}", name="x")
            audit_storage.append_event(event.model_copy(update={"timestamp": base + timedelta(minutes=i)}))
        recent = audit_storage.get_recent_events(limit=2)
        assert [e.entity_id for e in recent] == ["t2", "t1"]

    def test_events_by_correlation_id(self, audit_storage):
        """Test filtering by correlation id."""
        correlation_id = uuid4()
        audit_storage.append_event(AuditEventBuilder.import_failed("bad", correlation_id))
        audit_storage.append_event(AuditEventBuilder.import_failed("bad", uuid4()))
        events = audit_storage.get_events_by_correlation_id(correlation_id)
        assert len(events) == 1
        assert events[0].correlation_id == correlation_id

    def test_jsonl_skips_torn_line(self, tmp_path):
        """Test that a partial last line does not break reading."""
        path = tmp_path / "audit.jsonl"
        storage = JsonLinesAuditStorage(path)
        storage.append_event(AuditEventBuilder.trip_created(trip_id="t1", name="x"))
        with path.open("a", encoding="utf-8") as fh:
            fh.write('{"event_type": "trip_cre')
        assert len(storage.get_recent_events()) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
