"""Tests for the share code codec (export/import)."""

import base64
import json
from decimal import Decimal

import pytest

from tests.conftest import make_expense
from tripsplit.models.entities import AppState, Friend, Trip
from tripsplit.sync.codec import (
    DecodeError,
    EncodeError,
    decode_token,
    encode_trip,
    export_trip,
    import_trip,
)


def _raw(token: str) -> dict:
    return json.loads(base64.b64decode(token).decode("utf-8"))


def _token(data) -> str:
    text = json.dumps(data, ensure_ascii=False)
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class TestExport:
    """Tests for export_trip / encode_trip."""

    def test_unknown_trip_returns_none(self, state):
        """Test NotFound surfaces as None."""
        assert export_trip(state, "nope") is None

    def test_token_is_ascii_without_control_characters(self, state):
        """Test the token is safe for QR codes and copy/paste."""
        token = export_trip(state, "t1")
        assert token.isascii()
        assert all(32 < ord(ch) < 127 for ch in token)

    def test_private_expenses_dropped_by_default(self, state):
        """Test the privacy filter on a normal share."""
        ids = [e["id"] for e in _raw(export_trip(state, "t1"))["expenses"]]
        assert "e_solo" not in ids
        assert ids == ["e_shared", "e_pair"]

    def test_private_expenses_kept_for_backup(self, state):
        """Test include_private keeps everything."""
        ids = [e["id"] for e in _raw(export_trip(state, "t1", include_private=True))["expenses"]]
        assert ids == ["e_shared", "e_solo", "e_pair"]

    def test_expense_paid_for_someone_else_is_not_private(self, state, trip):
        """Test that [other] != [payer] is shared."""
        trip.add_expense(make_expense("e_gift", "A", ["B"], amount="20"))
        ids = [e["id"] for e in _raw(export_trip(state, "t1"))["expenses"]]
        assert "e_gift" in ids

    def test_member_profiles_are_embedded(self, state):
        """Test the transport-only profiles field."""
        raw = _raw(export_trip(state, "t1"))
        assert [m["id"] for m in raw["_embeddedMembers"]] == ["A", "B", "C"]
        assert raw["_embeddedMembers"][0]["name"] == "หมวย"
        assert raw["members"] == ["A", "B", "C"]

    def test_dangling_members_are_not_embedded(self, state, trip):
        """Test that ids without a profile are skipped in the embedding."""
        trip.add_members(["gone"])
        raw = _raw(export_trip(state, "t1"))
        assert "gone" in raw["members"]
        assert "gone" not in [m["id"] for m in raw["_embeddedMembers"]]

    def test_export_leaves_state_untouched(self, state):
        """Test that filtering happens on a copy."""
        before = state.model_dump()
        export_trip(state, "t1")
        assert state.model_dump() == before
        assert "e_solo" in state.find_trip("t1").expenses

    def test_custom_embedded_field_name(self, trip, friends):
        """Test the configurable profiles field."""
        raw = _raw(encode_trip(trip, friends, embedded_field="_profiles"))
        assert "_profiles" in raw
        assert "_embeddedMembers" not in raw

    def test_unserializable_content_raises_encode_error(self, friends):
        """Test that serialization failures become EncodeError."""
        trip = Trip(id="t1", name="Trip", members=["A"])
        # Bypass validation to plant something JSON cannot carry
        trip.photo = object()
        with pytest.raises(EncodeError):
            encode_trip(trip, friends)

    def test_export_returns_none_on_encode_error(self, state, trip):
        """Test EncodeError is reported as None, not raised."""
        trip.photo = object()
        assert export_trip(state, "t1") is None


class TestImport:
    """Tests for import_trip / decode_token."""

    def test_round_trip_into_empty_state(self, state):
        """Test Import(Export(T, true)) reproduces T."""
        token = export_trip(state, "t1", include_private=True)
        other = AppState()

        trip_id = import_trip(other, token)

        assert trip_id == "t1"
        original = state.find_trip("t1")
        imported = other.find_trip("t1")
        assert imported.members == original.members
        assert set(imported.expenses) == set(original.expenses)
        for expense_id, expense in original.expenses.items():
            assert imported.expenses[expense_id].model_dump() == expense.model_dump()
        assert imported.name == original.name
        assert imported.date == original.date

    def test_round_trip_preserves_unicode_names(self, state):
        """Test non-Latin text survives the ASCII transport."""
        other = AppState()
        import_trip(other, export_trip(state, "t1"))
        assert other.find_trip("t1").name == "เชียงใหม่ 2026"
        assert other.find_friend("A").name == "หมวย"

    def test_embedded_profiles_added_when_unknown(self, state):
        """Test that the receiver learns who the members are."""
        other = AppState(friends=[Friend(id="Z", name="Zed")])
        import_trip(other, export_trip(state, "t1"))
        assert [f.id for f in other.friends] == ["Z", "A", "B", "C"]

    def test_existing_local_profile_is_never_overwritten(self, state):
        """Test first-write-wins for profiles."""
        other = AppState(friends=[Friend(id="A", name="Muay (my contact)", phone="0899999999")])
        import_trip(other, export_trip(state, "t1"))
        local = other.find_friend("A")
        assert local.name == "Muay (my contact)"
        assert local.phone == "0899999999"

    def test_embedded_field_is_not_persisted(self, state):
        """Test that the profiles field is transport-only."""
        other = AppState()
        import_trip(other, export_trip(state, "t1"))
        dumped = other.model_dump_json(by_alias=True)
        assert "_embeddedMembers" not in dumped

    def test_token_from_web_app_imports(self):
        """Test a payload in the web app's shape, amounts as numbers."""
        token = _token({
            "id": "t1700000000000abcde",
            "name": "ภูเก็ต",
            "photo": None,
            "date": "2024-11-02T10:00:00.000Z",
            "status": "active",
            "members": ["f1", "f2"],
            "expenses": [{
                "id": "e1", "tripId": "t1700000000000abcde", "title": "ข้าว",
                "amount": 99.5, "payerId": "f1", "involvedIds": ["f1", "f2"],
                "timestamp": 1700000000001, "attachments": [],
            }],
            "_embeddedMembers": [
                {"id": "f1", "name": "หมวย", "phone": "0812345678", "photo": None},
                {"id": "f2", "name": "เปิ้ล", "phone": ""},
            ],
        })
        state = AppState()
        assert import_trip(state, token) == "t1700000000000abcde"
        assert state.find_trip("t1700000000000abcde").expenses["e1"].amount == Decimal("99.5")
        assert state.find_friend("f2").name == "เปิ้ล"

    def test_line_wrapped_token_still_imports(self, state):
        """Test that whitespace from pasting is ignored."""
        token = export_trip(state, "t1")
        wrapped = "\n".join(token[i:i + 40] for i in range(0, len(token), 40))
        assert import_trip(AppState(), "  " + wrapped + "\n") == "t1"

    def test_stripped_padding_is_restored(self, state):
        """Test tokens whose '=' padding was lost in transit."""
        token = export_trip(state, "t1").rstrip("=")
        assert import_trip(AppState(), token) == "t1"

    @pytest.mark.parametrize("token", [
        "",
        "   ",
        "this is not a share code!!",
        base64.b64encode(b"\xff\xfe\xfd").decode("ascii"),
        base64.b64encode(b"hello world").decode("ascii"),
        base64.b64encode(b"[1, 2, 3]").decode("ascii"),
    ])
    def test_garbage_returns_none(self, token):
        """Test malformed input never raises."""
        assert import_trip(AppState(), token) is None

    @pytest.mark.parametrize("payload", [
        {"name": "No id"},
        {"id": "t1"},
        {"id": "t1", "name": "Trip", "members": "A,B"},
        {"id": "t1", "name": "Trip", "expenses": [{"id": "e1", "title": "x", "amount": 1, "payerId": "A"}]},
        {"id": "t1", "name": "Trip", "expenses": [{"id": "e1", "title": "x", "amount": -5,
                                                   "payerId": "A", "involvedIds": ["A"]}]},
        {"id": "t1", "name": "Trip", "expenses": ["e1"]},
        {"id": "t1", "name": "Trip", "_embeddedMembers": {"id": "A"}},
        {"id": "t1", "name": "Trip", "_embeddedMembers": [{"name": "No id"}]},
    ])
    def test_invalid_structure_raises_decode_error(self, payload):
        """Test strict schema validation of decoded payloads."""
        with pytest.raises(DecodeError):
            decode_token(_token(payload))

    def test_deeply_nested_payload_returns_none(self):
        """Test JSON nested too deep to parse is rejected, not raised."""
        depth = 200_000
        text = '{"id":"t","name":"x","members":' + "[" * depth + "]" * depth + "}"
        token = base64.b64encode(text.encode("ascii")).decode("ascii")
        state = AppState()

        with pytest.raises(DecodeError):
            decode_token(token)
        assert import_trip(state, token) is None
        assert state.trips == []

    def test_repeated_involved_member_is_counted_once(self):
        """Test a code listing the same member twice on one expense."""
        token = _token({
            "id": "t1", "name": "Trip", "members": ["A", "B"],
            "expenses": [{"id": "e1", "title": "x", "amount": 90, "payerId": "B",
                          "involvedIds": ["A", "A", "B"]}],
        })
        state = AppState()
        import_trip(state, token)
        assert state.find_trip("t1").expenses["e1"].involved_ids == ["A", "B"]

    def test_failed_import_leaves_state_untouched(self, state):
        """Test that a bad code never half-merges."""
        before = state.model_dump()
        token = _token({
            "id": "t1",
            "name": "Trip",
            "members": ["A", "X"],
            "expenses": [{"id": "e9", "title": "x", "amount": "oops", "payerId": "X", "involvedIds": ["X"]}],
            "_embeddedMembers": [{"id": "X", "name": "Stranger"}],
        })
        assert import_trip(state, token) is None
        assert state.model_dump() == before
        assert state.find_friend("X") is None

    def test_too_long_token_is_rejected(self):
        """Test the length guard."""
        with pytest.raises(DecodeError, match="too long"):
            decode_token("A" * 5000, max_length=4096)

    def test_non_string_token(self):
        """Test that a non-text token is rejected."""
        with pytest.raises(DecodeError):
            decode_token(None)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
