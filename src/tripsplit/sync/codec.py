"""
Share Code Codec

A trip travels between devices as a share code: a plain ASCII string
that fits in a QR code and survives copy/paste through chat apps.

Encoding:
    trip (deep copy, private expenses dropped unless asked for)
    + member profiles under a transport-only field
    -> compact JSON (UTF-8, non-Latin names kept as-is)
    -> standard Base64

This is byte-compatible with the web app's
btoa(unescape(encodeURIComponent(json))), so codes from either side
import on the other.

Decoding is the reverse, followed by strict schema validation. Nothing in
the local state is touched until the whole payload has validated, so a
bad code can never half-merge.
"""

import base64
import json
from typing import Any, Iterable, Optional

from pydantic import BaseModel, Field, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from tripsplit.audit.logger import get_logger
from tripsplit.config import get_settings
from tripsplit.models.entities import AppState, Friend, Trip
from tripsplit.sync.merge import merge_trip


logger = get_logger(__name__)

# Shown to the user whenever a code cannot be imported
INVALID_TOKEN_MESSAGE = "Invalid code or corrupted data"

_FRIEND_LIST = TypeAdapter(list[Friend])


class CodecError(Exception):
    """Base exception for share code encoding/decoding."""
    pass


class EncodeError(CodecError):
    """The trip could not be serialized."""
    pass


class DecodeError(CodecError):
    """The text is not a valid share code."""
    pass


class TripPayload(BaseModel):
    """What a share code carries: the trip and its members' profiles."""

    trip: Trip
    members: list[Friend] = Field(default_factory=list)


def _embedded_field(override: Optional[str]) -> str:
    return override or get_settings().app.embedded_members_field


def encode_trip(
    trip: Trip,
    members: Iterable[Friend],
    include_private: bool = False,
    embedded_field: Optional[str] = None,
) -> str:
    """
    Encode a trip into a share code.

    Args:
        trip: Trip to share. It is not modified.
        members: Profiles to embed so the receiver knows who is who
        include_private: Keep expenses the payer logged only for
            themselves (for a personal backup)
        embedded_field: Name of the transport-only profiles field

    Raises:
        EncodeError: If the trip cannot be serialized
    """
    outgoing = trip.model_copy(deep=True)
    if not include_private:
        outgoing.expenses = {
            expense_id: expense
            for expense_id, expense in outgoing.expenses.items()
            if not expense.is_private
        }

    try:
        data = outgoing.model_dump(mode="json", by_alias=True)
        data[_embedded_field(embedded_field)] = [
            member.model_dump(mode="json", by_alias=True) for member in members
        ]
        text = json.dumps(data, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
    except (PydanticSerializationError, TypeError, ValueError) as e:
        raise EncodeError(f"Trip {trip.id} could not be serialized: {e}") from e

    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def _require_id(item: Any, what: str) -> None:
    # Ids are merge keys; a payload must never get a freshly generated one
    if not isinstance(item, dict) or not isinstance(item.get("id"), str) or not item["id"]:
        raise DecodeError(f"Share code contains a {what} without an id")


def decode_token(
    token: str,
    embedded_field: Optional[str] = None,
    max_length: Optional[int] = None,
) -> TripPayload:
    """
    Decode and validate a share code.

    Whitespace anywhere in the code is ignored (line-wrapped pastes), and
    stripped Base64 padding is restored.

    Raises:
        DecodeError: If the code is malformed, corrupted or does not
            describe a valid trip
    """
    if not isinstance(token, str):
        raise DecodeError("Share code must be text")

    compact = "".join(token.split())
    if not compact:
        raise DecodeError("Share code is empty")

    limit = max_length or get_settings().app.max_token_length
    if len(compact) > limit:
        raise DecodeError(f"Share code is too long ({len(compact)} > {limit} characters)")

    compact += "=" * (-len(compact) % 4)

    try:
        raw = base64.b64decode(compact, validate=True)
        data = json.loads(raw.decode("utf-8"))
    except (ValueError, RecursionError) as e:
        # RecursionError: JSON nested deeper than the parser can follow
        raise DecodeError(f"Share code is not readable: {e}") from e

    if not isinstance(data, dict):
        raise DecodeError("Share code does not contain a trip")

    embedded = data.pop(_embedded_field(embedded_field), None)
    if embedded is None:
        embedded = []
    if not isinstance(embedded, list):
        raise DecodeError("Share code member profiles are malformed")

    _require_id(data, "trip")
    for profile in embedded:
        _require_id(profile, "member profile")

    try:
        trip = Trip.model_validate(data)
        members = _FRIEND_LIST.validate_python(embedded)
    except ValidationError as e:
        raise DecodeError(
            f"Share code failed validation with {e.error_count()} error(s): "
            f"{e.errors()[0]['msg']}"
        ) from e

    return TripPayload(trip=trip, members=members)


def adopt_profiles(state: AppState, profiles: Iterable[Friend]) -> list[Friend]:
    """
    Add profiles for friends this device does not know yet.

    An existing local profile is never overwritten (first write wins).

    Returns:
        The profiles that were added
    """
    known = {friend.id for friend in state.friends}
    added = []
    for profile in profiles:
        if profile.id in known:
            continue
        state.friends.append(profile)
        known.add(profile.id)
        added.append(profile)
    return added


def export_trip(
    state: AppState,
    trip_id: str,
    include_private: bool = False,
    embedded_field: Optional[str] = None,
) -> Optional[str]:
    """
    Export a trip from the state as a share code.

    Returns:
        The share code, or None if the trip does not exist or could not
        be serialized. The state is never modified.
    """
    trip = state.find_trip(trip_id)
    if trip is None:
        logger.warning("export_trip_not_found", trip_id=trip_id)
        return None

    try:
        token = encode_trip(
            trip,
            state.resolve_members(trip),
            include_private=include_private,
            embedded_field=embedded_field,
        )
    except EncodeError as e:
        logger.error("export_failed", trip_id=trip_id, error=str(e))
        return None

    logger.info(
        "trip_exported",
        trip_id=trip_id,
        include_private=include_private,
        token_length=len(token),
    )
    return token


def import_trip(
    state: AppState,
    token: str,
    embedded_field: Optional[str] = None,
) -> Optional[str]:
    """
    Import a share code into the state.

    Unknown member profiles are adopted, then the trip is merged.

    Returns:
        The imported trip's id, or None if the code is invalid. On None
        the state is unchanged and the caller should show
        INVALID_TOKEN_MESSAGE.
    """
    try:
        payload = decode_token(token, embedded_field=embedded_field)
    except DecodeError as e:
        logger.warning("import_failed", error=str(e))
        return None

    adopted = adopt_profiles(state, payload.members)
    if adopted:
        logger.info(
            "profiles_adopted",
            trip_id=payload.trip.id,
            friend_ids=[f.id for f in adopted],
        )

    return merge_trip(state, payload.trip)
