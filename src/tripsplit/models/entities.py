"""
Core Data Models for tripsplit

Friend, Trip and Expense are the shapes that travel between devices and
into the persisted state. They are designed to:
1. Validate anything decoded from a token before it touches local state
2. Load states and tokens written by the web app unchanged
   (camelCase field names on the wire, snake_case in Python)
3. Keep the invariants the sync engine relies on (no duplicate members,
   one expense per id)

Amounts are Decimal in memory and plain JSON numbers on the wire.
"""

import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any, Iterable, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    SerializationInfo,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


UNKNOWN_MEMBER_NAME = "Unknown"

_NON_DIGITS = re.compile(r"[^0-9]")


def new_id(prefix: str) -> str:
    """Opaque id, unique across devices (ids are merge keys)."""
    return f"{prefix}{uuid4().hex}"


def now_ms() -> int:
    """Current instant as epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def digits_only(value: str) -> str:
    return _NON_DIGITS.sub("", value)


def _float_to_decimal(value: Any) -> Any:
    # Decimal(0.1) would carry the binary expansion; go through repr instead
    if isinstance(value, float):
        return Decimal(repr(value))
    return value


Amount = Annotated[
    Decimal,
    Field(ge=0, allow_inf_nan=False),
    BeforeValidator(_float_to_decimal),
    PlainSerializer(float, return_type=float, when_used="json"),
]


WIRE_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
    str_strip_whitespace=True,
)


# =============================================================================
# FRIEND
# =============================================================================

class Friend(BaseModel):
    """
    A member profile.

    Friends form one flat global list. The same id is used in every trip
    the friend belongs to, and is what a token's embedded profiles are
    matched on.
    """
    model_config = WIRE_CONFIG

    id: str = Field(
        default_factory=lambda: new_id("f"),
        min_length=1,
        description="Opaque friend id"
    )
    name: str = Field(
        ...,
        min_length=1,
        description="Display name"
    )
    phone: Optional[str] = Field(
        default=None,
        description="Digits only; used to derive a payment code"
    )
    photo: Optional[str] = Field(
        default=None,
        description="Opaque image payload"
    )
    qr_code: Optional[str] = Field(
        default=None,
        description="Opaque image of the friend's own payment QR code"
    )

    @field_validator('phone', mode='before')
    @classmethod
    def normalize_phone(cls, v: Any) -> Any:
        """Keep digits only; an empty number is no number."""
        if v is None:
            return None
        if isinstance(v, str):
            return digits_only(v) or None
        return v


# =============================================================================
# EXPENSE
# =============================================================================

class Expense(BaseModel):
    """
    A single payment event: who paid, how much, who shares it.

    Expenses are immutable once created. The only way an expense changes
    is by being overwritten with a same-id expense during a merge.
    """
    model_config = WIRE_CONFIG

    id: str = Field(
        default_factory=lambda: new_id("e"),
        min_length=1,
        description="Opaque expense id (merge key)"
    )
    trip_id: Optional[str] = Field(
        default=None,
        description="Back-reference to the owning trip"
    )
    title: str = Field(
        ...,
        min_length=1,
        description="What the money was spent on"
    )
    amount: Amount
    payer_id: str = Field(
        ...,
        min_length=1,
        description="Friend who fronted the amount"
    )
    involved_ids: list[str] = Field(
        ...,
        min_length=1,
        description="Friends sharing the cost equally"
    )
    timestamp: int = Field(
        default_factory=now_ms,
        description="Epoch milliseconds; drives display order"
    )
    attachments: list[str] = Field(
        default_factory=list,
        description="Opaque image payloads (receipts)"
    )

    @field_validator('involved_ids')
    @classmethod
    def dedupe_involved(cls, v: list[str]) -> list[str]:
        # A member shares an expense once, however often they are listed
        return list(dict.fromkeys(v))

    @field_validator('attachments', mode='before')
    @classmethod
    def default_attachments(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def split_amount(self) -> Decimal:
        """Share of the amount owed by each involved member."""
        return self.amount / len(self.involved_ids)

    @property
    def is_private(self) -> bool:
        """Logged by the payer purely for themselves."""
        return len(self.involved_ids) == 1 and self.involved_ids[0] == self.payer_id


# =============================================================================
# TRIP
# =============================================================================

class Trip(BaseModel):
    """
    A shared expense-tracking session.

    The expense collection is an ordered map keyed by expense id. Its
    insertion order is the display order; on the wire it is a list.
    """
    model_config = WIRE_CONFIG

    id: str = Field(
        default_factory=lambda: new_id("t"),
        min_length=1,
        description="Opaque trip id (merge key)"
    )
    name: str = Field(
        ...,
        min_length=1,
        description="Trip name"
    )
    photo: Optional[str] = Field(
        default=None,
        description="Opaque cover image payload"
    )
    date: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (never changes)"
    )
    members: list[str] = Field(
        default_factory=list,
        description="Friend ids, no duplicates"
    )
    expenses: dict[str, Expense] = Field(
        default_factory=dict,
        description="Expenses by id, in display order"
    )

    @field_validator('members', mode='before')
    @classmethod
    def default_members(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator('members')
    @classmethod
    def dedupe_members(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(v))

    @field_validator('expenses', mode='before')
    @classmethod
    def index_expenses(cls, v: Any) -> Any:
        """Accept the list form and index it by id (last duplicate wins)."""
        if v is None:
            return {}
        if not isinstance(v, (list, tuple)):
            return v

        indexed: dict[str, Any] = {}
        for item in v:
            if isinstance(item, Expense):
                key = item.id
            elif isinstance(item, dict):
                key = item.get("id")
            else:
                raise ValueError("expense entries must be objects")
            if not isinstance(key, str) or not key:
                raise ValueError("every expense needs a non-empty id")
            indexed[key] = item
        return indexed

    @field_validator('expenses')
    @classmethod
    def rekey_expenses(cls, v: dict[str, Expense]) -> dict[str, Expense]:
        # A mapping given directly must still be keyed by the expense's own id
        return {expense.id: expense for expense in v.values()}

    @field_serializer('expenses')
    def serialize_expenses(
        self,
        expenses: dict[str, Expense],
        info: SerializationInfo,
    ) -> list[dict[str, Any]]:
        return [
            expense.model_dump(mode=info.mode, by_alias=bool(info.by_alias))
            for expense in expenses.values()
        ]

    def timeline(self) -> list[Expense]:
        """Expenses sorted newest first."""
        return sorted(self.expenses.values(), key=lambda e: e.timestamp, reverse=True)

    def add_members(self, friend_ids: Iterable[str]) -> list[str]:
        """
        Union the given ids into the member list.

        Returns the ids that were not members before.
        """
        added = [
            friend_id for friend_id in dict.fromkeys(friend_ids)
            if friend_id not in self.members
        ]
        self.members = self.members + added
        return added

    def add_expense(self, expense: Expense) -> None:
        """Put a freshly created expense at the top of the display order."""
        remaining = {k: v for k, v in self.expenses.items() if k != expense.id}
        self.expenses = {expense.id: expense, **remaining}


# =============================================================================
# WHOLE STATE
# =============================================================================

class AppState(BaseModel):
    """
    Everything the app persists: trips (newest first), friends and the
    currently selected trip.

    Core operations receive this object explicitly and mutate it in place.
    """
    model_config = WIRE_CONFIG

    trips: list[Trip] = Field(default_factory=list)
    friends: list[Friend] = Field(default_factory=list)
    current_trip_id: Optional[str] = None

    @field_validator('trips', 'friends', mode='before')
    @classmethod
    def default_lists(cls, v: Any) -> Any:
        return [] if v is None else v

    def find_trip(self, trip_id: str) -> Optional[Trip]:
        return next((t for t in self.trips if t.id == trip_id), None)

    def find_friend(self, friend_id: str) -> Optional[Friend]:
        return next((f for f in self.friends if f.id == friend_id), None)

    def resolve_members(self, trip: Trip) -> list[Friend]:
        """Profiles of a trip's members; dangling ids are skipped."""
        by_id = {f.id: f for f in self.friends}
        return [by_id[m] for m in trip.members if m in by_id]

    def display_name(self, friend_id: str) -> str:
        friend = self.find_friend(friend_id)
        return friend.name if friend else UNKNOWN_MEMBER_NAME
