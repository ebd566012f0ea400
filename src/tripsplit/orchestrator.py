"""
Main Orchestrator for tripsplit

This module ties together all the components and defines the flows the
UI calls into:
1. Editing (trips, friends, members, expenses)
2. Sharing (export a share code, import one and merge it)
3. Settling up (balances, transfers, payment codes)

The orchestrator enforces the boundaries:
- Nothing typed by the user is stored without passing validation
- A share code that does not decode leaves the state untouched
- Every state change is saved whole and audited

The state itself is a plain AppState object owned by the TripBook and
handed explicitly to the engine functions.
"""

from decimal import Decimal
from pathlib import Path
from typing import Any, Optional, Sequence

from tripsplit.audit import AuditLogger, configure_logging, create_correlation_id, get_logger
from tripsplit.config import get_settings
from tripsplit.ledger import compute_balances, plan_settlement
from tripsplit.models.entities import AppState, Expense, Friend, Trip
from tripsplit.models.settlement import SettlementPlan
from tripsplit.models.validation import ValidationResult
from tripsplit.payments import PaymentRequest, payment_request_for
from tripsplit.services.storage import (
    JsonFileStateStorage,
    JsonLinesAuditStorage,
    StateStorageInterface,
    StorageError,
)
from tripsplit.sync import INVALID_TOKEN_MESSAGE, export_trip, import_trip
from tripsplit.validation import (
    ExpenseValidator,
    FriendValidator,
    TripValidator,
    get_user_friendly_summary,
    parse_amount,
)


logger = get_logger(__name__)

IMPORT_SUCCESS_MESSAGE = "Trip imported"


class TripBook:
    """
    The user's trips and friends, with every operation the UI needs.

    Mutating methods save the whole state afterwards. A failed save is
    reported through save()'s return value and the audit log; the
    in-memory state keeps the change either way.
    """

    def __init__(
        self,
        storage: StateStorageInterface,
        state: Optional[AppState] = None,
        audit_logger: Optional[AuditLogger] = None,
        expense_validator: Optional[ExpenseValidator] = None,
        friend_validator: Optional[FriendValidator] = None,
        trip_validator: Optional[TripValidator] = None,
    ):
        self._storage = storage
        self.state = state or AppState()
        self._audit_logger = audit_logger or AuditLogger()
        self._expense_validator = expense_validator or ExpenseValidator()
        self._friend_validator = friend_validator or FriendValidator()
        self._trip_validator = trip_validator or TripValidator()
        self._settings = get_settings().app

    @classmethod
    def open(
        cls,
        storage: StateStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ) -> "TripBook":
        """
        Load the saved state, or start empty if nothing was saved yet.

        Raises:
            StorageError: If saved state exists but cannot be read
        """
        state = storage.load()
        return cls(storage, state=state, audit_logger=audit_logger)

    def save(self) -> bool:
        """Persist the whole state. Returns False if the save failed."""
        try:
            self._storage.save(self.state)
        except StorageError as e:
            self._audit_logger.log_save_failed(error_message=str(e))
            return False
        self._audit_logger.log_state_saved(
            trip_count=len(self.state.trips),
            friend_count=len(self.state.friends),
        )
        return True

    # ------------------------------------------------------------------
    # Trips
    # ------------------------------------------------------------------

    def create_trip(
        self,
        name: Optional[str],
        photo: Optional[str] = None,
    ) -> tuple[Optional[Trip], ValidationResult]:
        """
        Create an empty trip at the top of the list.

        Returns:
            (trip, validation_result); trip is None if the name was rejected
        """
        result = self._trip_validator.validate(name)
        if not result.is_valid:
            return None, result

        trip = Trip(name=name, photo=photo)
        self.state.trips.insert(0, trip)
        self._audit_logger.log_trip_created(trip_id=trip.id, name=trip.name)
        self.save()
        return trip, result

    def update_trip(
        self,
        trip_id: str,
        name: Optional[str] = None,
        photo: Optional[str] = None,
        clear_photo: bool = False,
    ) -> tuple[Optional[Trip], Optional[ValidationResult]]:
        """
        Rename a trip and/or change its cover photo.

        name=None keeps the current name. Returns (trip, validation_result);
        trip is None if the trip does not exist (validation_result is then
        None) or the new name was rejected, in which case nothing changed.
        """
        trip = self.state.find_trip(trip_id)
        if trip is None:
            return None, None

        result = self._trip_validator.validate(trip.name if name is None else name)
        if not result.is_valid:
            return None, result

        changed = []
        if name is not None and name.strip() != trip.name:
            trip.name = name.strip()
            changed.append("name")
        if clear_photo:
            trip.photo = None
            changed.append("photo")
        elif photo is not None and photo != trip.photo:
            trip.photo = photo
            changed.append("photo")

        if changed:
            self._audit_logger.log_trip_updated(trip_id=trip.id, changed=changed)
            self.save()
        return trip, result

    def select_trip(self, trip_id: Optional[str]) -> bool:
        """Remember the trip being viewed (None to clear)."""
        if trip_id is not None and self.state.find_trip(trip_id) is None:
            return False
        self.state.current_trip_id = trip_id
        self.save()
        return True

    def add_members(self, trip_id: str, friend_ids: Sequence[str]) -> Optional[list[str]]:
        """
        Add friends to a trip.

        Unknown friend ids are ignored. Returns the ids actually added,
        or None if the trip does not exist.
        """
        trip = self.state.find_trip(trip_id)
        if trip is None:
            return None

        known = [f for f in friend_ids if self.state.find_friend(f) is not None]
        added = trip.add_members(known)
        if added:
            self._audit_logger.log_members_added(trip_id=trip.id, friend_ids=added)
            self.save()
        return added

    # ------------------------------------------------------------------
    # Friends
    # ------------------------------------------------------------------

    def add_friend(
        self,
        name: str,
        phone: Optional[str] = None,
        photo: Optional[str] = None,
        qr_code: Optional[str] = None,
        trip_id: Optional[str] = None,
    ) -> tuple[Optional[Friend], ValidationResult]:
        """
        Add a friend, optionally straight into a trip (quick add).

        Returns:
            (friend, validation_result); friend is None if rejected
        """
        result = self._friend_validator.validate(name, phone)
        if not result.is_valid:
            return None, result

        friend = Friend(name=name, phone=phone, photo=photo, qr_code=qr_code)
        self.state.friends.append(friend)
        self._audit_logger.log_friend_added(friend_id=friend.id, name=friend.name)

        if trip_id is not None:
            trip = self.state.find_trip(trip_id)
            if trip is not None and trip.add_members([friend.id]):
                self._audit_logger.log_members_added(trip_id=trip.id, friend_ids=[friend.id])

        self.save()
        return friend, result

    def update_friend(
        self,
        friend_id: str,
        name: str,
        phone: Optional[str] = None,
        photo: Optional[str] = None,
        qr_code: Optional[str] = None,
    ) -> tuple[Optional[Friend], ValidationResult]:
        """
        Replace a friend's profile fields (last writer wins).

        Returns:
            (friend, validation_result); friend is None if rejected or
            not found
        """
        result = self._friend_validator.validate(name, phone)
        friend = self.state.find_friend(friend_id)
        if not result.is_valid or friend is None:
            return None, result

        updated = Friend(id=friend.id, name=name, phone=phone, photo=photo, qr_code=qr_code)
        index = self.state.friends.index(friend)
        self.state.friends[index] = updated
        self._audit_logger.log_friend_updated(friend_id=updated.id, name=updated.name)
        self.save()
        return updated, result

    def remove_friend(self, friend_id: str) -> bool:
        """
        Remove a friend from the global list.

        Trips keep referencing the id; it shows as "Unknown" from now on.
        """
        friend = self.state.find_friend(friend_id)
        if friend is None:
            return False
        self.state.friends = [f for f in self.state.friends if f.id != friend_id]
        self._audit_logger.log_friend_removed(friend_id=friend.id, name=friend.name)
        self.save()
        return True

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    def add_expense(
        self,
        trip_id: str,
        title: Optional[str],
        amount: Any,
        payer_id: Optional[str],
        involved_ids: Sequence[str],
        attachments: Optional[list[str]] = None,
    ) -> tuple[Optional[Expense], Optional[ValidationResult], str]:
        """
        Validate and store a new expense at the top of the trip.

        Returns:
            (expense, validation_result, user_message). expense is None
            if the trip does not exist (validation_result is then None)
            or the entry was rejected.
        """
        trip = self.state.find_trip(trip_id)
        if trip is None:
            return None, None, "Trip not found"

        result = self._expense_validator.validate(trip, title, amount, payer_id, involved_ids)
        message = get_user_friendly_summary(result)
        if not result.is_valid:
            self._audit_logger.log_expense_rejected(
                trip_id=trip.id,
                issues=[
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in result.issues
                ],
            )
            return None, result, message

        expense = Expense(
            trip_id=trip.id,
            title=title,
            amount=parse_amount(amount),
            payer_id=payer_id,
            involved_ids=list(involved_ids),
            attachments=attachments or [],
        )
        trip.add_expense(expense)
        self._audit_logger.log_expense_added(
            trip_id=trip.id,
            expense_id=expense.id,
            amount=str(expense.amount),
            involved_count=len(expense.involved_ids),
        )
        self.save()
        return expense, result, message

    # ------------------------------------------------------------------
    # Sharing
    # ------------------------------------------------------------------

    def export_trip(self, trip_id: str, include_private: bool = False) -> Optional[str]:
        """
        Share code for a trip.

        include_private=True keeps personal expenses (for a backup of
        your own). Returns None if the trip is missing or not exportable.
        """
        correlation_id = create_correlation_id()
        token = export_trip(
            self.state,
            trip_id,
            include_private=include_private,
            embedded_field=self._settings.embedded_members_field,
        )
        if token is None:
            self._audit_logger.log_export_failed(
                trip_id=trip_id,
                reason="trip not found" if self.state.find_trip(trip_id) is None else "serialization failed",
                correlation_id=correlation_id,
            )
            return None

        self._audit_logger.log_trip_exported(
            trip_id=trip_id,
            include_private=include_private,
            token_length=len(token),
            correlation_id=correlation_id,
        )
        return token

    def import_trip(self, token: str) -> tuple[Optional[str], str]:
        """
        Import a share code and merge it into local state.

        Returns:
            (trip_id, user_message); trip_id is None when the code was
            rejected, in which case nothing changed
        """
        correlation_id = create_correlation_id()
        known_trip_ids = {trip.id for trip in self.state.trips}
        known_friend_ids = {friend.id for friend in self.state.friends}

        trip_id = import_trip(
            self.state,
            token,
            embedded_field=self._settings.embedded_members_field,
        )
        if trip_id is None:
            self._audit_logger.log_import_failed(
                reason=INVALID_TOKEN_MESSAGE,
                correlation_id=correlation_id,
            )
            return None, INVALID_TOKEN_MESSAGE

        learned = [f.id for f in self.state.friends if f.id not in known_friend_ids]
        if learned:
            self._audit_logger.log_profiles_imported(
                friend_ids=learned,
                correlation_id=correlation_id,
            )

        trip = self.state.find_trip(trip_id)
        self._audit_logger.log_trip_imported(
            trip_id=trip_id,
            was_new=trip_id not in known_trip_ids,
            expense_count=len(trip.expenses) if trip else 0,
            correlation_id=correlation_id,
        )
        self.save()
        return trip_id, IMPORT_SUCCESS_MESSAGE

    # ------------------------------------------------------------------
    # Settling up
    # ------------------------------------------------------------------

    def balances(self, trip_id: str) -> Optional[dict[str, Decimal]]:
        """Net balance per member id. None if the trip does not exist."""
        trip = self.state.find_trip(trip_id)
        if trip is None:
            return None
        return compute_balances(trip)

    def settle(self, trip_id: str) -> Optional[SettlementPlan]:
        """Suggested transfers to settle a trip. None if it does not exist."""
        trip = self.state.find_trip(trip_id)
        if trip is None:
            return None

        plan = plan_settlement(
            compute_balances(trip),
            members=self.state.resolve_members(trip),
            threshold=self._settings.settlement_threshold,
            trip_id=trip.id,
        )
        self._audit_logger.log_settlement_planned(
            trip_id=trip.id,
            transfer_count=len(plan.transfers),
        )
        return plan

    def payment_request(self, trip_id: str, expense_id: str) -> Optional[PaymentRequest]:
        """
        Payment code for each involved member's share of an expense.

        None if the trip, expense or payer is unknown, or the payer has
        neither a QR image nor a phone number.
        """
        trip = self.state.find_trip(trip_id)
        if trip is None:
            return None
        expense = trip.expenses.get(expense_id)
        if expense is None:
            return None
        payer = self.state.find_friend(expense.payer_id)
        if payer is None:
            return None
        return payment_request_for(payer, expense.split_amount)


def create_app_components(
    state_file: Optional[Path] = None,
    audit_file: Optional[Path] = None,
) -> TripBook:
    """
    Factory function to create a ready-to-use TripBook.

    Args:
        state_file: Where the state lives (defaults to settings)
        audit_file: JSON Lines audit trail; local logging only if None

    Raises:
        StorageError: If an existing state file cannot be read
    """
    configure_logging(debug=get_settings().app.debug_mode)
    storage = JsonFileStateStorage(state_file)
    audit_logger = AuditLogger(JsonLinesAuditStorage(audit_file) if audit_file else None)
    book = TripBook.open(storage, audit_logger=audit_logger)
    logger.info(
        "trip_book_opened",
        state_file=str(storage.path),
        trips=len(book.state.trips),
        friends=len(book.state.friends),
    )
    return book
