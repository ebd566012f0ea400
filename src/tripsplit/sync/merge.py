"""
Merge Engine

Reconciles a trip received from another device with the local copy.
There is no server and no causal history, so the rules are simple and
deterministic:

- Members: set union. Nobody is ever removed by a merge.
- Expenses: upsert by id. The incoming copy of an expense always
  replaces the local one, whatever the timestamps say.
- Display order: newest first after every merge, so two devices show the
  same list regardless of who imported whom first.

Replaying an old share code can therefore revert an expense that was
changed locally after that code was made. This is known and kept as is.
Friend profiles are not reconciled here (see codec.adopt_profiles).
"""

from tripsplit.audit.logger import get_logger
from tripsplit.models.entities import AppState, Trip


logger = get_logger(__name__)


def merge_trip(state: AppState, incoming: Trip) -> str:
    """
    Merge an incoming trip into the state.

    Unknown trips are added at the top of the trip list. Known trips are
    reconciled in place.

    Returns:
        The id of the merged or inserted trip
    """
    local = state.find_trip(incoming.id)

    if local is None:
        state.trips.insert(0, incoming)
        logger.info(
            "trip_inserted",
            trip_id=incoming.id,
            member_count=len(incoming.members),
            expense_count=len(incoming.expenses),
        )
        return incoming.id

    new_members = local.add_members(incoming.members)

    merged = dict(local.expenses)
    overwritten = 0
    for expense_id, expense in incoming.expenses.items():
        if expense_id in merged:
            overwritten += 1
        merged[expense_id] = expense

    local.expenses = {
        expense.id: expense
        for expense in sorted(merged.values(), key=lambda e: e.timestamp, reverse=True)
    }

    logger.info(
        "trip_merged",
        trip_id=local.id,
        new_members=len(new_members),
        incoming_expenses=len(incoming.expenses),
        overwritten_expenses=overwritten,
        total_expenses=len(local.expenses),
    )
    return local.id
