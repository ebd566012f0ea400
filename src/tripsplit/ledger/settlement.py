"""
Settlement Planner

Turns net balances into a short list of "A pays B" transfers.

Greedy two-pointer matching: debtors sorted most negative first,
creditors largest first. The current debtor pays the current creditor
as much as both can take, and whichever side is settled moves on.
This is not guaranteed to be the minimal number of transfers, but it is
deterministic and never needs more than (debtors + creditors - 1).
"""

from decimal import Decimal
from typing import Iterable, Mapping, Optional

from tripsplit.audit.logger import get_logger
from tripsplit.models.entities import UNKNOWN_MEMBER_NAME, Friend
from tripsplit.models.settlement import SettlementPlan, Transfer


logger = get_logger(__name__)

SETTLED_THRESHOLD = Decimal("0.01")


def _as_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def plan_settlement(
    balances: Mapping[str, Decimal],
    members: Iterable[Friend] = (),
    threshold: Decimal = SETTLED_THRESHOLD,
    trip_id: Optional[str] = None,
) -> SettlementPlan:
    """
    Plan transfers that bring every balance to (near) zero.

    Args:
        balances: Net balance per member id (see compute_balances)
        members: Profiles used to label transfers; ids without a profile
            are labelled "Unknown"
        threshold: Absolute balances below this are treated as settled

    Returns:
        The plan. nothing_to_settle is set when no balance reached the
        threshold at all.
    """
    names = {friend.id: friend.name for friend in members}

    # [id, remaining] pairs; sorted() is stable so ties keep balance order
    debtors = sorted(
        ([member_id, _as_decimal(amount)] for member_id, amount in balances.items()
         if amount < 0 and abs(amount) >= threshold),
        key=lambda entry: entry[1],
    )
    creditors = sorted(
        ([member_id, _as_decimal(amount)] for member_id, amount in balances.items()
         if amount > 0 and amount >= threshold),
        key=lambda entry: entry[1],
        reverse=True,
    )

    if not debtors and not creditors:
        return SettlementPlan(trip_id=trip_id, nothing_to_settle=True)

    transfers = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]

        amount = min(abs(debtor[1]), creditor[1])
        transfers.append(Transfer(
            from_id=debtor[0],
            to_id=creditor[0],
            amount=amount,
            from_name=names.get(debtor[0], UNKNOWN_MEMBER_NAME),
            to_name=names.get(creditor[0], UNKNOWN_MEMBER_NAME),
        ))

        debtor[1] += amount
        creditor[1] -= amount

        if abs(debtor[1]) < threshold:
            i += 1
        if creditor[1] < threshold:
            j += 1

    logger.debug(
        "settlement_planned",
        trip_id=trip_id,
        debtors=len(debtors),
        creditors=len(creditors),
        transfers=len(transfers),
    )
    return SettlementPlan(trip_id=trip_id, transfers=transfers)
