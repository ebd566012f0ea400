"""
Balance computation.

Every expense credits its payer with the full amount and debits each
involved member an equal share. Positive balance: the member is owed
money. Negative: the member owes money. Balances always sum to zero.
"""

from decimal import Decimal

from tripsplit.models.entities import Trip


def compute_balances(trip: Trip) -> dict[str, Decimal]:
    """
    Net balance per member id.

    Every member starts at zero. Ids referenced by an expense but no
    longer in trip.members (e.g. a removed friend) are accumulated too,
    so the zero-sum property holds over the returned mapping.
    """
    balances: dict[str, Decimal] = {member_id: Decimal("0") for member_id in trip.members}

    for expense in trip.expenses.values():
        balances[expense.payer_id] = balances.get(expense.payer_id, Decimal("0")) + expense.amount

        share = expense.split_amount
        for member_id in expense.involved_ids:
            balances[member_id] = balances.get(member_id, Decimal("0")) - share

    return balances
