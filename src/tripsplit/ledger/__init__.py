"""Balances and settlement planning."""

from tripsplit.ledger.balances import compute_balances
from tripsplit.ledger.settlement import SETTLED_THRESHOLD, plan_settlement

__all__ = [
    "SETTLED_THRESHOLD",
    "compute_balances",
    "plan_settlement",
]
