"""Entry validation package."""

from tripsplit.validation.validator import (
    ExpenseValidator,
    FriendValidator,
    TripValidator,
    get_user_friendly_summary,
    parse_amount,
)

__all__ = [
    "ExpenseValidator",
    "FriendValidator",
    "TripValidator",
    "get_user_friendly_summary",
    "parse_amount",
]
