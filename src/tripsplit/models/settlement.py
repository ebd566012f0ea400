"""
Settlement Models

A settlement plan is the list of suggested payments that brings every
member's balance back to zero.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pydantic import BaseModel, Field

from tripsplit.models.entities import UNKNOWN_MEMBER_NAME


CENT = Decimal("0.01")


class Transfer(BaseModel):
    """One suggested payment from a debtor to a creditor."""

    from_id: str = Field(
        ...,
        description="Member who pays"
    )
    to_id: str = Field(
        ...,
        description="Member who receives"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Unrounded amount to transfer"
    )
    from_name: str = Field(default=UNKNOWN_MEMBER_NAME)
    to_name: str = Field(default=UNKNOWN_MEMBER_NAME)

    @property
    def rounded_amount(self) -> Decimal:
        """Amount to two decimals, for display."""
        return self.amount.quantize(CENT, rounding=ROUND_HALF_UP)


class SettlementPlan(BaseModel):
    """
    Ordered transfers produced by the greedy planner.

    nothing_to_settle is True only when no member had a balance worth
    settling, which is different from a plan that happens to be empty.
    """

    trip_id: Optional[str] = None
    transfers: list[Transfer] = Field(default_factory=list)
    nothing_to_settle: bool = False

    @property
    def total(self) -> Decimal:
        return sum((t.amount for t in self.transfers), Decimal("0"))
