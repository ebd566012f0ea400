"""Shared builders for tripsplit tests."""

from decimal import Decimal

import pytest

from tripsplit.models.entities import AppState, Expense, Friend, Trip


def make_expense(
    expense_id: str,
    payer_id: str,
    involved_ids: list[str],
    amount="100",
    timestamp: int = 1_700_000_000_000,
    title: str = "Dinner",
    trip_id: str = "t1",
) -> Expense:
    return Expense(
        id=expense_id,
        trip_id=trip_id,
        title=title,
        amount=Decimal(str(amount)),
        payer_id=payer_id,
        involved_ids=involved_ids,
        timestamp=timestamp,
    )


@pytest.fixture
def friends() -> list[Friend]:
    return [
        Friend(id="A", name="หมวย", phone="081-234-5678"),
        Friend(id="B", name="Ple"),
        Friend(id="C", name="Best"),
    ]


@pytest.fixture
def trip() -> Trip:
    return Trip(
        id="t1",
        name="เชียงใหม่ 2026",
        members=["A", "B", "C"],
        expenses=[
            make_expense("e_shared", "A", ["A", "B", "C"], amount="300", timestamp=3000),
            make_expense("e_solo", "A", ["A"], amount="50", timestamp=2000, title="Souvenir"),
            make_expense("e_pair", "B", ["B", "C"], amount="80", timestamp=1000, title="Taxi"),
        ],
    )


@pytest.fixture
def state(trip: Trip, friends: list[Friend]) -> AppState:
    return AppState(trips=[trip], friends=friends)
