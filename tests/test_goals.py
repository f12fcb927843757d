"""Tests for savings goal progress and what-if projections."""

from __future__ import annotations

from datetime import date, datetime

import pandas as pd
import pytest

from analytics.goals import (
    average_monthly_savings,
    calculate_goal_progress,
    calculate_savings_rate,
    calculate_what_if,
    get_savings_goals_with_progress,
)
from conftest import make_txn
from core.models import SavingsGoal

AS_OF = "2024-03-15"


@pytest.fixture()
def goal() -> SavingsGoal:
    return SavingsGoal(
        id="car",
        name="Car fund",
        target_amount=100000.0,
        deadline=date(2024, 9, 15),
        created_at=datetime(2024, 1, 1),
    )


def test_goal_progress_worked_example(goal, march_ledger):
    progress = calculate_goal_progress(goal, march_ledger, as_of=AS_OF)

    assert progress["current_amount"] == pytest.approx(20000.0)
    assert progress["percent_complete"] == pytest.approx(20.0)
    assert progress["remaining"] == pytest.approx(80000.0)
    assert progress["months_remaining"] == 6
    assert progress["required_monthly_savings"] == pytest.approx(13333.33, abs=0.01)
    assert progress["average_monthly_savings"] == pytest.approx(20000.0)
    assert progress["on_track"] is True


def test_transactions_before_goal_creation_are_ignored(goal, march_ledger):
    later_goal = SavingsGoal(
        name="Later", target_amount=100000.0, deadline=date(2024, 9, 15), created_at=datetime(2024, 3, 2)
    )

    progress = calculate_goal_progress(later_goal, march_ledger, as_of=AS_OF)

    assert progress["current_amount"] == 0.0


def test_goal_clamps(goal):
    overspent = [make_txn("2024-02-01", 1000.0, "credit"), make_txn("2024-02-02", 5000.0)]
    overshot = [make_txn("2024-02-01", 250000.0, "credit")]

    negative = calculate_goal_progress(goal, overspent, as_of=AS_OF)
    complete = calculate_goal_progress(goal, overshot, as_of=AS_OF)

    assert negative["current_amount"] == 0.0
    assert negative["percent_complete"] == 0.0
    assert complete["percent_complete"] == 100.0
    assert complete["remaining"] == 0.0


def test_past_deadline_requires_full_remainder(march_ledger):
    overdue = SavingsGoal(name="Trip", target_amount=50000.0, deadline=date(2024, 2, 1), created_at=datetime(2024, 1, 1))

    progress = calculate_goal_progress(overdue, march_ledger, as_of=AS_OF)

    assert progress["months_remaining"] == 0
    assert progress["required_monthly_savings"] == pytest.approx(30000.0)


def test_what_if_projects_completion(goal, march_ledger):
    result = calculate_what_if(goal, march_ledger, 20.0, as_of=AS_OF)

    assert result["hypothetical_monthly_savings"] == pytest.approx(10000.0)
    assert result["months_to_goal"] == 8
    assert result["projected_completion_date"] == pd.Timestamp("2024-11-15")


def test_what_if_without_positive_savings_never_completes(goal, march_ledger):
    result = calculate_what_if(goal, march_ledger, 0.0, as_of=AS_OF)

    assert result["months_to_goal"] is None
    assert result["projected_completion_date"] is None


def test_average_savings_skips_months_without_net_activity(march_ledger):
    ledger = march_ledger + [make_txn("2024-01-10", 4000.0, "credit")]

    assert average_monthly_savings(ledger, as_of=AS_OF) == pytest.approx(12000.0)


def test_savings_rate_and_bulk_progress(goal, march_ledger):
    assert calculate_savings_rate(march_ledger) == pytest.approx(40.0)
    assert calculate_savings_rate([]) == 0.0

    [progress] = get_savings_goals_with_progress([goal], march_ledger, as_of=AS_OF)
    assert progress["goal_id"] == "car"


def test_zero_trailing_baseline_is_never_on_track_with_a_remainder(goal):
    # February nets to zero, so every trailing month drops out of the average
    ledger = [make_txn("2024-02-01", 500.0, "credit"), make_txn("2024-02-02", 500.0)]

    progress = calculate_goal_progress(goal, ledger, as_of=AS_OF)
    empty = calculate_goal_progress(goal, [], as_of=AS_OF)

    assert progress["average_monthly_savings"] == 0.0
    assert progress["required_monthly_savings"] > 0
    assert progress["on_track"] is False
    assert empty["on_track"] is False


def test_reached_goal_is_on_track_against_a_zero_baseline():
    reached = SavingsGoal(
        name="Laptop", target_amount=1000.0, deadline=date(2024, 6, 30), created_at=datetime(2023, 1, 1)
    )
    ledger = [make_txn("2023-06-01", 5000.0, "credit")]

    progress = calculate_goal_progress(reached, ledger, as_of=AS_OF)

    assert progress["average_monthly_savings"] == 0.0
    assert progress["remaining"] == 0.0
    assert progress["required_monthly_savings"] == 0.0
    assert progress["on_track"] is True
