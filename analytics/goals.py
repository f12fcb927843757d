"""Savings goal progress and what-if projections."""

from __future__ import annotations

import logging
import math
from typing import Iterable, Optional, Sequence

import pandas as pd

from analytics.periods import (
    DateLike,
    add_months,
    ledger_frame,
    monthly_totals,
    months_between,
    resolve_as_of,
    trailing_months,
)
from config import get_settings
from core.models import GoalProgress, SavingsGoal, Transaction, WhatIfResult

__all__ = [
    "calculate_savings_rate",
    "average_monthly_savings",
    "average_monthly_income",
    "calculate_goal_progress",
    "calculate_what_if",
    "get_savings_goals_with_progress",
]

logger = logging.getLogger(__name__)


def calculate_savings_rate(transactions: Iterable[Transaction]) -> float:
    """Return ``(income - expenses) / income * 100`` over the whole snapshot."""

    frame = ledger_frame(transactions)
    income = float(frame["credit"].sum())
    if income == 0:
        return 0.0
    return (income - float(frame["debit"].sum())) / income * 100


def _trailing_values(frame: pd.DataFrame, as_of: pd.Timestamp, months: int) -> pd.DataFrame:
    totals = monthly_totals(frame)
    window = trailing_months(as_of, months)
    return totals.reindex(pd.PeriodIndex(window, freq="M"), fill_value=0.0)


def _average_savings(frame: pd.DataFrame, as_of: pd.Timestamp, months: int) -> float:
    window = _trailing_values(frame, as_of, months)
    net = window["income"] - window["expenses"]
    net = net[net != 0]
    if net.empty:
        return 0.0
    return float(net.mean())


def _average_income(frame: pd.DataFrame, as_of: pd.Timestamp, months: int) -> float:
    window = _trailing_values(frame, as_of, months)
    income = window["income"][window["income"] > 0]
    if income.empty:
        return 0.0
    return float(income.mean())


def average_monthly_savings(
    transactions: Iterable[Transaction],
    as_of: Optional[DateLike] = None,
    months: Optional[int] = None,
) -> float:
    """Average monthly net savings over the trailing calendar months.

    Months with zero net activity are left out of the average; when every
    month is left out the average is 0.
    """

    months = months or get_settings().trailing_months
    return _average_savings(ledger_frame(transactions), resolve_as_of(as_of), months)


def average_monthly_income(
    transactions: Iterable[Transaction],
    as_of: Optional[DateLike] = None,
    months: Optional[int] = None,
) -> float:
    months = months or get_settings().trailing_months
    return _average_income(ledger_frame(transactions), resolve_as_of(as_of), months)


def _goal_progress(goal: SavingsGoal, frame: pd.DataFrame, today: pd.Timestamp) -> GoalProgress:
    since = frame[frame["date"] >= pd.Timestamp(goal.created_at)]
    net_saved = float(since["credit"].sum() - since["debit"].sum())
    current_amount = max(0.0, net_saved)

    target = float(goal.target_amount)
    percent = current_amount / target * 100 if target > 0 else 0.0
    percent_complete = min(100.0, max(0.0, percent))
    remaining = max(0.0, target - current_amount)

    months_remaining = max(0, months_between(today, goal.deadline))
    required = remaining / months_remaining if months_remaining > 0 else remaining

    average_savings = _average_savings(frame, today, get_settings().trailing_months)

    return {
        "goal_id": goal.id,
        "name": goal.name,
        "target_amount": target,
        "current_amount": current_amount,
        "percent_complete": percent_complete,
        "remaining": remaining,
        "months_remaining": months_remaining,
        "required_monthly_savings": required,
        "average_monthly_savings": average_savings,
        "on_track": average_savings >= required,
    }


def calculate_goal_progress(
    goal: SavingsGoal,
    transactions: Iterable[Transaction],
    as_of: Optional[DateLike] = None,
) -> GoalProgress:
    """Measure progress towards ``goal`` from its creation date onwards.

    ``required_monthly_savings`` spreads the remainder over whole calendar
    months left until the deadline; with no months left the full remainder is
    due now. The goal is on track when the trailing average monthly savings
    covers the required amount.
    """

    return _goal_progress(goal, ledger_frame(transactions), resolve_as_of(as_of))


def calculate_what_if(
    goal: SavingsGoal,
    transactions: Iterable[Transaction],
    savings_rate: float,
    as_of: Optional[DateLike] = None,
) -> WhatIfResult:
    """Project goal completion if ``savings_rate`` percent of income were saved.

    ``months_to_goal`` and ``projected_completion_date`` are ``None`` when the
    hypothetical savings are not positive (the goal is never reached).
    """

    frame = ledger_frame(transactions)
    today = resolve_as_of(as_of)
    progress = _goal_progress(goal, frame, today)

    monthly_income = _average_income(frame, today, get_settings().trailing_months)
    hypothetical = monthly_income * savings_rate / 100

    months_to_goal: Optional[int]
    completion: Optional[pd.Timestamp]
    if progress["remaining"] <= 0:
        months_to_goal, completion = 0, today
    elif hypothetical <= 0:
        logger.debug("Goal %r is unreachable at a %.1f%% savings rate", goal.name, savings_rate)
        months_to_goal, completion = None, None
    else:
        months_to_goal = math.ceil(progress["remaining"] / hypothetical)
        completion = add_months(today, months_to_goal)

    return {
        "savings_rate": float(savings_rate),
        "hypothetical_monthly_savings": hypothetical,
        "months_to_goal": months_to_goal,
        "projected_completion_date": completion,
    }


def get_savings_goals_with_progress(
    goals: Sequence[SavingsGoal],
    transactions: Iterable[Transaction],
    as_of: Optional[DateLike] = None,
) -> list[GoalProgress]:
    frame = ledger_frame(transactions)
    today = resolve_as_of(as_of)
    return [_goal_progress(goal, frame, today) for goal in goals]
