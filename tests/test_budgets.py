"""Tests for budget status evaluation and suggestions."""

from __future__ import annotations

import pytest

from analytics.budgets import (
    UNKNOWN_TAG_LABEL,
    budget_state,
    get_budget_status,
    get_budget_statuses,
    suggest_budgets,
    tag_label,
)
from conftest import make_txn
from core.errors import LedgerDataError
from core.models import Budget, Tag


@pytest.fixture()
def grocery_ledger():
    return [
        make_txn("2024-03-03", 1500.0, details="BIG BASKET", tags=("groceries",)),
        make_txn("2024-03-12", 2700.0, details="DMART", tags=("groceries", "household")),
        make_txn("2024-03-14", 800.0, details="PETROL PUMP", tags=("fuel",)),
        make_txn("2024-02-20", 4000.0, details="DMART", tags=("groceries",)),
        make_txn("2024-03-13", 500.0, "credit", details="REFUND DMART", tags=("groceries",)),
    ]


def test_budget_status_worked_example(grocery_ledger):
    budget = Budget(tag_id="groceries", monthly_limit=5000.0, period="2024-03", id="b1")

    status = get_budget_status(budget, grocery_ledger, [Tag(id="groceries", name="Groceries")], as_of="2024-03-31")

    assert status["current_spend"] == pytest.approx(4200.0)
    assert status["percent_used"] == pytest.approx(84.0)
    assert status["status"] == "warning"
    assert status["remaining"] == pytest.approx(800.0)
    assert status["tag_name"] == "Groceries"


def test_projection_extrapolates_the_current_month(grocery_ledger):
    budget = Budget(tag_id="groceries", monthly_limit=5000.0, period="2024-03")

    status = get_budget_status(budget, grocery_ledger, as_of="2024-03-15")

    assert status["projected_end_of_month"] == pytest.approx(4200.0 / 15 * 31)


def test_projection_for_past_and_future_months(grocery_ledger):
    past = Budget(tag_id="groceries", monthly_limit=5000.0, period="2024-02")
    future = Budget(tag_id="groceries", monthly_limit=5000.0, period="2024-04")

    past_status, future_status = get_budget_statuses([past, future], grocery_ledger, as_of="2024-03-15")

    assert past_status["projected_end_of_month"] == pytest.approx(4000.0)
    assert future_status["current_spend"] == 0.0
    assert future_status["projected_end_of_month"] == 0.0


@pytest.mark.parametrize(
    ("percent", "expected"),
    [(0.0, "on_track"), (79.99, "on_track"), (80.0, "warning"), (99.99, "warning"), (100.0, "exceeded"), (250.0, "exceeded")],
)
def test_budget_state_thresholds(percent, expected):
    assert budget_state(percent) == expected


def test_zero_limit_budget_reports_zero_percent(grocery_ledger):
    status = get_budget_status(
        Budget(tag_id="groceries", monthly_limit=0.0, period="2024-03"), grocery_ledger, as_of="2024-03-31"
    )

    assert status["percent_used"] == 0.0
    assert status["status"] == "on_track"


def test_unknown_tag_renders_placeholder(grocery_ledger, caplog):
    status = get_budget_status(
        Budget(tag_id="ghost", monthly_limit=100.0, period="2024-03"),
        grocery_ledger,
        [Tag(id="groceries", name="Groceries")],
        as_of="2024-03-31",
    )

    assert status["tag_name"] == UNKNOWN_TAG_LABEL
    assert "ghost" in caplog.text
    assert tag_label("ghost", None) == "ghost"


def test_malformed_period_raises(grocery_ledger):
    with pytest.raises(LedgerDataError):
        get_budget_status(Budget(tag_id="groceries", monthly_limit=1.0, period="March"), grocery_ledger)


def test_suggest_budgets_for_tags_without_current_budget():
    ledger = [
        make_txn(f"2024-{month:02d}-05", 900.0, details="CINEMA", tags=("fun",))
        for month in (1, 2, 3)
    ] + [make_txn("2024-03-05", 50.0, details="CHAI", tags=("snacks",))]
    tags = [Tag(id="fun", name="Entertainment"), Tag(id="snacks", name="Snacks"), Tag(id="food", name="Food")]

    suggestions = suggest_budgets(ledger, tags, as_of="2024-03-20")

    assert [(budget.tag_id, budget.monthly_limit, budget.period) for budget in suggestions] == [
        ("fun", 1000.0, "2024-03")
    ]

    covered = suggest_budgets(ledger, tags, [Budget(tag_id="fun", monthly_limit=500.0, period="2024-03")], as_of="2024-03-20")
    assert covered == []
