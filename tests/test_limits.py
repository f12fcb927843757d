"""Tests for spending limit evaluation."""

from __future__ import annotations

import pytest

from analytics.limits import (
    calculate_current_spending,
    check_spending_limits,
    get_exceeded_limits,
    get_spending_limits_with_status,
    get_warning_limits,
)
from conftest import make_txn
from core.models import SpendingLimit

AS_OF = "2024-03-20 18:00"


@pytest.fixture()
def ledger():
    return [
        make_txn("2024-03-20 09:00", 950.0, details="CAFE COFFEE DAY", tags=("food",)),
        make_txn("2024-03-02", 3000.0, details="SWIGGY ORDER 991", tags=("food",)),
        make_txn("2024-03-05", 1200.0, details="UBER TRIP", tags=("travel",)),
        make_txn("2024-02-28", 9999.0, details="SWIGGY ORDER 12", tags=("food",)),
        make_txn("2024-03-01", 40000.0, "credit", details="SALARY"),
    ]


def test_daily_limit_breach_on_new_transaction(ledger):
    daily = SpendingLimit(type="daily", limit=1000.0, id="daily")

    breaching = make_txn("2024-03-20 19:00", 100.0, details="BAKERY")
    within = make_txn("2024-03-20 19:00", 50.0, details="BAKERY")

    assert check_spending_limits(breaching, [daily], ledger, as_of=AS_OF) == [daily]
    assert check_spending_limits(within, [daily], ledger, as_of=AS_OF) == []


def test_inactive_limits_and_credits_never_breach(ledger):
    inactive = SpendingLimit(type="daily", limit=10.0, is_active=False)
    active = SpendingLimit(type="daily", limit=10.0)

    assert check_spending_limits(make_txn(AS_OF, 500.0), [inactive], ledger, as_of=AS_OF) == []
    assert check_spending_limits(make_txn(AS_OF, 500.0, "credit"), [active], ledger, as_of=AS_OF) == []


def test_window_spend_by_limit_type(ledger):
    monthly = SpendingLimit(type="monthly", limit=10000.0)
    category = SpendingLimit(type="category", limit=5000.0, target_id="food")
    merchant = SpendingLimit(type="merchant", limit=5000.0, target_id="SWIGGY")
    untargeted = SpendingLimit(type="category", limit=5000.0)

    assert calculate_current_spending(monthly, ledger, as_of=AS_OF) == pytest.approx(5150.0)
    assert calculate_current_spending(category, ledger, as_of=AS_OF) == pytest.approx(3950.0)
    assert calculate_current_spending(merchant, ledger, as_of=AS_OF) == pytest.approx(3000.0)
    assert calculate_current_spending(untargeted, ledger, as_of=AS_OF) == 0.0


def test_status_reports_percent_and_remaining(ledger):
    limit = SpendingLimit(type="monthly", limit=10000.0, id="m")

    [status] = get_spending_limits_with_status([limit], ledger, as_of=AS_OF)

    assert status["current_spend"] == pytest.approx(5150.0)
    assert status["percent_used"] == pytest.approx(51.5)
    assert status["remaining"] == pytest.approx(4850.0)


def test_zero_limit_reports_zero_percent(ledger):
    [status] = get_spending_limits_with_status([SpendingLimit(type="monthly", limit=0.0)], ledger, as_of=AS_OF)

    assert status["percent_used"] == 0.0


def test_warning_and_exceeded_bands(ledger):
    warning = SpendingLimit(type="category", limit=4500.0, target_id="food", id="warn")
    exceeded = SpendingLimit(type="monthly", limit=5000.0, id="over")
    fine = SpendingLimit(type="merchant", limit=10000.0, target_id="swiggy", id="fine")
    limits = [warning, exceeded, fine]

    assert get_warning_limits(limits, ledger, as_of=AS_OF) == [warning]
    assert get_exceeded_limits(limits, ledger, as_of=AS_OF) == [exceeded]
