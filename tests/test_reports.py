"""Tests for monthly and yearly report generation and export."""

from __future__ import annotations

import json

import pandas as pd
import pytest

from conftest import make_txn
from core.models import Budget
from reports import (
    generate_monthly_report,
    generate_yearly_report,
    get_available_months,
    get_available_years,
    monthly_report_to_csv,
    report_to_json,
    transactions_to_csv,
    yearly_report_to_csv,
)

GENERATED_AT = "2024-04-01 09:00"


def _stub_scorer(score: int, recommendations: list[str]):
    def scorer(transactions, budgets):
        return {"score": score, "components": {}, "recommendations": list(recommendations), "trend": "stable"}

    return scorer


def test_monthly_report_worked_example(march_ledger, tags):
    report = generate_monthly_report(march_ledger, tags, [], 2024, 3, generated_at=GENERATED_AT)

    assert report["period"] == "2024-03"
    assert report["summary"]["total_income"] == pytest.approx(50000.0)
    assert report["summary"]["total_expenses"] == pytest.approx(30000.0)
    assert report["summary"]["net_savings"] == pytest.approx(20000.0)
    assert report["summary"]["savings_rate"] == pytest.approx(40.0)
    assert report["cash_flow"]["period"] == "2024-03"
    assert report["balance_metrics"]["current"] == pytest.approx(30000.0)
    assert report["generated_at"] == pd.Timestamp(GENERATED_AT)
    assert [row["merchant"] for row in report["top_merchants"]][0] == "Rent"


def test_monthly_report_ignores_other_months(march_ledger, tags):
    ledger = march_ledger + [make_txn("2024-04-02", 99999.0, details="APRIL SPREE")]

    report = generate_monthly_report(ledger, tags, [], 2024, 3, generated_at=GENERATED_AT)

    assert report["summary"]["total_expenses"] == pytest.approx(30000.0)


def test_empty_month_has_zero_bucket(march_ledger, tags):
    report = generate_monthly_report(march_ledger, tags, [], 2024, 6, generated_at=GENERATED_AT)

    assert report["cash_flow"]["total_inflow"] == 0.0
    assert report["cash_flow"]["net_cash_flow"] == 0.0
    assert report["summary"]["savings_rate"] == 0.0
    assert report["anomalies"] == []


def test_monthly_budget_performance_and_recommendations(march_ledger, tags):
    budgets = [
        Budget(tag_id="travel", monthly_limit=5000.0, period="2024-03", id="t"),
        Budget(tag_id="food", monthly_limit=10000.0, period="2024-03", id="f"),
        Budget(tag_id="food", monthly_limit=10.0, period="2024-02", id="old"),
    ]
    scorer = _stub_scorer(45, ["stub advice"])

    report = generate_monthly_report(march_ledger, tags, budgets, 2024, 3, health_scorer=scorer, generated_at=GENERATED_AT)

    assert [status["budget_id"] for status in report["budget_performance"]] == ["t", "f"]
    assert report["budget_performance"][0]["status"] == "exceeded"
    assert report["recommendations"] == [
        "You exceeded 1 budget(s) this month. Review these categories to stay on track.",
        "Your financial health score is below average. "
        "Focus on increasing savings and reducing unnecessary expenses.",
        "stub advice",
    ]


def test_negative_cash_flow_recommendation_comes_first(tags):
    ledger = [make_txn("2024-03-02", 100.0, "credit"), make_txn("2024-03-03", 500.0)]

    report = generate_monthly_report(
        ledger, tags, [], 2024, 3, health_scorer=_stub_scorer(90, []), generated_at=GENERATED_AT
    )

    assert report["recommendations"] == [
        "Your expenses exceeded income this month. Consider reviewing your spending patterns."
    ]


def test_available_months_and_years(march_ledger):
    ledger = march_ledger + [make_txn("2023-11-05", 10.0), make_txn("2024-01-05", 10.0)]

    assert get_available_months(ledger) == [(2023, 11), (2024, 1), (2024, 3)]
    assert get_available_years(ledger) == [2024, 2023]
    assert get_available_years([]) == []


@pytest.fixture()
def two_year_ledger(march_ledger):
    return march_ledger + [
        make_txn("2024-05-01", 40000.0, "credit", balance=70000.0, details="SALARY"),
        make_txn("2024-05-15", 5000.0, balance=65000.0, details="MUTUAL FUND SIP", tags=("sip",)),
        make_txn("2023-06-01", 20000.0, "credit", balance=20000.0, details="SALARY"),
        make_txn("2023-06-10", 10000.0, balance=10000.0, details="RENT TRANSFER"),
    ]


def test_yearly_totals_match_monthly_breakdown(two_year_ledger, tags):
    report = generate_yearly_report(two_year_ledger, tags, [], 2024, generated_at=GENERATED_AT)

    assert [month["period"] for month in report["monthly_breakdown"]] == ["2024-03", "2024-05"]
    income = sum(month["summary"]["total_income"] for month in report["monthly_breakdown"])
    expenses = sum(month["summary"]["total_expenses"] for month in report["monthly_breakdown"])
    assert report["summary"]["total_income"] == pytest.approx(income) == pytest.approx(90000.0)
    assert report["summary"]["total_expenses"] == pytest.approx(expenses) == pytest.approx(35000.0)
    assert report["summary"]["net_savings"] == pytest.approx(55000.0)
    assert report["summary"]["average_monthly_savings"] == pytest.approx(27500.0)


def test_yearly_investment_summary_and_top_categories(two_year_ledger, tags):
    report = generate_yearly_report(two_year_ledger, tags, [], 2024, generated_at=GENERATED_AT)

    assert report["investment_summary"] == {"tag_id": "sip", "total_invested": 10000.0, "sip_consistency": 100.0}
    assert report["top_categories"][0]["tag_id"] == "housing"
    assert report["top_categories"][0]["label"] == "Unknown tag"


def test_year_over_year_comparison(two_year_ledger, tags):
    report = generate_yearly_report(two_year_ledger, tags, [], 2024, generated_at=GENERATED_AT)

    comparison = report["year_over_year"]
    assert comparison["income_change"] == pytest.approx((90000.0 - 20000.0) / 20000.0 * 100)
    assert comparison["expense_change"] == pytest.approx((35000.0 - 10000.0) / 10000.0 * 100)
    assert comparison["savings_change"] == pytest.approx((55000.0 - 10000.0) / 10000.0 * 100)


def test_year_over_year_zero_denominators(tags):
    ledger = [
        make_txn("2023-05-01", 100.0, balance=900.0),
        make_txn("2024-05-01", 1000.0, "credit", balance=1900.0),
    ]

    report = generate_yearly_report(ledger, tags, [], 2024, generated_at=GENERATED_AT)

    assert report["year_over_year"]["income_change"] == 0.0
    assert report["year_over_year"]["expense_change"] == pytest.approx(-100.0)
    assert report["year_over_year"]["savings_change"] == pytest.approx(1100.0)


def test_year_over_year_absent_without_prior_year(march_ledger, tags):
    report = generate_yearly_report(march_ledger, tags, [], 2024, generated_at=GENERATED_AT)

    assert report["year_over_year"] is None
    assert report["investment_summary"]["sip_consistency"] == pytest.approx(100.0)


def test_monthly_csv_export(march_ledger, tags):
    report = generate_monthly_report(march_ledger, tags, [], 2024, 3, generated_at=GENERATED_AT)

    text = monthly_report_to_csv(report)
    lines = text.splitlines()

    assert lines[0] == "Monthly Financial Report - 2024-03"
    assert lines[1] == "Generated: 2024-04-01T09:00:00"
    assert "Total Income,50000.00" in lines
    assert "Savings Rate,40.00%" in lines
    assert "Food & Dining,4200.00" in lines
    assert "Recommendations" in lines


def test_yearly_csv_export(two_year_ledger, tags):
    report = generate_yearly_report(two_year_ledger, tags, [], 2024, generated_at=GENERATED_AT)

    lines = yearly_report_to_csv(report).splitlines()

    assert lines[0] == "Yearly Financial Report - 2024"
    assert "Year-over-Year Comparison" in lines
    assert "2024-05,40000.00,5000.00,35000.00,87.50" in lines
    assert lines[-1] == "SIP Consistency,100.00%"


def test_json_export_serialises_timestamps(march_ledger, tags):
    report = generate_monthly_report(march_ledger, tags, [], 2024, 3, generated_at=GENERATED_AT)

    payload = json.loads(report_to_json(report))

    assert payload["generated_at"] == "2024-04-01T09:00:00"
    assert payload["summary"]["net_savings"] == pytest.approx(20000.0)


def test_transactions_csv_export():
    ledger = [make_txn("2024-03-04", 250.5, details='Cafe "Mocha", MG Road', tags=("food", "fun"))]

    lines = transactions_to_csv(ledger).splitlines()

    assert lines[0] == "Date,Details,Reference No,Debit,Credit,Balance,Type,Payment Method,Tags,Notes"
    assert lines[1].startswith('2024-03-04,"Cafe ""Mocha"", MG Road",,250.5,,')
    assert "food;fun" in lines[1]
