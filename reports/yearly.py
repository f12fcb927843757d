"""Yearly financial report generation."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

import pandas as pd

from analytics.health import calculate_health_score
from analytics.periods import DateLike, ledger_frame, resolve_as_of
from analytics.spending import calculate_spending_breakdown, top_categories
from config import get_settings
from core.models import (
    Budget,
    InvestmentSummary,
    Tag,
    Transaction,
    YearlyReport,
    YearOverYearComparison,
)
from reports.monthly import HealthScorer, generate_monthly_report

__all__ = ["INVESTMENT_KEYWORDS", "find_investment_tag", "generate_yearly_report", "get_available_years"]

logger = logging.getLogger(__name__)

INVESTMENT_KEYWORDS = ("investment", "sip", "mutual")


def find_investment_tag(tags: Sequence[Tag]) -> Optional[Tag]:
    """Return the first catalog tag whose name marks it as an investment bucket."""

    for tag in tags:
        name = tag.name.lower()
        if any(keyword in name for keyword in INVESTMENT_KEYWORDS):
            return tag
    return None


def _percent_change(current: float, previous: float) -> float:
    return (current - previous) / previous * 100 if previous > 0 else 0.0


def _year_over_year(
    frame: pd.DataFrame,
    year: int,
    income: float,
    expenses: float,
) -> Optional[YearOverYearComparison]:
    prior = frame[frame["date"].dt.year == year - 1]
    if prior.empty:
        return None

    prior_income = float(prior["credit"].sum())
    prior_expenses = float(prior["debit"].sum())
    prior_savings = prior_income - prior_expenses
    savings = income - expenses

    return {
        "income_change": _percent_change(income, prior_income),
        "expense_change": _percent_change(expenses, prior_expenses),
        "savings_change": (savings - prior_savings) / abs(prior_savings) * 100 if prior_savings != 0 else 0.0,
    }


def _investment_summary(year_frame: pd.DataFrame, tags: Sequence[Tag], months_with_data: int) -> InvestmentSummary:
    tag = find_investment_tag(tags)
    if tag is None:
        return {"tag_id": None, "total_invested": 0.0, "sip_consistency": 0.0}

    debits = year_frame[year_frame["type"] == "debit"]
    invested = debits[debits["tag_ids"].map(lambda tag_ids: tag.id in tag_ids).astype(bool)]
    invested_months = invested["date"].dt.month.nunique()

    return {
        "tag_id": tag.id,
        "total_invested": float(invested["debit"].sum()),
        "sip_consistency": invested_months / months_with_data * 100 if months_with_data else 0.0,
    }


def generate_yearly_report(
    transactions: Iterable[Transaction],
    tags: Sequence[Tag],
    budgets: Sequence[Budget],
    year: int,
    health_scorer: HealthScorer = calculate_health_score,
    generated_at: Optional[DateLike] = None,
) -> YearlyReport:
    """Compose a report for one calendar year from its monthly reports.

    Months with neither income nor expenses are left out of
    ``monthly_breakdown``; yearly totals are sums over the months kept, so
    they always agree with the breakdown.
    """

    transactions = list(transactions)
    stamp = resolve_as_of(generated_at)
    settings = get_settings()

    monthly_breakdown = []
    for month in range(1, 13):
        report = generate_monthly_report(
            transactions, tags, budgets, year, month, health_scorer=health_scorer, generated_at=stamp
        )
        if report["summary"]["total_income"] > 0 or report["summary"]["total_expenses"] > 0:
            monthly_breakdown.append(report)

    income = sum(report["summary"]["total_income"] for report in monthly_breakdown)
    expenses = sum(report["summary"]["total_expenses"] for report in monthly_breakdown)
    net_savings = income - expenses

    frame = ledger_frame(transactions)
    year_frame = frame[frame["date"].dt.year == year]
    year_transactions = [txn for txn in transactions if pd.Timestamp(txn.date).year == year]
    breakdown = calculate_spending_breakdown(year_transactions, tags)

    logger.debug("Yearly report %d with %d active month(s)", year, len(monthly_breakdown))
    return {
        "year": year,
        "generated_at": stamp,
        "summary": {
            "total_income": float(income),
            "total_expenses": float(expenses),
            "net_savings": float(net_savings),
            "average_monthly_savings": net_savings / len(monthly_breakdown) if monthly_breakdown else 0.0,
        },
        "monthly_breakdown": monthly_breakdown,
        "year_over_year": _year_over_year(frame, year, income, expenses),
        "top_categories": top_categories(breakdown["by_tag"], settings.top_n),
        "top_merchants": breakdown["by_merchant"][: settings.top_n],
        "investment_summary": _investment_summary(year_frame, tags, len(monthly_breakdown)),
    }


def get_available_years(transactions: Iterable[Transaction]) -> list[int]:
    """Return calendar years with data, most recent first."""

    frame = ledger_frame(transactions)
    if frame.empty:
        return []
    return sorted({int(year) for year in frame["date"].dt.year}, reverse=True)
