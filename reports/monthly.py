"""Monthly financial report generation."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Sequence

import pandas as pd

from analytics.anomalies import detect_anomalies
from analytics.balance import calculate_balance_metrics
from analytics.budgets import get_budget_statuses
from analytics.health import calculate_health_score
from analytics.periods import (
    DateLike,
    calculate_cash_flow,
    empty_cash_flow,
    ledger_frame,
    month_bounds,
    resolve_as_of,
)
from analytics.spending import calculate_spending_breakdown
from config import get_settings
from core.models import (
    Anomaly,
    Budget,
    BudgetStatus,
    CashFlowMetrics,
    HealthScore,
    MonthlyReport,
    Tag,
    Transaction,
)

__all__ = ["HealthScorer", "generate_monthly_report", "get_available_months", "month_transactions"]

logger = logging.getLogger(__name__)

HealthScorer = Callable[[Sequence[Transaction], Sequence[Budget]], HealthScore]


def month_transactions(transactions: Iterable[Transaction], year: int, month: int) -> list[Transaction]:
    """Return the transactions dated within the calendar month, in input order."""

    start, end = month_bounds(year, month)
    return [txn for txn in transactions if start <= pd.Timestamp(txn.date) <= end]


def _recommendations(
    cash_flow: CashFlowMetrics,
    budget_performance: Sequence[BudgetStatus],
    health_score: HealthScore,
    anomalies: Sequence[Anomaly],
) -> list[str]:
    recommendations: list[str] = []

    if cash_flow["net_cash_flow"] < 0:
        recommendations.append(
            "Your expenses exceeded income this month. Consider reviewing your spending patterns."
        )

    exceeded = sum(1 for status in budget_performance if status["status"] == "exceeded")
    if exceeded:
        recommendations.append(
            f"You exceeded {exceeded} budget(s) this month. Review these categories to stay on track."
        )

    if health_score["score"] < 60:
        recommendations.append(
            "Your financial health score is below average. "
            "Focus on increasing savings and reducing unnecessary expenses."
        )

    flagged = sum(1 for anomaly in anomalies if anomaly["severity"] == "high")
    if flagged:
        recommendations.append(f"{flagged} unusual transaction(s) detected. Review these for accuracy.")

    recommendations.extend(health_score["recommendations"])
    return recommendations


def generate_monthly_report(
    transactions: Iterable[Transaction],
    tags: Sequence[Tag],
    budgets: Sequence[Budget],
    year: int,
    month: int,
    health_scorer: HealthScorer = calculate_health_score,
    generated_at: Optional[DateLike] = None,
) -> MonthlyReport:
    """Compose the report for one calendar month.

    Parameters
    ----------
    transactions:
        Full ledger snapshot; only the month's transactions are analysed.
    tags:
        Tag catalog used for labels.
    budgets:
        All budgets; those whose ``period`` matches the month appear under
        ``budget_performance``.
    health_scorer:
        Callable producing the month's health score from its transactions and
        the budgets.
    generated_at:
        Report timestamp, also the reference date for budget projections.
        Defaults to now.
    """

    period = f"{year:04d}-{month:02d}"
    start, end = month_bounds(year, month)
    stamp = resolve_as_of(generated_at)
    in_month = month_transactions(transactions, year, month)

    buckets = calculate_cash_flow(in_month, "monthly")
    cash_flow = buckets[0] if buckets else empty_cash_flow(period)

    breakdown = calculate_spending_breakdown(in_month, tags)
    month_budgets = [budget for budget in budgets if budget.period == period]
    budget_performance = get_budget_statuses(month_budgets, in_month, tags, as_of=stamp)
    health_score = health_scorer(in_month, budgets)
    anomalies = detect_anomalies(in_month)

    income = cash_flow["total_inflow"]
    expenses = cash_flow["total_outflow"]
    net_savings = income - expenses

    logger.debug("Monthly report %s over %d transactions", period, len(in_month))
    return {
        "period": period,
        "generated_at": stamp,
        "summary": {
            "total_income": income,
            "total_expenses": expenses,
            "net_savings": net_savings,
            "savings_rate": net_savings / income * 100 if income > 0 else 0.0,
        },
        "balance_metrics": calculate_balance_metrics(in_month, start, end),
        "cash_flow": cash_flow,
        "spending_by_tag": breakdown["by_tag"],
        "top_merchants": breakdown["by_merchant"][: get_settings().top_n],
        "budget_performance": budget_performance,
        "health_score": health_score,
        "anomalies": anomalies,
        "recommendations": _recommendations(cash_flow, budget_performance, health_score, anomalies),
    }


def get_available_months(transactions: Iterable[Transaction]) -> list[tuple[int, int]]:
    """Return ``(year, month)`` pairs with data, oldest first."""

    frame = ledger_frame(transactions)
    if frame.empty:
        return []
    periods = frame["date"].dt.to_period("M").drop_duplicates().sort_values()
    return [(int(period.year), int(period.month)) for period in periods]
