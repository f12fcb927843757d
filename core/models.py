"""Shared data model definitions for the Ledgerwise analytics engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal, Optional, TypedDict

import pandas as pd

TransactionType = Literal["debit", "credit"]
LimitType = Literal["daily", "monthly", "category", "merchant"]
BudgetState = Literal["on_track", "warning", "exceeded"]
Frequency = Literal["weekly", "monthly", "quarterly", "yearly"]
RecurringCategory = Literal["subscription", "emi", "utility", "other"]
WarningSeverity = Literal["critical", "warning", "info"]
AnomalySeverity = Literal["low", "medium", "high"]


@dataclass(frozen=True)
class Transaction:
    """A single bank statement line. Read-only input to the engine."""

    date: datetime
    amount: float
    type: TransactionType
    balance: float
    details: str = ""
    debit: Optional[float] = None
    credit: Optional[float] = None
    tag_ids: frozenset[str] = field(default_factory=frozenset)
    payment_method: str = "OTHER"
    id: str = ""
    ref_no: str = ""
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.tag_ids, frozenset):
            object.__setattr__(self, "tag_ids", frozenset(self.tag_ids))


@dataclass(frozen=True)
class Tag:
    id: str
    name: str
    color: str = ""
    icon: Optional[str] = None
    parent_tag_id: Optional[str] = None


@dataclass(frozen=True)
class Budget:
    tag_id: str
    monthly_limit: float
    period: str  # YYYY-MM
    id: str = ""


@dataclass(frozen=True)
class SpendingLimit:
    type: LimitType
    limit: float
    target_id: Optional[str] = None
    target_name: str = ""
    is_active: bool = True
    id: str = ""


@dataclass(frozen=True)
class SavingsGoal:
    name: str
    target_amount: float
    deadline: date
    created_at: datetime
    id: str = ""


class CashFlowMetrics(TypedDict):
    period: str
    total_inflow: float
    total_outflow: float
    net_cash_flow: float
    average_daily_inflow: float
    average_daily_outflow: float
    surplus_days: int
    deficit_days: int


class BalanceMetrics(TypedDict):
    current: float
    highest: float
    lowest: float
    average: float
    period_start: pd.Timestamp
    period_end: pd.Timestamp


class MerchantSpend(TypedDict):
    merchant: str
    total_amount: float
    transaction_count: int
    average_amount: float
    last_transaction: pd.Timestamp


class TagSpend(TypedDict):
    tag_id: str
    label: str
    amount: float


class TimeOfMonthSpend(TypedDict):
    early: float
    mid: float
    late: float


class SpendingBreakdown(TypedDict):
    by_tag: list[TagSpend]
    by_merchant: list[MerchantSpend]
    by_payment_method: dict[str, float]
    by_day_of_week: list[float]
    by_time_of_month: TimeOfMonthSpend


class SpendingLimitStatus(TypedDict):
    id: str
    type: str
    target_id: Optional[str]
    target_name: str
    limit: float
    is_active: bool
    current_spend: float
    percent_used: float
    remaining: float


class BudgetStatus(TypedDict):
    budget_id: str
    tag_id: str
    tag_name: str
    period: str
    monthly_limit: float
    current_spend: float
    percent_used: float
    remaining: float
    projected_end_of_month: float
    status: BudgetState


class GoalProgress(TypedDict):
    goal_id: str
    name: str
    target_amount: float
    current_amount: float
    percent_complete: float
    remaining: float
    months_remaining: int
    required_monthly_savings: float
    average_monthly_savings: float
    on_track: bool


class WhatIfResult(TypedDict):
    savings_rate: float
    hypothetical_monthly_savings: float
    months_to_goal: Optional[int]
    projected_completion_date: Optional[pd.Timestamp]


class RecurringPayment(TypedDict):
    merchant: str
    amount: float
    frequency: Frequency
    interval_days: int
    last_date: pd.Timestamp
    next_expected_date: pd.Timestamp
    category: RecurringCategory
    confidence: int
    occurrences: int


class ConfidenceInterval(TypedDict):
    low: float
    high: float


class BalanceForecast(TypedDict):
    date: pd.Timestamp
    predicted_balance: float
    confidence_interval: ConfidenceInterval
    assumptions: list[str]


class ForecastWarning(TypedDict):
    type: Literal["low_balance", "negative_balance", "budget_exceeded"]
    date: pd.Timestamp
    message: str
    severity: WarningSeverity


class CashFlowProjection(TypedDict):
    period: str
    start: pd.Timestamp
    end: pd.Timestamp
    expected_inflow: float
    expected_outflow: float
    net_flow: float
    recurring_payments: list[RecurringPayment]


class HealthScoreComponent(TypedDict):
    score: float
    weight: float
    value: float


class HealthScore(TypedDict):
    score: int
    components: dict[str, HealthScoreComponent]
    recommendations: list[str]
    trend: Literal["improving", "stable", "declining"]


class Anomaly(TypedDict):
    transaction_id: str
    date: pd.Timestamp
    details: str
    amount: float
    type: Literal["high_amount", "duplicate", "unusual_merchant", "spending_spike"]
    severity: AnomalySeverity
    description: str


class ReportSummary(TypedDict):
    total_income: float
    total_expenses: float
    net_savings: float
    savings_rate: float


class MonthlyReport(TypedDict):
    period: str
    generated_at: pd.Timestamp
    summary: ReportSummary
    balance_metrics: BalanceMetrics
    cash_flow: CashFlowMetrics
    spending_by_tag: list[TagSpend]
    top_merchants: list[MerchantSpend]
    budget_performance: list[BudgetStatus]
    health_score: HealthScore
    anomalies: list[Anomaly]
    recommendations: list[str]


class YearlySummary(TypedDict):
    total_income: float
    total_expenses: float
    net_savings: float
    average_monthly_savings: float


class YearOverYearComparison(TypedDict):
    income_change: float
    expense_change: float
    savings_change: float


class CategoryTotal(TypedDict):
    tag_id: str
    label: str
    amount: float


class InvestmentSummary(TypedDict):
    tag_id: Optional[str]
    total_invested: float
    sip_consistency: float


class YearlyReport(TypedDict):
    year: int
    generated_at: pd.Timestamp
    summary: YearlySummary
    monthly_breakdown: list[MonthlyReport]
    year_over_year: Optional[YearOverYearComparison]
    top_categories: list[CategoryTotal]
    top_merchants: list[MerchantSpend]
    investment_summary: InvestmentSummary


__all__ = [
    "Transaction",
    "Tag",
    "Budget",
    "SpendingLimit",
    "SavingsGoal",
    "CashFlowMetrics",
    "BalanceMetrics",
    "MerchantSpend",
    "TagSpend",
    "TimeOfMonthSpend",
    "SpendingBreakdown",
    "SpendingLimitStatus",
    "BudgetStatus",
    "GoalProgress",
    "WhatIfResult",
    "RecurringPayment",
    "ConfidenceInterval",
    "BalanceForecast",
    "ForecastWarning",
    "CashFlowProjection",
    "HealthScoreComponent",
    "HealthScore",
    "Anomaly",
    "ReportSummary",
    "MonthlyReport",
    "YearlySummary",
    "YearOverYearComparison",
    "CategoryTotal",
    "InvestmentSummary",
    "YearlyReport",
]
