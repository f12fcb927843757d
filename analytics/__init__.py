"""Analytics helpers shared across Ledgerwise reports and forecasts."""

from analytics.anomalies import anomaly_severity, detect_anomalies, detect_duplicate_groups
from analytics.balance import (
    BalancePoint,
    calculate_balance_metrics,
    get_balance_at_date,
    get_balance_history,
    get_current_balance,
)
from analytics.budgets import (
    UNKNOWN_TAG_LABEL,
    budget_state,
    get_budget_status,
    get_budget_statuses,
    suggest_budgets,
    tag_label,
)
from analytics.forecasting import (
    forecast_end_of_month_balance,
    generate_warnings,
    project_cash_flow,
    recurring_occurrences,
)
from analytics.goals import (
    average_monthly_income,
    average_monthly_savings,
    calculate_goal_progress,
    calculate_savings_rate,
    calculate_what_if,
    get_savings_goals_with_progress,
)
from analytics.health import COMPONENT_WEIGHTS, calculate_health_score, health_trend
from analytics.limits import (
    calculate_current_spending,
    check_spending_limits,
    get_exceeded_limits,
    get_spending_limits_with_status,
    get_warning_limits,
)
from analytics.merchants import UNKNOWN_MERCHANT, extract_merchant_id, merchant_display_name
from analytics.periods import (
    calculate_cash_flow,
    calculate_cash_flow_window,
    net_cash_flow,
    savings_rate,
    total_expenses,
    total_income,
)
from analytics.recurring import categorize_recurring_payment, detect_recurring_payments, next_occurrence
from analytics.spending import (
    calculate_spending_breakdown,
    calculate_spending_diversity,
    get_top_merchants,
    top_categories,
)

__all__ = [
    "anomaly_severity",
    "detect_anomalies",
    "detect_duplicate_groups",
    "BalancePoint",
    "calculate_balance_metrics",
    "get_balance_at_date",
    "get_balance_history",
    "get_current_balance",
    "UNKNOWN_TAG_LABEL",
    "budget_state",
    "get_budget_status",
    "get_budget_statuses",
    "suggest_budgets",
    "tag_label",
    "forecast_end_of_month_balance",
    "generate_warnings",
    "project_cash_flow",
    "recurring_occurrences",
    "average_monthly_income",
    "average_monthly_savings",
    "calculate_goal_progress",
    "calculate_savings_rate",
    "calculate_what_if",
    "get_savings_goals_with_progress",
    "COMPONENT_WEIGHTS",
    "calculate_health_score",
    "health_trend",
    "calculate_current_spending",
    "check_spending_limits",
    "get_exceeded_limits",
    "get_spending_limits_with_status",
    "get_warning_limits",
    "UNKNOWN_MERCHANT",
    "extract_merchant_id",
    "merchant_display_name",
    "calculate_cash_flow",
    "calculate_cash_flow_window",
    "net_cash_flow",
    "savings_rate",
    "total_expenses",
    "total_income",
    "categorize_recurring_payment",
    "detect_recurring_payments",
    "next_occurrence",
    "calculate_spending_breakdown",
    "calculate_spending_diversity",
    "get_top_merchants",
    "top_categories",
]
