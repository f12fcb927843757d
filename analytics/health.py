"""Composite financial health score with recommendations."""

from __future__ import annotations

import logging
import math
from typing import Iterable, Sequence

import pandas as pd

from analytics.periods import ledger_frame, months_between
from core.models import Budget, HealthScore, HealthScoreComponent, Transaction

__all__ = ["COMPONENT_WEIGHTS", "calculate_health_score", "health_trend"]

logger = logging.getLogger(__name__)

COMPONENT_WEIGHTS = {
    "savings_rate": 0.3,
    "budget_adherence": 0.25,
    "spending_diversity": 0.25,
    "emergency_fund": 0.2,
}


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def _component(name: str, score: float, value: float) -> HealthScoreComponent:
    bounded = min(100.0, max(0.0, score))
    return {"score": _round_half_up(bounded), "weight": COMPONENT_WEIGHTS[name], "value": value}


def _savings_rate_component(frame: pd.DataFrame) -> HealthScoreComponent:
    income = float(frame["credit"].sum())
    if income == 0:
        return _component("savings_rate", 0.0, 0.0)

    rate = (income - float(frame["debit"].sum())) / income * 100
    if rate < 0:
        score = 0.0
    elif rate < 10:
        score = rate * 4
    elif rate < 20:
        score = 40 + (rate - 10) * 3
    elif rate < 30:
        score = 70 + (rate - 20) * 2
    else:
        score = 90 + (rate - 30)
    return _component("savings_rate", score, _round_half_up(rate, 1))


def _budget_score(percent_used: float) -> float:
    if percent_used <= 80:
        return 100.0
    if percent_used <= 100:
        return 100 - (percent_used - 80) * 1.5
    return max(0.0, 70 - (percent_used - 100) * 0.7)


def _budget_adherence_component(frame: pd.DataFrame, budgets: Sequence[Budget]) -> HealthScoreComponent:
    if not budgets:
        return _component("budget_adherence", 50.0, 0.0)

    debits = frame[frame["type"] == "debit"]
    months = debits["date"].dt.strftime("%Y-%m")

    scores = []
    for budget in budgets:
        tagged = debits["tag_ids"].map(lambda tag_ids: budget.tag_id in tag_ids).astype(bool)
        spent = float(debits.loc[tagged & (months == budget.period), "debit"].sum())
        percent = spent / budget.monthly_limit * 100 if budget.monthly_limit > 0 else 0.0
        scores.append(_budget_score(percent))

    average = sum(scores) / len(scores)
    return _component("budget_adherence", average, _round_half_up(average))


def _spending_diversity_component(frame: pd.DataFrame) -> HealthScoreComponent:
    debits = frame[frame["type"] == "debit"]
    if debits.empty:
        return _component("spending_diversity", 50.0, 0.0)

    per_tag: dict[str, float] = {}
    for tag_ids, amount in zip(debits["tag_ids"], debits["debit"]):
        for tag_id in tag_ids:
            per_tag[tag_id] = per_tag.get(tag_id, 0.0) + float(amount)

    total = float(debits["debit"].sum())
    categories = len(per_tag)
    if categories <= 1 or total <= 0:
        return _component("spending_diversity", 50.0, float(categories))

    # Herfindahl concentration against total debit spend
    concentration = sum((amount / total) ** 2 for amount in per_tag.values())
    perfect = 1 / categories
    score = (1 - concentration) / (1 - perfect) * 100
    return _component("spending_diversity", score, float(categories))


def _emergency_fund_component(frame: pd.DataFrame) -> HealthScoreComponent:
    ordered = frame.sort_values("date", kind="stable")
    current_balance = float(ordered["balance"].iloc[-1])

    months_covered = months_between(ordered["date"].iloc[0], ordered["date"].iloc[-1]) + 1
    average_expenses = float(frame["debit"].sum()) / months_covered
    if average_expenses == 0:
        return _component("emergency_fund", 50.0, 0.0)

    months_of_expenses = current_balance / average_expenses
    if months_of_expenses < 1:
        score = months_of_expenses * 30
    elif months_of_expenses < 3:
        score = 30 + (months_of_expenses - 1) * 15
    elif months_of_expenses < 6:
        score = 60 + (months_of_expenses - 3) * 10
    else:
        score = 90 + (months_of_expenses - 6) * 2
    return _component("emergency_fund", score, _round_half_up(months_of_expenses, 1))


def _recommendations(components: dict[str, HealthScoreComponent]) -> list[str]:
    recommendations: list[str] = []

    savings = components["savings_rate"]["score"]
    if savings < 40:
        recommendations.append("Your savings rate is low. Try to save at least 10-20% of your income.")
    elif savings < 70:
        recommendations.append("Good savings rate! Aim for 20-30% to build wealth faster.")
    else:
        recommendations.append("Excellent savings rate! Keep up the great work.")

    adherence = components["budget_adherence"]["score"]
    if adherence < 50:
        recommendations.append(
            "You're exceeding your budgets. Review your spending categories and adjust limits."
        )
    elif adherence < 80:
        recommendations.append("Budget adherence needs improvement. Track your spending more closely.")

    if components["spending_diversity"]["score"] < 40:
        recommendations.append(
            "Your spending is concentrated in few categories. Consider diversifying to reduce risk."
        )

    emergency = components["emergency_fund"]["score"]
    if emergency < 30:
        recommendations.append("Build an emergency fund covering at least 3-6 months of expenses.")
    elif emergency < 60:
        recommendations.append("Your emergency fund is growing. Aim for 3-6 months of expenses.")
    elif emergency < 90:
        recommendations.append(
            "Good emergency fund! Consider reaching 6 months of expenses for better security."
        )

    if len(recommendations) == 1:
        recommendations.append("Continue monitoring your finances regularly to maintain good health.")
    return recommendations


def health_trend(score: float) -> str:
    """Coarse direction label derived from the score alone."""

    if score >= 70:
        return "improving"
    if score >= 40:
        return "stable"
    return "declining"


def calculate_health_score(
    transactions: Iterable[Transaction],
    budgets: Sequence[Budget] = (),
) -> HealthScore:
    """Score the ledger 0-100 from weighted component scores.

    Components and weights: savings rate (0.3), budget adherence (0.25),
    spending diversity across tags (0.25) and emergency-fund coverage of
    average monthly expenses by the current balance (0.2).
    """

    frame = ledger_frame(transactions)
    if frame.empty:
        return {
            "score": 0,
            "components": {name: {"score": 0.0, "weight": weight, "value": 0.0} for name, weight in COMPONENT_WEIGHTS.items()},
            "recommendations": ["Upload transaction data to calculate health score"],
            "trend": "stable",
        }

    components = {
        "savings_rate": _savings_rate_component(frame),
        "budget_adherence": _budget_adherence_component(frame, list(budgets)),
        "spending_diversity": _spending_diversity_component(frame),
        "emergency_fund": _emergency_fund_component(frame),
    }
    overall = sum(component["score"] * component["weight"] for component in components.values())
    score = int(min(100.0, max(0.0, _round_half_up(overall))))

    logger.debug("Health score %d from %d transactions", score, len(frame))
    return {
        "score": score,
        "components": components,
        "recommendations": _recommendations(components),
        "trend": health_trend(score),
    }
