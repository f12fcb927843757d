"""Budget status evaluation and budget suggestions."""

from __future__ import annotations

import logging
import math
from typing import Iterable, Mapping, Optional, Sequence

import pandas as pd

from analytics.periods import DateLike, ledger_frame, month_key, parse_month, resolve_as_of, trailing_months
from config import get_settings
from core.models import Budget, BudgetState, BudgetStatus, Tag, Transaction

__all__ = [
    "UNKNOWN_TAG_LABEL",
    "tag_label",
    "budget_state",
    "get_budget_status",
    "get_budget_statuses",
    "suggest_budgets",
]

logger = logging.getLogger(__name__)

UNKNOWN_TAG_LABEL = "Unknown tag"
_SUGGESTION_FLOOR = 100.0
_SUGGESTION_BUFFER = 1.1


def _tag_index(tags: Optional[Iterable[Tag]]) -> dict[str, Tag]:
    if tags is None:
        return {}
    if isinstance(tags, Mapping):
        return dict(tags)
    return {tag.id: tag for tag in tags}


def tag_label(tag_id: str, tags: Optional[Iterable[Tag]]) -> str:
    """Return the tag's display name, or a placeholder for unknown ids.

    Without a catalog the raw id is used as its own label.
    """

    if tags is None:
        return tag_id
    tag = _tag_index(tags).get(tag_id)
    if tag is None:
        logger.warning("Tag id %r has no entry in the tag catalog", tag_id)
        return UNKNOWN_TAG_LABEL
    return tag.name


def budget_state(percent_used: float) -> BudgetState:
    settings = get_settings()
    if percent_used >= settings.budget_exceeded_percent:
        return "exceeded"
    if percent_used >= settings.budget_warning_percent:
        return "warning"
    return "on_track"


def _tagged_debits(frame: pd.DataFrame, tag_id: str) -> pd.DataFrame:
    debits = frame[frame["type"] == "debit"]
    if debits.empty:
        return debits
    tagged = debits["tag_ids"].map(lambda tag_ids: tag_id in tag_ids).astype(bool)
    return debits[tagged]


def _project_end_of_month(current_spend: float, period: pd.Period, today: pd.Timestamp) -> float:
    current_period = today.to_period("M")
    if period < current_period:
        return current_spend
    if period > current_period:
        return 0.0

    days_elapsed = today.day
    if days_elapsed <= 0:
        return current_spend
    return current_spend / days_elapsed * period.days_in_month


def _budget_status(
    budget: Budget,
    frame: pd.DataFrame,
    tags: Optional[Iterable[Tag]],
    today: pd.Timestamp,
) -> BudgetStatus:
    period = parse_month(budget.period)
    tagged = _tagged_debits(frame, budget.tag_id)
    in_period = tagged[tagged["date"].dt.to_period("M") == period] if not tagged.empty else tagged
    current_spend = float(in_period["debit"].sum())

    limit = float(budget.monthly_limit)
    percent_used = current_spend / limit * 100 if limit > 0 else 0.0

    return {
        "budget_id": budget.id,
        "tag_id": budget.tag_id,
        "tag_name": tag_label(budget.tag_id, tags),
        "period": budget.period,
        "monthly_limit": limit,
        "current_spend": current_spend,
        "percent_used": percent_used,
        "remaining": limit - current_spend,
        "projected_end_of_month": _project_end_of_month(current_spend, period, today),
        "status": budget_state(percent_used),
    }


def get_budget_status(
    budget: Budget,
    transactions: Iterable[Transaction],
    tags: Optional[Iterable[Tag]] = None,
    as_of: Optional[DateLike] = None,
) -> BudgetStatus:
    """Evaluate a monthly tag budget against its period's debits.

    The end-of-month projection extrapolates linearly from the days elapsed
    in the current month; past months project their actual spend and future
    months project zero.
    """

    return _budget_status(budget, ledger_frame(transactions), tags, resolve_as_of(as_of))


def get_budget_statuses(
    budgets: Sequence[Budget],
    transactions: Iterable[Transaction],
    tags: Optional[Iterable[Tag]] = None,
    as_of: Optional[DateLike] = None,
) -> list[BudgetStatus]:
    frame = ledger_frame(transactions)
    today = resolve_as_of(as_of)
    tag_index = _tag_index(tags) if tags is not None else None
    return [_budget_status(budget, frame, tag_index, today) for budget in budgets]


def _average_monthly_tag_spend(frame: pd.DataFrame, tag_id: str, months: list[pd.Period]) -> float:
    tagged = _tagged_debits(frame, tag_id)
    if tagged.empty:
        return 0.0
    per_month = tagged.groupby(tagged["date"].dt.to_period("M"))["debit"].sum()
    values = [float(per_month.get(month, 0.0)) for month in months]
    values = [value for value in values if value > 0]
    if not values:
        return 0.0
    return sum(values) / len(values)


def suggest_budgets(
    transactions: Iterable[Transaction],
    tags: Sequence[Tag],
    existing_budgets: Sequence[Budget] = (),
    as_of: Optional[DateLike] = None,
) -> list[Budget]:
    """Suggest current-month budgets for tags with meaningful recent spend."""

    settings = get_settings()
    frame = ledger_frame(transactions)
    today = resolve_as_of(as_of)
    current_period = month_key(today)
    months = trailing_months(today, settings.trailing_months)

    covered = {budget.tag_id for budget in existing_budgets if budget.period == current_period}

    suggestions: list[Budget] = []
    for tag in tags:
        if tag.id in covered:
            continue
        average = _average_monthly_tag_spend(frame, tag.id, months)
        if average > _SUGGESTION_FLOOR:
            limit = math.ceil(average * _SUGGESTION_BUFFER / 100) * 100
            suggestions.append(Budget(tag_id=tag.id, monthly_limit=float(limit), period=current_period))
    return suggestions
