"""Spending limit evaluation over daily and monthly windows."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

import pandas as pd

from analytics.periods import DateLike, ledger_frame, resolve_as_of
from config import get_settings
from core.models import SpendingLimit, SpendingLimitStatus, Transaction

__all__ = [
    "calculate_current_spending",
    "check_spending_limits",
    "get_spending_limits_with_status",
    "get_warning_limits",
    "get_exceeded_limits",
]

logger = logging.getLogger(__name__)


def _debits(frame: pd.DataFrame) -> pd.DataFrame:
    return frame[frame["type"] == "debit"]


def _window_spend(limit: SpendingLimit, frame: pd.DataFrame, today: pd.Timestamp) -> float:
    debits = _debits(frame)
    if debits.empty:
        return 0.0

    if limit.type == "daily":
        mask = debits["date"].dt.normalize() == today.normalize()
        return float(debits.loc[mask, "debit"].sum())

    in_month = debits["date"].dt.to_period("M") == today.to_period("M")
    if limit.type == "monthly":
        return float(debits.loc[in_month, "debit"].sum())

    if not limit.target_id:
        return 0.0

    if limit.type == "category":
        tagged = debits["tag_ids"].map(lambda tag_ids: limit.target_id in tag_ids)
        return float(debits.loc[in_month & tagged, "debit"].sum())

    if limit.type == "merchant":
        matches = debits["merchant_id"] == limit.target_id.lower()
        return float(debits.loc[in_month & matches, "debit"].sum())

    logger.warning("Ignoring spending limit %r with unknown type %r", limit.id, limit.type)
    return 0.0


def calculate_current_spending(
    limit: SpendingLimit,
    transactions: Iterable[Transaction],
    as_of: Optional[DateLike] = None,
) -> float:
    """Return debit spend counted against ``limit`` in its current window.

    Daily limits cover the calendar date of ``as_of``; monthly, category and
    merchant limits cover its calendar month. Merchant matching uses
    :func:`analytics.merchants.extract_merchant_id` and is only as precise as
    that heuristic.
    """

    return _window_spend(limit, ledger_frame(transactions), resolve_as_of(as_of))


def _percent_used(spend: float, limit: float) -> float:
    return spend / limit * 100 if limit > 0 else 0.0


def get_spending_limits_with_status(
    limits: Sequence[SpendingLimit],
    transactions: Iterable[Transaction],
    as_of: Optional[DateLike] = None,
) -> list[SpendingLimitStatus]:
    """Attach current spend, percent used and remaining headroom to each limit."""

    frame = ledger_frame(transactions)
    today = resolve_as_of(as_of)

    statuses: list[SpendingLimitStatus] = []
    for limit in limits:
        spend = _window_spend(limit, frame, today)
        statuses.append(
            {
                "id": limit.id,
                "type": limit.type,
                "target_id": limit.target_id,
                "target_name": limit.target_name,
                "limit": float(limit.limit),
                "is_active": limit.is_active,
                "current_spend": spend,
                "percent_used": _percent_used(spend, limit.limit),
                "remaining": float(limit.limit) - spend,
            }
        )
    return statuses


def check_spending_limits(
    transaction: Transaction,
    limits: Sequence[SpendingLimit],
    transactions: Iterable[Transaction],
    as_of: Optional[DateLike] = None,
) -> list[SpendingLimit]:
    """Return the active limits that ``transaction`` would breach if committed.

    ``transactions`` is the ledger before the new transaction is added. Each
    limit is evaluated on its own; overlapping limits are not ranked.
    """

    if transaction.type != "debit":
        return []

    amount = float(transaction.debit if transaction.debit is not None else transaction.amount)
    frame = ledger_frame(transactions)
    today = resolve_as_of(as_of)

    breached = [
        limit
        for limit in limits
        if limit.is_active and _window_spend(limit, frame, today) + amount > limit.limit
    ]
    if breached:
        logger.debug("Transaction %r would breach %d limit(s)", transaction.id, len(breached))
    return breached


def get_warning_limits(
    limits: Sequence[SpendingLimit],
    transactions: Iterable[Transaction],
    as_of: Optional[DateLike] = None,
) -> list[SpendingLimit]:
    """Return active limits whose usage sits in the warning band."""

    settings = get_settings()
    frame = ledger_frame(transactions)
    today = resolve_as_of(as_of)

    warnings: list[SpendingLimit] = []
    for limit in limits:
        if not limit.is_active:
            continue
        percent = _percent_used(_window_spend(limit, frame, today), limit.limit)
        if settings.budget_warning_percent <= percent < settings.budget_exceeded_percent:
            warnings.append(limit)
    return warnings


def get_exceeded_limits(
    limits: Sequence[SpendingLimit],
    transactions: Iterable[Transaction],
    as_of: Optional[DateLike] = None,
) -> list[SpendingLimit]:
    frame = ledger_frame(transactions)
    today = resolve_as_of(as_of)
    return [
        limit
        for limit in limits
        if limit.is_active and _window_spend(limit, frame, today) > limit.limit
    ]
