"""Spending breakdowns by tag, merchant, payment method and calendar position."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd

from analytics.budgets import tag_label
from analytics.merchants import merchant_display_name
from analytics.periods import ledger_frame
from config import get_settings
from core.models import (
    CategoryTotal,
    MerchantSpend,
    SpendingBreakdown,
    Tag,
    TagSpend,
    TimeOfMonthSpend,
    Transaction,
)

__all__ = [
    "prepare_debits",
    "spending_by_tag",
    "spending_by_merchant",
    "calculate_spending_breakdown",
    "get_top_merchants",
    "top_categories",
    "calculate_spending_diversity",
]

logger = logging.getLogger(__name__)


def prepare_debits(frame: pd.DataFrame) -> pd.DataFrame:
    """Return debit rows enriched with a display merchant label."""

    debits = frame[frame["type"] == "debit"].copy()
    debits["merchant"] = debits["details"].map(merchant_display_name)
    return debits


def spending_by_tag(debits: pd.DataFrame, tags: Optional[Sequence[Tag]] = None) -> list[TagSpend]:
    """Total debit spend per tag.

    Catalog tags come first in catalog order (zero when unused), followed by
    tag ids seen on transactions but missing from the catalog, in first-seen
    order. A transaction carrying several tags counts towards each of them.
    """

    totals: dict[str, float] = {tag.id: 0.0 for tag in tags or ()}
    for tag_ids, amount in zip(debits["tag_ids"], debits["debit"]):
        for tag_id in sorted(tag_ids):
            totals[tag_id] = totals.get(tag_id, 0.0) + float(amount)

    return [
        {"tag_id": tag_id, "label": tag_label(tag_id, tags), "amount": amount}
        for tag_id, amount in totals.items()
    ]


def spending_by_merchant(debits: pd.DataFrame) -> list[MerchantSpend]:
    """Per-merchant totals sorted by spend descending, ties broken by name."""

    if debits.empty:
        return []

    grouped = debits.groupby("merchant").agg(
        total_amount=("debit", "sum"),
        transaction_count=("debit", "size"),
        last_transaction=("date", "max"),
    )
    grouped = grouped.reset_index().sort_values(
        ["total_amount", "merchant"], ascending=[False, True], kind="stable"
    )

    rows: list[MerchantSpend] = []
    for record in grouped.to_dict(orient="records"):
        count = int(record["transaction_count"])
        total = float(record["total_amount"])
        rows.append(
            {
                "merchant": str(record["merchant"]),
                "total_amount": total,
                "transaction_count": count,
                "average_amount": total / count if count else 0.0,
                "last_transaction": pd.Timestamp(record["last_transaction"]),
            }
        )
    return rows


def _by_payment_method(debits: pd.DataFrame) -> dict[str, float]:
    totals = debits.groupby("payment_method", sort=False)["debit"].sum()
    return {str(method): float(amount) for method, amount in totals.items()}


def _by_day_of_week(debits: pd.DataFrame) -> list[float]:
    # Monday=0 .. Sunday=6
    totals = debits.groupby(debits["date"].dt.dayofweek)["debit"].sum()
    return [float(value) for value in totals.reindex(range(7), fill_value=0.0)]


def _by_time_of_month(debits: pd.DataFrame) -> TimeOfMonthSpend:
    day = debits["date"].dt.day
    return {
        "early": float(debits.loc[day <= 10, "debit"].sum()),
        "mid": float(debits.loc[(day > 10) & (day <= 20), "debit"].sum()),
        "late": float(debits.loc[day > 20, "debit"].sum()),
    }


def calculate_spending_breakdown(
    transactions: Iterable[Transaction],
    tags: Optional[Sequence[Tag]] = None,
) -> SpendingBreakdown:
    """Break debit spend down by tag, merchant, payment method, weekday and month phase."""

    debits = prepare_debits(ledger_frame(transactions))
    logger.debug("Building spending breakdown over %d debits", len(debits))
    return {
        "by_tag": spending_by_tag(debits, tags),
        "by_merchant": spending_by_merchant(debits),
        "by_payment_method": _by_payment_method(debits),
        "by_day_of_week": _by_day_of_week(debits),
        "by_time_of_month": _by_time_of_month(debits),
    }


def get_top_merchants(transactions: Iterable[Transaction], limit: Optional[int] = None) -> list[MerchantSpend]:
    limit = get_settings().top_n if limit is None else limit
    return spending_by_merchant(prepare_debits(ledger_frame(transactions)))[:limit]


def top_categories(
    by_tag: Sequence[TagSpend],
    limit: Optional[int] = None,
) -> list[CategoryTotal]:
    """Return the highest-spend tags, dropping those with no spend."""

    limit = get_settings().top_n if limit is None else limit
    ranked = sorted((row for row in by_tag if row["amount"] > 0), key=lambda row: -row["amount"])
    return [
        {"tag_id": row["tag_id"], "label": row["label"], "amount": row["amount"]}
        for row in ranked[:limit]
    ]


def calculate_spending_diversity(by_tag: Sequence[TagSpend]) -> float:
    """Normalised Shannon entropy of spend across tags, 0-100.

    Zero when spending sits in one tag (or none); 100 when spread evenly.
    """

    amounts = np.array([row["amount"] for row in by_tag if row["amount"] > 0], dtype=float)
    if amounts.size <= 1:
        return 0.0

    shares = amounts / amounts.sum()
    entropy = float(-(shares * np.log2(shares)).sum())
    return entropy / float(np.log2(amounts.size)) * 100
