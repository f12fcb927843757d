"""Recurring payment detection from debit history."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from analytics.periods import add_months, ledger_frame
from config import get_settings
from core.models import Frequency, RecurringCategory, RecurringPayment, Transaction

__all__ = [
    "detect_recurring_payments",
    "categorize_recurring_payment",
    "next_occurrence",
]

logger = logging.getLogger(__name__)

# (frequency, canonical days, inclusive bounds on the mean interval)
_CADENCES: tuple[tuple[Frequency, int, float, float], ...] = (
    ("weekly", 7, 4, 10),
    ("monthly", 30, 23, 37),
    ("quarterly", 90, 75, 105),
    ("yearly", 365, 335, 395),
)

_SUBSCRIPTION_HINTS = ("netflix", "spotify", "prime", "subscription", "membership")
_EMI_HINTS = ("emi", "loan", "finance", "bajaj")
_UTILITY_HINTS = ("electric", "water", "gas", "internet", "mobile", "broadband", "utility")
_EMI_AMOUNT_FLOOR = 5000.0


def detect_recurring_payments(
    transactions: Iterable[Transaction],
    *,
    amount_tolerance: Optional[float] = None,
    min_occurrences: int = 2,
) -> list[RecurringPayment]:
    """Identify merchants charged at a stable cadence.

    Parameters
    ----------
    transactions:
        Ledger snapshot; only debits are considered.
    amount_tolerance:
        Relative distance from the merchant's mean charge within which a debit
        counts as the same payment. Defaults to the configured tolerance.
    min_occurrences:
        Minimum number of similar charges required.

    Returns
    -------
    list[RecurringPayment]
        Sorted by next expected date, then amount descending.
    """

    tolerance = get_settings().recurring_amount_tolerance if amount_tolerance is None else amount_tolerance

    frame = ledger_frame(transactions)
    debits = frame[(frame["type"] == "debit") & (frame["debit"] > 0)]
    if len(debits) < min_occurrences:
        return []

    payments: list[RecurringPayment] = []
    for merchant, group_df in debits.groupby("merchant_id", sort=True):
        if len(group_df) < min_occurrences:
            continue
        payment = _analyse_group(str(merchant), group_df, tolerance, min_occurrences)
        if payment is not None:
            payments.append(payment)

    payments.sort(key=lambda row: (row["next_expected_date"], -row["amount"]))
    logger.debug("Detected %d recurring payment(s) across %d debits", len(payments), len(debits))
    return payments


def _analyse_group(
    merchant: str,
    group_df: pd.DataFrame,
    tolerance: float,
    min_occurrences: int,
) -> RecurringPayment | None:
    group_df = group_df.sort_values("date", kind="stable")
    amounts = group_df["debit"].astype(float)
    mean_amount = float(amounts.mean())
    if mean_amount <= 0:
        return None

    similar = group_df[np.abs(amounts - mean_amount) / mean_amount <= tolerance]
    if len(similar) < min_occurrences:
        return None

    intervals = similar["date"].diff().dt.days.dropna().to_numpy(dtype=float)
    cadence = _resolve_cadence(intervals)
    if cadence is None:
        return None
    frequency, interval_days = cadence

    amount = float(similar["debit"].mean())
    last_date = pd.Timestamp(similar["date"].iloc[-1])

    return {
        "merchant": merchant,
        "amount": amount,
        "frequency": frequency,
        "interval_days": interval_days,
        "last_date": last_date,
        "next_expected_date": next_occurrence(last_date, frequency),
        "category": categorize_recurring_payment(merchant, amount),
        "confidence": _interval_confidence(intervals, interval_days),
        "occurrences": int(len(similar)),
    }


def _resolve_cadence(intervals: np.ndarray) -> tuple[Frequency, int] | None:
    if intervals.size == 0:
        return None
    mean_interval = float(np.mean(intervals))
    for frequency, days, low, high in _CADENCES:
        if low <= mean_interval <= high:
            return frequency, days
    return None


def _interval_confidence(intervals: np.ndarray, interval_days: int) -> int:
    """Score 0-100: 100 when every gap hits the cadence, 0 at 30% average drift."""

    if intervals.size == 0:
        return 0
    drift = float(np.mean(np.abs(intervals - interval_days)))
    confidence = 100 - drift / (interval_days * 0.3) * 100
    return int(round(min(100.0, max(0.0, confidence))))


def next_occurrence(last_date: pd.Timestamp, frequency: Frequency) -> pd.Timestamp:
    """Advance ``last_date`` by one cadence using calendar arithmetic."""

    if frequency == "weekly":
        return last_date + pd.Timedelta(days=7)
    if frequency == "monthly":
        return add_months(last_date, 1)
    if frequency == "quarterly":
        return add_months(last_date, 3)
    return add_months(last_date, 12)


def categorize_recurring_payment(merchant: str, amount: float) -> RecurringCategory:
    name = merchant.lower()
    if any(hint in name for hint in _SUBSCRIPTION_HINTS):
        return "subscription"
    if any(hint in name for hint in _EMI_HINTS) or amount > _EMI_AMOUNT_FLOOR:
        return "emi"
    if any(hint in name for hint in _UTILITY_HINTS):
        return "utility"
    return "other"
