"""Unusual transaction detection: outsized charges, duplicates and daily spikes."""

from __future__ import annotations

import logging
from typing import Iterable

import pandas as pd

from analytics.merchants import merchant_display_name
from analytics.periods import ledger_frame
from config import get_settings
from core.models import Anomaly, AnomalySeverity, Transaction

__all__ = [
    "detect_anomalies",
    "detect_duplicate_groups",
    "anomaly_severity",
]

logger = logging.getLogger(__name__)

_HIGH_AMOUNT_RATIO = 3.0
_SPIKE_RATIO = 2.0


def anomaly_severity(amount: float, average: float) -> AnomalySeverity:
    ratio = amount / average if average > 0 else 0.0
    if ratio > 5:
        return "high"
    if ratio > 3:
        return "medium"
    return "low"


def _anomaly(row, kind: str, severity: AnomalySeverity, description: str) -> Anomaly:
    return {
        "transaction_id": str(row["id"]),
        "date": pd.Timestamp(row["date"]),
        "details": str(row["details"]),
        "amount": float(row["debit"]),
        "type": kind,
        "severity": severity,
        "description": description,
    }


def _high_amount(debits: pd.DataFrame) -> list[Anomaly]:
    fmt = get_settings().format_amount
    anomalies: list[Anomaly] = []
    for _, group_df in debits.groupby("merchant_id", sort=False):
        if len(group_df) < 2:
            continue
        average = float(group_df["debit"].mean())
        if average <= 0:
            continue
        for _, row in group_df[group_df["debit"] > average * _HIGH_AMOUNT_RATIO].iterrows():
            amount = float(row["debit"])
            anomalies.append(
                _anomaly(
                    row,
                    "high_amount",
                    anomaly_severity(amount, average),
                    f"Transaction amount ({fmt(amount)}) is {round(amount / average)}x higher than average "
                    f"for {merchant_display_name(row['details'])} ({fmt(average)})",
                )
            )
    return anomalies


def _duplicate_keys(debits: pd.DataFrame) -> pd.DataFrame:
    keyed = debits.copy()
    keyed["amount_key"] = keyed["debit"].round(2)
    keyed["date_only"] = keyed["date"].dt.normalize()
    return keyed


def _duplicates(debits: pd.DataFrame) -> list[Anomaly]:
    anomalies: list[Anomaly] = []
    keyed = _duplicate_keys(debits)
    for _, group_df in keyed.groupby(["amount_key", "merchant_id", "date_only"], sort=False):
        if len(group_df) < 2:
            continue
        description = (
            f"Potential duplicate transaction: {len(group_df)} transactions "
            "with same amount, merchant, and date"
        )
        anomalies.extend(_anomaly(row, "duplicate", "medium", description) for _, row in group_df.iterrows())
    return anomalies


def _spending_spikes(debits: pd.DataFrame) -> list[Anomaly]:
    fmt = get_settings().format_amount
    days = debits["date"].dt.normalize()
    daily = debits.groupby(days)["debit"].sum()
    average = float(daily.mean())
    if average <= 0:
        return []

    anomalies: list[Anomaly] = []
    for day, total in daily[daily > average * _SPIKE_RATIO].items():
        total = float(total)
        description = (
            f"Daily spending ({fmt(total)}) is {round(total / average)}x higher "
            f"than average ({fmt(average)})"
        )
        severity = anomaly_severity(total, average)
        anomalies.extend(
            _anomaly(row, "spending_spike", severity, description)
            for _, row in debits[days == day].iterrows()
        )
    return anomalies


def detect_anomalies(transactions: Iterable[Transaction]) -> list[Anomaly]:
    """Flag unusual debits.

    * ``high_amount``: more than three times the merchant's average charge,
      for merchants with at least two charges.
    * ``duplicate``: same amount, merchant id and calendar date.
    * ``spending_spike``: every debit on a day whose total is more than twice
      the average daily spend.

    A transaction can appear under more than one type.
    """

    frame = ledger_frame(transactions)
    debits = frame[frame["type"] == "debit"]
    if debits.empty:
        return []

    anomalies = _high_amount(debits) + _duplicates(debits) + _spending_spikes(debits)
    logger.debug("Detected %d anomalies across %d debits", len(anomalies), len(debits))
    return anomalies


def detect_duplicate_groups(transactions: Iterable[Transaction]) -> list[list[str]]:
    """Return ids of debits sharing amount, merchant id and date, one list per group."""

    frame = ledger_frame(transactions)
    debits = frame[frame["type"] == "debit"]
    if debits.empty:
        return []

    keyed = _duplicate_keys(debits)
    return [
        [str(value) for value in group_df["id"]]
        for _, group_df in keyed.groupby(["amount_key", "merchant_id", "date_only"], sort=False)
        if len(group_df) > 1
    ]
