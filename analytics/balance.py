"""Balance metrics read off the running balance column."""

from __future__ import annotations

from typing import Iterable, Optional, TypedDict

import pandas as pd

from analytics.periods import DateLike, filter_window, ledger_frame, resolve_as_of
from core.models import BalanceMetrics, Transaction

__all__ = [
    "BalancePoint",
    "calculate_balance_metrics",
    "get_current_balance",
    "get_balance_at_date",
    "get_balance_history",
]


class BalancePoint(TypedDict):
    date: pd.Timestamp
    balance: float


def _chronological(frame: pd.DataFrame) -> pd.DataFrame:
    return frame.sort_values("date", kind="stable")


def calculate_balance_metrics(
    transactions: Iterable[Transaction],
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
) -> BalanceMetrics:
    """Summarise the running balance within ``[start, end]``.

    ``current`` is the balance after the latest transaction in the window.
    An empty window yields zeros, with the period bounds taken from the
    requested window (or now when unbounded).
    """

    frame = _chronological(filter_window(ledger_frame(transactions), start, end))

    if frame.empty:
        now = resolve_as_of()
        return {
            "current": 0.0,
            "highest": 0.0,
            "lowest": 0.0,
            "average": 0.0,
            "period_start": pd.Timestamp(start) if start is not None else now,
            "period_end": pd.Timestamp(end) if end is not None else now,
        }

    balances = frame["balance"]
    return {
        "current": float(balances.iloc[-1]),
        "highest": float(balances.max()),
        "lowest": float(balances.min()),
        "average": float(balances.mean()),
        "period_start": pd.Timestamp(frame["date"].iloc[0]),
        "period_end": pd.Timestamp(frame["date"].iloc[-1]),
    }


def get_current_balance(transactions: Iterable[Transaction]) -> float:
    """Balance after the most recent transaction; 0 for an empty ledger."""

    frame = ledger_frame(transactions)
    if frame.empty:
        return 0.0
    return float(_chronological(frame)["balance"].iloc[-1])


def get_balance_at_date(transactions: Iterable[Transaction], when: DateLike) -> Optional[float]:
    """Balance as of ``when``, or ``None`` when nothing happened on or before it."""

    frame = filter_window(ledger_frame(transactions), end=when)
    if frame.empty:
        return None
    return float(_chronological(frame)["balance"].iloc[-1])


def get_balance_history(
    transactions: Iterable[Transaction],
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
) -> list[BalancePoint]:
    frame = _chronological(filter_window(ledger_frame(transactions), start, end))
    return [
        {"date": pd.Timestamp(row.date), "balance": float(row.balance)}
        for row in frame[["date", "balance"]].itertuples(index=False)
    ]
