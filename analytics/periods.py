"""Calendar windows and cash-flow bucketing over transaction ledgers."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Iterable, Literal, Optional, Union

import pandas as pd

from analytics.merchants import extract_merchant_id
from core.errors import LedgerDataError
from core.models import CashFlowMetrics, Transaction

__all__ = [
    "Granularity",
    "ledger_frame",
    "resolve_as_of",
    "month_key",
    "parse_month",
    "month_bounds",
    "add_months",
    "months_between",
    "trailing_months",
    "filter_window",
    "monthly_totals",
    "calculate_cash_flow",
    "calculate_cash_flow_window",
    "empty_cash_flow",
    "total_income",
    "total_expenses",
    "net_cash_flow",
    "savings_rate",
]

Granularity = Literal["daily", "weekly", "monthly"]
DateLike = Union[date, datetime, pd.Timestamp, str]

LEDGER_COLUMNS = [
    "id",
    "date",
    "details",
    "amount",
    "type",
    "debit",
    "credit",
    "balance",
    "tag_ids",
    "payment_method",
    "merchant_id",
]

_PERIOD_FREQ = {"daily": "D", "weekly": "W-SUN", "monthly": "M"}
_MONTH_PATTERN = re.compile(r"\d{4}-(0[1-9]|1[0-2])")


def _debit_amount(txn: Transaction) -> float:
    if txn.type != "debit":
        return 0.0
    return float(txn.debit if txn.debit is not None else txn.amount)


def _credit_amount(txn: Transaction) -> float:
    if txn.type != "credit":
        return 0.0
    return float(txn.credit if txn.credit is not None else txn.amount)


def ledger_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """Return the snapshot as a DataFrame; input order is preserved, not assumed sorted."""

    records = [
        {
            "id": txn.id,
            "date": txn.date,
            "details": txn.details or "",
            "amount": float(txn.amount),
            "type": txn.type,
            "debit": _debit_amount(txn),
            "credit": _credit_amount(txn),
            "balance": float(txn.balance),
            "tag_ids": txn.tag_ids,
            "payment_method": txn.payment_method,
            "merchant_id": extract_merchant_id(txn.details),
        }
        for txn in transactions
    ]
    frame = pd.DataFrame.from_records(records, columns=LEDGER_COLUMNS)
    frame["date"] = pd.to_datetime(frame["date"])
    for column in ("amount", "debit", "credit", "balance"):
        frame[column] = frame[column].astype(float)
    return frame


def resolve_as_of(as_of: Optional[DateLike] = None) -> pd.Timestamp:
    """Return the caller's notion of "now" as a timestamp."""

    if as_of is None:
        return pd.Timestamp.now()
    return pd.Timestamp(as_of)


def month_key(value: DateLike) -> str:
    return pd.Timestamp(value).strftime("%Y-%m")


def parse_month(period: str) -> pd.Period:
    """Parse a ``YYYY-MM`` period string into a monthly period."""

    if not isinstance(period, str) or not _MONTH_PATTERN.fullmatch(period.strip()):
        raise LedgerDataError(f"Invalid period {period!r}; expected YYYY-MM")
    return pd.Period(period.strip(), freq="M")


def month_bounds(year: int, month: int) -> tuple[pd.Timestamp, pd.Timestamp]:
    """Return the first and last instant of a calendar month."""

    if not 1 <= month <= 12:
        raise LedgerDataError(f"Month must be between 1 and 12, got {month}")
    period = pd.Period(year=year, month=month, freq="M")
    return period.start_time, period.end_time


def add_months(value: DateLike, months: int) -> pd.Timestamp:
    """Shift by calendar months, clamping to the target month's last day."""

    return pd.Timestamp(value) + pd.DateOffset(months=months)


def months_between(start: DateLike, end: DateLike) -> int:
    """Whole calendar months from ``start`` to ``end`` (negative when reversed)."""

    start_ts, end_ts = pd.Timestamp(start), pd.Timestamp(end)
    return (end_ts.year - start_ts.year) * 12 + (end_ts.month - start_ts.month)


def trailing_months(as_of: DateLike, count: int) -> list[pd.Period]:
    """Return ``count`` monthly periods ending with the month of ``as_of``."""

    current = pd.Timestamp(as_of).to_period("M")
    return [current - offset for offset in range(count)]


def filter_window(
    frame: pd.DataFrame,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
) -> pd.DataFrame:
    """Return rows dated within the inclusive ``[start, end]`` bounds."""

    mask = pd.Series(True, index=frame.index)
    if start is not None:
        mask &= frame["date"] >= pd.Timestamp(start)
    if end is not None:
        mask &= frame["date"] <= pd.Timestamp(end)
    return frame.loc[mask]


def monthly_totals(frame: pd.DataFrame) -> pd.DataFrame:
    """Return income and expenses per calendar month, indexed by period."""

    if frame.empty:
        return pd.DataFrame(
            {"income": pd.Series(dtype=float), "expenses": pd.Series(dtype=float)},
            index=pd.PeriodIndex([], freq="M"),
        )
    months = frame["date"].dt.to_period("M")
    totals = pd.DataFrame({"income": frame["credit"], "expenses": frame["debit"]})
    return totals.groupby(months).sum()


def empty_cash_flow(period: str = "") -> CashFlowMetrics:
    return {
        "period": period,
        "total_inflow": 0.0,
        "total_outflow": 0.0,
        "net_cash_flow": 0.0,
        "average_daily_inflow": 0.0,
        "average_daily_outflow": 0.0,
        "surplus_days": 0,
        "deficit_days": 0,
    }


def _period_freq(granularity: str) -> str:
    try:
        return _PERIOD_FREQ[granularity]
    except KeyError:
        raise ValueError(f"Unsupported granularity: {granularity!r}") from None


def _period_label(period: pd.Period, granularity: str) -> str:
    if granularity == "weekly":
        year, week, _ = period.start_time.isocalendar()
        return f"{year}-W{week:02d}"
    if granularity == "daily":
        return period.strftime("%Y-%m-%d")
    return period.strftime("%Y-%m")


def _bucket_metrics(group: pd.DataFrame, label: str) -> CashFlowMetrics:
    if group.empty:
        return empty_cash_flow(label)

    is_credit = group["type"] == "credit"
    inflow = float(group.loc[is_credit, "amount"].sum())
    outflow = float(group.loc[group["type"] == "debit", "amount"].sum())

    signed = group["amount"].where(is_credit, -group["amount"])
    daily_net = signed.groupby(group["date"].dt.normalize()).sum()
    active_days = max(len(daily_net), 1)

    return {
        "period": label,
        "total_inflow": inflow,
        "total_outflow": outflow,
        "net_cash_flow": inflow - outflow,
        "average_daily_inflow": inflow / active_days,
        "average_daily_outflow": outflow / active_days,
        "surplus_days": int((daily_net > 0).sum()),
        "deficit_days": int((daily_net < 0).sum()),
    }


def calculate_cash_flow(
    transactions: Iterable[Transaction],
    granularity: Granularity = "monthly",
) -> list[CashFlowMetrics]:
    """Bucket observed transactions by period.

    Only periods that contain transactions are returned, in chronological
    order, so an absent bucket means "no data" rather than a flat period.
    """

    freq = _period_freq(granularity)
    frame = ledger_frame(transactions)
    if frame.empty:
        return []

    periods = frame["date"].dt.to_period(freq)
    return [
        _bucket_metrics(group, _period_label(period, granularity))
        for period, group in frame.groupby(periods, sort=True)
    ]


def calculate_cash_flow_window(
    transactions: Iterable[Transaction],
    start: DateLike,
    end: DateLike,
    granularity: Granularity = "monthly",
) -> list[CashFlowMetrics]:
    """Bucket a fixed horizon; every period in range appears, zero-filled."""

    freq = _period_freq(granularity)
    start_ts, end_ts = pd.Timestamp(start), pd.Timestamp(end)
    if end_ts < start_ts:
        return []

    frame = filter_window(ledger_frame(transactions), start_ts, end_ts)
    periods = frame["date"].dt.to_period(freq)
    grouped = {period: group for period, group in frame.groupby(periods)}

    return [
        _bucket_metrics(grouped.get(period, frame.iloc[0:0]), _period_label(period, granularity))
        for period in pd.period_range(start_ts, end_ts, freq=freq)
    ]


def total_income(
    transactions: Iterable[Transaction],
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
) -> float:
    frame = filter_window(ledger_frame(transactions), start, end)
    return float(frame["credit"].sum())


def total_expenses(
    transactions: Iterable[Transaction],
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
) -> float:
    frame = filter_window(ledger_frame(transactions), start, end)
    return float(frame["debit"].sum())


def net_cash_flow(
    transactions: Iterable[Transaction],
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
) -> float:
    frame = filter_window(ledger_frame(transactions), start, end)
    return float(frame["credit"].sum() - frame["debit"].sum())


def savings_rate(
    transactions: Iterable[Transaction],
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
) -> float:
    """Return ``(income - expenses) / income * 100``; 0 when there is no income."""

    frame = filter_window(ledger_frame(transactions), start, end)
    income = float(frame["credit"].sum())
    if income == 0:
        return 0.0
    return (income - float(frame["debit"].sum())) / income * 100
