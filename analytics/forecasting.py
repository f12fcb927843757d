"""Balance forecasting, low-balance warnings and cash-flow projection."""

from __future__ import annotations

import logging
import math
from statistics import NormalDist
from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd

from analytics.periods import DateLike, ledger_frame, resolve_as_of
from analytics.recurring import detect_recurring_payments, next_occurrence
from config import get_settings
from core.models import (
    BalanceForecast,
    CashFlowProjection,
    ForecastWarning,
    RecurringPayment,
    Transaction,
)

__all__ = [
    "forecast_end_of_month_balance",
    "generate_warnings",
    "project_cash_flow",
    "recurring_occurrences",
]

logger = logging.getLogger(__name__)

_ONE_DAY = pd.Timedelta(days=1)


def _daily_averages(frame: pd.DataFrame) -> tuple[float, float]:
    """Average daily income and expense over the span the ledger covers."""

    if frame.empty:
        return 0.0, 0.0
    span = (frame["date"].max() - frame["date"].min()) / _ONE_DAY
    days_covered = max(1, math.ceil(span))
    return float(frame["credit"].sum()) / days_covered, float(frame["debit"].sum()) / days_covered


def _daily_net_std(frame: pd.DataFrame) -> float:
    if len(frame) < 2:
        return 0.0
    net = frame["credit"] - frame["debit"]
    daily = net.groupby(frame["date"].dt.normalize()).sum()
    std = float(daily.std(ddof=0))
    return 0.0 if np.isnan(std) else std


def recurring_occurrences(
    payment: RecurringPayment,
    start: pd.Timestamp,
    end: pd.Timestamp,
) -> list[pd.Timestamp]:
    """Return expected charge dates of ``payment`` in ``[start, end)``.

    Charges whose expected date already slipped by more than one cadence
    before ``start`` are treated as lapsed and yield nothing.
    """

    expected = pd.Timestamp(payment["next_expected_date"])
    if expected < start - pd.Timedelta(days=payment["interval_days"]):
        return []

    dates: list[pd.Timestamp] = []
    while expected < end:
        if expected >= start:
            dates.append(expected)
        expected = next_occurrence(expected, payment["frequency"])
    return dates


def _recurring_due(
    recurring: Sequence[RecurringPayment],
    start: pd.Timestamp,
    end: pd.Timestamp,
) -> tuple[float, list[RecurringPayment]]:
    total = 0.0
    due: list[RecurringPayment] = []
    for payment in recurring:
        occurrences = recurring_occurrences(payment, start, end)
        if occurrences:
            total += float(payment["amount"]) * len(occurrences)
            due.append(payment)
    return total, due


def forecast_end_of_month_balance(
    transactions: Iterable[Transaction],
    recurring: Optional[Sequence[RecurringPayment]] = None,
    as_of: Optional[DateLike] = None,
    confidence: float = 0.68,
) -> BalanceForecast:
    """Forecast the balance at the end of the current month.

    The projection starts from the most recent balance, adds the historical
    daily income/expense trend for the days left, and subtracts recurring
    payments expected before month end. The interval widens with the daily
    net-flow volatility over the remaining days.
    """

    transactions = list(transactions)
    settings = get_settings()
    frame = ledger_frame(transactions)
    today = resolve_as_of(as_of)
    month_end = today.to_period("M").end_time

    if frame.empty:
        return {
            "date": month_end,
            "predicted_balance": 0.0,
            "confidence_interval": {"low": 0.0, "high": 0.0},
            "assumptions": ["No transaction history available"],
        }

    ordered = frame.sort_values("date", kind="stable")
    current_balance = float(ordered["balance"].iloc[-1])
    days_remaining = math.ceil((month_end - today) / _ONE_DAY)

    if days_remaining <= 0:
        return {
            "date": month_end,
            "predicted_balance": current_balance,
            "confidence_interval": {"low": current_balance, "high": current_balance},
            "assumptions": ["Already at end of month"],
        }

    if recurring is None:
        recurring = detect_recurring_payments(transactions)

    avg_income, avg_expense = _daily_averages(frame)
    recurring_total, recurring_due = _recurring_due(recurring, today, month_end)

    predicted = current_balance + (avg_income - avg_expense) * days_remaining - recurring_total

    z = NormalDist().inv_cdf((1 + confidence) / 2) if 0 < confidence < 1 else 0.0
    margin = z * _daily_net_std(frame) * math.sqrt(days_remaining)

    assumptions = [
        f"Based on {len(frame)} historical transactions",
        f"Average daily income: {settings.format_amount(avg_income)}",
        f"Average daily expenses: {settings.format_amount(avg_expense)}",
        f"{len(recurring)} recurring payments detected",
        f"Recurring payments due: {settings.format_amount(recurring_total)}",
        f"{days_remaining} days remaining in month",
    ]
    assumptions.extend(
        f"Expecting {payment['merchant']} ({settings.format_amount(payment['amount'])}, {payment['frequency']})"
        for payment in recurring_due
    )

    return {
        "date": month_end,
        "predicted_balance": predicted,
        "confidence_interval": {"low": predicted - margin, "high": predicted + margin},
        "assumptions": assumptions,
    }


def generate_warnings(
    forecasts: Iterable[BalanceForecast],
    low_balance_threshold: Optional[float] = None,
) -> list[ForecastWarning]:
    """Flag forecasts whose predicted balance or low bound is at risk."""

    settings = get_settings()
    threshold = settings.low_balance_threshold if low_balance_threshold is None else low_balance_threshold

    warnings: list[ForecastWarning] = []
    for forecast in forecasts:
        when = pd.Timestamp(forecast["date"])
        label = when.strftime("%d %b %Y")
        predicted = forecast["predicted_balance"]
        low = forecast["confidence_interval"]["low"]

        if predicted < 0:
            warnings.append(
                {
                    "type": "negative_balance",
                    "date": when,
                    "message": (
                        f"Account balance is predicted to go negative "
                        f"({settings.format_amount(predicted)}) by {label}"
                    ),
                    "severity": "critical",
                }
            )
        elif predicted < threshold:
            warnings.append(
                {
                    "type": "low_balance",
                    "date": when,
                    "message": (
                        f"Account balance is predicted to fall below "
                        f"{settings.format_amount(threshold)} ({settings.format_amount(predicted)}) by {label}"
                    ),
                    "severity": "warning",
                }
            )
        elif low < 0:
            warnings.append(
                {
                    "type": "negative_balance",
                    "date": when,
                    "message": f"There is a risk of negative balance (worst case: {settings.format_amount(low)}) by {label}",
                    "severity": "warning",
                }
            )
        elif low < threshold:
            warnings.append(
                {
                    "type": "low_balance",
                    "date": when,
                    "message": (
                        f"Balance could dip below {settings.format_amount(threshold)} "
                        f"(worst case: {settings.format_amount(low)}) by {label}"
                    ),
                    "severity": "info",
                }
            )
    return warnings


def project_cash_flow(
    transactions: Iterable[Transaction],
    days: Optional[int] = None,
    recurring: Optional[Sequence[RecurringPayment]] = None,
    as_of: Optional[DateLike] = None,
) -> list[CashFlowProjection]:
    """Project inflow and outflow over a rolling horizon in calendar-month periods.

    The horizon starts on the day of ``as_of`` and spans ``days`` days, so the
    first and last periods may be partial months. Every period in the horizon
    is returned, including ones with nothing expected.
    """

    transactions = list(transactions)
    horizon = get_settings().forecast_horizon_days if days is None else days
    if horizon <= 0:
        return []

    frame = ledger_frame(transactions)
    start = resolve_as_of(as_of).normalize()
    last_day = start + pd.Timedelta(days=horizon - 1)

    if recurring is None:
        recurring = detect_recurring_payments(transactions)
    avg_income, avg_expense = _daily_averages(frame)

    projections: list[CashFlowProjection] = []
    for period in pd.period_range(start, last_day, freq="M"):
        period_start = max(period.start_time, start)
        period_last = min(period.end_time.normalize(), last_day)
        period_days = (period_last - period_start).days + 1

        recurring_total, recurring_due = _recurring_due(recurring, period_start, period_last + _ONE_DAY)
        inflow = avg_income * period_days
        outflow = avg_expense * period_days + recurring_total

        projections.append(
            {
                "period": period.strftime("%Y-%m"),
                "start": period_start,
                "end": period_last,
                "expected_inflow": inflow,
                "expected_outflow": outflow,
                "net_flow": inflow - outflow,
                "recurring_payments": recurring_due,
            }
        )

    logger.debug("Projected %d period(s) over %d days", len(projections), horizon)
    return projections
