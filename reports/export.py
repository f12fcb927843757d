"""Report and ledger export to CSV and JSON text."""

from __future__ import annotations

import csv
import io
import json
from datetime import date, datetime
from typing import Any, Iterable, Mapping

import numpy as np
import pandas as pd

from core.models import MonthlyReport, Transaction, YearlyReport

__all__ = [
    "monthly_report_to_csv",
    "yearly_report_to_csv",
    "transactions_to_csv",
    "report_to_json",
]

TRANSACTION_COLUMNS = [
    "Date",
    "Details",
    "Reference No",
    "Debit",
    "Credit",
    "Balance",
    "Type",
    "Payment Method",
    "Tags",
    "Notes",
]


def _amount(value: float) -> str:
    return f"{value:.2f}"


def _percent(value: float) -> str:
    return f"{value:.2f}%"


def _timestamp(value: Any) -> str:
    return pd.Timestamp(value).isoformat()


class _SectionWriter:
    """Accumulates titled CSV sections separated by blank lines."""

    def __init__(self) -> None:
        self._buffer = io.StringIO()
        self._writer = csv.writer(self._buffer, lineterminator="\n")

    def row(self, *cells: Any) -> None:
        self._writer.writerow(cells)

    def blank(self) -> None:
        self._buffer.write("\n")

    def getvalue(self) -> str:
        return self._buffer.getvalue().rstrip("\n")


def _merchant_rows(out: _SectionWriter, merchants: Iterable[Mapping[str, Any]]) -> None:
    out.row("Top Merchants")
    out.row("Merchant", "Total Amount", "Transaction Count", "Average Amount")
    for merchant in merchants:
        out.row(
            merchant["merchant"],
            _amount(merchant["total_amount"]),
            merchant["transaction_count"],
            _amount(merchant["average_amount"]),
        )
    out.blank()


def monthly_report_to_csv(report: MonthlyReport) -> str:
    out = _SectionWriter()
    out.row(f"Monthly Financial Report - {report['period']}")
    out.row(f"Generated: {_timestamp(report['generated_at'])}")
    out.blank()

    summary = report["summary"]
    out.row("Summary")
    out.row("Metric", "Value")
    out.row("Total Income", _amount(summary["total_income"]))
    out.row("Total Expenses", _amount(summary["total_expenses"]))
    out.row("Net Savings", _amount(summary["net_savings"]))
    out.row("Savings Rate", _percent(summary["savings_rate"]))
    out.blank()

    balance = report["balance_metrics"]
    out.row("Balance Metrics")
    out.row("Metric", "Value")
    out.row("Current Balance", _amount(balance["current"]))
    out.row("Highest Balance", _amount(balance["highest"]))
    out.row("Lowest Balance", _amount(balance["lowest"]))
    out.row("Average Balance", _amount(balance["average"]))
    out.blank()

    out.row("Spending by Category")
    out.row("Category", "Amount")
    for row in report["spending_by_tag"]:
        out.row(row["label"], _amount(row["amount"]))
    out.blank()

    _merchant_rows(out, report["top_merchants"])

    if report["budget_performance"]:
        out.row("Budget Performance")
        out.row("Category", "Limit", "Spent", "Remaining", "Status")
        for status in report["budget_performance"]:
            out.row(
                status["tag_name"],
                _amount(status["monthly_limit"]),
                _amount(status["current_spend"]),
                _amount(status["remaining"]),
                status["status"],
            )
        out.blank()

    out.row("Financial Health Score")
    out.row("Overall Score", report["health_score"]["score"])
    out.row("Trend", report["health_score"]["trend"])
    out.blank()

    if report["recommendations"]:
        out.row("Recommendations")
        for index, recommendation in enumerate(report["recommendations"], start=1):
            out.row(f"{index}. {recommendation}")

    return out.getvalue()


def yearly_report_to_csv(report: YearlyReport) -> str:
    out = _SectionWriter()
    out.row(f"Yearly Financial Report - {report['year']}")
    out.row(f"Generated: {_timestamp(report['generated_at'])}")
    out.blank()

    summary = report["summary"]
    out.row("Summary")
    out.row("Metric", "Value")
    out.row("Total Income", _amount(summary["total_income"]))
    out.row("Total Expenses", _amount(summary["total_expenses"]))
    out.row("Net Savings", _amount(summary["net_savings"]))
    out.row("Average Monthly Savings", _amount(summary["average_monthly_savings"]))
    out.blank()

    comparison = report["year_over_year"]
    if comparison is not None:
        out.row("Year-over-Year Comparison")
        out.row("Metric", "Change %")
        out.row("Income Change", _percent(comparison["income_change"]))
        out.row("Expense Change", _percent(comparison["expense_change"]))
        out.row("Savings Change", _percent(comparison["savings_change"]))
        out.blank()

    out.row("Monthly Breakdown")
    out.row("Month", "Income", "Expenses", "Savings", "Savings Rate %")
    for month in report["monthly_breakdown"]:
        month_summary = month["summary"]
        out.row(
            month["period"],
            _amount(month_summary["total_income"]),
            _amount(month_summary["total_expenses"]),
            _amount(month_summary["net_savings"]),
            f"{month_summary['savings_rate']:.2f}",
        )
    out.blank()

    out.row("Top Spending Categories")
    out.row("Category", "Amount")
    for category in report["top_categories"]:
        out.row(category["label"], _amount(category["amount"]))
    out.blank()

    _merchant_rows(out, report["top_merchants"])

    investment = report["investment_summary"]
    out.row("Investment Summary")
    out.row("Total Invested", _amount(investment["total_invested"]))
    out.row("SIP Consistency", _percent(investment["sip_consistency"]))

    return out.getvalue()


def transactions_to_csv(transactions: Iterable[Transaction]) -> str:
    """Flatten the ledger into a CSV with one row per transaction."""

    records = [
        {
            "Date": pd.Timestamp(txn.date).strftime("%Y-%m-%d"),
            "Details": txn.details,
            "Reference No": txn.ref_no,
            "Debit": txn.debit,
            "Credit": txn.credit,
            "Balance": txn.balance,
            "Type": txn.type,
            "Payment Method": txn.payment_method,
            "Tags": ";".join(sorted(txn.tag_ids)),
            "Notes": txn.notes or "",
        }
        for txn in transactions
    ]
    frame = pd.DataFrame.from_records(records, columns=TRANSACTION_COLUMNS)
    return frame.to_csv(index=False, lineterminator="\n")


def _json_default(value: Any) -> Any:
    if isinstance(value, (pd.Timestamp, datetime, date)):
        return value.isoformat()
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def report_to_json(report: Mapping[str, Any]) -> str:
    """Serialise any report or engine output; timestamps become ISO strings."""

    return json.dumps(report, ensure_ascii=False, indent=2, default=_json_default)
