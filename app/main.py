"""Command-line entrypoint for Ledgerwise reports and forecasts."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Iterable, Optional, Sequence

import pandas as pd

from analytics.forecasting import forecast_end_of_month_balance, generate_warnings, project_cash_flow
from analytics.recurring import detect_recurring_payments
from config import configure_logging, get_settings
from core.data_loader import load_transactions
from core.errors import LedgerError
from core.models import Tag, Transaction
from reports.export import monthly_report_to_csv, report_to_json, yearly_report_to_csv
from reports.monthly import generate_monthly_report
from reports.yearly import generate_yearly_report

__all__ = ["build_parser", "main"]

logger = logging.getLogger(__name__)


def _as_of_date(value: str) -> pd.Timestamp:
    try:
        return pd.Timestamp(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date: {value!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ledgerwise",
        description="Reports and balance forecasts from an exported bank ledger CSV.",
    )
    parser.add_argument("--log-level", help="Override LEDGERWISE_LOG_LEVEL (e.g. DEBUG)")
    subparsers = parser.add_subparsers(dest="command", title="commands", metavar="<command>")

    monthly_parser = subparsers.add_parser("monthly", help="Generate a monthly report")
    monthly_parser.add_argument("csv", help="Path to the ledger CSV")
    monthly_parser.add_argument("--year", type=int, required=True)
    monthly_parser.add_argument("--month", type=int, required=True)
    monthly_parser.add_argument("--format", "-f", choices=["csv", "json"], default="csv")

    yearly_parser = subparsers.add_parser("yearly", help="Generate a yearly report")
    yearly_parser.add_argument("csv", help="Path to the ledger CSV")
    yearly_parser.add_argument("--year", type=int, required=True)
    yearly_parser.add_argument("--format", "-f", choices=["csv", "json"], default="csv")

    forecast_parser = subparsers.add_parser(
        "forecast",
        help="Forecast the end-of-month balance and project cash flow",
    )
    forecast_parser.add_argument("csv", help="Path to the ledger CSV")
    forecast_parser.add_argument("--days", type=int, help="Projection horizon in days (default: 90)")
    forecast_parser.add_argument("--as-of", type=_as_of_date, help="Reference date, YYYY-MM-DD (default: today)")
    forecast_parser.add_argument("--threshold", type=float, help="Low-balance warning threshold")
    forecast_parser.add_argument("--format", "-f", choices=["text", "json"], default="text")

    return parser


def _tag_catalog(transactions: Iterable[Transaction]) -> tuple[Tag, ...]:
    """Use each tag id found in the ledger as its own label."""

    tag_ids = sorted({tag_id for txn in transactions for tag_id in txn.tag_ids})
    return tuple(Tag(id=tag_id, name=tag_id) for tag_id in tag_ids)


def _cmd_monthly(args: argparse.Namespace) -> str:
    transactions = load_transactions(args.csv)
    report = generate_monthly_report(transactions, _tag_catalog(transactions), (), args.year, args.month)
    return report_to_json(report) if args.format == "json" else monthly_report_to_csv(report)


def _cmd_yearly(args: argparse.Namespace) -> str:
    transactions = load_transactions(args.csv)
    report = generate_yearly_report(transactions, _tag_catalog(transactions), (), args.year)
    return report_to_json(report) if args.format == "json" else yearly_report_to_csv(report)


def _cmd_forecast(args: argparse.Namespace) -> str:
    transactions = load_transactions(args.csv)
    recurring = detect_recurring_payments(transactions)
    forecast = forecast_end_of_month_balance(transactions, recurring, as_of=args.as_of)
    warnings = generate_warnings([forecast], args.threshold)
    projections = project_cash_flow(transactions, args.days, recurring, as_of=args.as_of)

    if args.format == "json":
        return report_to_json({"forecast": forecast, "warnings": warnings, "cash_flow": projections})

    fmt = get_settings().format_amount
    interval = forecast["confidence_interval"]
    lines = [
        f"End-of-month balance ({forecast['date']:%Y-%m-%d}): {fmt(forecast['predicted_balance'])}",
        f"  range {fmt(interval['low'])} to {fmt(interval['high'])}",
    ]
    lines.extend(f"  - {assumption}" for assumption in forecast["assumptions"])
    for warning in warnings:
        lines.append(f"[{warning['severity'].upper()}] {warning['message']}")
    lines.append("")
    lines.append("Period   Inflow         Outflow        Net")
    for row in projections:
        lines.append(
            f"{row['period']}  {fmt(row['expected_inflow']):>13}  "
            f"{fmt(row['expected_outflow']):>13}  {fmt(row['net_flow']):>13}"
        )
    return "\n".join(lines)


_COMMANDS = {
    "monthly": _cmd_monthly,
    "yearly": _cmd_yearly,
    "forecast": _cmd_forecast,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Application entrypoint for the Ledgerwise CLI; returns the exit code."""

    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        output = _COMMANDS[args.command](args)
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except LedgerError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
