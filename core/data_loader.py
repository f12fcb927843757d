"""Data loading utilities for Ledgerwise's exported ledger CSVs."""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Final

import pandas as pd

from core.errors import LedgerDataError
from core.models import Transaction

__all__ = ["REQUIRED_COLUMNS", "detect_payment_method", "load_transactions"]

logger = logging.getLogger(__name__)

_CACHE_SIZE: Final[int] = 8

REQUIRED_COLUMNS: Final[tuple[str, ...]] = ("date", "details", "debit", "credit", "balance")

_PAYMENT_METHOD_PATTERNS: Final[tuple[tuple[str, re.Pattern[str]], ...]] = (
    ("UPI", re.compile(r"UPI|UNIFIED PAYMENT", re.IGNORECASE)),
    ("NEFT", re.compile(r"NEFT|NATIONAL ELECTRONIC", re.IGNORECASE)),
    ("IMPS", re.compile(r"IMPS|IMMEDIATE PAYMENT", re.IGNORECASE)),
    ("ATM", re.compile(r"ATM|CASH WITHDRAWAL|\bCWD\b", re.IGNORECASE)),
    ("POS", re.compile(r"POS|POINT OF SALE|CARD PURCHASE", re.IGNORECASE)),
    ("CHEQUE", re.compile(r"CHEQUE|\bCHQ\b|CHECK|CLEARING|\bCLG\b", re.IGNORECASE)),
)


def detect_payment_method(details: str) -> str:
    """Infer the payment channel from a bank narration."""

    if not details:
        return "OTHER"
    for method, pattern in _PAYMENT_METHOD_PATTERNS:
        if pattern.search(details):
            return method
    return "OTHER"


def _text(value: object) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value).strip()


def _split_tags(value: object) -> frozenset[str]:
    return frozenset(tag.strip() for tag in _text(value).split(";") if tag.strip())


@lru_cache(maxsize=_CACHE_SIZE)
def load_transactions(csv_path: str | Path) -> tuple[Transaction, ...]:
    """Return the ledger stored at ``csv_path`` as immutable transactions.

    Each row needs ``date``, ``details``, ``debit``, ``credit`` and
    ``balance``; ``tags`` (``;``-separated ids), ``payment_method``,
    ``ref_no``, ``notes`` and ``id`` are optional. A row is a debit when its
    debit column is positive and a credit when its credit column is; rows
    with neither, or with an unparseable date or balance, are skipped.

    Results are cached per path, so edits to a file during a session are not
    picked up.
    """

    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")

    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [str(column).strip().lower() for column in df.columns]
    missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
    if missing:
        raise LedgerDataError(f"{path} is missing required column(s): {', '.join(missing)}")

    dates = pd.to_datetime(df["date"], errors="coerce")
    numbers = {
        column: pd.to_numeric(df[column].str.replace(",", "", regex=False), errors="coerce")
        for column in ("debit", "credit", "balance")
    }

    transactions: list[Transaction] = []
    skipped = 0
    for index, record in enumerate(df.to_dict(orient="records")):
        date = dates.iloc[index]
        debit = numbers["debit"].iloc[index]
        credit = numbers["credit"].iloc[index]
        balance = numbers["balance"].iloc[index]

        if pd.isna(date) or pd.isna(balance):
            skipped += 1
            continue
        if pd.notna(debit) and debit > 0:
            kind, amount = "debit", float(debit)
        elif pd.notna(credit) and credit > 0:
            kind, amount = "credit", float(credit)
        else:
            skipped += 1
            continue

        details = _text(record.get("details"))
        transactions.append(
            Transaction(
                id=_text(record.get("id")) or f"row-{index + 1}",
                date=pd.Timestamp(date).to_pydatetime(),
                details=details,
                amount=amount,
                type=kind,
                debit=amount if kind == "debit" else None,
                credit=amount if kind == "credit" else None,
                balance=float(balance),
                tag_ids=_split_tags(record.get("tags")),
                payment_method=_text(record.get("payment_method")).upper() or detect_payment_method(details),
                ref_no=_text(record.get("ref_no")),
                notes=_text(record.get("notes")) or None,
            )
        )

    if skipped:
        logger.warning("Skipped %d malformed row(s) in %s", skipped, path)
    logger.debug("Loaded %d transaction(s) from %s", len(transactions), path)
    return tuple(transactions)
