"""Shared fixtures for the Ledgerwise test suite."""

from __future__ import annotations

import sys
from pathlib import Path

import pandas as pd
import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import get_settings
from core.models import Tag, Transaction


def make_txn(
    when: str,
    amount: float,
    kind: str = "debit",
    *,
    balance: float = 0.0,
    details: str = "MISC PURCHASE",
    tags: tuple[str, ...] = (),
    txn_id: str = "",
    payment_method: str = "UPI",
) -> Transaction:
    return Transaction(
        id=txn_id or f"{when}-{details}-{amount}",
        date=pd.Timestamp(when).to_pydatetime(),
        amount=amount,
        type=kind,
        debit=amount if kind == "debit" else None,
        credit=amount if kind == "credit" else None,
        balance=balance,
        details=details,
        tag_ids=frozenset(tags),
        payment_method=payment_method,
    )


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Keep cached settings from leaking between tests."""

    for name in ("LEDGERWISE_LOW_BALANCE_THRESHOLD", "LEDGERWISE_FORECAST_HORIZON_DAYS", "LEDGERWISE_TOP_N"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def tags() -> list[Tag]:
    return [
        Tag(id="food", name="Food & Dining"),
        Tag(id="travel", name="Travel"),
        Tag(id="sip", name="Mutual Fund SIP"),
    ]


@pytest.fixture()
def march_ledger() -> list[Transaction]:
    """Salary of 50,000 and 30,000 of spending in March 2024."""

    return [
        make_txn("2024-03-01", 50000.0, "credit", balance=60000.0, details="NEFT-ACME CORP-SALARY", txn_id="m1"),
        make_txn("2024-03-04", 12000.0, balance=48000.0, details="RENT TRANSFER", tags=("housing",), txn_id="m2"),
        make_txn("2024-03-10", 4200.0, balance=43800.0, details="SWIGGY ORDER", tags=("food",), txn_id="m3"),
        make_txn("2024-03-15", 5000.0, balance=38800.0, details="MUTUAL FUND SIP", tags=("sip",), txn_id="m4"),
        make_txn("2024-03-22", 8800.0, balance=30000.0, details="AIRLINE TICKETS", tags=("travel",), txn_id="m5"),
    ]
