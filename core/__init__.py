"""Core domain package for the Ledgerwise engine."""

from .data_loader import load_transactions
from .errors import LedgerDataError, LedgerError
from .models import Budget, SavingsGoal, SpendingLimit, Tag, Transaction

__all__ = [
    "Budget",
    "SavingsGoal",
    "SpendingLimit",
    "Tag",
    "Transaction",
    "LedgerDataError",
    "LedgerError",
    "load_transactions",
]
