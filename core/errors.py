"""Exception types raised at the engine's input boundary."""

from __future__ import annotations

__all__ = ["LedgerError", "LedgerDataError"]


class LedgerError(ValueError):
    """Base class for ledger input problems."""


class LedgerDataError(LedgerError):
    """Raised when collaborator input is malformed beyond a safe default."""
